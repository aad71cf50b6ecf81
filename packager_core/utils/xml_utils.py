"""In-place XML pretty printing that keeps the prolog (declaration, DOCTYPE)."""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path

_ROOT_START = re.compile(r"<(?![?!])")


def _split_prolog(text: str) -> tuple[str, str]:
    match = _ROOT_START.search(text)
    if match is None:
        return "", text
    return text[: match.start()], text[match.start():]


def prettify(path: Path, *, indent: str = "  ") -> Path:
    """Re-indent ``path``; element structure, attributes and text are left untouched."""

    text = path.read_text(encoding="utf-8")
    prolog, body = _split_prolog(text)
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    root = ET.fromstring(body, parser=parser)
    default_ns = re.match(r"<[^>\s]+\s[^>]*xmlns=\"([^\"]+)\"", body)
    if default_ns:
        ET.register_namespace("", default_ns.group(1))
    ET.indent(root, space=indent)
    serialized = ET.tostring(root, encoding="unicode")
    prolog_lines = [line.strip() for line in prolog.splitlines() if line.strip()]
    header = "\n".join(prolog_lines)
    path.write_text(f"{header}\n{serialized}\n" if header else f"{serialized}\n", encoding="utf-8")
    return path


__all__ = ["prettify"]
