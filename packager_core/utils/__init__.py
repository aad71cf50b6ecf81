"""Collaborators of the packaging pipeline: commands, files and XML."""

from . import commands, files, xml_utils

__all__ = ["commands", "files", "xml_utils"]
