"""Reconstruction layer - build documents and write them back to DOCX."""
from .builders import add_table, build_paragraph, new_document, rebuild_docx

__all__ = ["add_table", "build_paragraph", "new_document", "rebuild_docx"]
