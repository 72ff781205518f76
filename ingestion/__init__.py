"""Ingestion layer - load Word documents into the document model."""
from .docx_extractor import extract_docx

__all__ = ["extract_docx"]
