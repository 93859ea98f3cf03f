"""Document ingestion: text extraction and normalization into Documents."""

from .normalizer import DocumentNormalizer, DocumentValidationError, resolve_media_type
from .parsers import extract_text, parse_docx, parse_pdf

__all__ = [
    "DocumentNormalizer",
    "DocumentValidationError",
    "extract_text",
    "parse_docx",
    "parse_pdf",
    "resolve_media_type",
]
