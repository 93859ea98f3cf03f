"""Validate and canonicalize submitted resumes and job posts into Documents."""

import logging
from pathlib import Path
from typing import Optional

from app.models import Document

from .parsers import (
    DOCX_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
    TEXT_MEDIA_TYPE,
    clean_text,
    extract_text,
)

logger = logging.getLogger(__name__)

EXTENSION_MEDIA_TYPES = {
    ".txt": TEXT_MEDIA_TYPE,
    ".pdf": PDF_MEDIA_TYPE,
    ".docx": DOCX_MEDIA_TYPE,
}


class DocumentValidationError(ValueError):
    """User-correctable rejection of a submitted document."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def resolve_media_type(declared: Optional[str], file_name: Optional[str] = None) -> Optional[str]:
    """Prefer the declared media type; fall back to the file extension."""
    if declared:
        return declared.split(";")[0].strip().lower()
    if file_name:
        return EXTENSION_MEDIA_TYPES.get(Path(file_name).suffix.lower())
    return None


def count_words(text: str) -> int:
    return len(text.split())


class DocumentNormalizer:
    """Turns pasted text or uploaded bytes into a bounded plain-text Document.

    Checks run in a fixed order: size, media type, extraction, length. The
    verdict depends only on the input and the configured bounds.
    """

    def __init__(
        self,
        min_chars: int = 100,
        max_chars: int = 30000,
        max_size_bytes: int = 10 * 1024 * 1024,
        allow_pdf: bool = True,
        allow_docx: bool = True,
    ) -> None:
        self.min_chars = min_chars
        self.max_chars = max_chars
        self.max_size_bytes = max_size_bytes
        self.allowed_media_types = {TEXT_MEDIA_TYPE}
        if allow_pdf:
            self.allowed_media_types.add(PDF_MEDIA_TYPE)
        if allow_docx:
            self.allowed_media_types.add(DOCX_MEDIA_TYPE)

    def _check_size(self, size: int) -> None:
        if size > self.max_size_bytes:
            max_mb = self.max_size_bytes / (1024 * 1024)
            raise DocumentValidationError(
                f"File is too large: {size / (1024 * 1024):.2f} MB (maximum {max_mb:.0f} MB)."
            )

    def _build(
        self,
        text: str,
        source_kind: str,
        file_name: Optional[str] = None,
        media_type: Optional[str] = None,
    ) -> Document:
        if len(text) < self.min_chars:
            raise DocumentValidationError(
                f"The document is empty or too short ({len(text)} characters, "
                f"minimum {self.min_chars}). Please send the full text."
            )
        if len(text) > self.max_chars:
            raise DocumentValidationError(
                f"The document is too long ({len(text)} characters, maximum {self.max_chars}). "
                "Please send a shorter version."
            )
        return Document(
            text=text,
            word_count=count_words(text),
            character_count=len(text),
            source_kind=source_kind,
            file_name=file_name,
            media_type=media_type,
        )

    def normalize_text(self, raw_text: str) -> Document:
        """Validate pasted text.

        Raises:
            DocumentValidationError: If the text is oversized, too short, or too long.
        """
        self._check_size(len(raw_text.encode("utf-8")))
        return self._build(clean_text(raw_text), "text")

    def check_declared(
        self,
        media_type: Optional[str],
        declared_size: Optional[int],
        file_name: Optional[str] = None,
    ) -> str:
        """Reject an upload from its metadata alone, before downloading it.

        Returns the resolved media type.
        """
        if declared_size is not None:
            self._check_size(declared_size)
        resolved = resolve_media_type(media_type, file_name)
        if resolved not in self.allowed_media_types:
            allowed = ", ".join(sorted(self.allowed_media_types))
            raise DocumentValidationError(
                f"Unsupported file type: {resolved or 'unknown'}. Allowed: {allowed}."
            )
        return resolved

    def normalize_binary(
        self,
        payload: bytes,
        media_type: Optional[str],
        declared_size: Optional[int] = None,
        file_name: Optional[str] = None,
    ) -> Document:
        """Validate an uploaded file and extract its text.

        The size is checked before anything else, so an oversized upload is
        rejected without extraction.

        Raises:
            DocumentValidationError: On size, type, or length violations.
        """
        size = declared_size if declared_size is not None else len(payload)
        resolved = self.check_declared(media_type, size, file_name)
        self._check_size(len(payload))

        text = extract_text(payload, resolved)
        logger.info("Extracted %d characters from %s upload", len(text), resolved)
        return self._build(text, "binary", file_name=file_name, media_type=resolved)
