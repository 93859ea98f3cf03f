"""Text extraction from uploaded PDF and DOCX payloads."""

import io
import logging
import re

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MEDIA_TYPE = "text/plain"

EXTRACTION_FAILED_PLACEHOLDER = "[Could not extract text from this file]"


def parse_pdf(payload: bytes) -> str:
    """Extract text from PDF bytes using pypdf.

    Args:
        payload: Raw PDF file content.

    Returns:
        Clean extracted text with normalized whitespace.

    Raises:
        ValueError: If the file is corrupt, password-protected, or unreadable.
    """
    from pypdf import PdfReader

    try:
        reader = PdfReader(io.BytesIO(payload))
        page_count = len(reader.pages)
        logger.info("Parsing PDF (%d pages, %d bytes)", page_count, len(payload))

        text_parts: list[str] = []
        for i, page in enumerate(reader.pages):
            try:
                raw = page.extract_text()
                if raw:
                    text_parts.append(raw)
            except Exception as e:
                logger.warning("Failed to extract page %d: %s", i + 1, e)

        return clean_text("\n\n".join(text_parts))

    except Exception as e:
        err_msg = str(e).lower()
        if "password" in err_msg or "encrypted" in err_msg:
            raise ValueError("PDF is password-protected") from e
        raise ValueError(f"Failed to parse PDF: {e}") from e


def parse_docx(payload: bytes) -> str:
    """Extract text from DOCX bytes using python-docx.

    Extracts text from paragraphs and tables.

    Raises:
        ValueError: If the file is corrupt or unreadable.
    """
    from docx import Document

    try:
        doc = Document(io.BytesIO(payload))
        text_parts: list[str] = [para.text for para in doc.paragraphs if para.text.strip()]

        for table in doc.tables:
            for row in table.rows:
                row_text = " | ".join(cell.text.strip() for cell in row.cells if cell.text.strip())
                if row_text:
                    text_parts.append(row_text)

        return clean_text("\n\n".join(text_parts))

    except Exception as e:
        raise ValueError(f"Failed to parse DOCX: {e}") from e


def extract_text(payload: bytes, media_type: str) -> str:
    """Best-effort text extraction for an allowed media type.

    Never raises: any extraction failure yields EXTRACTION_FAILED_PLACEHOLDER
    so the conversation can continue and the length check rejects it.
    """
    try:
        if media_type == PDF_MEDIA_TYPE:
            text = parse_pdf(payload)
        elif media_type == DOCX_MEDIA_TYPE:
            text = parse_docx(payload)
        else:
            text = clean_text(payload.decode("utf-8", errors="replace"))
    except Exception as e:
        logger.warning("Text extraction failed for %s: %s", media_type, e)
        return EXTRACTION_FAILED_PLACEHOLDER

    return text or EXTRACTION_FAILED_PLACEHOLDER


def clean_text(text: str) -> str:
    """Normalize whitespace in extracted or pasted text."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
