"""Tests for text extraction and document normalization."""

import io

import pytest

from app.ingestion import DocumentNormalizer, DocumentValidationError, extract_text, resolve_media_type
from app.ingestion.parsers import (
    DOCX_MEDIA_TYPE,
    EXTRACTION_FAILED_PLACEHOLDER,
    PDF_MEDIA_TYPE,
    TEXT_MEDIA_TYPE,
    clean_text,
)
from tests.fakes import text_of_length


def _docx_bytes(paragraphs: list[str]) -> bytes:
    from docx import Document

    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def normalizer() -> DocumentNormalizer:
    return DocumentNormalizer(min_chars=100, max_chars=1000, max_size_bytes=100_000)


@pytest.mark.unit
class TestExtraction:
    def test_clean_text_collapses_whitespace(self):
        assert clean_text("a \t b\r\n\n\n\nc  ") == "a b\n\nc"

    def test_plain_text_decoded(self):
        assert extract_text("hello résumé".encode("utf-8"), TEXT_MEDIA_TYPE) == "hello résumé"

    def test_garbage_pdf_yields_placeholder(self):
        assert extract_text(b"definitely not a pdf", PDF_MEDIA_TYPE) == EXTRACTION_FAILED_PLACEHOLDER

    def test_garbage_docx_yields_placeholder(self):
        assert extract_text(b"PK-not-really", DOCX_MEDIA_TYPE) == EXTRACTION_FAILED_PLACEHOLDER

    def test_docx_paragraphs_extracted(self):
        payload = _docx_bytes(["Jane Doe", "Senior Python Developer"])
        text = extract_text(payload, DOCX_MEDIA_TYPE)
        assert "Jane Doe" in text
        assert "Senior Python Developer" in text

    def test_media_type_from_extension(self):
        assert resolve_media_type(None, "CV.PDF") == PDF_MEDIA_TYPE
        assert resolve_media_type(None, "cv.docx") == DOCX_MEDIA_TYPE
        assert resolve_media_type("text/plain; charset=utf-8") == TEXT_MEDIA_TYPE
        assert resolve_media_type(None, "cv.odt") is None


@pytest.mark.unit
class TestNormalizeText:
    def test_valid_text(self, normalizer):
        doc = normalizer.normalize_text(text_of_length(200))
        assert doc.character_count == 200
        assert doc.word_count > 0
        assert doc.source_kind == "text"

    def test_too_short(self, normalizer):
        with pytest.raises(DocumentValidationError) as exc:
            normalizer.normalize_text("too short")
        assert "too short" in exc.value.reason

    def test_whitespace_only_is_empty(self, normalizer):
        with pytest.raises(DocumentValidationError):
            normalizer.normalize_text("   \n\n  ")

    def test_too_long(self, normalizer):
        with pytest.raises(DocumentValidationError) as exc:
            normalizer.normalize_text(text_of_length(1001))
        assert "too long" in exc.value.reason

    def test_bounds_are_inclusive(self, normalizer):
        assert normalizer.normalize_text(text_of_length(100)).character_count == 100
        assert normalizer.normalize_text(text_of_length(1000)).character_count == 1000

    def test_oversized_payload_rejected_before_length_check(self):
        small = DocumentNormalizer(min_chars=1, max_chars=10_000, max_size_bytes=10)
        with pytest.raises(DocumentValidationError) as exc:
            small.normalize_text("x" * 11)
        assert "too large" in exc.value.reason

    def test_verdict_is_deterministic(self, normalizer):
        text = text_of_length(150)
        first = normalizer.normalize_text(text)
        second = normalizer.normalize_text(text)
        assert (first.text, first.character_count) == (second.text, second.character_count)


@pytest.mark.unit
class TestNormalizeBinary:
    def test_docx_upload(self, normalizer):
        payload = _docx_bytes([text_of_length(150)])
        doc = normalizer.normalize_binary(payload, DOCX_MEDIA_TYPE, file_name="cv.docx")
        assert doc.source_kind == "binary"
        assert doc.media_type == DOCX_MEDIA_TYPE
        assert doc.file_name == "cv.docx"
        assert doc.character_count == 150

    def test_unreadable_pdf_rejected_as_too_short(self, normalizer):
        with pytest.raises(DocumentValidationError) as exc:
            normalizer.normalize_binary(b"%PDF-garbage", PDF_MEDIA_TYPE)
        assert "too short" in exc.value.reason

    def test_declared_size_checked_before_type(self, normalizer):
        with pytest.raises(DocumentValidationError) as exc:
            normalizer.check_declared("image/png", 10_000_000, "photo.png")
        assert "too large" in exc.value.reason

    def test_unsupported_type(self, normalizer):
        with pytest.raises(DocumentValidationError) as exc:
            normalizer.check_declared("image/png", 100, "photo.png")
        assert "Unsupported file type" in exc.value.reason

    def test_pdf_disallowed_by_config(self):
        no_pdf = DocumentNormalizer(allow_pdf=False)
        with pytest.raises(DocumentValidationError):
            no_pdf.check_declared(PDF_MEDIA_TYPE, 100)

    def test_plain_text_file_always_allowed(self):
        strict = DocumentNormalizer(allow_pdf=False, allow_docx=False)
        assert strict.check_declared(None, 100, "resume.txt") == TEXT_MEDIA_TYPE

    def test_actual_payload_size_checked(self, normalizer):
        with pytest.raises(DocumentValidationError):
            normalizer.normalize_binary(b"x" * 150_000, TEXT_MEDIA_TYPE, declared_size=10)
