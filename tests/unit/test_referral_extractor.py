# ============================================================================
# FILE: tests/unit/test_referral_extractor.py
# ============================================================================
"""
Unit tests for text acquisition and the referral extraction pipeline
"""

import io
import logging
import os
import sys
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from hmr_ingestion.config import ExtractionSettings
from hmr_ingestion.extractors.ocr_extractor import OCRExtractor, TesseractBackend
from hmr_ingestion.extractors.referral_extractor import ReferralExtractor
from hmr_ingestion.models.extraction import ReferralExtractionResult
from hmr_ingestion.utils.exceptions import OCRError, UnsupportedDocumentError


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def backend():
    """OCR backend double"""
    mock = MagicMock()
    mock.recognize_pages.return_value = []
    return mock


@pytest.fixture
def extractor(backend):
    return ReferralExtractor(settings=ExtractionSettings(), backend_factory=lambda: backend)


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (200, 100), "white").save(buffer, format="PNG")
    return buffer.getvalue()


# ============================================================================
# TEXT ACQUISITION
# ============================================================================

def test_text_layer_preferred(extractor, backend, referral_pdf):
    result = extractor.extract(referral_pdf)

    assert isinstance(result, ReferralExtractionResult)
    assert result.method == "text_layer"
    assert result.degraded is False
    assert result.data.name == "Margaret Dempster"
    assert result.data.medicare_number == "2286533TB"
    backend.recognize_pages.assert_not_called()
    backend.close.assert_called_once()


def test_short_text_layer_falls_through_to_ocr(extractor, backend, make_text_pdf, sample_referral_text):
    backend.recognize_pages.return_value = [sample_referral_text]

    result = extractor.extract(make_text_pdf("Scanned letter"))

    assert result.method == "ocr"
    assert result.degraded is False
    assert result.data.name == "Margaret Dempster"
    images = backend.recognize_pages.call_args[0][0]
    assert len(images) == 1
    assert any("Text layer too short" in warning for warning in result.warnings)


def test_image_upload_uses_ocr(extractor, backend, png_bytes, sample_referral_text):
    backend.recognize_pages.return_value = [sample_referral_text]

    result = extractor.extract(png_bytes, mime_type="image/png")

    assert result.method == "ocr"
    assert result.data.dob == "1938-01-24"
    backend.close.assert_called_once()


def test_buffer_scan_salvages_damaged_pdf(extractor, backend):
    document = b"%PDF-1.4 broken\n" + b"Thank you for seeing this patient for a medication review " * 3

    result = extractor.extract(document)

    assert result.method == "buffer_scan"
    assert result.degraded is False
    assert "medication review" in result.raw_text


def test_readable_runs_ignore_short_fragments():
    text = OCRExtractor().scan_readable_runs(b"\x00ab\x01cd\x02" + b"Long enough run of words here")
    assert text == "Long enough run of words here"


# ============================================================================
# FALLBACK
# ============================================================================

def test_unreadable_document_degrades_to_sample(extractor, backend):
    result = extractor.extract(b"\x00\x01\x02 not a pdf")

    assert result.degraded is True
    assert result.method == "fallback"
    assert result.data.name == "Margaret Dempster"
    assert len(result.data.medications) == 12
    assert result.warnings
    backend.close.assert_called_once()


def test_backend_failure_still_releases_backend(extractor, backend, png_bytes):
    backend.recognize_pages.side_effect = RuntimeError("engine crashed")

    result = extractor.extract(png_bytes, mime_type="image/png")

    assert result.degraded is True
    assert any("engine crashed" in warning for warning in result.warnings)
    backend.close.assert_called_once()


def test_close_failure_is_logged_not_raised(extractor, backend, referral_pdf, caplog):
    backend.close.side_effect = RuntimeError("close failed")

    with caplog.at_level(logging.WARNING):
        result = extractor.extract(referral_pdf)

    assert result.method == "text_layer"
    assert "Error releasing OCR backend" in caplog.text


def test_injected_fallback_text(backend):
    extractor = ReferralExtractor(
        settings=ExtractionSettings(),
        backend_factory=lambda: backend,
        fallback_text="RE: Mr Test Patient\nDOB: 01/02/1950\n",
    )

    result = extractor.extract(b"")

    assert result.degraded is True
    assert result.data.name == "Test Patient"
    assert result.data.dob == "1950-02-01"


def test_fallback_text_from_settings(backend, tmp_path):
    fallback = tmp_path / "fallback.txt"
    fallback.write_text("RE: Ms Configured Sample\n", encoding="utf-8")
    settings = ExtractionSettings(FALLBACK_TEXT_PATH=fallback)

    result = ReferralExtractor(settings=settings, backend_factory=lambda: backend).extract(b"")

    assert result.data.name == "Configured Sample"


def test_fallback_logged_as_error_in_production(backend, caplog):
    settings = ExtractionSettings(ENVIRONMENT="production")
    extractor = ReferralExtractor(settings=settings, backend_factory=lambda: backend)

    with caplog.at_level(logging.WARNING):
        extractor.extract(b"")

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert any("PRODUCTION WARNING" in r.getMessage() for r in errors)


def test_parser_failure_returns_empty_record(backend, referral_pdf):
    parser = MagicMock()
    parser.parse.side_effect = ValueError("bad pattern")
    extractor = ReferralExtractor(
        settings=ExtractionSettings(), backend_factory=lambda: backend, parser=parser
    )

    result = extractor.extract(referral_pdf)

    assert result.data.name is None
    assert result.data.medications == []
    assert any("Parsing failed" in warning for warning in result.warnings)


# ============================================================================
# INPUT VALIDATION
# ============================================================================

def test_unsupported_mime_type_raises(extractor, backend):
    with pytest.raises(UnsupportedDocumentError) as exc_info:
        extractor.extract(b"hello", mime_type="text/plain")

    assert exc_info.value.mime_type == "text/plain"
    backend.close.assert_not_called()


def test_mime_type_parameters_ignored(extractor, referral_pdf):
    result = extractor.extract(referral_pdf, mime_type="Application/PDF; charset=binary")
    assert result.method == "text_layer"


def test_result_to_dict(extractor, referral_pdf):
    payload = extractor.extract(referral_pdf).to_dict()

    assert set(payload) == {"data", "rawText", "method", "degraded", "warnings"}
    assert payload["data"]["name"] == "Margaret Dempster"


# ============================================================================
# TESSERACT BACKEND
# ============================================================================

def test_tesseract_backend_is_lazy():
    backend = TesseractBackend()
    assert backend.is_initialized is False
    backend.close()
    backend.close()
    assert backend.is_initialized is False


def test_tesseract_backend_missing_library():
    backend = TesseractBackend()
    with patch.dict(sys.modules, {"pytesseract": None}):
        with pytest.raises(OCRError):
            backend.recognize(Image.new("RGB", (10, 10)))
    assert backend.is_initialized is False


def test_tesseract_backend_lifecycle():
    fake = MagicMock()
    fake.get_tesseract_version.return_value = "5.3.0"
    fake.image_to_string.return_value = "Lipitor 40mg Tablet"

    with patch.dict(sys.modules, {"pytesseract": fake}):
        with TesseractBackend(max_workers=2) as backend:
            pages = backend.recognize_pages([Image.new("RGB", (10, 10)) for _ in range(3)])
            assert backend.is_initialized
            temp_dir = backend._temp_dir.name

    assert pages == ["Lipitor 40mg Tablet"] * 3
    assert backend.is_initialized is False
    assert fake.image_to_string.call_count == 3
    assert not os.path.exists(temp_dir)
