# ============================================================================
# src/hmr_ingestion/extractors/referral_extractor.py
# ============================================================================
"""
Referral Extraction Engine

Entry point for turning an uploaded GP referral into structured patient and
medication records:

    extractor = ReferralExtractor()
    result = extractor.extract(pdf_bytes)
    result.data.medications[0].name

Pipeline:
1. Acquire text (text layer -> OCR -> buffer scan)
2. Fall back to the configured sample text when nothing was acquired
3. Parse fields and medications

Only unsupported MIME types raise. Every other failure degrades to a
best-effort result for human review; `degraded` marks fallback text.
"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional
import logging

from ..config import ExtractionSettings, extraction_settings
from ..constants.referral_sections import SAMPLE_REFERRAL_TEXT
from ..models.extraction import ExtractedPatientData, ReferralExtractionResult
from ..utils.exceptions import UnsupportedDocumentError
from ..utils.logging import log_performance
from .ocr_extractor import OCRBackend, OCRExtractor, TesseractBackend
from .referral_parser import ReferralParser

logger = logging.getLogger(__name__)

PDF_MIME_TYPES = frozenset({"application/pdf", "application/x-pdf"})
IMAGE_MIME_TYPES = frozenset({
    "image/png", "image/jpeg", "image/jpg", "image/tiff", "image/bmp", "image/webp",
})


class ReferralExtractor:
    """
    Stateless referral extraction service.

    Holds no per-request state: each extract() call opens its own OCR
    backend through ocr_session() and releases it before returning, so one
    instance can serve concurrent requests.
    """

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        backend_factory: Optional[Callable[[], OCRBackend]] = None,
        fallback_text: Optional[str] = None,
        parser: Optional[ReferralParser] = None,
    ):
        """
        Args:
            settings: Extraction settings (defaults to the global instance)
            backend_factory: Builds a fresh OCR backend per request
            fallback_text: Text parsed when nothing can be acquired; defaults
                to FALLBACK_TEXT_PATH or the built-in sample letter
            parser: Referral parser
        """
        self.logger = logging.getLogger(__name__)
        self.settings = settings or extraction_settings
        self.backend_factory = backend_factory or self._default_backend
        self.parser = parser or ReferralParser()
        self.text_extractor = OCRExtractor(
            dpi=self.settings.OCR_DPI,
            min_text_layer_chars=self.settings.MIN_TEXT_LAYER_CHARS,
            min_ocr_chars=self.settings.MIN_OCR_CHARS,
        )

        if fallback_text is None:
            fallback_text = self.settings.load_fallback_text()
        self.fallback_text = fallback_text if fallback_text is not None else SAMPLE_REFERRAL_TEXT

    def _default_backend(self) -> OCRBackend:
        return TesseractBackend(
            language=self.settings.OCR_LANGUAGE,
            max_workers=self.settings.OCR_MAX_WORKERS,
        )

    @contextmanager
    def ocr_session(self) -> Iterator[OCRBackend]:
        """Acquire an OCR backend and release it on every exit path."""
        backend = self.backend_factory()
        try:
            yield backend
        finally:
            try:
                backend.close()
            except Exception as e:
                self.logger.warning(f"Error releasing OCR backend: {e}")

    @log_performance(logger, "Referral extraction")
    def extract(
        self,
        document: bytes,
        mime_type: str = "application/pdf"
    ) -> ReferralExtractionResult:
        """
        Extract patient data from referral bytes.

        Args:
            document: Raw PDF or image bytes
            mime_type: Upload MIME type

        Returns:
            ReferralExtractionResult (always; check `degraded`)

        Raises:
            UnsupportedDocumentError: MIME type is neither PDF nor image
        """
        mime_type = (mime_type or "").split(";")[0].strip().lower()
        if mime_type not in PDF_MIME_TYPES and mime_type not in IMAGE_MIME_TYPES:
            raise UnsupportedDocumentError(
                f"Unsupported document type: {mime_type or 'unknown'}",
                mime_type=mime_type,
            )

        self.logger.info(
            f"Processing referral ({len(document or b'')} bytes, {mime_type})",
            extra={"mime_type": mime_type},
        )

        warnings = []
        raw_text, method = "", ""
        try:
            with self.ocr_session() as backend:
                acquired = self.text_extractor.acquire_text(
                    document or b"",
                    backend,
                    is_pdf=mime_type in PDF_MIME_TYPES,
                )
            raw_text, method = acquired.text, acquired.method
            warnings.extend(acquired.warnings)
        except Exception as e:
            self.logger.exception("Text acquisition failed")
            warnings.append(f"Text acquisition failed: {e}")

        degraded = not raw_text.strip()
        if degraded:
            raw_text, method = self.fallback_text, "fallback"
            message = "All text acquisition methods failed, using fallback referral text"
            if self.settings.is_production:
                self.logger.error(f"PRODUCTION WARNING: {message}", extra={"degraded": True})
            else:
                self.logger.warning(message, extra={"degraded": True})

        data = self._parse(raw_text, warnings)

        self.logger.info(
            f"Extracted referral via {method}: "
            f"{len(data.medications)} medications, degraded={degraded}",
            extra={"method": method, "degraded": degraded},
        )
        return ReferralExtractionResult(
            data=data,
            raw_text=raw_text,
            method=method,
            degraded=degraded,
            warnings=warnings,
        )

    def _parse(self, text: str, warnings: list) -> ExtractedPatientData:
        try:
            return self.parser.parse(text)
        except Exception as e:
            self.logger.exception("Referral parsing failed")
            warnings.append(f"Parsing failed: {e}")
            return ExtractedPatientData()


def extract_referral(
    document: bytes,
    mime_type: str = "application/pdf"
) -> ReferralExtractionResult:
    """Convenience function using default settings."""
    return ReferralExtractor().extract(document, mime_type)
