# src/hmr_ingestion/extractors/ocr_extractor.py
"""
OCR and Text Acquisition for Referral Documents

Produces one raw text block from referral bytes using, in order:
1. Embedded text layer (pypdfium2) - digital letters
2. Tesseract OCR (pytesseract) over pages rendered with pypdfium2 - scans
3. Readable-run salvage from the raw PDF bytes - damaged files

The OCR backend is an explicit resource: initialised lazily on first use,
reusable across pages and documents, and released with close(). Callers
should hold it through a `with` block so it is released on every exit path.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Protocol, Tuple
import itertools
import logging
import re
import tempfile

import pypdfium2
from PIL import Image

from ..utils.exceptions import OCRError, TextExtractionError


class OCRBackend(Protocol):
    """Anything that turns a page image into UTF-8 text."""

    def recognize(self, image: Image.Image) -> str:
        ...

    def recognize_pages(self, images: List[Image.Image]) -> List[str]:
        ...

    def close(self) -> None:
        ...


class TesseractBackend:
    """
    Tesseract OCR through pytesseract.

    Lazy-loaded on first recognize(). Holds a small thread pool for OCRing
    pages in parallel and a temp directory for rendered page images; both are
    released by close(). Safe to reuse after close() (re-initialises).

    One instance per extraction request; concurrent recognize() calls on a
    single instance are supported by the pool but not required.
    """

    def __init__(self, language: str = "eng", max_workers: int = 2):
        self.logger = logging.getLogger(__name__)
        self.language = language
        self.max_workers = max_workers

        self._pytesseract = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._temp_dir: Optional[tempfile.TemporaryDirectory] = None
        self._page_ids = itertools.count(1)

    @property
    def is_initialized(self) -> bool:
        return self._executor is not None

    def _ensure_initialized(self) -> None:
        if self._executor is not None:
            return
        try:
            import pytesseract
        except ImportError as e:
            raise OCRError(
                "pytesseract not installed. Install with: pip install pytesseract"
            ) from e

        try:
            version = pytesseract.get_tesseract_version()
        except Exception as e:
            raise OCRError(f"Tesseract binary not available: {e}") from e

        self._pytesseract = pytesseract
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="hmr-ocr"
        )
        self._temp_dir = tempfile.TemporaryDirectory(prefix="hmr-ocr-")
        self.logger.info(f"Tesseract OCR initialised (version {version})")

    def recognize(self, image: Image.Image) -> str:
        """
        OCR a single page image.

        Returns:
            Recognised text (may be empty)
        """
        self._ensure_initialized()

        # Tesseract reads from disk; keep page images in our temp dir so
        # close() removes them
        page_path = Path(self._temp_dir.name) / f"page_{next(self._page_ids):04d}.png"
        image.save(page_path, format="PNG")
        try:
            return self._pytesseract.image_to_string(str(page_path), lang=self.language)
        except Exception as e:
            raise OCRError(f"Tesseract failed on {page_path.name}: {e}") from e
        finally:
            page_path.unlink(missing_ok=True)

    def recognize_pages(self, images: List[Image.Image]) -> List[str]:
        """OCR pages in parallel, preserving page order."""
        self._ensure_initialized()
        return list(self._executor.map(self.recognize, images))

    def close(self) -> None:
        """Release the worker pool and temp files. Idempotent."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None
        self._pytesseract = None

    def __enter__(self) -> "TesseractBackend":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


@dataclass
class AcquiredText:
    """Text pulled from a document and where it came from."""
    text: str = ""
    method: str = ""  # "text_layer", "ocr", "buffer_scan"
    page_count: int = 0
    warnings: List[str] = field(default_factory=list)


class OCRExtractor:
    """
    Runs the text acquisition cascade for one document.

    The caller owns the OCR backend; this class only borrows it.
    """

    # Default DPI for PDF rendering (higher = better OCR, slower)
    DEFAULT_DPI = 200

    # Runs of letters/spaces long enough to be real words
    READABLE_RUN = re.compile(rb'[A-Za-z\s]{20,}')

    def __init__(
        self,
        dpi: int = DEFAULT_DPI,
        min_text_layer_chars: int = 100,
        min_ocr_chars: int = 50,
    ):
        self.logger = logging.getLogger(__name__)
        self.dpi = dpi
        self.min_text_layer_chars = min_text_layer_chars
        self.min_ocr_chars = min_ocr_chars

    def acquire_text(
        self,
        document: bytes,
        backend: OCRBackend,
        is_pdf: bool = True
    ) -> AcquiredText:
        """
        Try each acquisition step in order; first sufficient text wins.

        Never raises. An empty AcquiredText means every step failed; its
        warnings say why.
        """
        result = AcquiredText()

        if not document:
            result.warnings.append("Document is empty")
            return result

        if is_pdf and not document.startswith(b"%PDF"):
            result.warnings.append("Missing %PDF header")

        if is_pdf:
            try:
                text, pages = self.extract_text_layer(document)
                result.page_count = pages
                if len(text.strip()) >= self.min_text_layer_chars:
                    self.logger.info(f"Text layer: {len(text)} chars from {pages} pages")
                    result.text, result.method = text, "text_layer"
                    return result
                result.warnings.append(
                    f"Text layer too short ({len(text.strip())} chars), trying OCR"
                )
            except TextExtractionError as e:
                self.logger.warning(f"Text layer extraction failed: {e}")
                result.warnings.append(str(e))

        try:
            images = self.render_pages(document) if is_pdf else [self.load_image(document)]
            text = "\n\n".join(backend.recognize_pages(images))
            if len(text.strip()) >= self.min_ocr_chars:
                self.logger.info(f"OCR: {len(text)} chars from {len(images)} pages")
                result.text, result.method = text, "ocr"
                return result
            result.warnings.append(f"OCR produced too little text ({len(text.strip())} chars)")
        except (OCRError, TextExtractionError) as e:
            self.logger.warning(f"OCR failed: {e}")
            result.warnings.append(str(e))

        if is_pdf:
            text = self.scan_readable_runs(document)
            if len(text) >= self.min_text_layer_chars:
                self.logger.info(f"Buffer scan: {len(text)} chars")
                result.text, result.method = text, "buffer_scan"
                return result
            result.warnings.append("Buffer scan found no readable text")

        return result

    def extract_text_layer(self, document: bytes) -> Tuple[str, int]:
        """
        Extract embedded text using pypdfium2.

        Returns:
            (text, page_count)
        """
        try:
            pdf = pypdfium2.PdfDocument(document)
        except Exception as e:
            raise TextExtractionError(f"Cannot open PDF: {e}") from e

        try:
            texts = []
            for page_num in range(len(pdf)):
                page = pdf[page_num]
                textpage = page.get_textpage()
                texts.append(textpage.get_text_range())
                textpage.close()
                page.close()
            return "\n\n".join(texts), len(pdf)
        except Exception as e:
            raise TextExtractionError(f"Text layer read failed: {e}") from e
        finally:
            pdf.close()

    def render_pages(self, document: bytes) -> List[Image.Image]:
        """Render every PDF page to a PIL image at self.dpi."""
        scale = self.dpi / 72.0  # PDF points to pixels
        try:
            pdf = pypdfium2.PdfDocument(document)
        except Exception as e:
            raise TextExtractionError(f"Cannot open PDF for rendering: {e}") from e

        try:
            images = []
            for page_num in range(len(pdf)):
                page = pdf[page_num]
                bitmap = page.render(scale=scale)
                images.append(bitmap.to_pil())
                page.close()
            return images
        except Exception as e:
            raise TextExtractionError(f"Page rendering failed: {e}") from e
        finally:
            pdf.close()

    @staticmethod
    def load_image(document: bytes) -> Image.Image:
        try:
            image = Image.open(BytesIO(document))
            image.load()
        except Exception as e:
            raise TextExtractionError(f"Cannot open image: {e}") from e
        return image.convert("RGB") if image.mode not in ("RGB", "L") else image

    def scan_readable_runs(self, document: bytes) -> str:
        """Salvage long letter runs from raw bytes (uncompressed PDFs only)."""
        runs = self.READABLE_RUN.findall(document)
        return " ".join(run.decode("ascii", errors="ignore").strip() for run in runs).strip()
