# src/hmr_ingestion/extractors/__init__.py
"""
Referral Extraction Module

- Text acquisition (pypdfium2 text layer, Tesseract OCR, buffer scan)
- Field pattern parsing (demographics, clinical sections)
- Medication line classification and tokenising
"""

from .text_patterns import PatternRule, first_match, normalize_date, normalize_newlines, capture_section
from .medication_parser import MedicationParser
from .referral_parser import ReferralParser, detect_gender
from .ocr_extractor import OCRBackend, TesseractBackend, OCRExtractor, AcquiredText
from .referral_extractor import ReferralExtractor, extract_referral

__all__ = [
    "PatternRule",
    "first_match",
    "normalize_date",
    "normalize_newlines",
    "capture_section",
    "MedicationParser",
    "ReferralParser",
    "detect_gender",
    "OCRBackend",
    "TesseractBackend",
    "OCRExtractor",
    "AcquiredText",
    "ReferralExtractor",
    "extract_referral",
]
