# ============================================================================
# src/hmr_ingestion/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for HMR referral ingestion.
"""


class HMRIngestionError(Exception):
    """Base exception for all HMR ingestion errors."""
    pass


class UnsupportedDocumentError(HMRIngestionError):
    """Referral document type cannot be processed."""
    def __init__(self, message: str, mime_type: str = ""):
        super().__init__(message)
        self.mime_type = mime_type


class DocumentProcessingError(HMRIngestionError):
    """Error during referral document processing."""
    pass


class TextExtractionError(DocumentProcessingError):
    """Error extracting embedded text from a PDF."""
    pass


class OCRError(DocumentProcessingError):
    """OCR backend failed to produce text."""
    pass


class TemplateError(HMRIngestionError):
    """Base error for template discovery and filling."""
    pass


class UnsupportedTemplateError(TemplateError):
    """Template MIME type or template type is not supported."""
    def __init__(self, message: str, template_type: str = ""):
        super().__init__(message)
        self.template_type = template_type


class TemplateLoadError(TemplateError):
    """Template could not be parsed or loaded at all."""
    pass


class ConfigurationError(HMRIngestionError):
    """Invalid configuration."""
    pass
