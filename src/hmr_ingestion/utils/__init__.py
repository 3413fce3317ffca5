from .exceptions import (
    HMRIngestionError,
    UnsupportedDocumentError,
    DocumentProcessingError,
    TextExtractionError,
    OCRError,
    TemplateError,
    UnsupportedTemplateError,
    TemplateLoadError,
    ConfigurationError,
)
from .logging import CONTEXT_FIELDS, JsonFormatter, setup_logging, log_performance

__all__ = [
    "HMRIngestionError",
    "UnsupportedDocumentError",
    "DocumentProcessingError",
    "TextExtractionError",
    "OCRError",
    "TemplateError",
    "UnsupportedTemplateError",
    "TemplateLoadError",
    "ConfigurationError",
    "setup_logging",
    "CONTEXT_FIELDS",
    "JsonFormatter",
    "log_performance",
]
