# ============================================================================
# src/hmr_ingestion/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .base_config import (
    ExtractionSettings,
    TemplateSettings,
    extraction_settings,
    template_settings,
)
from .logging_config import LoggingSettings, logging_settings
