# ============================================================================
# src/hmr_ingestion/config/base_config.py
# ============================================================================
"""
Base Configuration
- OCR rendering and worker pool
- Text acquisition thresholds
- Fallback referral text
- Template filling defaults
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..utils.exceptions import ConfigurationError


class ExtractionSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HMR_")

    ENVIRONMENT: str = Field(
        default="development",
        description="Deployment environment; 'production' escalates fallback warnings"
    )

    OCR_DPI: int = Field(
        default=200,
        ge=72, le=600,
        description="Rendering resolution for scanned pages (higher = better OCR, slower)"
    )
    OCR_LANGUAGE: str = Field(
        default="eng",
        description="Tesseract language code"
    )
    OCR_MAX_WORKERS: int = Field(
        default=2,
        ge=1,
        description="Threads used to OCR pages of one document in parallel"
    )

    MIN_TEXT_LAYER_CHARS: int = Field(
        default=100,
        ge=0,
        description="Embedded text shorter than this is treated as a scanned document"
    )
    MIN_OCR_CHARS: int = Field(
        default=50,
        ge=0,
        description="OCR output shorter than this is treated as a failed recognition"
    )

    FALLBACK_TEXT_PATH: Optional[Path] = Field(
        default=None,
        description="Text file used when no text can be acquired; built-in sample letter if unset"
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def load_fallback_text(self) -> Optional[str]:
        """Read the configured fallback text, or None to use the built-in sample"""
        if self.FALLBACK_TEXT_PATH is None:
            return None
        try:
            return Path(self.FALLBACK_TEXT_PATH).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read HMR_FALLBACK_TEXT_PATH {self.FALLBACK_TEXT_PATH}: {e}"
            ) from e


class TemplateSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HMR_")

    PHARMACIST_EMAIL: str = Field(
        default="reviews@hmr-pharmacy.com.au",
        description="Operator contact written to report.pharmacist_email"
    )
    DOCX_ESCAPE_VALUES: bool = Field(
        default=True,
        description="XML-escape values injected into DOCX; disable for raw legacy substitution"
    )
    REPORT_DATE_FORMAT: str = Field(
        default="%d/%m/%Y",
        description="strftime format for report.generated_date (en-AU)"
    )

    @field_validator("REPORT_DATE_FORMAT")
    @classmethod
    def _check_date_format(cls, value: str) -> str:
        if "%" not in value:
            raise ValueError("REPORT_DATE_FORMAT must contain strftime directives")
        return value


# Global instances
extraction_settings = ExtractionSettings()
template_settings = TemplateSettings()
