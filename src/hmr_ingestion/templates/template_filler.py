# ============================================================================
# src/hmr_ingestion/templates/template_filler.py
# ============================================================================
"""
Template Filler

Single entry point for producing a filled report document from a
user-uploaded PDF or DOCX template:

    filler = TemplateFiller()
    filled = filler.fill(template_bytes, "docx", report_data, mapping)
    filled.content, filled.content_type, filled.filename

`mapping` maps template field name -> report key ("patient.name", legacy
"patient_name", ...). Unknown report keys fill with an empty string.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Union
import logging

from ..config import TemplateSettings, template_settings
from ..constants.template_fields import TEMPLATE_CONTENT_TYPES
from ..models.report import ReportData
from ..utils.exceptions import UnsupportedTemplateError
from ..utils.logging import log_performance
from .docx_filler import DOCXTemplateFiller
from .pdf_filler import PDFFormFiller
from .value_resolver import resolve_values

logger = logging.getLogger(__name__)


@dataclass
class FilledTemplate:
    """Filled document plus which mapped fields were written."""
    content: bytes
    content_type: str
    filename: str
    filled: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)


class TemplateFiller:
    """
    Dispatches to the PDF or DOCX filler.

    Stateless; safe to share across requests.
    """

    def __init__(self, settings: Optional[TemplateSettings] = None):
        self.logger = logging.getLogger(__name__)
        self.settings = settings or template_settings
        self.pdf_filler = PDFFormFiller()
        self.docx_filler = DOCXTemplateFiller(self.settings)

    @log_performance(logger, "Template fill")
    def fill(
        self,
        template: bytes,
        template_type: str,
        report: Union[ReportData, Dict[str, Any]],
        mapping: Dict[str, str],
        today: Optional[date] = None
    ) -> FilledTemplate:
        """
        Fill a template with report values.

        Args:
            template: Template bytes
            template_type: "pdf" or "docx"
            report: ReportData or its JSON dict
            mapping: Template field -> report key
            today: Date for report.generated_date (defaults to today)

        Raises:
            UnsupportedTemplateError: template_type is not pdf/docx
            TemplateLoadError: Template bytes cannot be parsed
        """
        template_type = (template_type or "").strip().lower()
        content_type = TEMPLATE_CONTENT_TYPES.get(template_type)
        if content_type is None:
            raise UnsupportedTemplateError(
                f"Unsupported template type: {template_type or 'unknown'}",
                template_type=template_type,
            )

        if not isinstance(report, ReportData):
            report = ReportData.model_validate(report or {})

        values = resolve_values(report, today=today, settings=self.settings)
        mapping = mapping or {}

        if template_type == "pdf":
            result = self.pdf_filler.fill(template, values, mapping)
        else:
            result = self.docx_filler.fill(template, values, mapping)

        if result.skipped:
            self.logger.warning(
                f"Skipped {len(result.skipped)} template fields: {', '.join(result.skipped)}",
                extra={"template_type": template_type},
            )
        self.logger.info(
            f"Filled {len(result.filled)}/{len(mapping)} {template_type} fields",
            extra={"template_type": template_type},
        )

        return FilledTemplate(
            content=result.content,
            content_type=content_type,
            filename=f"filled_template.{template_type}",
            filled=result.filled,
            skipped=result.skipped,
        )
