# ============================================================================
# src/hmr_ingestion/templates/docx_filler.py
# ============================================================================
"""
DOCX Template Filling

Substitutes resolved report values into word/document.xml of a DOCX
package. For each mapped field:

1. Placeholder text: {{field}}, then {field}, then [field]
2. Content controls: the first <w:t> inside a <w:sdt> tagged with the field

Every other archive member is copied unchanged.
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, List, Optional, Tuple
from xml.sax.saxutils import escape
import logging
import re
import zipfile

from ..config import TemplateSettings, template_settings
from ..utils.exceptions import TemplateLoadError
from .field_discovery import DOCUMENT_PART, read_document_xml
from .value_resolver import DataValueTable, lookup

PLACEHOLDER_FORMS = ("{{%s}}", "{%s}", "[%s]")


def content_control_pattern(field_name: str) -> "re.Pattern":
    # Tempered token keeps the match inside a single <w:sdt> block
    inside = r'(?:(?!</w:sdt>).)*?'
    return re.compile(
        r'(<w:sdt>' + inside + r'<w:tag w:val="' + re.escape(field_name) + r'"'
        + inside + r'<w:t(?:\s[^>]*)?>)[^<]*(</w:t>' + inside + r'</w:sdt>)',
        re.DOTALL,
    )


def substitute_field(xml: str, field_name: str, value: str) -> Tuple[str, int]:
    """
    Replace one field's placeholders and content controls.

    Returns:
        (new_xml, number_of_replacements)
    """
    count = 0
    for form in PLACEHOLDER_FORMS:
        token = form % field_name
        occurrences = xml.count(token)
        if occurrences:
            xml = xml.replace(token, value)
            count += occurrences

    xml, controls = content_control_pattern(field_name).subn(
        lambda m: m.group(1) + value + m.group(2), xml
    )
    return xml, count + controls


@dataclass
class DOCXFillResult:
    content: bytes
    filled: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)


class DOCXTemplateFiller:
    """Fills placeholder and content-control DOCX templates."""

    def __init__(self, settings: Optional[TemplateSettings] = None):
        self.logger = logging.getLogger(__name__)
        self.settings = settings or template_settings

    def fill(
        self,
        template: bytes,
        values: DataValueTable,
        mapping: Dict[str, str]
    ) -> DOCXFillResult:
        """
        Raises:
            TemplateLoadError: Not a DOCX archive or no word/document.xml
        """
        xml = read_document_xml(template)

        filled: List[str] = []
        skipped: Dict[str, str] = {}

        for template_field, report_field in mapping.items():
            value = lookup(values, report_field)
            if self.settings.DOCX_ESCAPE_VALUES:
                value = escape(value)

            xml, replaced = substitute_field(xml, template_field, value)
            if replaced:
                filled.append(template_field)
            else:
                self.logger.warning(
                    f"Field {template_field} not found in DOCX template",
                    extra={"template_field": template_field},
                )
                skipped[template_field] = "no placeholder or content control"

        return DOCXFillResult(
            content=self._rewrite(template, xml),
            filled=filled,
            skipped=skipped,
        )

    def _rewrite(self, template: bytes, document_xml: str) -> bytes:
        """Copy the archive, swapping in the new document part."""
        output = BytesIO()
        try:
            with zipfile.ZipFile(BytesIO(template)) as source, \
                    zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as target:
                for item in source.infolist():
                    if item.filename == DOCUMENT_PART:
                        target.writestr(item, document_xml.encode("utf-8"))
                    else:
                        target.writestr(item, source.read(item.filename))
        except zipfile.BadZipFile as e:
            raise TemplateLoadError(f"Invalid DOCX archive: {e}") from e
        return output.getvalue()
