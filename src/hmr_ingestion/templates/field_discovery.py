# ============================================================================
# src/hmr_ingestion/templates/field_discovery.py
# ============================================================================
"""
Template Field Discovery

Lists the fillable field names of a user-uploaded template so they can be
mapped to report keys.

PDF:  AcroForm field names (pypdf)
DOCX: word/document.xml scanned with four strategies, in order:
      1. Legacy form fields      <w:ffData> ... <w:name w:val="...">
      2. Content controls        <w:sdt> ... <w:tag> (else <w:title>)
      3. Curly placeholders      {field}
      4. Square placeholders     [field]

Results are deduplicated in order of first appearance. Templates that cannot
be read, or expose no fields, get the generic field list instead.
"""

from io import BytesIO
from typing import Iterable, List
import logging
import re
import zipfile

from pypdf import PdfReader

from ..constants.template_fields import DOCX_MIME_TYPE, GENERIC_TEMPLATE_FIELDS, PDF_MIME_TYPE
from ..utils.exceptions import TemplateLoadError, UnsupportedTemplateError

logger = logging.getLogger(__name__)

DOCUMENT_PART = "word/document.xml"

LEGACY_FORM_FIELD = re.compile(r'<w:ffData>.*?</w:ffData>', re.DOTALL)
LEGACY_FIELD_NAME = re.compile(r'<w:name w:val="([^"]*)"')
CONTENT_CONTROL = re.compile(r'<w:sdt>.*?</w:sdt>', re.DOTALL)
CONTROL_TAG = re.compile(r'<w:tag w:val="([^"]*)"')
CONTROL_TITLE = re.compile(r'<w:title w:val="([^"]*)"')
CURLY_PLACEHOLDER = re.compile(r'\{([^{}]+)\}')
SQUARE_PLACEHOLDER = re.compile(r'\[([^\[\]]+)\]')


def unique(names: Iterable[str]) -> List[str]:
    """Drop empties and duplicates, keeping first-appearance order."""
    seen = set()
    result = []
    for name in names:
        name = (name or "").strip()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def read_document_xml(template: bytes) -> str:
    """
    Read the main document part of a DOCX package.

    Raises:
        TemplateLoadError: Not a zip archive or no word/document.xml
    """
    try:
        with zipfile.ZipFile(BytesIO(template)) as archive:
            return archive.read(DOCUMENT_PART).decode("utf-8")
    except KeyError as e:
        raise TemplateLoadError(f"Could not read {DOCUMENT_PART}") from e
    except (zipfile.BadZipFile, UnicodeDecodeError, ValueError) as e:
        raise TemplateLoadError(f"Invalid DOCX archive: {e}") from e


def scan_docx_xml(xml: str) -> List[str]:
    """Apply the four DOCX strategies to document XML."""
    names: List[str] = []

    for block in LEGACY_FORM_FIELD.findall(xml):
        match = LEGACY_FIELD_NAME.search(block)
        if match:
            names.append(match.group(1))

    for block in CONTENT_CONTROL.findall(xml):
        match = CONTROL_TAG.search(block) or CONTROL_TITLE.search(block)
        if match:
            names.append(match.group(1))

    names.extend(CURLY_PLACEHOLDER.findall(xml))
    names.extend(SQUARE_PLACEHOLDER.findall(xml))

    return unique(names)


def discover_pdf_fields(template: bytes) -> List[str]:
    try:
        reader = PdfReader(BytesIO(template))
        fields = reader.get_fields() or {}
    except Exception as e:
        logger.error(f"Error extracting PDF fields: {e}")
        return list(GENERIC_TEMPLATE_FIELDS)
    return unique(fields.keys())


def discover_docx_fields(template: bytes) -> List[str]:
    try:
        names = scan_docx_xml(read_document_xml(template))
    except TemplateLoadError as e:
        logger.error(f"Error extracting DOCX fields: {e}")
        return list(GENERIC_TEMPLATE_FIELDS)

    if not names:
        logger.info("No fields found in DOCX template, offering generic fields")
        return list(GENERIC_TEMPLATE_FIELDS)
    return names


def discover_fields(template: bytes, mime_type: str) -> List[str]:
    """
    List fillable field names in a template.

    Args:
        template: Template bytes
        mime_type: application/pdf or the wordprocessingml MIME type

    Returns:
        Field names, deduplicated, first-appearance order

    Raises:
        UnsupportedTemplateError: Any other MIME type
    """
    mime_type = (mime_type or "").split(";")[0].strip().lower()
    if mime_type == PDF_MIME_TYPE:
        fields = discover_pdf_fields(template)
    elif mime_type == DOCX_MIME_TYPE:
        fields = discover_docx_fields(template)
    else:
        raise UnsupportedTemplateError(
            f"Unsupported template type: {mime_type or 'unknown'}",
            template_type=mime_type,
        )

    logger.info(f"Discovered {len(fields)} template fields ({mime_type})")
    return fields
