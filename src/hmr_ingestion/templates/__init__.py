# src/hmr_ingestion/templates/__init__.py
"""
Template Filling Module

- Field discovery for PDF forms and DOCX templates
- Report value resolution (dotted keys + legacy aliases)
- PDF AcroForm and DOCX placeholder/content-control injection
"""

from .field_discovery import discover_fields, scan_docx_xml
from .value_resolver import DataValueTable, resolve_values, flatten_report, lookup
from .pdf_filler import PDFFormFiller, PDFFillResult
from .docx_filler import DOCXTemplateFiller, DOCXFillResult
from .template_filler import TemplateFiller, FilledTemplate

__all__ = [
    "discover_fields",
    "scan_docx_xml",
    "DataValueTable",
    "resolve_values",
    "flatten_report",
    "lookup",
    "PDFFormFiller",
    "PDFFillResult",
    "DOCXTemplateFiller",
    "DOCXFillResult",
    "TemplateFiller",
    "FilledTemplate",
]
