# ============================================================================
# src/hmr_ingestion/templates/pdf_filler.py
# ============================================================================
"""
PDF Form Filling

Writes resolved report values into the AcroForm fields of a PDF template
with pypdf. Each field goes through PdfWriter.update_page_form_field_values
on every page holding one of its widgets, so pypdf sets /V, /AS and the
text appearance streams.

- Text fields (/Tx): the string value
- Checkboxes (/Btn, not radio/push): the widget's on state when the value is
  truthy and not "false"/"0", otherwise /Off
- Anything else, or a field name missing from the form, is logged and
  skipped without aborting the remaining fields
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, List, Optional, Tuple
import logging

from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.generic import DictionaryObject, NameObject

from ..utils.exceptions import TemplateLoadError
from .value_resolver import DataValueTable, lookup

# /Ff bits for buttons
RADIO_FLAG = 1 << 15
PUSHBUTTON_FLAG = 1 << 16

FALSE_STRINGS = frozenset({"false", "0"})


def is_checked(value: str) -> bool:
    return bool(value) and value not in FALSE_STRINGS


def _inherited(obj: DictionaryObject, key: str):
    # Field attributes such as /FT and /Ff may live on a parent node
    while obj is not None:
        if key in obj:
            return obj[key]
        parent = obj.get("/Parent")
        obj = parent.get_object() if parent is not None else None
    return None


def qualified_name(obj: DictionaryObject) -> str:
    """Fully qualified field name ("parent.child") of a widget or field."""
    parts = []
    while obj is not None:
        if "/T" in obj:
            parts.append(str(obj["/T"]))
        parent = obj.get("/Parent")
        obj = parent.get_object() if parent is not None else None
    return ".".join(reversed(parts))


def _field_node(widget: DictionaryObject) -> DictionaryObject:
    # Merged field/widget dicts carry /T themselves; kids defer to the parent
    if "/T" in widget or "/Parent" not in widget:
        return widget
    return widget["/Parent"].get_object()


def _on_state(widget: DictionaryObject) -> NameObject:
    appearances = widget.get("/AP")
    if appearances is not None:
        normal = appearances.get_object().get("/N")
        if normal is not None:
            for state in normal.get_object().keys():
                if state != "/Off":
                    return NameObject(state)
    return NameObject("/Yes")


@dataclass
class PDFFillResult:
    content: bytes
    filled: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)  # field -> reason


class PDFFormFiller:
    """
    Fills PDF AcroForm templates.

    Usage:
        result = PDFFormFiller().fill(template_bytes, values, mapping)
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def fill(
        self,
        template: bytes,
        values: DataValueTable,
        mapping: Dict[str, str]
    ) -> PDFFillResult:
        """
        Fill mapped fields and return the saved PDF.

        Raises:
            TemplateLoadError: Template is not a readable PDF
        """
        writer = self._load(template)
        widgets = self._index_widgets(writer)

        filled: List[str] = []
        skipped: Dict[str, str] = {}

        for template_field, report_field in mapping.items():
            value = lookup(values, report_field)
            try:
                reason = self._set_field(
                    writer, template_field, widgets.get(template_field), value
                )
            except Exception as e:
                reason = f"write failed: {e}"

            if reason:
                self.logger.warning(
                    f"Could not fill field {template_field}: {reason}",
                    extra={"template_field": template_field},
                )
                skipped[template_field] = reason
            else:
                filled.append(template_field)

        writer.set_need_appearances_writer(True)

        output = BytesIO()
        writer.write(output)
        return PDFFillResult(content=output.getvalue(), filled=filled, skipped=skipped)

    def _load(self, template: bytes) -> PdfWriter:
        try:
            reader = PdfReader(BytesIO(template))
            writer = PdfWriter(clone_from=reader)
        except Exception as e:
            raise TemplateLoadError(f"Could not load PDF template: {e}") from e
        return writer

    def _index_widgets(self, writer: PdfWriter) -> Dict[str, List[Tuple[PageObject, DictionaryObject]]]:
        """Qualified field name -> (page, widget annotation) pairs."""
        widgets: Dict[str, List[Tuple[PageObject, DictionaryObject]]] = {}
        for page in writer.pages:
            for annotation in page.get("/Annots") or []:
                widget = annotation.get_object()
                if widget.get("/Subtype") != "/Widget":
                    continue
                name = qualified_name(widget)
                if name:
                    widgets.setdefault(name, []).append((page, widget))
        return widgets

    def _set_field(
        self,
        writer: PdfWriter,
        name: str,
        widgets: Optional[List[Tuple[PageObject, DictionaryObject]]],
        value: str
    ) -> Optional[str]:
        """Write one field. Returns a skip reason, or None on success."""
        if not widgets:
            return "no such field"

        node = _field_node(widgets[0][1])
        field_type = _inherited(node, "/FT")
        flags = int(_inherited(node, "/Ff") or 0)

        if field_type == "/Tx":
            new_value = value
        elif field_type == "/Btn" and not flags & (RADIO_FLAG | PUSHBUTTON_FLAG):
            new_value = _on_state(widgets[0][1]) if is_checked(value) else NameObject("/Off")
        else:
            return f"unsupported field type {field_type}"

        pages = []
        for page, _ in widgets:
            if not any(page is seen for seen in pages):
                pages.append(page)
        for page in pages:
            writer.update_page_form_field_values(page, {name: new_value}, auto_regenerate=False)
        return None
