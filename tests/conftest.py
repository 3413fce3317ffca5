# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import io
import zipfile
from types import SimpleNamespace

import pytest

from hmr_ingestion.constants.referral_sections import SAMPLE_REFERRAL_TEXT


CONTENT_TYPES_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '</Types>'
)

DOCUMENT_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
    '<w:body>{body}</w:body>'
    '</w:document>'
)


def paragraph(text: str) -> str:
    return f'<w:p><w:r><w:t>{text}</w:t></w:r></w:p>'


def content_control(tag: str, placeholder: str = "Click to enter", title: str = None) -> str:
    properties = f'<w:tag w:val="{tag}"/>' if tag else ''
    if title:
        properties += f'<w:title w:val="{title}"/>'
    return (
        f'<w:sdt><w:sdtPr>{properties}</w:sdtPr>'
        f'<w:sdtContent><w:r><w:t>{placeholder}</w:t></w:r></w:sdtContent></w:sdt>'
    )


def legacy_form_field(name: str) -> str:
    return (
        '<w:p><w:r><w:fldChar w:fldCharType="begin">'
        f'<w:ffData><w:name w:val="{name}"/><w:enabled/></w:ffData>'
        '</w:fldChar></w:r></w:p>'
    )


@pytest.fixture
def sample_referral_text():
    """The Casey Medical Centre referral letter"""
    return SAMPLE_REFERRAL_TEXT


@pytest.fixture
def sample_report_data():
    """Completed review data as posted by the report workflow"""
    return {
        "patient": {
            "name": "Margaret Dempster",
            "dob": "1938-01-24",
            "gender": "Female",
            "medicare_number": "2286533TB",
            "address": "197 High Street",
            "phone": "03 5991 1222",
            "referring_doctor": "Dr Brett Ogilvie",
            "doctor_email": "casey@caseymedical.com.au",
            "practice_name": "CASEY MEDICAL CENTRE",
            "known_allergies": "Roxithromycin - Rash, Severe",
            "current_conditions": None,
        },
        "medications": [
            {
                "name": "Inderal",
                "strength": "40mg",
                "dosage": "1/2 tablet",
                "frequency": "In the morning",
                "compliance_status": "Poor",
            },
            {
                "name": "Lipitor",
                "strength": "40mg",
                "frequency": "daily",
                "compliance_status": "Good",
            },
        ],
        "interview": {
            "interview_date": "2025-05-02",
            "pharmacist_name": "Avishkar Lal",
        },
        "recommendations": [
            {
                "issue_identified": "Missed Inderal doses",
                "suggested_action": "Dose administration aid",
                "priority_level": "High",
            },
            {
                "issue_identified": "Osteoporosis monitoring",
                "suggested_action": "Check Prolia schedule",
                "priority_level": "Low",
            },
        ],
    }


@pytest.fixture
def docx_xml():
    """WordprocessingML snippet builders"""
    return SimpleNamespace(
        paragraph=paragraph,
        content_control=content_control,
        legacy_form_field=legacy_form_field,
    )


@pytest.fixture
def make_docx():
    """Build an in-memory DOCX whose document body is the given XML"""
    def _make(body: str, extra_parts: dict = None) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("[Content_Types].xml", CONTENT_TYPES_XML)
            archive.writestr("word/document.xml", DOCUMENT_XML.format(body=body))
            for name, data in (extra_parts or {}).items():
                archive.writestr(name, data)
        return buffer.getvalue()
    return _make


@pytest.fixture
def read_document_part():
    """Return word/document.xml of a DOCX as text"""
    def _read(docx: bytes) -> str:
        with zipfile.ZipFile(io.BytesIO(docx)) as archive:
            return archive.read("word/document.xml").decode("utf-8")
    return _read


@pytest.fixture
def make_pdf_form():
    """Create a PDF with AcroForm text fields and checkboxes"""
    def _make(text_fields=(), checkboxes=()) -> bytes:
        from reportlab.pdfgen import canvas
        from reportlab.lib.pagesizes import A4

        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=A4)
        c.drawString(72, 800, "Home Medicines Review Report")

        y = 740
        for name in text_fields:
            c.drawString(72, y + 5, name)
            c.acroForm.textfield(name=name, x=220, y=y, width=300, height=20)
            y -= 40
        for name in checkboxes:
            c.drawString(72, y + 5, name)
            c.acroForm.checkbox(name=name, x=220, y=y, size=16)
            y -= 40

        c.showPage()
        c.save()
        return buffer.getvalue()
    return _make


@pytest.fixture
def make_text_pdf():
    """Create a PDF whose text layer holds the given lines"""
    def _make(text: str) -> bytes:
        from reportlab.pdfgen import canvas
        from reportlab.lib.pagesizes import A4

        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=A4)
        y = 800
        for line in text.strip().splitlines():
            if y < 60:
                c.showPage()
                y = 800
            c.drawString(60, y, line.strip())
            y -= 14
        c.showPage()
        c.save()
        return buffer.getvalue()
    return _make


@pytest.fixture
def referral_pdf(make_text_pdf, sample_referral_text):
    """The sample referral letter as a digital PDF"""
    return make_text_pdf(sample_referral_text)
