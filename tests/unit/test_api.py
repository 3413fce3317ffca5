# ============================================================================
# FILE: tests/unit/test_api.py
# ============================================================================
"""
Unit tests for the FastAPI service
"""

import io
import json
import zipfile

import pytest
from fastapi.testclient import TestClient

from api.main import app
from hmr_ingestion.constants.template_fields import DOCX_MIME_TYPE, PDF_MIME_TYPE


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ============================================================================
# PROCESS PDF
# ============================================================================

def test_process_pdf(client, referral_pdf):
    response = client.post(
        "/api/process-pdf",
        files={"pdf": ("referral.pdf", referral_pdf, PDF_MIME_TYPE)},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["degraded"] is False
    assert body["method"] == "text_layer"
    assert body["data"]["name"] == "Margaret Dempster"
    assert body["data"]["medicareNumber"] == "2286533TB"
    assert "Margaret Dempster" in body["rawText"]
    assert body["message"] == "PDF processed successfully"


def test_process_pdf_missing_file(client):
    response = client.post("/api/process-pdf", data={"other": "x"})
    assert response.status_code == 400
    assert response.json()["error"] == "No PDF file provided"


def test_process_pdf_wrong_type(client):
    response = client.post(
        "/api/process-pdf",
        files={"pdf": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "File must be a PDF"


# ============================================================================
# TEMPLATE FIELDS
# ============================================================================

def test_extract_template_fields_docx(client, make_docx, docx_xml):
    template = make_docx(docx_xml.paragraph("{patient_name} [date_of_birth]"))

    response = client.post(
        "/api/extract-template-fields",
        files={"file": ("template.docx", template, DOCX_MIME_TYPE)},
    )

    assert response.status_code == 200
    assert response.json() == {"fields": ["patient_name", "date_of_birth"]}


def test_extract_template_fields_pdf(client, make_pdf_form):
    template = make_pdf_form(text_fields=["patient_name"])

    response = client.post(
        "/api/extract-template-fields",
        files={"file": ("template.pdf", template, PDF_MIME_TYPE)},
    )

    assert response.json() == {"fields": ["patient_name"]}


def test_extract_template_fields_unsupported(client):
    response = client.post(
        "/api/extract-template-fields",
        files={"file": ("template.odt", b"...", "application/vnd.oasis.opendocument.text")},
    )
    assert response.status_code == 400


def test_extract_template_fields_missing_file(client):
    response = client.post("/api/extract-template-fields", data={"other": "x"})
    assert response.status_code == 400


# ============================================================================
# GENERATE CUSTOM TEMPLATE
# ============================================================================

def _generate(client, template, report, mapping, template_type, mime_type=DOCX_MIME_TYPE):
    return client.post(
        "/api/generate-custom-template",
        files={"template": ("template", template, mime_type)},
        data={
            "reportData": report if isinstance(report, str) else json.dumps(report),
            "mapping": mapping if isinstance(mapping, str) else json.dumps(mapping),
            "templateType": template_type,
        },
    )


def test_generate_docx(client, make_docx, docx_xml, sample_report_data):
    template = make_docx(docx_xml.paragraph("{patient_name}"))

    response = _generate(client, template, sample_report_data, {"patient_name": "patient.name"}, "docx")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(DOCX_MIME_TYPE)
    assert response.headers["content-disposition"] == 'attachment; filename="filled_template.docx"'
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert "Margaret Dempster" in archive.read("word/document.xml").decode("utf-8")


def test_generate_pdf(client, make_pdf_form, sample_report_data):
    template = make_pdf_form(text_fields=["patient_name"])

    response = _generate(
        client, template, sample_report_data, {"patient_name": "patient_name"}, "pdf", PDF_MIME_TYPE
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == PDF_MIME_TYPE
    assert response.headers["content-disposition"] == 'attachment; filename="filled_template.pdf"'
    assert response.content.startswith(b"%PDF")


def test_generate_missing_fields(client, make_docx, docx_xml):
    response = client.post(
        "/api/generate-custom-template",
        files={"template": ("template", make_docx(docx_xml.paragraph("x")), DOCX_MIME_TYPE)},
        data={"templateType": "docx"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"


def test_generate_bad_json(client, make_docx, docx_xml):
    template = make_docx(docx_xml.paragraph("{patient_name}"))

    response = _generate(client, template, "{not json", {"patient_name": "patient.name"}, "docx")

    assert response.status_code == 400


def test_generate_unsupported_type(client, make_docx, docx_xml, sample_report_data):
    template = make_docx(docx_xml.paragraph("{patient_name}"))

    response = _generate(client, template, sample_report_data, {"patient_name": "patient.name"}, "odt")

    assert response.status_code == 400


def test_generate_broken_template(client, sample_report_data):
    response = _generate(client, b"not a docx", sample_report_data, {"a": "patient.name"}, "docx")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to generate custom template"
    assert body["details"]
