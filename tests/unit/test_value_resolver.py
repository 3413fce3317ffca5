# ============================================================================
# FILE: tests/unit/test_value_resolver.py
# ============================================================================
"""
Unit tests for report data flattening and legacy aliases
"""

from datetime import date

import pytest

from hmr_ingestion.config import TemplateSettings
from hmr_ingestion.constants.template_fields import LEGACY_ALIASES
from hmr_ingestion.models.report import MedicationRecord, ReportData
from hmr_ingestion.templates.value_resolver import (
    flatten_report,
    format_medication,
    lookup,
    resolve_values,
)


REVIEW_DAY = date(2025, 5, 2)


@pytest.fixture
def report(sample_report_data):
    return ReportData.model_validate(sample_report_data)


@pytest.fixture
def values(report):
    return resolve_values(report, today=REVIEW_DAY)


# ============================================================================
# SECTIONS
# ============================================================================

def test_patient_and_interview_keys(values):
    assert values["patient.name"] == "Margaret Dempster"
    assert values["patient.medicare_number"] == "2286533TB"
    assert values["interview.pharmacist_name"] == "Avishkar Lal"


def test_null_and_missing_leaves_are_empty(values):
    assert values["patient.current_conditions"] == ""
    assert values["interview.smoking_status"] == ""


def test_every_declared_field_present(values):
    for field_name in ReportData.model_fields["patient"].annotation.model_fields:
        assert f"patient.{field_name}" in values


def test_medication_summaries(values):
    assert values["medications.count"] == "2"
    assert values["medications.list"] == (
        "Inderal 40mg - 1/2 tablet In the morning\n"
        "Lipitor 40mg daily"
    )
    assert values["medications.compliance_summary"] == "1 compliant, 1 non-compliant"


def test_recommendation_summaries(values):
    assert values["recommendations.count"] == "2"
    assert values["recommendations.high_priority"] == "1"
    assert values["recommendations.summary"] == (
        "1. Missed Inderal doses\nAction: Dose administration aid"
        "\n\n"
        "2. Osteoporosis monitoring\nAction: Check Prolia schedule"
    )


def test_report_keys(values):
    assert values["report.generated_date"] == "02/05/2025"
    assert values["report.pharmacist_email"] == "reviews@hmr-pharmacy.com.au"
    assert values["report.next_review_date"] == ""


def test_report_keys_follow_settings(report):
    settings = TemplateSettings(PHARMACIST_EMAIL="hmr@example.org", REPORT_DATE_FORMAT="%Y-%m-%d")
    values = flatten_report(report, today=REVIEW_DAY, settings=settings)

    assert values["report.pharmacist_email"] == "hmr@example.org"
    assert values["report.generated_date"] == "2025-05-02"


def test_format_medication_skips_empty_parts():
    assert format_medication(MedicationRecord(name="Prolia")) == "Prolia"
    assert format_medication(MedicationRecord(name="Prolia", frequency="every 6 months")) == \
        "Prolia every 6 months"


def test_empty_report():
    values = resolve_values(ReportData(), today=REVIEW_DAY)

    assert values["patient.name"] == ""
    assert values["medications.count"] == "0"
    assert values["medications.list"] == ""
    assert values["medications.compliance_summary"] == "0 compliant, 0 non-compliant"
    assert values["recommendations.summary"] == ""


def test_report_accepts_null_sections():
    report = ReportData.model_validate(
        {"patient": None, "medications": None, "recommendations": None, "unknown": 1}
    )
    assert report.medications == []
    assert report.patient.name is None


def test_report_keeps_numeric_leaves_as_text():
    report = ReportData.model_validate({
        "patient": {"phone": 395550101},
        "medications": [{"name": "Inderal", "strength": 40, "dosage": 0.5}],
    })
    values = resolve_values(report, today=REVIEW_DAY)

    assert values["patient.phone"] == "395550101"
    assert values["medications.list"] == "Inderal 40 - 0.5"


# ============================================================================
# LEGACY ALIASES
# ============================================================================

def test_legacy_aliases_mirror_canonical_keys(values):
    for legacy_key, canonical_key in LEGACY_ALIASES.items():
        assert values[legacy_key] == values[canonical_key]


def test_specific_legacy_aliases(values):
    assert values["patient_name"] == "Margaret Dempster"
    assert values["date_of_birth"] == "1938-01-24"
    assert values["email"] == "casey@caseymedical.com.au"
    assert values["medications_list"].startswith("Inderal")
    assert values["recommendations"].startswith("1. Missed Inderal doses")
    assert values["next_review_date"] == ""


def test_flatten_report_has_no_aliases(report):
    assert "patient_name" not in flatten_report(report, today=REVIEW_DAY)


def test_lookup_unknown_key_is_empty(values):
    assert lookup(values, "patient.favourite_colour") == ""
    assert lookup(values, "patient.name") == "Margaret Dempster"
