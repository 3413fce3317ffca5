# ============================================================================
# src/hmr_ingestion/templates/value_resolver.py
# ============================================================================
"""
Report Value Resolution

Flattens ReportData into the DataValueTable: a flat dict from dotted key
("patient.name", "medications.list", ...) to string value, plus the legacy
unqualified aliases older templates use ("patient_name", ...).

Built fresh for every fill request.
"""

from datetime import date
from typing import Dict, Optional

from ..config import TemplateSettings, template_settings
from ..constants.template_fields import LEGACY_ALIASES
from ..models.report import MedicationRecord, ReportData

DataValueTable = Dict[str, str]


def _text(value) -> str:
    return "" if value is None else str(value)


def format_medication(med: MedicationRecord) -> str:
    """'Name strength - dosage frequency', skipping empty parts."""
    line = _text(med.name)
    if med.strength:
        line += f" {med.strength}"
    if med.dosage:
        line += f" - {med.dosage}"
    if med.frequency:
        line += f" {med.frequency}"
    return line


def flatten_report(
    report: ReportData,
    today: Optional[date] = None,
    settings: Optional[TemplateSettings] = None
) -> DataValueTable:
    """Canonical dotted keys only."""
    settings = settings or template_settings
    today = today or date.today()
    values: DataValueTable = {}

    for section_name in ("patient", "interview"):
        section = getattr(report, section_name)
        for field_name, value in section.model_dump().items():
            values[f"{section_name}.{field_name}"] = _text(value)

    medications = report.medications
    good = sum(1 for med in medications if med.compliance_status == "Good")
    poor = sum(1 for med in medications if med.compliance_status == "Poor")
    values["medications.count"] = str(len(medications))
    values["medications.list"] = "\n".join(format_medication(med) for med in medications)
    values["medications.compliance_summary"] = f"{good} compliant, {poor} non-compliant"

    recommendations = report.recommendations
    values["recommendations.count"] = str(len(recommendations))
    values["recommendations.high_priority"] = str(
        sum(1 for rec in recommendations if rec.priority_level == "High")
    )
    values["recommendations.summary"] = "\n\n".join(
        f"{index}. {_text(rec.issue_identified)}\nAction: {_text(rec.suggested_action)}"
        for index, rec in enumerate(recommendations, start=1)
    )

    values["report.generated_date"] = today.strftime(settings.REPORT_DATE_FORMAT)
    values["report.pharmacist_email"] = settings.PHARMACIST_EMAIL
    # TODO: derive from interview_date once the review cadence is stored
    values["report.next_review_date"] = ""

    return values


def apply_legacy_aliases(values: DataValueTable) -> DataValueTable:
    """Add unqualified legacy keys mirroring their canonical keys."""
    aliased = dict(values)
    for legacy_key, canonical_key in LEGACY_ALIASES.items():
        aliased[legacy_key] = values.get(canonical_key, "")
    return aliased


def resolve_values(
    report: ReportData,
    today: Optional[date] = None,
    settings: Optional[TemplateSettings] = None
) -> DataValueTable:
    """
    Build the full value table for a fill request.

    Args:
        report: Populated report data
        today: Date used for report.generated_date (defaults to today)
        settings: Template settings (defaults to the global instance)

    Returns:
        Dotted keys and legacy aliases to string values
    """
    return apply_legacy_aliases(flatten_report(report, today=today, settings=settings))


def lookup(values: DataValueTable, key: str) -> str:
    """Unknown keys resolve to an empty string."""
    return values.get(key, "") or ""
