# ============================================================================
# src/hmr_ingestion/models/report.py
# ============================================================================
"""
Report data fed to the template filler.

Arrives as JSON from the review workflow. Every leaf is optional; missing
sub-objects default to empty and unknown keys are ignored. Numeric leaves
(a strength of 40, a phone number sent as an integer) are kept as text.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ReportModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)


class PatientDetails(_ReportModel):
    name: Optional[str] = None
    dob: Optional[str] = None
    gender: Optional[str] = None
    medicare_number: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    referring_doctor: Optional[str] = None
    doctor_email: Optional[str] = None
    practice_name: Optional[str] = None
    known_allergies: Optional[str] = None
    current_conditions: Optional[str] = None


class MedicationRecord(_ReportModel):
    name: Optional[str] = None
    strength: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    compliance_status: Optional[str] = None  # "Good", "Poor", ...
    compliance_comment: Optional[str] = None


class InterviewDetails(_ReportModel):
    interview_date: Optional[str] = None
    pharmacist_name: Optional[str] = None
    medication_understanding: Optional[str] = None
    medication_administration: Optional[str] = None
    medication_adherence: Optional[str] = None
    fluid_intake: Optional[str] = None
    eating_habits: Optional[str] = None
    smoking_status: Optional[str] = None
    alcohol_consumption: Optional[str] = None


class Recommendation(_ReportModel):
    issue_identified: Optional[str] = None
    suggested_action: Optional[str] = None
    priority_level: Optional[str] = None  # "High", "Medium", "Low"
    category: Optional[str] = None


class ReportData(_ReportModel):
    patient: PatientDetails = Field(default_factory=PatientDetails)
    medications: List[MedicationRecord] = Field(default_factory=list)
    interview: InterviewDetails = Field(default_factory=InterviewDetails)
    recommendations: List[Recommendation] = Field(default_factory=list)

    @field_validator("patient", "interview", mode="before")
    @classmethod
    def _null_section(cls, value):
        return {} if value is None else value

    @field_validator("medications", "recommendations", mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value
