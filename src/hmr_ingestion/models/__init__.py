from .extraction import (
    Gender,
    PrnStatus,
    ExtractedMedication,
    ExtractedPatientData,
    ReferralExtractionResult,
)
from .report import (
    PatientDetails,
    MedicationRecord,
    InterviewDetails,
    Recommendation,
    ReportData,
)
