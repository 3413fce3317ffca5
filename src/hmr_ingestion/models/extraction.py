# ============================================================================
# src/hmr_ingestion/models/extraction.py
# ============================================================================
"""
Referral extraction output
- Patient demographics and clinical text blocks
- Medication list with dosing metadata and confidence
- Provenance of the text the fields were parsed from

All records are advisory: they are handed to a pharmacist for review and
correction, never treated as authoritative.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    UNKNOWN = "Unknown"


class PrnStatus(str, Enum):
    REGULAR = "Regular"
    PRN = "PRN"
    LIMITED_DURATION = "Limited Duration"


@dataclass
class ExtractedMedication:
    name: str
    dosage: str = ""
    frequency: str = ""
    prn_status: PrnStatus = PrnStatus.REGULAR
    confidence: float = 0.5  # 0.5 base, capped at 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "prnStatus": self.prn_status.value,
            "confidence": round(self.confidence, 2),
        }


@dataclass
class ExtractedPatientData:
    name: Optional[str] = None
    dob: Optional[str] = None  # ISO YYYY-MM-DD
    gender: Optional[Gender] = None
    medicare_number: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    referring_doctor: Optional[str] = None
    doctor_email: Optional[str] = None
    practice_name: Optional[str] = None

    # Free text blocks, one item per line
    current_conditions: Optional[str] = None
    past_medical_history: Optional[str] = None
    allergies: Optional[str] = None

    # Document order, not deduplicated
    medications: List[ExtractedMedication] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape consumed by the review UI (camelCase keys)"""
        return {
            "name": self.name,
            "dob": self.dob,
            "gender": self.gender.value if self.gender else None,
            "medicareNumber": self.medicare_number,
            "address": self.address,
            "phone": self.phone,
            "referringDoctor": self.referring_doctor,
            "doctorEmail": self.doctor_email,
            "practiceName": self.practice_name,
            "currentConditions": self.current_conditions,
            "pastMedicalHistory": self.past_medical_history,
            "allergies": self.allergies,
            "medications": [med.to_dict() for med in self.medications],
        }


@dataclass
class ReferralExtractionResult:
    """Parsed referral plus the text it was parsed from."""
    data: ExtractedPatientData
    raw_text: str
    method: str = "unknown"  # "text_layer", "ocr", "buffer_scan", "fallback"
    degraded: bool = False   # True when fallback text stood in for the document
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data.to_dict(),
            "rawText": self.raw_text,
            "method": self.method,
            "degraded": self.degraded,
            "warnings": list(self.warnings),
        }
