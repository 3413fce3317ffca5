# ============================================================================
# src/hmr_ingestion/constants/template_fields.py
# ============================================================================
"""
Template Field Constants
- Supported template MIME types
- Generic field names offered when a template exposes none
- Legacy unqualified keys used by templates predating dotted keys
"""

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

TEMPLATE_CONTENT_TYPES = {
    "pdf": PDF_MIME_TYPE,
    "docx": DOCX_MIME_TYPE,
}

GENERIC_TEMPLATE_FIELDS = (
    'patient_name', 'date_of_birth', 'address', 'phone', 'email',
    'referring_doctor', 'interview_date', 'pharmacist_name',
    'medications_list', 'recommendations', 'next_review_date',
)

# legacy key -> canonical dotted key
LEGACY_ALIASES = {
    'patient_name': 'patient.name',
    'date_of_birth': 'patient.dob',
    'address': 'patient.address',
    'phone': 'patient.phone',
    'email': 'patient.doctor_email',
    'referring_doctor': 'patient.referring_doctor',
    'interview_date': 'interview.interview_date',
    'pharmacist_name': 'interview.pharmacist_name',
    'medications_list': 'medications.list',
    'recommendations': 'recommendations.summary',
    'next_review_date': 'report.next_review_date',
}
