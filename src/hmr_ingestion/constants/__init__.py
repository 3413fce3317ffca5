"""
Static vocabularies used by the referral parser and the template filler.
"""

from .medication_terms import (
    DOSE_UNIT_PATTERN,
    DOSAGE_FORM_PATTERN,
    FREQUENCY_KEYWORD_PATTERN,
    ADMINISTRATION_KEYWORD_PATTERN,
    ADMINISTRATION_VERB_PATTERN,
    KNOWN_MEDICATIONS,
)
from .referral_sections import SAMPLE_REFERRAL_TEXT
from .template_fields import (
    PDF_MIME_TYPE,
    DOCX_MIME_TYPE,
    GENERIC_TEMPLATE_FIELDS,
    LEGACY_ALIASES,
)
