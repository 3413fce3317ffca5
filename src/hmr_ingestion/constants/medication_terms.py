# ============================================================================
# src/hmr_ingestion/constants/medication_terms.py
# ============================================================================
"""
Medication Line Vocabulary

Regex fragments for the medication-line classifier:
- Dose units (strengths and concentrations)
- Dosage forms
- Frequency / instruction keywords
- Administration verbs
- Known medication names (confidence booster, not a requirement)

All patterns are compiled case-insensitive.
"""

import re

# Strength or concentration: 40mg, 0.05%, 1000IU, 60mg/mL, 10 mcg
DOSE_UNIT = r'\d+(?:\.\d+)?\s*(?:(?:mg/mL|g/mL|mcg|mg|IU|mL|g|units?)\b|%)'
DOSE_UNIT_PATTERN = re.compile(DOSE_UNIT, re.IGNORECASE)

DOSAGE_FORMS = (
    'tablets?', 'capsules?', 'cream', 'gel', 'injection', 'pessar(?:y|ies)',
    'drops', 'ointment', 'lotion', 'liquid', 'patch', 'inhaler',
)
DOSAGE_FORM = r'\b(?:' + '|'.join(DOSAGE_FORMS) + r')\b'
DOSAGE_FORM_PATTERN = re.compile(DOSAGE_FORM, re.IGNORECASE)

# Used by the classifier: any of these marks a candidate medication line
FREQUENCY_KEYWORD_PATTERN = re.compile(
    r'\b(?:daily|twice|bd|tds|qds|prn|nocte|apply|take|insert)\b',
    re.IGNORECASE
)

# Used by the confidence score
ADMINISTRATION_KEYWORD_PATTERN = re.compile(
    r'\b(?:daily|bd|tds|qds|morning|evening|nocte|twice|weekly|apply)\b',
    re.IGNORECASE
)

ADMINISTRATION_VERB_PATTERN = re.compile(
    r'\b(?:apply|take|insert|inj)\b',
    re.IGNORECASE
)

# Words never treated as part of a medication name
INSTRUCTION_WORDS = frozenset({
    'apply', 'take', 'insert', 'use', 'daily', 'twice', 'morning',
    'evening', 'night', 'bd', 'tds', 'qds', 'prn', 'nocte',
})

KNOWN_MEDICATIONS = (
    'Eleuphrat', 'Hydrozole', 'Inderal', 'Lipitor', 'Nexium', 'Prolia',
    'Rozex', 'Terbinafine', 'Vagifem', 'Panadol', 'Calcium', 'Vitamin',
    'Metformin', 'Atorvastatin', 'Ramipril', 'Aspirin', 'Paracetamol',
)
KNOWN_MEDICATION_PATTERN = re.compile(
    r'\b(?:' + '|'.join(KNOWN_MEDICATIONS) + r')',
    re.IGNORECASE
)
