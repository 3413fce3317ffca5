# ============================================================================
# src/hmr_ingestion/extractors/referral_parser.py
# ============================================================================
"""
Referral Letter Parser

Turns the plain text of a GP referral into ExtractedPatientData.

Every field is located with an ordered PatternRule cascade tuned to common
Australian referral layouts (clinic letterhead, "RE:" patient line,
signature block after "Yours sincerely"). The first rule producing a usable
value wins; fields nobody matched stay None.
"""

from typing import Optional
import logging
import re

from ..constants.referral_sections import SECTION_HEADERS, terminators_for
from ..models.extraction import ExtractedPatientData, Gender
from .medication_parser import MedicationParser
from .text_patterns import (
    PatternRule,
    capture_section,
    first_match,
    normalize_date,
    normalize_newlines,
)


def _with_digit(match: re.Match) -> Optional[str]:
    value = match.group(1).strip()
    return value if re.search(r'\d', value) else None


def _person_name(match: re.Match) -> Optional[str]:
    # Keep letters, spaces and periods; reject anything else
    cleaned = re.sub(r'[^\w\s.]', '', match.group(1)).strip()
    if len(cleaned) > 2 and re.fullmatch(r'[A-Za-z\s.]+', cleaned):
        return re.sub(r'\s+', ' ', cleaned)
    return None


def _practice_name(match: re.Match) -> Optional[str]:
    cleaned = re.sub(r'[^\w\s]', '', match.group(1)).strip()
    return re.sub(r'\s+', ' ', cleaned) if len(cleaned) > 3 else None


NAME_RULES = (
    PatternRule.compile(r'\bRE:[ \t]*(?:(?:Mrs|Mr|Ms|Miss|Mstr)\.?[ \t]+)?([^\n\r]+)'),
    PatternRule.compile(r'\bPatient(?:\s+Name)?:[ \t]*([^\n\r]+)'),
    PatternRule.compile(r'\bName:[ \t]*([^\n\r]+)'),
)

_DMY = r'(\d{1,2}/\d{1,2}/(?:\d{4}|\d{2}))\b'
DOB_RULES = (
    PatternRule.compile(r'\bD\.?O\.?B\.?[\s:]*' + _DMY),
    PatternRule.compile(r'\bDate\s+of\s+Birth[\s:]*' + _DMY),
    PatternRule.compile(r'\bBorn[\s:]*' + _DMY),
)

MEDICARE_RULES = (
    PatternRule.compile(r'\bMedicare\s+No\.?[\s:#]*([A-Z0-9]+)', extractor=_with_digit),
    PatternRule.compile(r'\bMedicare(?:\s+Number)?[\s:#]*([A-Z0-9]+)', extractor=_with_digit),
    PatternRule.compile(r'\bMRN[\s:#]*([A-Z0-9]+)', extractor=_with_digit),
)

ADDRESS_RULES = (
    PatternRule.compile(
        r'(\d+[A-Za-z]?[ \t]+[^\n\r]*?\b(?:Street|Road|Avenue|Drive|Lane|Court|'
        r'Crescent|Place|Parade|Highway|Boulevard|Terrace)\b[^\n\r]*)'
    ),
    PatternRule.compile(r'\bAddress:[ \t]*([^\n\r]+)'),
)

_PHONE = r'(\+?\(?\d[\d \t()-]{6,}\d)'
PHONE_RULES = (
    PatternRule.compile(r'\bPh(?:one)?\.?[ \t]*:?[ \t]*' + _PHONE),
    PatternRule.compile(r'\bTel(?:ephone)?\.?[ \t]*:?[ \t]*' + _PHONE),
    PatternRule.compile(r'\bMob(?:ile)?\.?[ \t]*:?[ \t]*' + _PHONE),
)

DOCTOR_RULES = (
    PatternRule.compile(r'Yours\s+(?:sincerely|faithfully)[^\n\r]*[\n\r]+\s*([^\n\r]+)', extractor=_person_name),
    PatternRule.compile(r'\bDr\.?[ \t]+([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)+)', flags=0, extractor=_person_name),
    PatternRule.compile(r'\bDoctor[^\n\r]*[\n\r]+\s*([^\n\r]+)', extractor=_person_name),
    PatternRule.compile(r'\bProvider\s+No[^\n\r]*[\n\r]+\s*([A-Za-z \t]+)', extractor=_person_name),
)

EMAIL_RULES = (
    PatternRule.compile(r'([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})'),
)

PRACTICE_RULES = (
    PatternRule.compile(
        r'^[ \t]*([A-Z][A-Z \t&]*\b(?:MEDICAL|CLINIC|CENTRE|CENTER|HEALTH)\b[A-Z \t&]*)$',
        flags=re.MULTILINE,
        extractor=_practice_name,
    ),
    PatternRule.compile(r'\bPractice(?:\s+Name)?:[ \t]*([^\n\r]+)', extractor=_practice_name),
    PatternRule.compile(r'\bClinic:[ \t]*([^\n\r]+)', extractor=_practice_name),
)

# Title or upper case only: "miss" is a verb and "MS" a diagnosis
FEMALE_TITLE = re.compile(r'\b(?:Mrs|MRS|Ms|Miss|MISS)\b\.?\s')
MALE_TITLE = re.compile(r'\b(?:Mr|MR)\b\.?\s')
MALE_PRONOUNS = re.compile(r'\b(?:he|him|his)\b', re.IGNORECASE)
FEMALE_PRONOUNS = re.compile(r'\b(?:she|her|hers)\b', re.IGNORECASE)


def detect_gender(text: str) -> Gender:
    """
    Title first (Mrs/Ms female, Mr male), then pronoun majority.

    A pronoun tie, or no signal at all, gives Unknown.
    """
    if not text:
        return Gender.UNKNOWN
    if FEMALE_TITLE.search(text):
        return Gender.FEMALE
    if MALE_TITLE.search(text):
        return Gender.MALE

    male = len(MALE_PRONOUNS.findall(text))
    female = len(FEMALE_PRONOUNS.findall(text))
    if male > female:
        return Gender.MALE
    if female > male:
        return Gender.FEMALE
    return Gender.UNKNOWN


class ReferralParser:
    """
    Regex-driven parser for GP referral letters.

    Usage:
        parser = ReferralParser()
        data = parser.parse(referral_text)
    """

    def __init__(self, medication_parser: Optional[MedicationParser] = None):
        self.logger = logging.getLogger(__name__)
        self.medication_parser = medication_parser or MedicationParser()

    def parse(self, text: str) -> ExtractedPatientData:
        """
        Parse referral text into patient data.

        Never raises for odd input; unmatched fields are left as None.
        """
        text = normalize_newlines(text)
        data = ExtractedPatientData()

        data.name = first_match(text, NAME_RULES)
        dob = first_match(text, DOB_RULES)
        data.dob = normalize_date(dob) if dob else None
        data.gender = detect_gender(text)

        data.medicare_number = first_match(text, MEDICARE_RULES)
        data.address = first_match(text, ADDRESS_RULES)
        data.phone = first_match(text, PHONE_RULES)
        data.referring_doctor = first_match(text, DOCTOR_RULES)
        data.doctor_email = first_match(text, EMAIL_RULES)
        data.practice_name = first_match(text, PRACTICE_RULES)

        data.current_conditions = self._section(text, 'current_conditions')
        data.past_medical_history = self._section(text, 'past_medical_history')
        data.allergies = self._section(text, 'allergies')

        data.medications = self.medication_parser.extract(text)

        found = [name for name, value in vars(data).items() if value]
        self.logger.debug(f"Parsed referral fields: {', '.join(found)}")
        return data

    @staticmethod
    def _section(text: str, section: str) -> Optional[str]:
        body = capture_section(
            text,
            SECTION_HEADERS[section],
            terminators_for(section),
        )
        return body or None
