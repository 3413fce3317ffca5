# ============================================================================
# src/hmr_ingestion/extractors/medication_parser.py
# ============================================================================
"""
Medication Line Parser

Classifies referral lines as medication entries and tokenises them into
name, dosage, frequency and PRN status.

A line counts as a medication when it is more than one word, is not a bare
instruction fragment, and carries at least one signal:
- a dose unit (mg, mcg, %, IU, g/mL ...)
- a dosage form (tablet, capsule, cream, gel, injection, pessaries, drops)
- a frequency / instruction keyword (daily, twice, bd, tds, prn, nocte,
  apply, take, insert)
- a known medication name (booster only; unknown drugs are still accepted)

Confidence starts at 0.5 and each independent signal adds a fixed amount,
capped at 1.0. Low-confidence entries are still returned for human review.
"""

from typing import List, Optional, Tuple
import logging
import re

from ..constants.medication_terms import (
    DOSE_UNIT,
    DOSE_UNIT_PATTERN,
    DOSAGE_FORM_PATTERN,
    FREQUENCY_KEYWORD_PATTERN,
    ADMINISTRATION_KEYWORD_PATTERN,
    ADMINISTRATION_VERB_PATTERN,
    INSTRUCTION_WORDS,
    KNOWN_MEDICATION_PATTERN,
)
from ..constants.referral_sections import SECTION_HEADERS, terminators_for
from ..models.extraction import ExtractedMedication, PrnStatus
from .text_patterns import PatternRule, capture_section, first_match, normalize_newlines


BASE_CONFIDENCE = 0.5
DOSE_UNIT_WEIGHT = 0.2
ADMINISTRATION_KEYWORD_WEIGHT = 0.2
DOSAGE_FORM_WEIGHT = 0.1
ADMINISTRATION_VERB_WEIGHT = 0.1

MIN_NAME_LENGTH = 2

# A name starts with a letter and ends before the first whitespace-separated
# strength token
_NAME = r'^([A-Za-z][\w\-\s]*?)\s+'


def _name_and_dosage(match: re.Match) -> Tuple[str, str]:
    return match.group(1).strip(), match.group(2).strip()


# Concentration forms before plain strengths:
#   "Eleuphrat 0.05% Cream", "Hydrozole 1%;1% Cream", "Inderal 40mg Tablet"
NAME_DOSAGE_RULES = (
    PatternRule.compile(
        _NAME + r'(\d+(?:\.\d+)?%.*?\b(?:Cream|Gel|Liquid|Drops|Ointment|Lotion))\b',
        extractor=_name_and_dosage,
        name="concentration",
    ),
    PatternRule.compile(
        _NAME + r'(\d+(?:\.\d+)?%;?\d*(?:\.\d+)?%?.*?\b(?:Cream|Gel|Tablets?|Capsules?|Injection|Pessar(?:y|ies)))\b',
        extractor=_name_and_dosage,
        name="complex_concentration",
    ),
    PatternRule.compile(
        _NAME + r'(' + DOSE_UNIT
        + r'(?:\s+(?:Tablets?|Capsules?|Liquid|Injection|Pessar(?:y|ies)|Cream|Gel|Drops|Patch|Ointment))?)',
        extractor=_name_and_dosage,
        name="strength",
    ),
)

FREQUENCY_RULES = (
    PatternRule.compile(r'(\d+\s*(?:times?|x)\s*(?:daily|a day|per day))'),
    PatternRule.compile(r'((?:in the\s+)?(?:morning|evening|night)|at bedtime|bedtime|nocte)'),
    PatternRule.compile(
        r'\b(once daily|twice daily|three times daily|four times daily|'
        r'once a day|twice a day|three times a day|four times a day|daily|bd|tds|qds)\b'
    ),
    PatternRule.compile(r'(every\s+\d+\s+(?:months?|weeks?|days?|hours?))'),
    PatternRule.compile(r'(\b(?:once|twice|\d+\s+times)\s+(?:per|a)\s+week)'),
    PatternRule.compile(r'(apply.*?(?:daily|twice|as directed))'),
    PatternRule.compile(r'(insert.*?(?:twice per week|nocte))'),
)

PRN_PATTERN = re.compile(r'\b(?:prn|as needed|when required|if needed)\b', re.IGNORECASE)
LIMITED_DURATION_PATTERN = re.compile(
    r'\b(?:for\s+\d+\s+days?|until resolution|limited|short term)\b',
    re.IGNORECASE
)

# Bare instruction fragments that never start a medication entry
INSTRUCTION_ONLY_PATTERNS = (
    re.compile(r'^(?:apply|take|insert|use|administer)\.?$', re.IGNORECASE),
    re.compile(
        r'^(?:daily|twice daily|morning|evening|night|nocte|bd|tds|qds)\.?$',
        re.IGNORECASE
    ),
    re.compile(r'^\d+/\d+$'),
)

# Lines that continue the previous entry's directions
INSTRUCTION_LINE_PATTERNS = (
    re.compile(r'^(?:apply|take|insert|use|administer)\b', re.IGNORECASE),
    re.compile(r'^(?:daily|twice daily|morning|evening|night|nocte|bd|tds|qds)\b', re.IGNORECASE),
    re.compile(r'^\d+/\d+'),
    re.compile(r'^every\s+\d+\s+months?', re.IGNORECASE),
    re.compile(r'^(?:as needed|prn|when required)', re.IGNORECASE),
)


class MedicationParser:
    """
    Parses the medication list of a referral letter.

    Usage:
        parser = MedicationParser()
        medications = parser.extract(referral_text)
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def extract(self, text: str) -> List[ExtractedMedication]:
        """
        Extract medications in document order.

        Uses the Medications section when one exists, otherwise scans every
        line of the text.
        """
        if not text:
            return []
        text = normalize_newlines(text)

        section = capture_section(
            text,
            SECTION_HEADERS['medications'],
            terminators_for('medications'),
            clean=False,
        )
        if not section or not section.strip():
            self.logger.debug("No medication section found, scanning full text")
            section = text

        medications: List[ExtractedMedication] = []
        current: Optional[ExtractedMedication] = None

        for raw_line in section.splitlines():
            line = raw_line.strip()
            if not line:
                continue

            if current is not None and self.is_continuation_line(line):
                current.frequency = f"{current.frequency} {line}".strip()
                continue

            if not self.is_medication_line(line):
                continue

            medication = self.parse_line(line)
            if medication is None:
                continue

            medications.append(medication)
            current = medication

        self.logger.debug(f"Extracted {len(medications)} medication lines")
        return medications

    def is_medication_line(self, line: str) -> bool:
        line = line.strip()
        if len(line.split()) < 2:
            return False

        if any(pattern.match(line) for pattern in INSTRUCTION_ONLY_PATTERNS):
            return False

        return bool(
            DOSE_UNIT_PATTERN.search(line)
            or DOSAGE_FORM_PATTERN.search(line)
            or FREQUENCY_KEYWORD_PATTERN.search(line)
            or KNOWN_MEDICATION_PATTERN.search(line)
        )

    def is_continuation_line(self, line: str) -> bool:
        """
        An instruction line belonging to the previous entry.

        Lines carrying their own strength, form or known drug name start a
        new entry instead.
        """
        if not any(pattern.match(line) for pattern in INSTRUCTION_LINE_PATTERNS):
            return False
        return not (
            DOSE_UNIT_PATTERN.search(line)
            or DOSAGE_FORM_PATTERN.search(line)
            or KNOWN_MEDICATION_PATTERN.search(line)
        )

    def parse_line(self, line: str) -> Optional[ExtractedMedication]:
        """
        Tokenise one medication line.

        Returns:
            ExtractedMedication, or None when no usable name was found
        """
        line = line.strip()
        name_dosage = first_match(line, NAME_DOSAGE_RULES)
        if name_dosage:
            name, dosage = name_dosage
        else:
            name = self._fallback_name(line)
            dose_match = DOSE_UNIT_PATTERN.search(line)
            dosage = dose_match.group(0).strip() if dose_match else ""

        name = name.strip()
        if len(name) < MIN_NAME_LENGTH:
            return None

        return ExtractedMedication(
            name=name,
            dosage=dosage,
            frequency=first_match(line, FREQUENCY_RULES) or "",
            prn_status=self.classify_prn(line),
            confidence=self.score(line),
        )

    @staticmethod
    def _fallback_name(line: str) -> str:
        # First two words that are not instruction words
        words = []
        for word in line.split():
            if word.lower().strip('.,;:') in INSTRUCTION_WORDS:
                continue
            words.append(word)
            if len(words) >= 2:
                break
        return " ".join(words)

    @staticmethod
    def classify_prn(line: str) -> PrnStatus:
        if PRN_PATTERN.search(line):
            return PrnStatus.PRN
        if LIMITED_DURATION_PATTERN.search(line):
            return PrnStatus.LIMITED_DURATION
        return PrnStatus.REGULAR

    @staticmethod
    def score(line: str) -> float:
        confidence = BASE_CONFIDENCE
        if DOSE_UNIT_PATTERN.search(line):
            confidence += DOSE_UNIT_WEIGHT
        if ADMINISTRATION_KEYWORD_PATTERN.search(line):
            confidence += ADMINISTRATION_KEYWORD_WEIGHT
        if DOSAGE_FORM_PATTERN.search(line):
            confidence += DOSAGE_FORM_WEIGHT
        if ADMINISTRATION_VERB_PATTERN.search(line):
            confidence += ADMINISTRATION_VERB_WEIGHT
        return min(round(confidence, 2), 1.0)
