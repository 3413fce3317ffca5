# src/hmr_ingestion/extractors/text_patterns.py
"""
Text pattern utilities for referral parsing.

Field values are located with ordered pattern cascades: each cascade is a
list of PatternRule entries tried in priority order, and the first rule that
both matches and yields a usable value wins. Partial matches from different
rules are never merged.

Also provides:
- Date normalisation (day/month/year to ISO)
- Section block capture (header line to next known header)
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Pattern, Sequence
import re

from ..constants.referral_sections import SIGN_OFF


Extractor = Callable[[re.Match], Any]


def group_one(match: re.Match) -> Optional[str]:
    """Default extractor: first capture group, trimmed."""
    value = match.group(1)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class PatternRule:
    """A regex paired with the function that turns its match into a value."""
    pattern: Pattern
    extractor: Extractor = group_one
    name: str = ""

    @classmethod
    def compile(
        cls,
        pattern: str,
        flags: int = re.IGNORECASE,
        extractor: Extractor = group_one,
        name: str = ""
    ) -> "PatternRule":
        return cls(re.compile(pattern, flags), extractor, name or pattern)

    def apply(self, text: str) -> Any:
        match = self.pattern.search(text)
        if match is None:
            return None
        return self.extractor(match)


def first_match(text: str, rules: Iterable[PatternRule]) -> Any:
    """
    Evaluate rules in order and return the first usable value.

    Args:
        text: Text to search
        rules: Rules in priority order

    Returns:
        Value from the first rule that matched, or None
    """
    if not text:
        return None
    for rule in rules:
        value = rule.apply(text)
        if value:
            return value
    return None


def normalize_newlines(text: str) -> str:
    """CRLF and bare CR (pypdfium2, Windows OCR output) to LF."""
    return (text or "").replace("\r\n", "\n").replace("\r", "\n")


# ============================================================================
# Dates
# ============================================================================

_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_DMY_DATE = re.compile(r'^(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2}|\d{4})$')


def normalize_date(date_str: str) -> str:
    """
    Convert a day/month/year date to ISO YYYY-MM-DD.

    Two-digit years are taken as 20xx. ISO input is returned unchanged, and
    anything unrecognised is returned as given (trimmed).

    Examples:
        "24/01/1938" -> "1938-01-24"
        "5/3/21"     -> "2021-03-05"
    """
    value = (date_str or "").strip()
    if _ISO_DATE.match(value):
        return value

    match = _DMY_DATE.match(value)
    if not match:
        return value

    day, month, year = match.groups()
    if len(year) == 2:
        year = f"20{year}"
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


# ============================================================================
# Section blocks
# ============================================================================

def clean_block(block: str) -> str:
    """Strip each line and drop blank lines, one item per line."""
    lines = (line.strip() for line in block.splitlines())
    return "\n".join(line for line in lines if line)


def section_pattern(header: str, terminators: Sequence[str]) -> Pattern:
    """
    Build the regex capturing a section body.

    The header must start a line. It either stands alone (optionally with a
    colon) or carries its body inline after a colon ("Allergies: Nil known").
    The body runs to the next line opening with a terminator header in
    either form, to a sign-off line, or to end of text.
    """
    stop_headers = "|".join(terminators)
    return re.compile(
        rf'^[ \t]*(?:{header})(?:[ \t]*:[ \t]*|[ \t]*\n)'
        rf'(.*?)'
        rf'(?=^[ \t]*(?:{stop_headers})[ \t]*(?::|$)'
        rf'|^[ \t]*{SIGN_OFF}'
        rf'|\Z)',
        re.IGNORECASE | re.MULTILINE | re.DOTALL
    )


def capture_section(
    text: str,
    headers: Sequence[str],
    terminators: Sequence[str],
    clean: bool = True
) -> Optional[str]:
    """
    Capture the body of the first header that appears in the text.

    Args:
        text: Full referral text
        headers: Header alternatives in priority order
        terminators: Headers that close the section
        clean: Strip lines and collapse blank runs

    Returns:
        Section body, or None when no header matched
    """
    if not text:
        return None
    for header in headers:
        match = section_pattern(header, terminators).search(text)
        if match:
            body = match.group(1)
            return clean_block(body) if clean else body
    return None
