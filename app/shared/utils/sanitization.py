"""Sanitization of spreadsheet cell values before caching and display."""

import re
from typing import Any, ClassVar

import nh3


class CellSanitizer:
    """
    Normalize raw sheet cells into safe display strings.

    Cells are free text typed into the spreadsheet, so all HTML is stripped
    (nh3, no allowed tags) before values reach the cache or a rendered view.
    """

    ALLOWED_TAGS: ClassVar[set[str]] = set()
    YEAR_DIGITS_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"(\d+)")
    PROBATIONARY_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"^(p\d?|prob(ationary)?)\b", re.IGNORECASE
    )

    @classmethod
    def sanitize_text(cls, value: Any) -> str:
        """Return value as stripped text with HTML removed; '' for None."""
        if value is None:
            return ""
        text = str(value).strip()
        if not text:
            return text
        return nh3.clean(text, tags=cls.ALLOWED_TAGS, attributes={}).strip()

    @classmethod
    def parse_year(cls, value: Any, probationary_year: int) -> int | None:
        """Parse a Year cell ('2', 2, 'Year 3', 'P1', 'Probationary').

        Returns:
            The year number, probationary_year for probationary markers,
            or None when nothing parseable is present.
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        text = str(value).strip()
        if not text:
            return None
        if cls.PROBATIONARY_PATTERN.match(text):
            return probationary_year
        match = cls.YEAR_DIGITS_PATTERN.search(text)
        return int(match.group(1)) if match else None
