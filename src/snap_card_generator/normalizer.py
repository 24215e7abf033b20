"""Conversion of textual stat values into typed card values."""

import re
from collections.abc import Iterable

from snap_card_generator.models import IntStatValue, StatEntry, StatValue, StringStatValue

# Optional sign followed by ASCII digits, nothing else
WHOLE_NUMBER = re.compile(r"[+-]?[0-9]+")


def normalize_stat_value(text: str) -> StatValue:
    """Classify a stat value as an integer or a verbatim string.

    Only strict whole numbers become integers: no surrounding whitespace,
    no separators, no decimal point. "40" is 40, while "40.0", " 40" and
    "1,000" stay strings, as do digit runs too long to convert.
    """
    if WHOLE_NUMBER.fullmatch(text):
        try:
            return IntStatValue(value=int(text))
        except ValueError:
            # Past the interpreter's int-from-string digit limit
            pass
    return StringStatValue(value=text)


def normalize_stats(pairs: Iterable[tuple[str, str]]) -> list[StatEntry]:
    """Turn (category, value) pairs into stat entries, keeping their order."""
    return [
        StatEntry(category=category, value=normalize_stat_value(value))
        for category, value in pairs
    ]
