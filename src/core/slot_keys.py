"""Slot-key normalization for calendar labels."""

from __future__ import annotations

import re
from typing import Final, List

# Runs of anything that is not a letter or digit (underscore included).
DELIMITER_PATTERN: Final = re.compile(r"[\W_]+", re.UNICODE)
CAMEL_HUMP_PATTERN: Final = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def split_words(label: str) -> List[str]:
    words: List[str] = []
    for token in DELIMITER_PATTERN.split(label or ""):
        if not token:
            continue
        words.extend(part for part in CAMEL_HUMP_PATTERN.split(token) if part)
    return words


def to_slot_key(label: str) -> str:
    """
    Convert a human label into a template slot key.

    ``"Sermon Passage"`` -> ``"sermonPassage"``, ``"scripture-reading"`` ->
    ``"scriptureReading"``. Delimiter runs collapse, unicode letters survive and an
    empty label yields ``""``.
    """
    words = split_words(label)
    if not words:
        return ""
    head, *tail = words
    return head.lower() + "".join(word[:1].upper() + word[1:].lower() for word in tail)


def strip_calendar_prefix(label: str, calendar_name: str) -> str:
    """Drop a redundant ``"<calendar> - "`` prefix from an event label."""
    if calendar_name:
        return label.removeprefix(f"{calendar_name} - ")
    return label
