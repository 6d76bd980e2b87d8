"""Substitutes finished fragments into the named slots of a template document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping

from bs4 import BeautifulSoup

from ..core.errors import CompositionError

LOGGER = logging.getLogger(__name__)

DEFAULT_SLOT_ATTRIBUTE = "data-redeemer-bot"


class SlotKind(str, Enum):
    TEXT = "text"
    MARKUP = "markup"


class Slot(str, Enum):
    """Every slot the newsletter template is known to carry."""

    SERMON_DATE = "sermonDate"
    SCRIPTURE_READING = "scriptureReading"
    SERMON_PASSAGE = "sermonPassage"
    SERVICE_MUSIC = "serviceMusic"
    THIS_WEEK_CALENDAR = "thisWeekCalendar"
    NEXT_WEEK_CALENDAR = "nextWeekCalendar"


SLOT_KINDS: Dict[str, SlotKind] = {
    Slot.SERMON_DATE.value: SlotKind.TEXT,
    Slot.SCRIPTURE_READING.value: SlotKind.MARKUP,
    Slot.SERMON_PASSAGE.value: SlotKind.MARKUP,
    Slot.SERVICE_MUSIC.value: SlotKind.MARKUP,
    Slot.THIS_WEEK_CALENDAR.value: SlotKind.MARKUP,
    Slot.NEXT_WEEK_CALENDAR.value: SlotKind.MARKUP,
}


@dataclass(slots=True)
class CompositionResult:
    html: str
    matched: List[str] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)


class DocumentComposer:
    """Parses the template once and replaces the content of each slot in place."""

    def __init__(self, attribute: str = DEFAULT_SLOT_ATTRIBUTE, slot_kinds: Mapping[str, SlotKind] | None = None) -> None:
        self.attribute = attribute
        self.slot_kinds = dict(SLOT_KINDS if slot_kinds is None else slot_kinds)

    def compose(self, template_html: str, slot_map: Mapping[str, str]) -> CompositionResult:
        soup = self._parse(template_html)
        result = CompositionResult(html="")

        for key, content in slot_map.items():
            elements = soup.find_all(attrs={self.attribute: key})
            if not elements:
                result.unmatched.append(key)
                continue
            if len(elements) > 1:
                LOGGER.warning("Slot %s matches %s elements; filling all of them.", key, len(elements))
            kind = self.slot_kinds.get(key, SlotKind.MARKUP)
            for element in elements:
                if kind is SlotKind.TEXT:
                    element.string = content or ""
                else:
                    self._replace_markup(element, content or "")
            result.matched.append(key)

        if result.unmatched:
            LOGGER.warning("Template has no element for slots: %s", ", ".join(result.unmatched))
        result.html = soup.prettify()
        return result

    @staticmethod
    def _parse(template_html: str) -> BeautifulSoup:
        if not isinstance(template_html, str) or not template_html.strip():
            raise CompositionError("Template document is empty.")
        try:
            soup = BeautifulSoup(template_html, "html.parser")
        except Exception as exc:
            raise CompositionError(f"Template document could not be parsed: {exc}") from exc
        if soup.find() is None:
            raise CompositionError("Template document contains no elements.")
        return soup

    @staticmethod
    def _replace_markup(element, content: str) -> None:
        element.clear()
        fragment = BeautifulSoup(content, "html.parser")
        for child in list(fragment.contents):
            element.append(child.extract())


def compose_document(template_html: str, slot_map: Mapping[str, str], attribute: str = DEFAULT_SLOT_ATTRIBUTE) -> str:
    return DocumentComposer(attribute).compose(template_html, slot_map).html
