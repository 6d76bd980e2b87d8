"""
Scripture fragments: reference tables from the scripture calendar and passage HTML.
"""

from __future__ import annotations

import logging
from functools import partial
from html import escape
from typing import Dict, Iterable, List, Sequence
from urllib.parse import quote

from ..core.models import CalendarEvent, PassageOptions, ReportingWindow
from ..core.sequencer import serialize
from ..core.slot_keys import strip_calendar_prefix, to_slot_key
from ..providers.contracts import CalendarProvider, TextPassageProvider

LOGGER = logging.getLogger(__name__)

READ_MORE_TEMPLATE = '<a href="{url}" target="_blank">Read the full passage here</a>'


def split_references(description: str) -> List[str]:
    """One reference per non-blank line, in order."""
    return [line.strip() for line in (description or "").splitlines() if line.strip()]


def build_reference_table(events: Iterable[CalendarEvent], calendar_name: str) -> Dict[str, List[str]]:
    """
    Map each event's slot key to its references.

    ``"Scripture - Sermon Passage"`` with description ``"John 3:16\\nRomans 8:28"`` becomes
    ``{"sermonPassage": ["John 3:16", "Romans 8:28"]}``. A later event with the same key wins.
    """
    table: Dict[str, List[str]] = {}
    for event in events:
        key = to_slot_key(strip_calendar_prefix(event.label, calendar_name))
        if not key:
            LOGGER.warning("Skipping scripture event with empty label: %r", event.label)
            continue
        table[key] = split_references(event.description)
    return table


async def fetch_scripture_references(
    provider: CalendarProvider,
    calendar_id: str,
    window: ReportingWindow,
) -> Dict[str, List[str]]:
    calendar = await provider.get_calendar(calendar_id)
    events = await provider.get_events(calendar, window)
    table = build_reference_table(events, calendar.label)
    LOGGER.info("Scripture references for %s: %s", window.service_date, table)
    return table


def read_more_link(reference: str) -> str:
    url = f"http://esv.to/{quote(reference, safe=':,-')}"
    return READ_MORE_TEMPLATE.format(url=escape(url))


async def build_passage_fragment(
    provider: TextPassageProvider,
    reference: str,
    options: PassageOptions,
) -> str:
    passage = await provider.get_passage_markup(reference, options)
    return f"{passage}{read_more_link(reference)}"


async def build_passage_html(
    provider: TextPassageProvider,
    references: Sequence[str],
    options: PassageOptions | None = None,
) -> str:
    """Passage markup for every reference, fetched one at a time, in input order."""
    options = options or PassageOptions()
    fragments = await serialize(
        [partial(build_passage_fragment, provider, reference, options) for reference in references]
    )
    return "".join(fragments)
