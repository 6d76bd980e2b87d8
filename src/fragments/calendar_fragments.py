"""
Calendar fragments: one ``<dt>``/``<dd>`` section per calendar, wrapped per week.
"""

from __future__ import annotations

import logging
from functools import partial
from html import escape
from typing import Iterable, List, Sequence

from ..core.models import CalendarEvent, CalendarRef, PersonDirectory, ReportingWindow
from ..core.sequencer import serialize
from ..core.slot_keys import strip_calendar_prefix
from ..providers.contracts import CalendarProvider

LOGGER = logging.getLogger(__name__)

DATE_HEADING_TEMPLATE = (
    '<span style="font-family:merriweather,georgia,times new roman,serif;font-size:16px">'
    "<strong> - {date_text}</strong>"
    "</span>"
)


def resolve_attendees(event: CalendarEvent, directory: PersonDirectory) -> str:
    """Attendee names joined with ``", "``; the event description if nobody is listed."""
    names = [directory.display_name(attendee) for attendee in event.attendees]
    return ", ".join(name for name in names if name) or event.description


def attendees_html(event: CalendarEvent, directory: PersonDirectory) -> str:
    """Escaped attendee names, or the event description as authored (it is already HTML)."""
    names = [directory.display_name(attendee) for attendee in event.attendees]
    return ", ".join(escape(name) for name in names if name) or event.description


def event_label(event: CalendarEvent, calendar: CalendarRef) -> str:
    return strip_calendar_prefix(event.label, calendar.label)


def render_calendar_section(
    calendar: CalendarRef,
    events: Sequence[CalendarEvent],
    directory: PersonDirectory,
) -> str:
    if not events:
        return ""
    header = f'<dt><b><a href="{escape(calendar.link)}">{escape(calendar.label)}</a></b></dt>'
    entries = "".join(
        f"<dd><i>{escape(event_label(event, calendar))}</i>: {attendees_html(event, directory)}</dd>"
        for event in events
    )
    return f"{header} {entries}"


async def build_calendar_fragment(
    provider: CalendarProvider,
    calendar: CalendarRef,
    window: ReportingWindow,
    directory: PersonDirectory,
) -> str:
    events = await provider.get_events(calendar, window)
    LOGGER.debug("Calendar %s has %s events before %s", calendar.label, len(events), window.service_date)
    return render_calendar_section(calendar, events, directory)


def sort_calendars(calendars: Iterable[CalendarRef]) -> List[CalendarRef]:
    """Non-primary calendars ordered by label, case-insensitively."""
    return sorted(
        (calendar for calendar in calendars if not calendar.primary),
        key=lambda calendar: (calendar.label.casefold(), calendar.label, calendar.id),
    )


async def build_calendar_window_html(
    provider: CalendarProvider,
    calendars: Sequence[CalendarRef],
    window: ReportingWindow,
    directory: PersonDirectory,
) -> str:
    """
    Date heading plus a ``<dl>`` of every calendar with events in ``window``.

    Calendars are fetched one at a time in the given order. Empty calendars are dropped
    and an entirely empty week yields ``""``.
    """
    sections = await serialize(
        [partial(build_calendar_fragment, provider, calendar, window, directory) for calendar in calendars]
    )
    non_empty = [section for section in sections if section]
    if not non_empty:
        LOGGER.info("No calendar events for the week ending %s.", window.service_date)
        return ""
    date_html = DATE_HEADING_TEMPLATE.format(date_text=window.heading_text)
    return f"{date_html}<dl>{''.join(non_empty)}</dl>"
