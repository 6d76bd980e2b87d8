"""Read-only collaborator contracts consumed by the newsletter pipeline."""

from __future__ import annotations

from typing import Any, List, Mapping, Protocol, Sequence

from ..core.models import CalendarEvent, CalendarRef, Contact, PassageOptions, ReportingWindow


class SecretProvider(Protocol):
    async def read(self, name: str) -> str:
        """Return the secret value; fail if ``name`` is unknown."""
        ...


class DirectoryProvider(Protocol):
    async def list_contacts(self, fields: Sequence[str]) -> List[Contact]:
        ...


class CalendarProvider(Protocol):
    async def list_calendars(self) -> List[CalendarRef]:
        """All calendars except the designated primary one."""
        ...

    async def get_calendar(self, calendar_id: str) -> CalendarRef:
        ...

    async def get_events(self, calendar: CalendarRef, window: ReportingWindow) -> List[CalendarEvent]:
        ...


class TextPassageProvider(Protocol):
    async def get_passage_markup(self, reference: str, options: PassageOptions) -> str:
        ...


class PlaylistProvider(Protocol):
    async def get_track_names(self, playlist_id: str) -> List[str]:
        ...


class TemplateStore(Protocol):
    async def fetch_template_html(self, template_id: int) -> str:
        ...

    async def publish_template_html(self, template_id: int, name: str, html: str) -> Mapping[str, Any]:
        ...
