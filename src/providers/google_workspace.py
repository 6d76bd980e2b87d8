"""Google Calendar and People REST adapters."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..core.errors import ProviderError
from ..core.models import CalendarEvent, CalendarRef, Contact, ReportingWindow
from .contracts import SecretProvider

LOGGER = logging.getLogger(__name__)

CALENDAR_BASE_URL = "https://www.googleapis.com/calendar/v3"
PEOPLE_BASE_URL = "https://people.googleapis.com/v1"


class GoogleWorkspaceClient:
    """Calendar + contacts provider backed by a pre-issued OAuth access token."""

    def __init__(
        self,
        secrets: SecretProvider,
        token_secret: str = "GoogleAccessToken",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.secrets = secrets
        self.token_secret = token_secret
        self.timeout = timeout
        self._transport = transport

    async def list_contacts(self, fields: Sequence[str]) -> List[Contact]:
        params = {"personFields": ",".join(fields), "pageSize": 1000}
        connections = await self._get_all_pages(f"{PEOPLE_BASE_URL}/people/me/connections", params, "connections")
        contacts: List[Contact] = []
        for person in connections:
            names = person.get("names") or [{}]
            try:
                contacts.append(
                    Contact(
                        name=names[0].get("displayName", ""),
                        emails=[item.get("value") for item in person.get("emailAddresses") or []],
                    )
                )
            except ValidationError as exc:
                LOGGER.warning("Dropping invalid contact %s: %s", person.get("resourceName"), exc)
        LOGGER.info("Google reports %s contacts", len(contacts))
        return contacts

    async def list_calendars(self) -> List[CalendarRef]:
        items = await self._get_all_pages(f"{CALENDAR_BASE_URL}/users/me/calendarList", {}, "items")
        calendars: List[CalendarRef] = []
        for item in items:
            if item.get("primary"):
                continue
            try:
                calendars.append(self._to_calendar(item))
            except ValidationError as exc:
                LOGGER.warning("Dropping invalid calendar %s: %s", item.get("id"), exc)
        return calendars

    async def get_calendar(self, calendar_id: str) -> CalendarRef:
        payload = await self._get_json(f"{CALENDAR_BASE_URL}/calendars/{calendar_path(calendar_id)}", {})
        try:
            return self._to_calendar(payload)
        except ValidationError as exc:
            raise ProviderError("google-calendar", f"invalid calendar {calendar_id}: {exc}") from exc

    async def get_events(self, calendar: CalendarRef, window: ReportingWindow) -> List[CalendarEvent]:
        params = {
            "singleEvents": "true",
            "orderBy": "startTime",
            "timeMin": window.start.isoformat(),
            "timeMax": window.end.isoformat(),
        }
        items = await self._get_all_pages(f"{CALENDAR_BASE_URL}/calendars/{calendar_path(calendar.id)}/events", params, "items")
        events: List[CalendarEvent] = []
        for item in items:
            try:
                events.append(
                    CalendarEvent(
                        label=item.get("summary", ""),
                        description=item.get("description", ""),
                        attendees=[a["email"] for a in item.get("attendees") or [] if a.get("email")],
                        start=_event_time(item.get("start")),
                        end=_event_time(item.get("end")),
                    )
                )
            except ValidationError as exc:
                LOGGER.warning("Dropping invalid event %s in %s: %s", item.get("id"), calendar.label, exc)
        return events

    @staticmethod
    def _to_calendar(item: Dict[str, Any]) -> CalendarRef:
        return CalendarRef(
            id=item.get("id", ""),
            label=item.get("summaryOverride") or item.get("summary", ""),
            primary=bool(item.get("primary", False)),
        )

    async def _get_all_pages(self, url: str, params: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page_token = None
        while True:
            page_params = dict(params)
            if page_token:
                page_params["pageToken"] = page_token
            payload = await self._get_json(url, page_params)
            items.extend(payload.get(key) or [])
            page_token = payload.get("nextPageToken")
            if not page_token:
                return items

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        token = await self.secrets.read(self.token_secret)
        headers = {"Authorization": f"Bearer {token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as exc:
            raise ProviderError("google", f"GET {url} failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("google", f"GET {url} returned invalid JSON: {exc}") from exc


def calendar_path(calendar_id: str) -> str:
    """Calendar ids such as ``en.usa#holiday@group.v.calendar.google.com`` need escaping."""
    return quote(calendar_id, safe="@")


def _event_time(value: Dict[str, Any] | None) -> str | None:
    if not value:
        return None
    # All-day events only carry a date.
    return value.get("dateTime") or (f"{value['date']}T00:00:00" if value.get("date") else None)
