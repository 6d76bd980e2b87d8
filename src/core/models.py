"""
Data model shared by the fragment builders, composer and pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from .config import NewsletterConfig

# Slot key -> final fragment content.
SlotMap = Dict[str, str]


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class Contact(BaseModel):
    """A directory entry: one display name, any number of email addresses."""

    name: str = Field(default="")
    emails: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _ensure_str(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("emails", mode="before")
    @classmethod
    def _normalize_emails(cls, value: object) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [normalize_email(item) for item in value if item and str(item).strip()]


class CalendarRef(BaseModel):
    """A calendar as listed by the calendar provider."""

    id: str = Field(min_length=1)
    label: str = Field(default="")
    primary: bool = False

    @property
    def link(self) -> str:
        return f"https://calendar.google.com/calendar?cid={self.id}"


class CalendarEvent(BaseModel):
    """A single (already expanded) calendar event."""

    label: str = Field(default="")
    description: str = Field(default="")
    attendees: List[str] = Field(default_factory=list)
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("label", "description", mode="before")
    @classmethod
    def _ensure_str(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("attendees", mode="before")
    @classmethod
    def _ensure_list(cls, value: object) -> List[str]:
        if value is None:
            return []
        return [str(item) for item in value]


@dataclass(frozen=True, slots=True)
class PassageOptions:
    """Flags forwarded to the text passage provider."""

    include_footnotes: bool = False
    include_headings: bool = False
    include_subheadings: bool = False
    include_short_copyright: bool = False


def start_of_week(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


@dataclass(frozen=True, slots=True)
class ReportingWindow:
    """The service date of a run and the trailing range used for time-bounded queries."""

    service_date: date
    tz: tzinfo
    days: int = 7

    @classmethod
    def for_today(cls, today: date, tz: tzinfo, days: int = 7) -> "ReportingWindow":
        """Window anchored on the Sunday that starts next week."""
        return cls(service_date=start_of_week(today) + timedelta(weeks=1), tz=tz, days=days)

    @property
    def start(self) -> datetime:
        first_day = self.service_date - timedelta(days=self.days - 1)
        return datetime.combine(first_day, time.min, tzinfo=self.tz)

    @property
    def end(self) -> datetime:
        return datetime.combine(self.service_date, time.max, tzinfo=self.tz)

    def advance(self, weeks: int = 1) -> "ReportingWindow":
        return ReportingWindow(
            service_date=self.service_date + timedelta(weeks=weeks),
            tz=self.tz,
            days=self.days,
        )

    @property
    def service_date_text(self) -> str:
        """e.g. ``Sunday, March 3, 2024``."""
        day = self.service_date
        return f"{day:%A}, {day:%B} {day.day}, {day.year}"

    @property
    def heading_text(self) -> str:
        """e.g. ``March 3, 2024``."""
        day = self.service_date
        return f"{day:%B} {day.day}, {day.year}"


class PersonDirectory:
    """Read-only lookup from normalized email address to display name."""

    def __init__(self, names_by_email: Mapping[str, str] | None = None) -> None:
        normalized: Dict[str, str] = {}
        for email, name in (names_by_email or {}).items():
            key = normalize_email(email)
            if key and key not in normalized:
                normalized[key] = name
        self._names = MappingProxyType(normalized)

    @classmethod
    def from_contacts(cls, contacts: Iterable[Contact]) -> "PersonDirectory":
        names: Dict[str, str] = {}
        for contact in contacts:
            if not contact.name:
                continue
            for email in contact.emails:
                # First contact to claim an address keeps it.
                names.setdefault(email, contact.name)
        return cls(names)

    def display_name(self, email: str, fallback: str | None = None) -> str:
        """Name for ``email``; ``fallback`` (or the raw email) when unknown."""
        name = self._names.get(normalize_email(email))
        if name:
            return name
        return email if fallback is None else fallback

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and normalize_email(email) in self._names

    def __len__(self) -> int:
        return len(self._names)


@dataclass(frozen=True, slots=True)
class RunContext:
    """Values resolved once at pipeline start and shared read-only by every stage."""

    config: NewsletterConfig
    window: ReportingWindow
    directory: PersonDirectory = field(default_factory=PersonDirectory)

    def with_directory(self, directory: PersonDirectory) -> "RunContext":
        return RunContext(config=self.config, window=self.window, directory=directory)
