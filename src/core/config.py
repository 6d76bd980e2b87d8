"""Configuration helpers for the newsletter pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Tuple
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError


def _env_or_default(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc


@dataclass(slots=True)
class NewsletterConfig:
    """Static configuration for one newsletter run."""

    # Mailchimp templates
    template_id: int = field(default_factory=lambda: _env_int("NEWSLETTER_TEMPLATE_ID", 359089))
    publish_template_id: int = field(default_factory=lambda: _env_int("NEWSLETTER_PUBLISH_TEMPLATE_ID", 359109))
    publish_template_name: str = field(default_factory=lambda: _env_or_default("NEWSLETTER_PUBLISH_TEMPLATE_NAME", "RedeemerBot - Processed Newsletter Template"))
    temporary_campaign_title: str = field(default_factory=lambda: _env_or_default("NEWSLETTER_TEMP_CAMPAIGN_TITLE", "RedeemerBot - Temporary Campaign To Extract Template HTML"))

    # Calendars
    scripture_calendar_id: str = field(default_factory=lambda: _env_or_default("NEWSLETTER_SCRIPTURE_CALENDAR_ID", "redeemerbc.com_gmiihbof3pt28k6lngkoufabqk@group.calendar.google.com"))
    timezone: str = field(default_factory=lambda: _env_or_default("NEWSLETTER_TIMEZONE", "America/New_York"))
    window_days: int = field(default_factory=lambda: _env_int("NEWSLETTER_WINDOW_DAYS", 7))

    # Music
    spotify_playlist_url: str = field(default_factory=lambda: _env_or_default("NEWSLETTER_SPOTIFY_PLAYLIST_URL", "https://open.spotify.com/playlist/2HoaFy0dLN5hs0EbMcUdJU"))
    youtube_playlist_url: str = field(default_factory=lambda: _env_or_default("NEWSLETTER_YOUTUBE_PLAYLIST_URL", "https://music.youtube.com/playlist?list=PLt11S0kjDvef_xLiQv103MdVRe1LiPGG0"))

    # Template slots
    slot_attribute: str = field(default_factory=lambda: _env_or_default("NEWSLETTER_SLOT_ATTRIBUTE", "data-redeemer-bot"))

    # Secret names (resolved through the SecretProvider)
    mailchimp_secret: str = "MailchimpApiKey"
    esv_secret: str = "EsvApiKey"
    spotify_client_id_secret: str = "SpotifyClientId"
    spotify_client_secret_secret: str = "SpotifyClientSecret"
    google_token_secret: str = "GoogleAccessToken"

    http_timeout: float = field(default_factory=lambda: _env_float("NEWSLETTER_HTTP_TIMEOUT", 30.0))

    @property
    def secret_names(self) -> Tuple[str, ...]:
        return (
            self.mailchimp_secret,
            self.esv_secret,
            self.spotify_client_id_secret,
            self.spotify_client_secret_secret,
            self.google_token_secret,
        )

    def validate(self) -> None:
        """Raise ConfigurationError if any constant is missing or malformed."""
        problems: List[str] = []
        if self.template_id <= 0:
            problems.append("template_id must be positive")
        if self.publish_template_id <= 0:
            problems.append("publish_template_id must be positive")
        if not self.publish_template_name.strip():
            problems.append("publish_template_name is empty")
        if not self.scripture_calendar_id.strip():
            problems.append("scripture_calendar_id is empty")
        if self.window_days < 1:
            problems.append("window_days must be at least 1")
        if not self.slot_attribute.strip():
            problems.append("slot_attribute is empty")
        if not self.http_timeout > 0:
            problems.append("http_timeout must be positive")
        for name in self.secret_names:
            if not name or not name.strip():
                problems.append("secret names cannot be empty")
                break
        for label, url in (
            ("spotify_playlist_url", self.spotify_playlist_url),
            ("youtube_playlist_url", self.youtube_playlist_url),
        ):
            parsed = urlparse(url)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                problems.append(f"{label} is not an absolute URL: {url!r}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            problems.append(f"unknown timezone {self.timezone!r}")

        if problems:
            raise ConfigurationError("; ".join(problems))

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
