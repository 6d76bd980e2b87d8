"""Pipeline that fetches every fragment, composes the newsletter and publishes it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, TypeVar

from ..composer import CompositionResult, DocumentComposer, Slot
from ..core.config import NewsletterConfig
from ..core.errors import ConfigurationError, PipelineAbortedError
from ..core.models import CalendarRef, PassageOptions, ReportingWindow, RunContext, SlotMap
from ..fragments.calendar_fragments import build_calendar_window_html, sort_calendars
from ..fragments.directory import build_person_directory
from ..fragments.music import build_music_fragment
from ..fragments.scripture import build_passage_html, fetch_scripture_references
from ..providers.contracts import (
    CalendarProvider,
    DirectoryProvider,
    PlaylistProvider,
    SecretProvider,
    TemplateStore,
    TextPassageProvider,
)
from ..providers.esv import EsvPassageClient
from ..providers.google_workspace import GoogleWorkspaceClient
from ..providers.mailchimp import MailchimpTemplateStore
from ..providers.secrets import EnvSecretProvider
from ..providers.spotify import SpotifyPlaylistClient

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class Stage(str, Enum):
    RESOLVE_WINDOW = "ResolveWindow"
    BUILD_DIRECTORY = "BuildDirectory"
    FETCH_SCRIPTURE_REFERENCES = "FetchScriptureReferences"
    BUILD_SCRIPTURE_FRAGMENTS = "BuildScriptureFragments"
    BUILD_MUSIC_FRAGMENT = "BuildMusicFragment"
    BUILD_THIS_WEEK_CALENDAR = "BuildCalendarFragments(thisWindow)"
    BUILD_NEXT_WEEK_CALENDAR = "BuildCalendarFragments(nextWindow)"
    FETCH_TEMPLATE = "FetchTemplate"
    COMPOSE = "Compose"
    PUBLISH = "Publish"


class PipelineState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PUBLISHED = "published"
    ABORTED = "aborted"


@dataclass(slots=True)
class PublishResult:
    """Outcome of a successful run."""

    service_date: date
    template_id: int
    html: str
    confirmation: Mapping[str, Any]
    slots: SlotMap = field(default_factory=dict)
    unmatched_slots: List[str] = field(default_factory=list)
    completed_stages: List[str] = field(default_factory=list)


class NewsletterPipeline:
    """Single-shot run: every stage in a fixed order, aborting on the first failure."""

    def __init__(
        self,
        config: NewsletterConfig | None = None,
        secrets: SecretProvider | None = None,
        directory_provider: DirectoryProvider | None = None,
        calendar_provider: CalendarProvider | None = None,
        passage_provider: TextPassageProvider | None = None,
        playlist_provider: PlaylistProvider | None = None,
        template_store: TemplateStore | None = None,
        composer: DocumentComposer | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.config = config or NewsletterConfig()
        # Constants are checked before any collaborator is touched.
        self.config.validate()

        self.secrets = secrets or EnvSecretProvider()
        google = None if directory_provider and calendar_provider else self._default_google()
        self.directory_provider = directory_provider or google
        self.calendar_provider = calendar_provider or google
        self.passage_provider = passage_provider or self._default_esv()
        self.playlist_provider = playlist_provider or self._default_spotify()
        self.template_store = template_store or self._default_mailchimp()
        self.composer = composer or DocumentComposer(self.config.slot_attribute)
        self.today = today or (lambda: datetime.now(self.config.tzinfo).date())

        self.state = PipelineState.NOT_STARTED
        self.completed_stages: List[str] = []

    async def run(self) -> PublishResult:
        if self.state is not PipelineState.NOT_STARTED:
            raise RuntimeError(f"Pipeline already ran (state={self.state.value}); create a new one.")
        self.state = PipelineState.RUNNING
        try:
            result = await self._run_stages()
        except PipelineAbortedError as exc:
            self.state = PipelineState.ABORTED
            LOGGER.error("%s", exc)
            raise
        except BaseException:
            self.state = PipelineState.ABORTED
            raise
        self.state = PipelineState.PUBLISHED
        return result

    async def _run_stages(self) -> PublishResult:
        window = await self._stage(Stage.RESOLVE_WINDOW, self._resolve_window)
        context = RunContext(config=self.config, window=window)

        directory = await self._stage(Stage.BUILD_DIRECTORY, build_person_directory, self.directory_provider)
        context = context.with_directory(directory)

        references = await self._stage(
            Stage.FETCH_SCRIPTURE_REFERENCES,
            fetch_scripture_references,
            self.calendar_provider,
            self.config.scripture_calendar_id,
            context.window,
        )
        scripture_slots = await self._stage(Stage.BUILD_SCRIPTURE_FRAGMENTS, self._build_scripture_slots, references)
        music_html = await self._stage(
            Stage.BUILD_MUSIC_FRAGMENT,
            build_music_fragment,
            self.playlist_provider,
            self.config.spotify_playlist_url,
            self.config.youtube_playlist_url,
        )
        calendars, this_week_html = await self._stage(Stage.BUILD_THIS_WEEK_CALENDAR, self._build_this_week, context)
        next_week_html = await self._stage(
            Stage.BUILD_NEXT_WEEK_CALENDAR,
            build_calendar_window_html,
            self.calendar_provider,
            calendars,
            context.window.advance(1),
            context.directory,
        )

        slot_map: SlotMap = {Slot.SERMON_DATE.value: context.window.service_date_text}
        slot_map.update(scripture_slots)
        slot_map[Slot.SERVICE_MUSIC.value] = music_html
        slot_map[Slot.THIS_WEEK_CALENDAR.value] = this_week_html
        slot_map[Slot.NEXT_WEEK_CALENDAR.value] = next_week_html

        template_html = await self._stage(
            Stage.FETCH_TEMPLATE, self.template_store.fetch_template_html, self.config.template_id
        )
        composition = await self._stage(Stage.COMPOSE, self._compose, template_html, slot_map)
        confirmation = await self._stage(
            Stage.PUBLISH,
            self.template_store.publish_template_html,
            self.config.publish_template_id,
            self.config.publish_template_name,
            composition.html,
        )
        LOGGER.info("Published newsletter for %s to template %s.", context.window.service_date, self.config.publish_template_id)
        return PublishResult(
            service_date=context.window.service_date,
            template_id=self.config.publish_template_id,
            html=composition.html,
            confirmation=confirmation,
            slots=slot_map,
            unmatched_slots=list(composition.unmatched),
            completed_stages=list(self.completed_stages),
        )

    async def _stage(self, stage: Stage, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        LOGGER.info("Stage %s started.", stage.value)
        try:
            result = await func(*args)
        except Exception as exc:
            raise PipelineAbortedError(stage.value, exc) from exc
        self.completed_stages.append(stage.value)
        return result

    async def _resolve_window(self) -> ReportingWindow:
        await self._check_secrets()
        window = ReportingWindow.for_today(self.today(), self.config.tzinfo, self.config.window_days)
        LOGGER.info("Service date %s, window %s to %s", window.service_date, window.start.isoformat(), window.end.isoformat())
        return window

    async def _check_secrets(self) -> None:
        missing: List[str] = []
        for name in self.config.secret_names:
            try:
                await self.secrets.read(name)
            except ConfigurationError:
                missing.append(name)
        if missing:
            raise ConfigurationError(f"Missing secrets: {', '.join(missing)}")

    async def _build_scripture_slots(self, references: Mapping[str, List[str]]) -> Dict[str, str]:
        # Each section is fetched in turn; a failed passage aborts the stage.
        slots: Dict[str, str] = {}
        for slot in (Slot.SCRIPTURE_READING, Slot.SERMON_PASSAGE):
            slots[slot.value] = await build_passage_html(
                self.passage_provider, references.get(slot.value, []), PassageOptions()
            )
        return slots

    async def _build_this_week(self, context: RunContext) -> tuple[List[CalendarRef], str]:
        calendars = sort_calendars(await self.calendar_provider.list_calendars())
        LOGGER.info("Calendar provider reports these calendars: %s", [calendar.label for calendar in calendars])
        html = await build_calendar_window_html(self.calendar_provider, calendars, context.window, context.directory)
        return calendars, html

    async def _compose(self, template_html: str, slot_map: SlotMap) -> CompositionResult:
        return self.composer.compose(template_html, slot_map)

    def _default_google(self):
        return GoogleWorkspaceClient(self.secrets, self.config.google_token_secret, self.config.http_timeout)

    def _default_esv(self):
        return EsvPassageClient(self.secrets, self.config.esv_secret, self.config.http_timeout)

    def _default_spotify(self):
        return SpotifyPlaylistClient(
            self.secrets, self.config.spotify_client_id_secret, self.config.spotify_client_secret_secret
        )

    def _default_mailchimp(self):
        return MailchimpTemplateStore(
            self.secrets,
            self.config.mailchimp_secret,
            self.config.temporary_campaign_title,
            self.config.http_timeout,
        )


def run_pipeline() -> PublishResult:
    """Run the newsletter pipeline with the embedded configuration."""
    return asyncio.run(NewsletterPipeline().run())
