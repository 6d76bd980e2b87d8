from datetime import date, timezone
import json
import logging

import httpx
import pytest
import requests
import spotipy
from spotipy.oauth2 import SpotifyOauthError

from fakes import FakeSecrets
from src.core.errors import ConfigurationError, ProviderError
from src.core.models import CalendarRef, PassageOptions, ReportingWindow
from src.providers.esv import EsvPassageClient
from src.providers.google_workspace import GoogleWorkspaceClient
from src.providers.mailchimp import MailchimpTemplateStore, api_base_url
from src.providers.secrets import EnvSecretProvider, env_name_for
from src.providers.spotify import SpotifyPlaylistClient

WINDOW = ReportingWindow(service_date=date(2024, 3, 10), tz=timezone.utc)


@pytest.mark.asyncio
async def test_env_secret_provider_reads_both_spellings():
    secrets = EnvSecretProvider({"ESV_API_KEY": " esv-token ", "SpotifyClientId": "client"})

    assert await secrets.read("EsvApiKey") == "esv-token"
    assert await secrets.read("SpotifyClientId") == "client"
    with pytest.raises(ConfigurationError):
        await secrets.read("MailchimpApiKey")


def test_env_name_for():
    assert env_name_for("MailchimpApiKey") == "MAILCHIMP_API_KEY"
    assert env_name_for("GoogleAccessToken") == "GOOGLE_ACCESS_TOKEN"


@pytest.mark.asyncio
async def test_esv_client_requests_plain_passage():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"passages": ["<p>For God so loved</p>"]})

    client = EsvPassageClient(FakeSecrets({"EsvApiKey": "abc"}), transport=httpx.MockTransport(handler))

    markup = await client.get_passage_markup("John 3:16", PassageOptions())

    assert markup == "<p>For God so loved</p>"
    assert seen["auth"] == "Token abc"
    assert seen["params"]["q"] == "John 3:16"
    assert seen["params"]["include-footnotes"] == "false"
    assert seen["params"]["include-short-copyright"] == "false"


@pytest.mark.asyncio
async def test_esv_client_wraps_errors():
    def handler(request):
        return httpx.Response(401, json={"detail": "Invalid token"})

    client = EsvPassageClient(FakeSecrets({"EsvApiKey": "abc"}), transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderError):
        await client.get_passage_markup("John 3:16", PassageOptions())


@pytest.mark.asyncio
async def test_esv_client_rejects_empty_result():
    client = EsvPassageClient(
        FakeSecrets({"EsvApiKey": "abc"}),
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"passages": []})),
    )
    with pytest.raises(ProviderError):
        await client.get_passage_markup("Hezekiah 1:1", PassageOptions())


@pytest.mark.asyncio
async def test_google_client_lists_calendars_and_events():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer token-1"
        path = request.url.path
        if path.endswith("/users/me/calendarList"):
            if request.url.params.get("pageToken") == "p2":
                return httpx.Response(200, json={"items": [{"id": "youth", "summary": "Youth"}]})
            return httpx.Response(
                200,
                json={
                    "items": [{"id": "me@x.com", "summary": "Me", "primary": True}, {"id": "deacons", "summary": "Deacons"}],
                    "nextPageToken": "p2",
                },
            )
        if path.endswith("/calendars/youth/events"):
            assert request.url.params["singleEvents"] == "true"
            assert request.url.params["timeMin"].startswith("2024-03-04T00:00:00")
            return httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "summary": "Youth - Game Night",
                            "attendees": [{"email": "a@x.com"}, {"displayName": "no email"}],
                            "start": {"dateTime": "2024-03-08T19:00:00+00:00"},
                            "end": {"date": "2024-03-08"},
                        }
                    ]
                },
            )
        return httpx.Response(404)

    client = GoogleWorkspaceClient(FakeSecrets({"GoogleAccessToken": "token-1"}), transport=httpx.MockTransport(handler))

    calendars = await client.list_calendars()
    assert [c.id for c in calendars] == ["deacons", "youth"]

    events = await client.get_events(CalendarRef(id="youth", label="Youth"), WINDOW)
    assert len(events) == 1
    assert events[0].label == "Youth - Game Night"
    assert events[0].attendees == ["a@x.com"]
    assert events[0].description == ""
    assert events[0].start.hour == 19


@pytest.mark.asyncio
async def test_google_client_lists_contacts():
    def handler(request):
        assert request.url.params["personFields"] == "names,emailAddresses"
        return httpx.Response(
            200,
            json={
                "connections": [
                    {"names": [{"displayName": "Alice"}], "emailAddresses": [{"value": "A@x.com"}]},
                    {"emailAddresses": [{"value": "nameless@x.com"}]},
                ]
            },
        )

    client = GoogleWorkspaceClient(FakeSecrets({"GoogleAccessToken": "t"}), transport=httpx.MockTransport(handler))
    contacts = await client.list_contacts(["names", "emailAddresses"])

    assert contacts[0].name == "Alice"
    assert contacts[0].emails == ["a@x.com"]
    assert contacts[1].name == ""


@pytest.mark.asyncio
async def test_google_client_wraps_http_errors():
    client = GoogleWorkspaceClient(
        FakeSecrets({"GoogleAccessToken": "t"}),
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    with pytest.raises(ProviderError):
        await client.get_calendar("missing")


@pytest.mark.asyncio
async def test_google_client_escapes_calendar_ids():
    holiday_id = "en.usa#holiday@group.v.calendar.google.com"
    paths = []

    def handler(request):
        path = request.url.raw_path.split(b"?")[0].decode()
        paths.append(path)
        if path.endswith("/events"):
            return httpx.Response(200, json={"items": [{"summary": "Holidays - Easter"}]})
        return httpx.Response(200, json={"id": holiday_id, "summary": "Holidays"})

    client = GoogleWorkspaceClient(FakeSecrets({"GoogleAccessToken": "t"}), transport=httpx.MockTransport(handler))

    calendar = await client.get_calendar(holiday_id)
    events = await client.get_events(calendar, WINDOW)

    assert calendar.id == holiday_id
    assert [event.label for event in events] == ["Holidays - Easter"]
    assert paths == [
        "/calendar/v3/calendars/en.usa%23holiday@group.v.calendar.google.com",
        "/calendar/v3/calendars/en.usa%23holiday@group.v.calendar.google.com/events",
    ]


def test_mailchimp_base_url():
    assert api_base_url("abc123-us4") == "https://us4.api.mailchimp.com/3.0"
    with pytest.raises(ConfigurationError):
        api_base_url("nodatacenter")


@pytest.mark.asyncio
async def test_mailchimp_fetch_uses_and_deletes_temporary_campaign():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        assert request.url.host == "us4.api.mailchimp.com"
        if request.method == "POST":
            body = json.loads(request.content)
            assert body["settings"]["template_id"] == 359089
            return httpx.Response(200, json={"id": "camp-1"})
        if request.method == "GET":
            return httpx.Response(200, json={"html": "<html><body>template</body></html>"})
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(405)

    store = MailchimpTemplateStore(FakeSecrets({"MailchimpApiKey": "key-us4"}), transport=httpx.MockTransport(handler))

    html = await store.fetch_template_html(359089)

    assert html == "<html><body>template</body></html>"
    assert calls == [
        ("POST", "/3.0/campaigns"),
        ("GET", "/3.0/campaigns/camp-1/content"),
        ("DELETE", "/3.0/campaigns/camp-1"),
    ]


@pytest.mark.asyncio
async def test_mailchimp_deletes_campaign_even_when_content_fails():
    calls = []

    def handler(request):
        calls.append(request.method)
        if request.method == "POST":
            return httpx.Response(200, json={"id": "camp-2"})
        if request.method == "GET":
            return httpx.Response(500)
        return httpx.Response(204)

    store = MailchimpTemplateStore(FakeSecrets({"MailchimpApiKey": "key-us4"}), transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderError):
        await store.fetch_template_html(1)
    assert calls == ["POST", "GET", "DELETE"]


@pytest.mark.asyncio
async def test_mailchimp_content_error_survives_failed_delete(caplog):
    calls = []

    def handler(request):
        calls.append(request.method)
        if request.method == "POST":
            return httpx.Response(200, json={"id": "camp-3"})
        return httpx.Response(500)

    store = MailchimpTemplateStore(FakeSecrets({"MailchimpApiKey": "key-us4"}), transport=httpx.MockTransport(handler))

    with caplog.at_level(logging.WARNING, logger="src.providers.mailchimp"):
        with pytest.raises(ProviderError) as excinfo:
            await store.fetch_template_html(1)

    assert "GET /campaigns/camp-3/content" in str(excinfo.value)
    assert calls == ["POST", "GET", "DELETE"]
    assert "camp-3 was left behind" in caplog.text


@pytest.mark.asyncio
async def test_mailchimp_failed_delete_after_successful_fetch_is_raised():
    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json={"id": "camp-4"})
        if request.method == "GET":
            return httpx.Response(200, json={"html": "<html></html>"})
        return httpx.Response(500)

    store = MailchimpTemplateStore(FakeSecrets({"MailchimpApiKey": "key-us4"}), transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderError) as excinfo:
        await store.fetch_template_html(1)
    assert "DELETE /campaigns/camp-4" in str(excinfo.value)


@pytest.mark.asyncio
async def test_mailchimp_publish_patches_template():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": 359109, "name": seen["body"]["name"]})

    store = MailchimpTemplateStore(FakeSecrets({"MailchimpApiKey": "key-us4"}), transport=httpx.MockTransport(handler))

    confirmation = await store.publish_template_html(359109, "Processed", "<html></html>")

    assert confirmation == {"id": 359109, "name": "Processed"}
    assert seen["method"] == "PATCH"
    assert seen["path"] == "/3.0/templates/359109"
    assert seen["body"] == {"name": "Processed", "html": "<html></html>"}


class FakeSpotify:
    def __init__(self, pages):
        self.pages = pages
        self.offsets = []

    def playlist_tracks(self, playlist_id, offset, limit, fields):
        self.offsets.append(offset)
        return self.pages[offset // limit]


@pytest.mark.asyncio
async def test_spotify_client_pages_through_tracks():
    fake = FakeSpotify(
        [
            {"items": [{"track": {"name": "Oceans (Acoustic)"}}, {"track": None}], "next": "page-2"},
            {"items": [{"track": {"name": "Doxology"}}], "next": None},
        ]
    )
    created = {}

    def factory(client_id, client_secret):
        created["credentials"] = (client_id, client_secret)
        return fake

    client = SpotifyPlaylistClient(
        FakeSecrets({"SpotifyClientId": "id", "SpotifyClientSecret": "secret"}), client_factory=factory
    )

    names = await client.get_track_names("playlist-1")

    assert names == ["Oceans (Acoustic)", "Doxology"]
    assert created["credentials"] == ("id", "secret")
    assert fake.offsets == [0, 100]


class FailingSpotify:
    def __init__(self, error):
        self.error = error

    def playlist_tracks(self, playlist_id, offset, limit, fields):
        raise self.error


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        SpotifyOauthError("invalid_client"),
        requests.exceptions.ConnectionError("connection refused"),
        spotipy.SpotifyException(404, -1, "playlist not found"),
    ],
)
async def test_spotify_client_wraps_auth_and_transport_errors(error):
    client = SpotifyPlaylistClient(
        FakeSecrets({"SpotifyClientId": "id", "SpotifyClientSecret": "wrong"}),
        client_factory=lambda client_id, client_secret: FailingSpotify(error),
    )

    with pytest.raises(ProviderError) as excinfo:
        await client.get_track_names("playlist-1")

    assert excinfo.value.__cause__ is error
