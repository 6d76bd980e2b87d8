"""Collaborator contracts and their concrete adapters."""

from .contracts import (
    CalendarProvider,
    DirectoryProvider,
    PlaylistProvider,
    SecretProvider,
    TemplateStore,
    TextPassageProvider,
)
from .esv import EsvPassageClient
from .google_workspace import GoogleWorkspaceClient
from .mailchimp import MailchimpTemplateStore
from .secrets import EnvSecretProvider
from .spotify import SpotifyPlaylistClient

__all__ = [
    "CalendarProvider",
    "DirectoryProvider",
    "EnvSecretProvider",
    "EsvPassageClient",
    "GoogleWorkspaceClient",
    "MailchimpTemplateStore",
    "PlaylistProvider",
    "SecretProvider",
    "SpotifyPlaylistClient",
    "TemplateStore",
    "TextPassageProvider",
]
