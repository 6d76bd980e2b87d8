"""Error taxonomy for the newsletter pipeline."""

from __future__ import annotations


class NewsletterError(Exception):
    """Base class for every error raised by the newsletter pipeline."""


class ProviderError(NewsletterError):
    """A collaborator call failed (network, auth, not-found, bad payload)."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class CompositionError(NewsletterError):
    """The template document could not be parsed or composed."""


class ConfigurationError(NewsletterError):
    """A required constant (secret name, template id, URL) is missing or invalid."""


class PipelineAbortedError(NewsletterError):
    """Raised once per failed run, naming the stage that failed."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"Pipeline aborted during stage '{stage}': {cause}")
        self.stage = stage
        self.cause = cause
