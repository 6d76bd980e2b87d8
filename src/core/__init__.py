"""Core types shared by every newsletter stage."""

from .config import NewsletterConfig
from .errors import (
    CompositionError,
    ConfigurationError,
    NewsletterError,
    PipelineAbortedError,
    ProviderError,
)
from .models import PersonDirectory, ReportingWindow, RunContext, SlotMap
from .sequencer import serialize

__all__ = [
    "CompositionError",
    "ConfigurationError",
    "NewsletterConfig",
    "NewsletterError",
    "PersonDirectory",
    "PipelineAbortedError",
    "ProviderError",
    "ReportingWindow",
    "RunContext",
    "SlotMap",
    "serialize",
]
