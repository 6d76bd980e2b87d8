"""Environment-backed secret provider."""

from __future__ import annotations

import logging
import os
from typing import Dict, Mapping

from ..core.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)


class EnvSecretProvider:
    """
    Reads secrets from environment variables.

    ``MailchimpApiKey`` is looked up as ``MAILCHIMP_API_KEY`` first and then verbatim, so
    CI secrets can be injected under either spelling.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ
        self._cache: Dict[str, str] = {}

    async def read(self, name: str) -> str:
        if name in self._cache:
            return self._cache[name]
        for candidate in (env_name_for(name), name):
            value = self._environ.get(candidate)
            if value and value.strip():
                LOGGER.debug("Resolved secret %s from $%s", name, candidate)
                self._cache[name] = value.strip()
                return self._cache[name]
        raise ConfigurationError(f"Secret {name!r} is not set (expected ${env_name_for(name)}).")


def env_name_for(name: str) -> str:
    """``EsvApiKey`` -> ``ESV_API_KEY``."""
    chars = []
    for index, char in enumerate(name):
        if char.isupper() and index and (name[index - 1].islower() or name[index - 1].isdigit()):
            chars.append("_")
        chars.append(char.upper())
    return "".join(chars).replace("-", "_")
