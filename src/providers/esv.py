"""ESV API passage provider."""

from __future__ import annotations

import logging

import httpx

from ..core.errors import ProviderError
from ..core.models import PassageOptions
from .contracts import SecretProvider

LOGGER = logging.getLogger(__name__)

ESV_PASSAGE_URL = "https://api.esv.org/v3/passage/html/"


class EsvPassageClient:
    """Fetches passage HTML, one request per reference."""

    def __init__(
        self,
        secrets: SecretProvider,
        api_key_secret: str = "EsvApiKey",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.secrets = secrets
        self.api_key_secret = api_key_secret
        self.timeout = timeout
        self._transport = transport

    async def get_passage_markup(self, reference: str, options: PassageOptions) -> str:
        LOGGER.info("Getting ESV text for passage %s", reference)
        api_key = await self.secrets.read(self.api_key_secret)
        if not api_key.startswith("Token "):
            api_key = f"Token {api_key}"
        params = {
            "q": reference,
            "include-footnotes": _flag(options.include_footnotes),
            "include-headings": _flag(options.include_headings),
            "include-subheadings": _flag(options.include_subheadings),
            "include-short-copyright": _flag(options.include_short_copyright),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(ESV_PASSAGE_URL, params=params, headers={"Authorization": api_key})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            raise ProviderError("esv", f"passage lookup for {reference!r} failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("esv", f"passage lookup for {reference!r} returned invalid JSON") from exc

        passages = payload.get("passages") or []
        if not passages:
            raise ProviderError("esv", f"no passage found for {reference!r}")
        return passages[0]


def _flag(value: bool) -> str:
    return "true" if value else "false"
