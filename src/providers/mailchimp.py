"""Mailchimp template store."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

import httpx

from ..core.errors import ConfigurationError, ProviderError
from .contracts import SecretProvider

LOGGER = logging.getLogger(__name__)


def api_base_url(api_key: str) -> str:
    """Mailchimp keys end with ``-<datacenter>``, e.g. ``abc123-us4``."""
    _, _, datacenter = api_key.rpartition("-")
    if not datacenter or datacenter == api_key:
        raise ConfigurationError("Mailchimp API key has no datacenter suffix.")
    return f"https://{datacenter}.api.mailchimp.com/3.0"


class MailchimpTemplateStore:
    """
    Reads and writes template HTML.

    Mailchimp only renders a template's final HTML through a campaign, so fetching creates
    a throwaway campaign, reads its content and deletes it again.
    """

    def __init__(
        self,
        secrets: SecretProvider,
        api_key_secret: str = "MailchimpApiKey",
        campaign_title: str = "RedeemerBot - Temporary Campaign To Extract Template HTML",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.secrets = secrets
        self.api_key_secret = api_key_secret
        self.campaign_title = campaign_title
        self.timeout = timeout
        self._transport = transport

    async def fetch_template_html(self, template_id: int) -> str:
        async with await self._client() as client:
            LOGGER.info("Creating temporary Mailchimp campaign based on template %s", template_id)
            campaign = await self._request(
                client,
                "POST",
                "/campaigns",
                json={
                    "type": "regular",
                    "settings": {"title": self.campaign_title, "template_id": template_id},
                },
            )
            campaign_id = campaign.get("id")
            if not campaign_id:
                raise ProviderError("mailchimp", "campaign creation returned no id")
            try:
                LOGGER.info("Getting template HTML from Mailchimp for generated campaign %s", campaign_id)
                content = await self._request(client, "GET", f"/campaigns/{campaign_id}/content")
            except BaseException:
                # A failed delete is logged so the content error propagates.
                await self._delete_campaign(client, campaign_id, suppress_errors=True)
                raise
            await self._delete_campaign(client, campaign_id)
        html = content.get("html")
        if not html:
            raise ProviderError("mailchimp", f"campaign {campaign_id} has no HTML content")
        return html

    async def publish_template_html(self, template_id: int, name: str, html: str) -> Mapping[str, Any]:
        LOGGER.info("Publishing the composed HTML to Mailchimp template %s", template_id)
        async with await self._client() as client:
            return await self._request(client, "PATCH", f"/templates/{template_id}", json={"name": name, "html": html})

    async def _delete_campaign(
        self, client: httpx.AsyncClient, campaign_id: str, suppress_errors: bool = False
    ) -> None:
        LOGGER.info("Deleting temporary Mailchimp campaign %s", campaign_id)
        try:
            await self._request(client, "DELETE", f"/campaigns/{campaign_id}")
        except ProviderError as exc:
            if not suppress_errors:
                raise
            LOGGER.warning("Temporary Mailchimp campaign %s was left behind: %s", campaign_id, exc)

    async def _client(self) -> httpx.AsyncClient:
        api_key = await self.secrets.read(self.api_key_secret)
        return httpx.AsyncClient(
            base_url=api_base_url(api_key),
            auth=("anystring", api_key),
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    async def _request(client: httpx.AsyncClient, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderError("mailchimp", f"{method} {path} failed: {exc}") from exc
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError("mailchimp", f"{method} {path} returned invalid JSON") from exc
