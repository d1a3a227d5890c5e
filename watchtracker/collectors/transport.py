from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from watchtracker.core.errors import TransportError
from watchtracker.core.models import SourceDescriptor

LOGGER = logging.getLogger(__name__)

DEFAULT_RELAY_TEMPLATE = "https://api.allorigins.win/raw?url={url}"

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
}


def build_relay_url(target: str, template: str = DEFAULT_RELAY_TEMPLATE) -> str:
    return template.format(url=quote(target, safe=""))


class Transport:
    """
    One GET per source, either straight to the fetch target or through the
    pass-through relay. Returns the body as text.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        relay_template: str = DEFAULT_RELAY_TEMPLATE,
        timeout_seconds: float | None = None,
    ) -> None:
        self._client = client
        self.relay_template = relay_template
        self.timeout_seconds = timeout_seconds

    def resolve_url(self, source: SourceDescriptor) -> str:
        if source.use_relay:
            return build_relay_url(source.fetch_target, self.relay_template)
        return source.fetch_target

    async def fetch(self, source: SourceDescriptor) -> str:
        url = self.resolve_url(source)
        if self._client is not None:
            return await self._get(self._client, url)
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
        ) as client:
            return await self._get(client, url)

    async def _get(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            response = await client.get(url)
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc
        if not response.is_success:
            raise TransportError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )
        LOGGER.debug("Fetched url=%s bytes=%s", url, len(response.content))
        return response.text
