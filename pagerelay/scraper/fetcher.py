"""Retrieval channels.

Each fetcher performs exactly one HTTP exchange per call and either returns
its channel-specific raw result or raises a
:class:`~pagerelay.scraper.errors.ScrapeError`.  Turning those outcomes into
a :class:`~pagerelay.scraper.models.ResultEnvelope` is the job of
:class:`~pagerelay.scraper.service.ScrapingService`, not of the fetchers.

Channels
--------
proxy     ``GET <relay>?url=<target>`` through a third-party CORS relay.
          Cookies cannot be forwarded this way and are dropped.
backend   ``POST <delegate>`` with ``{url, cookies}`` to a trusted delegate
          that answers with an envelope-shaped JSON body.
direct    Plain ``GET <target>`` with an optional ``Cookie`` header.  Only
          meaningful on the trusted side, i.e. inside the delegate endpoint.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from pagerelay.config import settings
from pagerelay.scraper.errors import DelegateUnavailable, RelayError, TransportError
from pagerelay.scraper.models import DelegatePayload, RawDocument, RetrievalRequest

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves alone, on top of quote()'s own "_.-~".
_URI_COMPONENT_SAFE = "!*'()"


class Fetcher(Protocol):
    """Anything that can retrieve one page for a :class:`RetrievalRequest`."""

    channel: str

    async def fetch(
        self, request: RetrievalRequest
    ) -> Union[RawDocument, DelegatePayload]:
        ...


def build_relay_url(relay_base_url: str, target_url: str) -> str:
    """Return the relay URL that fetches *target_url* on our behalf."""
    separator = "&" if "?" in relay_base_url else "?"
    return f"{relay_base_url}{separator}url={quote(target_url, safe=_URI_COMPONENT_SAFE)}"


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class _PageFetcher:
    """Shared GET-and-check logic for the channels that return raw markup."""

    channel = ""

    def __init__(
        self,
        timeout: Optional[float] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.headers = dict(settings.browser_headers if headers is None else headers)

    async def _get(
        self, url: str, source_url: str, extra_headers: Optional[dict[str, str]] = None
    ) -> RawDocument:
        headers = {**self.headers, **(extra_headers or {})}
        try:
            async with httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            raise TransportError(_describe(exc)) from exc

        if not response.is_success:
            raise RelayError(response.status_code, response.reason_phrase)

        logger.debug(
            "[%s] %s -> HTTP %d (%d chars)",
            self.channel, source_url, response.status_code, len(response.text),
        )
        return RawDocument(
            url=source_url,
            markup=response.text,
            channel=self.channel,
            status_code=response.status_code,
        )


class ProxyFetcher(_PageFetcher):
    """Fetch pages through a third-party relay to get around CORS.

    The relay fetches the target from its own origin, so any cookies the
    caller holds for the target site cannot be applied.  ``request.cookies``
    is accepted for interface parity and intentionally ignored.
    """

    channel = "proxy"

    def __init__(
        self,
        relay_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        super().__init__(timeout=timeout, headers=headers)
        self.relay_base_url = relay_base_url or settings.relay_base_url

    async def fetch(self, request: RetrievalRequest) -> RawDocument:
        """Fetch ``request.url`` via the relay.

        Raises:
            RelayError: The relay answered with a non-2xx status; the message
                is ``"HTTP <status>: <reason>"``.
            TransportError: The relay could not be reached or timed out.
        """
        if request.cookies:
            logger.debug("[proxy] cookies are not forwarded through the relay; dropped")
        relay_url = build_relay_url(self.relay_base_url, request.url)
        return await self._get(relay_url, request.url)


class DirectFetcher(_PageFetcher):
    """Fetch pages straight from their origin, applying the caller's cookies."""

    channel = "direct"

    async def fetch(self, request: RetrievalRequest) -> RawDocument:
        """Fetch ``request.url`` directly.

        Raises:
            RelayError: The target answered with a non-2xx status.
            TransportError: The target could not be reached or timed out.
        """
        extra = {"Cookie": request.cookies} if request.cookies else None
        return await self._get(request.url, request.url, extra)


class BackendDelegateFetcher:
    """Ask a trusted delegate endpoint to scrape the page for us.

    Every failure, whatever its cause, surfaces as the same
    :class:`DelegateUnavailable`.
    """

    channel = "backend"

    def __init__(
        self,
        delegate_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.delegate_url = delegate_url or settings.delegate_url
        self.timeout = settings.request_timeout if timeout is None else timeout

    async def fetch(self, request: RetrievalRequest) -> DelegatePayload:
        """POST ``{url, cookies}`` to the delegate and validate its answer.

        Raises:
            DelegateUnavailable: Non-2xx status, transport failure, or a body
                that is not an envelope-shaped JSON object.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.delegate_url,
                    json={"url": request.url, "cookies": request.cookies},
                )
            response.raise_for_status()
            payload = DelegatePayload.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            logger.debug("[backend] delegate failed for %s: %s", request.url, _describe(exc))
            raise DelegateUnavailable() from exc

        return payload
