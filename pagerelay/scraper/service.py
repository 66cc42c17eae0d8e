"""Caller-facing retrieval service.

``ScrapingService`` is where both channels meet: it runs one fetcher, feeds
raw markup through :func:`~pagerelay.scraper.parser.parse_document` and
:func:`~pagerelay.scraper.extractor.extract_fields`, and wraps the outcome
in a :class:`~pagerelay.scraper.models.ResultEnvelope`.  Its retrieval
methods never raise.
"""

from __future__ import annotations

import logging
from typing import Optional

from pagerelay.scraper.extractor import bound_document, extract_fields
from pagerelay.scraper.fetcher import BackendDelegateFetcher, Fetcher, ProxyFetcher
from pagerelay.scraper.models import (
    DelegatePayload,
    RawDocument,
    ResultEnvelope,
    RetrievalRequest,
)
from pagerelay.scraper.parser import parse_document

logger = logging.getLogger(__name__)

CHANNELS = ("proxy", "backend")


def _from_raw(raw: RawDocument) -> ResultEnvelope:
    tree = parse_document(raw.markup)
    return ResultEnvelope.ok(extract_fields(tree, base_url=raw.url))


def _from_delegate(payload: DelegatePayload) -> ResultEnvelope:
    """Rebuild an envelope from delegate JSON instead of passing it through."""
    if not payload.success:
        return ResultEnvelope.fail(payload.error or "Backend scraping failed")
    data = payload.data
    if data is None:
        return ResultEnvelope.fail("Backend returned no data")
    return ResultEnvelope.ok(
        bound_document(data.title, data.content, data.links, data.images)
    )


class ScrapingService:
    """Retrieve one page through an explicitly chosen channel.

    Args:
        proxy: Fetcher for the relay channel.  Defaults to a
            :class:`ProxyFetcher` configured from settings.
        backend: Fetcher for the delegate channel.  Defaults to a
            :class:`BackendDelegateFetcher` configured from settings.
    """

    def __init__(
        self,
        proxy: Optional[Fetcher] = None,
        backend: Optional[Fetcher] = None,
    ) -> None:
        self.proxy = proxy if proxy is not None else ProxyFetcher()
        self.backend = backend if backend is not None else BackendDelegateFetcher()

    async def _run(self, fetcher: Fetcher, request: RetrievalRequest) -> ResultEnvelope:
        try:
            result = await fetcher.fetch(request)
            if isinstance(result, DelegatePayload):
                return _from_delegate(result)
            return _from_raw(result)
        except Exception as exc:
            message = str(exc) or "Unknown error"
            logger.warning("Scraping %s via %s failed: %s", request.url, fetcher.channel, message)
            return ResultEnvelope.fail(message)

    async def retrieve_via_proxy(self, url: str, cookies: str = "") -> ResultEnvelope:
        """Fetch *url* through the relay.  *cookies* cannot be applied here."""
        return await self._run(self.proxy, RetrievalRequest(url=url, cookies=cookies))

    async def retrieve_via_backend(self, url: str, cookies: str = "") -> ResultEnvelope:
        """Fetch *url* through the delegate, which applies *cookies*."""
        return await self._run(self.backend, RetrievalRequest(url=url, cookies=cookies))

    async def retrieve(
        self, url: str, cookies: str = "", channel: str = "proxy"
    ) -> ResultEnvelope:
        """Dispatch to the named channel.

        Raises:
            ValueError: *channel* is not one of :data:`CHANNELS`.
        """
        if channel == "proxy":
            return await self.retrieve_via_proxy(url, cookies)
        if channel == "backend":
            return await self.retrieve_via_backend(url, cookies)
        raise ValueError(f"Unknown channel {channel!r}; expected one of {CHANNELS}")


async def retrieve_via_proxy(url: str, cookies: str = "") -> ResultEnvelope:
    """Module-level shortcut using a default-configured service."""
    return await ScrapingService().retrieve_via_proxy(url, cookies)


async def retrieve_via_backend(url: str, cookies: str = "") -> ResultEnvelope:
    """Module-level shortcut using a default-configured service."""
    return await ScrapingService().retrieve_via_backend(url, cookies)
