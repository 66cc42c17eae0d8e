"""Failures raised inside the retrieval pipeline.

Fetchers raise these; :class:`~pagerelay.scraper.service.ScrapingService`
catches them and flattens every one of them into a failed
:class:`~pagerelay.scraper.models.ResultEnvelope`.  Parse faults have no
class here because :func:`~pagerelay.scraper.parser.parse_document` never
raises.
"""

from __future__ import annotations

DELEGATE_UNAVAILABLE_MESSAGE = (
    "Backend service unavailable, please use the proxy channel instead"
)


class ScrapeError(Exception):
    """Base class for all retrieval failures."""


class TransportError(ScrapeError):
    """The page could not be fetched (DNS failure, timeout, refused connection)."""


class RelayError(TransportError):
    """The relay (or the target itself) answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str) -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}")


class DelegateUnavailable(ScrapeError):
    """The delegate endpoint could not produce a usable answer.

    The message is always :data:`DELEGATE_UNAVAILABLE_MESSAGE`; the real
    cause is chained via ``__cause__``.
    """

    def __init__(self) -> None:
        super().__init__(DELEGATE_UNAVAILABLE_MESSAGE)
