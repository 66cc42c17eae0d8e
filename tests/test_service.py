"""Tests for ``ScrapingService`` and the result envelope.

Most tests inject in-memory fake fetchers through the service constructor so
no HTTP is involved.  A few end-to-end tests drive the real fetchers with
``respx`` to check the exact failure envelopes callers see.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Optional

import httpx
import pytest
import respx

from pagerelay.scraper.errors import DELEGATE_UNAVAILABLE_MESSAGE, RelayError
from pagerelay.scraper.fetcher import BackendDelegateFetcher, ProxyFetcher
from pagerelay.scraper.models import (
    DelegatePayload,
    ExtractedDocument,
    RawDocument,
    ResultEnvelope,
    RetrievalRequest,
)
from pagerelay.scraper.service import ScrapingService


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _FakeFetcher:
    """Records requests and returns (or raises) a canned result."""

    channel = "fake"

    def __init__(self, result: Any = None, exc: Optional[Exception] = None) -> None:
        self.result = result
        self.exc = exc
        self.requests: list[RetrievalRequest] = []

    async def fetch(self, request: RetrievalRequest) -> Any:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return self.result


def _raw(markup: str, url: str = "https://example.com/") -> RawDocument:
    return RawDocument(url=url, markup=markup, channel="proxy")


def _assert_envelope_invariant(env: ResultEnvelope) -> None:
    assert env.success == (env.data is not None and env.error is None)


_RELAY = "https://relay.test/raw"
_DELEGATE = "http://delegate.test/api/scrape"


# ---------------------------------------------------------------------------
# ResultEnvelope
# ---------------------------------------------------------------------------

class TestResultEnvelope:
    def test_ok_wire_shape_has_no_error_key(self) -> None:
        env = ResultEnvelope.ok(ExtractedDocument(title="T", links=("https://a",)))
        assert env.to_dict() == {
            "success": True,
            "data": {"title": "T", "content": "", "links": ["https://a"], "images": []},
        }

    def test_fail_wire_shape_has_no_data_key(self) -> None:
        assert ResultEnvelope.fail("nope").to_dict() == {"success": False, "error": "nope"}

    def test_success_without_data_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResultEnvelope(success=True)

    def test_success_with_error_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResultEnvelope(success=True, data=ExtractedDocument(), error="x")

    def test_failure_with_data_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResultEnvelope(success=False, data=ExtractedDocument(), error="x")

    def test_failure_without_error_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResultEnvelope(success=False)


# ---------------------------------------------------------------------------
# Proxy channel
# ---------------------------------------------------------------------------

class TestRetrieveViaProxy:
    async def test_success_envelope(self) -> None:
        html = '<title>A</title><body><a href="http://x">1</a><img src="http://y"></body>'
        proxy = _FakeFetcher(result=_raw(html))
        env = await ScrapingService(proxy=proxy, backend=_FakeFetcher()).retrieve_via_proxy(
            "https://example.com/", "c=1"
        )

        _assert_envelope_invariant(env)
        assert env.success is True
        assert env.data == ExtractedDocument(
            title="A", content="1", links=("http://x",), images=("http://y",)
        )
        assert proxy.requests == [RetrievalRequest(url="https://example.com/", cookies="c=1")]

    async def test_relative_links_resolve_against_target_url(self) -> None:
        proxy = _FakeFetcher(result=_raw('<a href="next">n</a>', url="https://site.example/a/b"))
        env = await ScrapingService(proxy=proxy, backend=_FakeFetcher()).retrieve_via_proxy(
            "https://site.example/a/b"
        )
        assert env.data is not None
        assert list(env.data.links) == ["https://site.example/a/next"]

    async def test_relay_error_becomes_failure_envelope(self) -> None:
        proxy = _FakeFetcher(exc=RelayError(404, "Not Found"))
        env = await ScrapingService(proxy=proxy, backend=_FakeFetcher()).retrieve_via_proxy(
            "https://example.com/missing"
        )
        _assert_envelope_invariant(env)
        assert env.to_dict() == {"success": False, "error": "HTTP 404: Not Found"}

    async def test_unexpected_exception_is_captured(self) -> None:
        proxy = _FakeFetcher(exc=RuntimeError("boom"))
        env = await ScrapingService(proxy=proxy, backend=_FakeFetcher()).retrieve_via_proxy(
            "https://example.com/"
        )
        assert env.success is False
        assert env.error == "boom"

    async def test_exception_without_message_gets_fallback_text(self) -> None:
        proxy = _FakeFetcher(exc=RuntimeError())
        env = await ScrapingService(proxy=proxy, backend=_FakeFetcher()).retrieve_via_proxy(
            "https://example.com/"
        )
        assert env.error == "Unknown error"

    async def test_garbage_markup_still_succeeds(self) -> None:
        proxy = _FakeFetcher(result=_raw("<<<\x00>>></div></div><a href="))
        env = await ScrapingService(proxy=proxy, backend=_FakeFetcher()).retrieve_via_proxy(
            "https://example.com/"
        )
        assert env.success is True

    async def test_404_end_to_end_exact_envelope(self) -> None:
        service = ScrapingService(
            proxy=ProxyFetcher(relay_base_url=_RELAY), backend=_FakeFetcher()
        )
        with respx.mock:
            respx.get(url__startswith=_RELAY).mock(return_value=httpx.Response(404))
            env = await service.retrieve_via_proxy("https://example.com/missing")

        assert env.to_dict() == {"success": False, "error": "HTTP 404: Not Found"}

    async def test_dns_failure_end_to_end(self) -> None:
        service = ScrapingService(
            proxy=ProxyFetcher(relay_base_url=_RELAY), backend=_FakeFetcher()
        )
        with respx.mock:
            respx.get(url__startswith=_RELAY).mock(
                side_effect=httpx.ConnectError("[Errno -2] Name or service not known")
            )
            env = await service.retrieve_via_proxy("https://nowhere.invalid/")

        assert env.success is False
        assert env.error == "[Errno -2] Name or service not known"

    async def test_bounds_hold_end_to_end(self) -> None:
        anchors = "".join(f'<a href="/p{i}">{i}</a>' for i in range(300))
        images = "".join(f'<img src="/i{i}.png">' for i in range(300))
        html = f"<body>\n\n{anchors}\t\t{images}\n</body>"
        service = ScrapingService(
            proxy=ProxyFetcher(relay_base_url=_RELAY), backend=_FakeFetcher()
        )
        with respx.mock:
            respx.get(url__startswith=_RELAY).mock(return_value=httpx.Response(200, text=html))
            env = await service.retrieve_via_proxy("https://example.com/")

        assert env.data is not None
        assert list(env.data.links) == [f"https://example.com/p{i}" for i in range(50)]
        assert len(env.data.images) == 20
        assert not re.search(r"\s\s", env.data.content)
        assert env.data.content == env.data.content.strip()


# ---------------------------------------------------------------------------
# Backend channel
# ---------------------------------------------------------------------------

class TestRetrieveViaBackend:
    async def test_success_payload_is_normalised(self) -> None:
        payload = DelegatePayload.model_validate({
            "success": True,
            "data": {
                "title": "T",
                "content": "  lots   of\n\nspace ",
                "links": ["javascript:x()"] + [f"https://l/{i}" for i in range(70)],
                "images": [f"https://i/{i}" for i in range(30)],
            },
        })
        backend = _FakeFetcher(result=payload)
        env = await ScrapingService(proxy=_FakeFetcher(), backend=backend).retrieve_via_backend(
            "https://example.com/", "sid=9"
        )

        _assert_envelope_invariant(env)
        assert env.data is not None
        assert env.data.content == "lots of space"
        assert len(env.data.links) == 50
        assert env.data.links[0] == "https://l/0"
        assert len(env.data.images) == 20
        assert backend.requests[0].cookies == "sid=9"

    async def test_missing_fields_default_to_empty(self) -> None:
        payload = DelegatePayload.model_validate({"success": True, "data": {}})
        env = await ScrapingService(
            proxy=_FakeFetcher(), backend=_FakeFetcher(result=payload)
        ).retrieve_via_backend("https://example.com/")
        assert env.data == ExtractedDocument()

    async def test_failure_payload_passes_error_through(self) -> None:
        payload = DelegatePayload(success=False, error="Target returned 403")
        env = await ScrapingService(
            proxy=_FakeFetcher(), backend=_FakeFetcher(result=payload)
        ).retrieve_via_backend("https://example.com/")
        assert env.to_dict() == {"success": False, "error": "Target returned 403"}

    async def test_success_without_data_is_a_failure(self) -> None:
        payload = DelegatePayload(success=True)
        env = await ScrapingService(
            proxy=_FakeFetcher(), backend=_FakeFetcher(result=payload)
        ).retrieve_via_backend("https://example.com/")
        _assert_envelope_invariant(env)
        assert env.success is False

    async def test_transport_failure_gives_fixed_message(self) -> None:
        service = ScrapingService(
            proxy=_FakeFetcher(), backend=BackendDelegateFetcher(delegate_url=_DELEGATE)
        )
        with respx.mock:
            respx.post(_DELEGATE).mock(
                side_effect=httpx.ConnectError("some very specific socket error")
            )
            env = await service.retrieve_via_backend("https://example.com/", "a=1")

        assert env.to_dict() == {"success": False, "error": DELEGATE_UNAVAILABLE_MESSAGE}

    async def test_delegate_error_differs_from_proxy_error(self) -> None:
        service = ScrapingService(
            proxy=ProxyFetcher(relay_base_url=_RELAY),
            backend=BackendDelegateFetcher(delegate_url=_DELEGATE),
        )
        with respx.mock:
            respx.get(url__startswith=_RELAY).mock(return_value=httpx.Response(502))
            respx.post(_DELEGATE).mock(return_value=httpx.Response(502))
            via_proxy = await service.retrieve_via_proxy("https://example.com/")
            via_backend = await service.retrieve_via_backend("https://example.com/")

        assert via_proxy.error == "HTTP 502: Bad Gateway"
        assert via_backend.error == DELEGATE_UNAVAILABLE_MESSAGE


# ---------------------------------------------------------------------------
# Channel dispatch and concurrency
# ---------------------------------------------------------------------------

class TestRetrieve:
    async def test_dispatches_to_named_channel(self) -> None:
        proxy = _FakeFetcher(result=_raw("<title>P</title>"))
        backend = _FakeFetcher(result=DelegatePayload(success=True, data={"title": "B"}))
        service = ScrapingService(proxy=proxy, backend=backend)

        assert (await service.retrieve("https://e/", channel="proxy")).data.title == "P"
        assert (await service.retrieve("https://e/", channel="backend")).data.title == "B"
        assert len(proxy.requests) == 1
        assert len(backend.requests) == 1

    async def test_unknown_channel_raises_before_fetching(self) -> None:
        proxy = _FakeFetcher()
        service = ScrapingService(proxy=proxy, backend=_FakeFetcher())
        with pytest.raises(ValueError, match="Unknown channel"):
            await service.retrieve("https://e/", channel="carrier-pigeon")
        assert proxy.requests == []

    async def test_concurrent_calls_are_independent(self) -> None:
        ok = _FakeFetcher(result=_raw("<title>ok</title>"))
        bad = _FakeFetcher(exc=RelayError(500, "Internal Server Error"))
        service = ScrapingService(proxy=ok, backend=bad)

        results = await asyncio.gather(
            service.retrieve_via_proxy("https://e/1"),
            service.retrieve_via_backend("https://e/2"),
            service.retrieve_via_proxy("https://e/3"),
        )

        assert [r.success for r in results] == [True, False, True]
        assert results[1].error == "HTTP 500: Internal Server Error"
