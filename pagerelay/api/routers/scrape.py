"""Delegate scraping endpoint.

Routes
------
POST /api/scrape    Body: {"url": "https://...", "cookies": "a=1; b=2"}

This is the trusted same-origin side of the ``backend`` channel.  It is not
subject to cross-origin restrictions, so it fetches the page directly and
applies the caller's cookies.  The response body is always a
ResultEnvelope; fetch failures are reported inside it with HTTP 200.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, HttpUrl

router = APIRouter()


class ScrapeRequest(BaseModel):
    url: HttpUrl
    cookies: str = ""


@router.post("/scrape")
async def scrape_endpoint(body: ScrapeRequest, request: Request) -> dict[str, Any]:
    """Fetch ``body.url`` with ``body.cookies`` and return the extracted fields."""
    service = request.app.state.scraper
    envelope = await service.retrieve_via_backend(str(body.url), body.cookies)
    return envelope.to_dict()
