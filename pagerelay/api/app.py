"""FastAPI application factory for the delegate endpoint.

The app holds one :class:`~pagerelay.scraper.service.ScrapingService` on
``app.state.scraper`` whose ``backend`` channel is a
:class:`~pagerelay.scraper.fetcher.DirectFetcher`: requests arriving here
are served by fetching the target page directly, cookies included.

Routers
-------
    /api/scrape  — scrape one page on behalf of a browser client
    /health      — liveness check
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pagerelay import __version__
from pagerelay.logging_setup import configure_logging
from pagerelay.scraper.fetcher import DirectFetcher
from pagerelay.scraper.service import ScrapingService

from pagerelay.api.routers import scrape as scrape_router


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    configure_logging()

    app = FastAPI(
        title="pagerelay delegate",
        description=(
            "Trusted same-origin scraping delegate. Fetches a page with the "
            "caller's cookies and returns its title, text, links and images."
        ),
        version=__version__,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    direct = DirectFetcher()
    app.state.scraper = ScrapingService(backend=direct)

    app.include_router(scrape_router.router, prefix="/api", tags=["scrape"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn pagerelay.api.app:app --reload
app = create_app()
