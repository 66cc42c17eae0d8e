"""pagerelay CLI — scrape a page or run the delegate service.

Usage:
    python cli/main.py --help

Commands:
    scrape  → retrieve one page through the proxy or backend channel
    serve   → run the delegate API (POST /api/scrape) with uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from pagerelay.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json

import typer

from pagerelay.logging_setup import configure_logging
from pagerelay.scraper.service import CHANNELS, ScrapingService

app = typer.Typer(
    name="pagerelay",
    help="Extract title, text, links and images from a web page.",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    """pagerelay command line."""
    configure_logging()


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Option(..., help="URL to scrape."),
    cookies: str = typer.Option("", help="Cookie string (backend channel only)."),
    channel: str = typer.Option("proxy", help="Retrieval channel: proxy | backend."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result envelope."),
) -> None:
    """Scrape a URL and print the extracted fields."""
    if channel not in CHANNELS:
        typer.echo(f"[scrape] Unknown channel {channel!r}. Use: proxy | backend", err=True)
        raise typer.Exit(2)
    if cookies and channel == "proxy":
        typer.echo("[scrape] Note: cookies cannot be forwarded through the proxy channel.", err=True)

    service = ScrapingService()
    envelope = asyncio.run(service.retrieve(url, cookies, channel=channel))

    if as_json:
        typer.echo(json.dumps(envelope.to_dict(), ensure_ascii=False, indent=2))
        if not envelope.success:
            raise typer.Exit(1)
        return

    doc = envelope.data
    if doc is None:
        typer.echo(f"[scrape] Failed: {envelope.error}", err=True)
        raise typer.Exit(1)

    typer.echo(f"[scrape] Title  : {doc.title or '(none)'}")
    typer.echo(f"[scrape] Words  : {len(doc.content.split())}")
    typer.echo(f"[scrape] Links  : {len(doc.links)}")
    typer.echo(f"[scrape] Images : {len(doc.images)}")
    typer.echo("")
    typer.echo(doc.content)


# ---------------------------------------------------------------------------
# Serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Run the delegate API that backs the ``backend`` channel."""
    import uvicorn

    typer.echo(f"[serve] Delegate listening on http://{host}:{port}/api/scrape")
    uvicorn.run("pagerelay.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
