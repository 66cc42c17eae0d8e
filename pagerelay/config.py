"""Centralised settings for pagerelay.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from the package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Retrieval channels
    # ------------------------------------------------------------------
    relay_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "RELAY_BASE_URL", "https://api.allorigins.win/raw"
        )
    )
    delegate_url: str = field(
        default_factory=lambda: os.environ.get(
            "DELEGATE_URL", "http://localhost:8000/api/scrape"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Browser-like request headers
    # ------------------------------------------------------------------
    user_agent: str = field(
        default_factory=lambda: os.environ.get("SCRAPER_USER_AGENT", _DESKTOP_USER_AGENT)
    )
    accept_language: str = field(
        default_factory=lambda: os.environ.get(
            "SCRAPER_ACCEPT_LANGUAGE", "zh-TW,zh;q=0.9,en;q=0.8"
        )
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    noisy_log_level: str = field(
        default_factory=lambda: os.environ.get("NOISY_LOG_LEVEL", "WARNING")
    )

    @property
    def browser_headers(self) -> dict[str, str]:
        """Headers sent on every outbound page fetch."""
        return {
            "User-Agent": self.user_agent,
            "Accept": (
                "text/html,application/xhtml+xml,application/xml;q=0.9,"
                "image/webp,*/*;q=0.8"
            ),
            "Accept-Language": self.accept_language,
        }


# Module-level singleton, import this everywhere:
#   from pagerelay.config import settings
settings = Settings()
