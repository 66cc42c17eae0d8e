"""Process-wide logging configuration."""

from __future__ import annotations

import logging

from pagerelay.config import settings

_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "asyncio",
)


def _level(name: str, default: int) -> int:
    return getattr(logging, name.upper(), default)


def configure_logging() -> None:
    """Configure the root logger and quiet framework/network libraries.

    Safe to call more than once; ``basicConfig`` is a no-op when the root
    logger already has handlers.
    """
    logging.basicConfig(
        level=_level(settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    noisy = _level(settings.noisy_log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy)
