"""Fail-soft markup parsing."""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


def parse_document(markup: Any) -> BeautifulSoup:
    """Parse *markup* into a BeautifulSoup tree.

    Uses the stdlib ``html.parser`` backend, which neither runs scripts nor
    fetches subresources.  Never raises: ``None`` or non-text input yields an
    empty tree, bytes are decoded as UTF-8 with replacement, and any parser
    failure on hostile markup is logged and degrades to an empty tree.
    """
    if markup is None:
        markup = ""
    elif isinstance(markup, (bytes, bytearray)):
        markup = bytes(markup).decode("utf-8", errors="replace")
    elif not isinstance(markup, str):
        markup = str(markup)

    try:
        return BeautifulSoup(markup, "html.parser")
    except Exception as exc:
        logger.warning("Markup could not be parsed, using an empty document: %s", exc)
        return BeautifulSoup("", "html.parser")
