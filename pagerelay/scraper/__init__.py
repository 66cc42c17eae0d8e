"""Scraper package — channel fetchers, parsing and field extraction."""

from pagerelay.scraper.extractor import extract_fields, extract_from_markup
from pagerelay.scraper.fetcher import BackendDelegateFetcher, DirectFetcher, ProxyFetcher
from pagerelay.scraper.models import ExtractedDocument, RawDocument, ResultEnvelope
from pagerelay.scraper.parser import parse_document
from pagerelay.scraper.service import (
    ScrapingService,
    retrieve_via_backend,
    retrieve_via_proxy,
)

__all__ = [
    "ScrapingService",
    "retrieve_via_proxy",
    "retrieve_via_backend",
    "ProxyFetcher",
    "BackendDelegateFetcher",
    "DirectFetcher",
    "parse_document",
    "extract_fields",
    "extract_from_markup",
    "ExtractedDocument",
    "RawDocument",
    "ResultEnvelope",
]
