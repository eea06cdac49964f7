"""Abstract base class for all listing scrapers.

The browser and static-HTML scrapers share the output record and the
per-field isolation rule: a selector that fails yields the field default and
never aborts the rest of the extraction.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, Awaitable, Callable, TypeVar

from models import Asset

logger = logging.getLogger(__name__)

T = TypeVar("T")


# CSS selectors of the rendered listing page, shared by the browser and static scrapers.
LISTING_SELECTORS = {
    "title": ".cfm2v",
    "description": "._1rkJa",
    "tags": "._3JkgG ._15pcy",
    "tags_fallback": "._15pcy",
    "price": "._223RA",
    "screenshots": "._10GvD > .screenshot",
    "videos": "._10GvD > .youtube",
    "rating": "._31fUb",
    "reviews_count": "._31fUb > .NoXio",
    "last_update": ".product-date > .SoNzt",
    "publisher": ".U9Sw1",
    "size": ".product-size > .SoNzt",
    "version": ".product-version > .SoNzt",
    "favorites": "._3EMPt",
    "reviews_link": 'a[href*="#reviews"]',
}


class ScrapeError(Exception):
    """Raised when a listing page cannot be loaded at all."""


class BaseScraper(abc.ABC):
    """Interface that every Asset Store scraper must implement."""

    method: str = ""

    @abc.abstractmethod
    async def scrape(self, url: str) -> Asset:
        """Return the `Asset` record extracted from the listing at *url*.

        Raises:
            ScrapeError: the page could not be fetched or rendered.
        """

    async def close(self):  # pragma: no cover
        """Override if the scraper keeps any open connections / browsers."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @staticmethod
    async def _field(name: str, extractor: Callable[[], Awaitable[T]], default: Any) -> T:
        try:
            value = await extractor()
        except Exception as exc:
            logger.debug("Extracting %s failed, using default: %s", name, exc)
            return default
        return default if value is None else value
