"""Pick a scraping strategy for a listing URL and report what was used."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from core.config import SCRAPE_METHODS
from models import Asset
from .base import BaseScraper
from .browser import BrowserScraper
from .graphql_scraper import GraphQLScraper
from .html_scraper import HTMLScraper

logger = logging.getLogger(__name__)

FALLBACK_ORDER = ("graphql", "puppeteer", "html")


class ScrapeResult:
    def __init__(self, success, method, asset=None, error=None):
        self.success = success
        self.method = method
        self.asset: Optional[Asset] = asset
        self.error: Optional[str] = error

    def to_dict(self):
        return {
            "success": self.success,
            "method": self.method,
            "asset": self.asset.to_dict() if self.asset else None,
            "error": self.error,
        }


class AssetScraperService:
    """Runs the ``html``, ``graphql``, ``puppeteer`` or ``fallback`` strategy.

    Scrapers are created on first use so the html and graphql paths never
    start a browser. ``fallback`` walks `FALLBACK_ORDER` until one succeeds.
    """

    def __init__(
        self,
        html_factory: Callable[[], BaseScraper] = HTMLScraper,
        graphql_factory: Callable[[], BaseScraper] = GraphQLScraper,
        browser_factory: Callable[[], BaseScraper] = BrowserScraper,
    ) -> None:
        self._factories: Dict[str, Callable[[], BaseScraper]] = {
            "html": html_factory,
            "graphql": graphql_factory,
            "puppeteer": browser_factory,
        }
        self._scrapers: Dict[str, BaseScraper] = {}

    def _scraper(self, method: str) -> BaseScraper:
        if method not in self._scrapers:
            self._scrapers[method] = self._factories[method]()
        return self._scrapers[method]

    async def scrape_asset(self, url: str, method: str = "fallback") -> ScrapeResult:
        if method not in SCRAPE_METHODS:
            raise ValueError(f"Method must be one of: {', '.join(SCRAPE_METHODS)}")

        if method == "fallback":
            result = None
            for candidate in FALLBACK_ORDER:
                if result is not None:
                    logger.warning(
                        "%s scraping failed for %s (%s), falling back to %s",
                        result.method,
                        url,
                        result.error,
                        candidate,
                    )
                result = await self._run(url, candidate)
                if result.success:
                    break
            return result

        return await self._run(url, method)

    async def _run(self, url: str, method: str) -> ScrapeResult:
        try:
            asset = await self._scraper(method).scrape(url)
        except Exception as exc:
            logger.error("Scraping %s with %s failed: %s", url, method, exc, exc_info=True)
            return ScrapeResult(success=False, method=method, error=str(exc))
        return ScrapeResult(success=True, method=method, asset=asset)

    async def close(self):
        for scraper in self._scrapers.values():
            await scraper.close()
        self._scrapers.clear()
