"""Headless-browser scraper for Unity Asset Store listings.

Most of a listing (descriptions, media strip, review panel) is rendered
client side, so this scraper drives Chromium through Playwright and reads the
live DOM. Every field has its own extractor; a missing selector only costs
that field.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from core.config import settings
from models import (
    NO_LONG_DESCRIPTION,
    NO_SHORT_DESCRIPTION,
    UNKNOWN_PUBLISHER,
    UNKNOWN_TITLE,
    Asset,
    empty_review_breakdown,
)
from tools.processing.review_breakdown import ReviewBreakdownParser
from tools.utils.text_helpers import TextUtils
from .base import LISTING_SELECTORS, BaseScraper, ScrapeError
from .embedded import find_embedded_asset_json
from .urls import extract_asset_id, extract_category

logger = logging.getLogger(__name__)


class BrowserScraper(BaseScraper):
    """Playwright (Chromium) scraper; exposed to callers as the ``puppeteer`` method."""

    method = "puppeteer"

    LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--no-xshm"]
    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    SELECTORS = LISTING_SELECTORS

    TEXT_JS = "el => el.textContent.trim()"
    REVIEWS_CLICK_TIMEOUT_MS = 2000

    def __init__(
        self,
        headless: Optional[bool] = None,
        timeout_ms: Optional[int] = None,
        reviews_settle_ms: Optional[int] = None,
    ) -> None:
        self.headless = settings.BROWSER_HEADLESS if headless is None else headless
        self.timeout_ms = timeout_ms or settings.PAGE_LOAD_TIMEOUT_MS
        self.reviews_settle_ms = (
            settings.REVIEWS_SETTLE_MS if reviews_settle_ms is None else reviews_settle_ms
        )
        self.review_parser = ReviewBreakdownParser()
        self._playwright = None
        self._browser = None
        self._launch_lock = asyncio.Lock()

    async def _ensure_browser(self):
        # Concurrent scrapes share one Chromium; only the first caller launches it.
        async with self._launch_lock:
            if self._browser is None:
                logger.info("Launching headless Chromium (headless=%s)", self.headless)
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless, args=self.LAUNCH_ARGS
                )
        return self._browser

    async def close(self):
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def scrape(self, url: str) -> Asset:
        browser = await self._ensure_browser()
        context = await browser.new_context(user_agent=self.USER_AGENT)
        try:
            page = await context.new_page()
            logger.info("Scraping with browser: %s", url)
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                await page.wait_for_selector("h1", timeout=self.timeout_ms)
            except PlaywrightError as exc:
                raise ScrapeError(f"Failed to load {url}: {exc}") from exc

            asset = await self.extract(page, page.url or url)
            logger.info("Successfully scraped: %s", asset.title)
            return asset
        finally:
            await context.close()

    async def extract(self, page: Page, url: str) -> Asset:
        """Read every field from an already loaded listing page."""
        short_description, long_description = await self._field(
            "descriptions",
            lambda: self._extract_descriptions(page),
            (NO_SHORT_DESCRIPTION, NO_LONG_DESCRIPTION),
        )
        return Asset(
            id=extract_asset_id(url),
            url=url,
            title=await self._field("title", lambda: self._extract_title(page), UNKNOWN_TITLE),
            short_description=short_description,
            long_description=long_description,
            tags=await self._field("tags", lambda: self._extract_tags(page), []),
            category=extract_category(url),
            price=await self._field("price", lambda: self._extract_price(page), None),
            images_count=await self._field(
                "images_count", lambda: self._count(page, "screenshots"), 0
            ),
            videos_count=await self._field(
                "videos_count", lambda: self._count(page, "videos"), 0
            ),
            rating=await self._field("rating", lambda: self._extract_rating(page), None),
            reviews_count=await self._field(
                "reviews_count", lambda: self._extract_reviews_count(page), 0
            ),
            review_breakdown=await self._field(
                "review_breakdown",
                lambda: self._extract_review_breakdown(page, url),
                empty_review_breakdown(),
            ),
            last_update=await self._field(
                "last_update", lambda: self._text(page, "last_update"), None
            ),
            publisher=await self._field(
                "publisher", lambda: self._text(page, "publisher"), UNKNOWN_PUBLISHER
            ),
            size=await self._field("size", lambda: self._text(page, "size"), None),
            version=await self._field("version", lambda: self._text(page, "version"), None),
            favorites=await self._field(
                "favorites", lambda: self._extract_favorites(page), None
            ),
        )

    async def _text(self, page: Page, key: str) -> str:
        return await page.eval_on_selector(self.SELECTORS[key], self.TEXT_JS)

    async def _count(self, page: Page, key: str) -> int:
        return len(await page.query_selector_all(self.SELECTORS[key]))

    async def _extract_title(self, page: Page) -> str:
        for selector in (self.SELECTORS["title"], "h1"):
            try:
                title = await page.eval_on_selector(selector, self.TEXT_JS)
            except PlaywrightError:
                continue
            if title:
                return title
        return UNKNOWN_TITLE

    async def _extract_descriptions(self, page: Page) -> Tuple[str, str]:
        try:
            descriptions: List[str] = await page.eval_on_selector_all(
                self.SELECTORS["description"],
                "els => els.map(el => (el.innerHTML || '').trim()).filter(t => t.length > 0)",
            )
            if len(descriptions) >= 2:
                return descriptions[0], descriptions[1]
            if len(descriptions) == 1:
                # A lone block is the long description.
                return "", descriptions[0]
        except PlaywrightError as exc:
            logger.debug("Description blocks unavailable: %s", exc)

        try:
            meta = await page.eval_on_selector(
                'meta[name="description"]', "el => el.getAttribute('content')"
            )
            return "", meta or ""
        except PlaywrightError:
            return NO_SHORT_DESCRIPTION, NO_LONG_DESCRIPTION

    async def _extract_tags(self, page: Page) -> List[str]:
        script = "els => els.map(el => (el.textContent || '').trim()).filter(t => t.length > 0)"
        for key in ("tags", "tags_fallback"):
            try:
                tags = await page.eval_on_selector_all(self.SELECTORS[key], script)
            except PlaywrightError as exc:
                logger.debug("Tag selector %s failed: %s", key, exc)
                continue
            if tags:
                return tags
        return []

    async def _extract_price(self, page: Page) -> Optional[float]:
        return TextUtils.parse_price(
            await page.eval_on_selector(self.SELECTORS["price"], "el => el.textContent")
        )

    async def _extract_rating(self, page: Page) -> Optional[float]:
        value = await page.eval_on_selector(
            self.SELECTORS["rating"], "el => el.getAttribute('data-rating')"
        )
        return TextUtils.parse_float(value) if value else None

    async def _extract_reviews_count(self, page: Page) -> int:
        return TextUtils.parse_int(await self._text(page, "reviews_count"), default=0)

    async def _extract_favorites(self, page: Page) -> Optional[int]:
        return TextUtils.parse_int(await self._text(page, "favorites"))

    async def _extract_review_breakdown(self, page: Page, url: str) -> Dict[str, int]:
        try:
            await page.click(self.SELECTORS["reviews_link"], timeout=self.REVIEWS_CLICK_TIMEOUT_MS)
            await page.wait_for_timeout(self.reviews_settle_ms)
        except PlaywrightError as exc:
            logger.debug("Could not open the reviews section: %s", exc)

        embedded = find_embedded_asset_json(await page.content(), extract_asset_id(url))
        if embedded:
            breakdown = self.review_parser.from_ratings(embedded.get("rating"))
            if breakdown is not None:
                return breakdown

        text = await page.evaluate(
            "() => document.documentElement.textContent || document.documentElement.innerText || ''"
        )
        return self.review_parser.parse(text)
