"""Static-HTML scraper for Unity Asset Store listings.

Fetches the server-rendered page with httpx and never runs JavaScript. It is
quick and has no browser dependency, but only sees what the server embeds:
the listing state JSON (preferred) and whatever markup is pre-rendered.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import httpx
from bs4 import BeautifulSoup

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

T = TypeVar("T")

TITLE_SUFFIX = " | Unity Asset Store"
MAX_META_KEYWORDS = 10
VIDEO_MEDIA_TYPES = ("video", "youtube")
SELECTORS = LISTING_SELECTORS


def _safe(name: str, extractor: Callable[[], Optional[T]], default: T) -> T:
    try:
        value = extractor()
    except Exception as exc:
        logger.debug("Extracting %s failed, using default: %s", name, exc)
        return default
    return default if value is None else value


def _text(node) -> Optional[str]:
    if node is None:
        return None
    text = node.get_text(strip=True)
    return text or None


class HTMLScraper(BaseScraper):
    """httpx + BeautifulSoup scraper; the ``html`` method."""

    method = "html"

    HEADERS = {
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            headers=self.HEADERS,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            follow_redirects=True,
        )
        self.review_parser = ReviewBreakdownParser()

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    async def scrape(self, url: str) -> Asset:
        logger.info("Scraping with static HTML: %s", url)
        try:
            response = await self.client.get(url, headers=self.HEADERS)
        except httpx.HTTPError as exc:
            raise ScrapeError(f"Failed to scrape {url}: {exc}") from exc

        logger.debug("Asset Store response status code: %s", response.status_code)
        if response.status_code >= 400:
            raise ScrapeError(f"Failed to scrape {url}: HTTP error! status: {response.status_code}")

        html = response.text
        soup = BeautifulSoup(html, "html.parser")

        asset = self.from_embedded_json(html, soup, url)
        if asset is None:
            logger.info("No usable embedded listing state, parsing the DOM")
            asset = self.from_dom(soup, url)
        return asset

    # Embedded listing state

    def from_embedded_json(self, html: str, soup: BeautifulSoup, url: str) -> Optional[Asset]:
        asset_id = extract_asset_id(url)
        data = find_embedded_asset_json(html, asset_id)
        if data is None:
            return None

        try:
            rating, reviews_count, breakdown = self._ratings_from_json(data, soup)
            images = data.get("images") or []
            videos_count = sum(
                1 for media in images if isinstance(media, dict) and media.get("type") in VIDEO_MEDIA_TYPES
            )
            versions = data.get("supportedUnityVersions") or []
            publisher = data.get("publisher")

            asset = Asset(
                id=str(data.get("id") or asset_id),
                url=url,
                title=data.get("name") or UNKNOWN_TITLE,
                short_description=data.get("elevatorPitch") or "",
                long_description=TextUtils.html_to_text(data.get("description")),
                tags=self._tags_from_json(data) or self._extract_tags(soup),
                category=extract_category(url),
                price=float((data.get("originalPrice") or {}).get("finalPrice") or 0),
                images_count=len(images) - videos_count,
                videos_count=videos_count,
                rating=rating,
                reviews_count=reviews_count,
                review_breakdown=breakdown,
                last_update=data.get("firstPublishedDate"),
                publisher=(publisher.get("name") if isinstance(publisher, dict) else None)
                or UNKNOWN_PUBLISHER,
                size=TextUtils.format_file_size(data.get("downloadSize")),
                version=versions[-1] if versions else None,
                favorites=None,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Failed to map embedded JSON for %s: %s", url, exc)
            return None

        logger.info("Extracted asset data from embedded JSON: %s", asset.title)
        return asset

    def _ratings_from_json(
        self, data: Dict[str, Any], soup: BeautifulSoup
    ) -> Tuple[Optional[float], int, Dict[str, int]]:
        rating = data.get("rating")
        breakdown = self.review_parser.from_ratings(rating)
        if breakdown is not None:
            return (
                self.review_parser.average(breakdown),
                sum(breakdown.values()),
                breakdown,
            )

        # No usable star bars in the state, read them off the page text.
        breakdown = self.review_parser.parse(soup.get_text())
        if isinstance(rating, dict):
            average = rating.get("average")
            count = rating.get("count") or data.get("reviewCount") or 0
            return float(average) if average is not None else None, int(count), breakdown
        count = data.get("reviewCount") or sum(breakdown.values())
        return self.review_parser.average(breakdown), int(count), breakdown

    @staticmethod
    def _tags_from_json(data: Dict[str, Any]) -> List[str]:
        tags = []
        for tag in data.get("tags") or []:
            name = tag.get("name") if isinstance(tag, dict) else tag
            if isinstance(name, str) and name.strip():
                tags.append(name.strip())
        return tags

    # DOM parsing

    def from_dom(self, soup: BeautifulSoup, url: str) -> Asset:
        short_description, long_description = _safe(
            "descriptions",
            lambda: self._extract_descriptions(soup),
            (NO_SHORT_DESCRIPTION, NO_LONG_DESCRIPTION),
        )
        return Asset(
            id=extract_asset_id(url),
            url=url,
            title=_safe("title", lambda: self._extract_title(soup), UNKNOWN_TITLE),
            short_description=short_description,
            long_description=long_description,
            tags=_safe("tags", lambda: self._extract_tags(soup), []),
            category=extract_category(url),
            price=_safe(
                "price", lambda: TextUtils.parse_price(_text(soup.select_one(SELECTORS["price"]))), None
            ),
            images_count=_safe(
                "images_count", lambda: len(soup.select(SELECTORS["screenshots"])), 0
            ),
            videos_count=_safe(
                "videos_count", lambda: len(soup.select(SELECTORS["videos"])), 0
            ),
            rating=_safe("rating", lambda: self._extract_rating(soup), None),
            reviews_count=_safe(
                "reviews_count",
                lambda: TextUtils.parse_int(_text(soup.select_one(SELECTORS["reviews_count"])), default=0),
                0,
            ),
            # get_text() without a separator keeps "5 star123" glued like textContent.
            review_breakdown=_safe(
                "review_breakdown",
                lambda: self.review_parser.parse(soup.get_text()),
                empty_review_breakdown(),
            ),
            last_update=_safe(
                "last_update", lambda: _text(soup.select_one(SELECTORS["last_update"])), None
            ),
            publisher=_safe(
                "publisher", lambda: _text(soup.select_one(SELECTORS["publisher"])), UNKNOWN_PUBLISHER
            ),
            size=_safe("size", lambda: _text(soup.select_one(SELECTORS["size"])), None),
            version=_safe(
                "version", lambda: _text(soup.select_one(SELECTORS["version"])), None
            ),
            favorites=_safe(
                "favorites", lambda: TextUtils.parse_int(_text(soup.select_one(SELECTORS["favorites"]))), None
            ),
        )

    @staticmethod
    def _extract_title(soup: BeautifulSoup) -> str:
        title = _text(soup.select_one(SELECTORS["title"])) or _text(soup.find("h1"))
        if title:
            return title
        page_title = _text(soup.find("title"))
        if page_title:
            return page_title.replace(TITLE_SUFFIX, "").strip()
        return UNKNOWN_TITLE

    @staticmethod
    def _extract_descriptions(soup: BeautifulSoup) -> Tuple[str, str]:
        blocks = [
            TextUtils.node_to_text(node)
            for node in soup.select(SELECTORS["description"])
        ]
        blocks = [block for block in blocks if block]
        if len(blocks) >= 2:
            return blocks[0], blocks[1]
        if len(blocks) == 1:
            return "", blocks[0]

        meta = soup.find("meta", attrs={"name": "description"})
        if meta is not None and meta.get("content"):
            return "", meta["content"].strip()
        return NO_SHORT_DESCRIPTION, NO_LONG_DESCRIPTION

    @staticmethod
    def _extract_tags(soup: BeautifulSoup) -> List[str]:
        nodes = soup.select(SELECTORS["tags"]) or soup.select(SELECTORS["tags_fallback"])
        tags: List[str] = []
        for node in nodes:
            tag = node.get_text(strip=True)
            if tag and tag not in tags:
                tags.append(tag)
        if tags:
            return tags

        meta = soup.find("meta", attrs={"name": "keywords"})
        if meta is not None and meta.get("content"):
            keywords = [k.strip() for k in meta["content"].split(",") if k.strip()]
            return keywords[:MAX_META_KEYWORDS]
        return []

    @staticmethod
    def _extract_rating(soup: BeautifulSoup) -> Optional[float]:
        node = soup.select_one(SELECTORS["rating"] + "[data-rating]") or soup.select_one("[data-rating]")
        if node is None:
            return None
        return TextUtils.parse_float(node.get("data-rating"))
