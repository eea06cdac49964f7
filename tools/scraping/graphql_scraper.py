"""Unity Asset Store GraphQL scraper.

Posts the storefront's own batched ``ProductReview`` and
``ProductRatingStar`` queries, so nothing depends on page markup. Each
request carries a fresh CSRF token, sent both as ``X-CSRF-Token`` and as the
``_csrf`` cookie.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from core.config import settings
from models import UNKNOWN_PUBLISHER, UNKNOWN_TITLE, Asset, empty_review_breakdown
from tools.processing.review_breakdown import ReviewBreakdownParser
from tools.utils.text_helpers import TextUtils
from .base import BaseScraper, ScrapeError
from .urls import extract_asset_id, extract_category

logger = logging.getLogger(__name__)

PRODUCT_QUERY = """
query ProductReview($id: ID!, $rows: Int, $page: Int, $sort_by: String, $reviewId: String, $rating: String) {
  product(id: $id) {
    ...product
    reviews(rows: $rows, page: $page, sortBy: $sort_by, reviewId: $reviewId, rating: $rating) {
      count
      totalEntries: total_entries
      __typename
    }
    __typename
  }
}

fragment product on Product {
  id
  name
  description
  elevatorPitch
  rating { average count __typename }
  currentVersion { id name publishedDate __typename }
  reviewCount
  downloadSize
  mainImage { big small icon }
  originalPrice { finalPrice isFree currency __typename }
  images { type imageUrl thumbnailUrl __typename }
  category { id name slug longName __typename }
  publisher { id name __typename }
  firstPublishedDate
  supportedUnityVersions
  popularTags { id pTagId name __typename }
  __typename
}
"""

RATING_QUERY = """
query ProductRatingStar($id: ID!) {
  rating(id: $id) { count value __typename }
}
"""

VIDEO_MEDIA_TYPES = ("video", "youtube")


def format_published_date(value: Optional[str]) -> Optional[str]:
    """'2024-01-08T10:00:00.000Z' -> 'Jan 8, 2024'; unparseable input is returned as is."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


class GraphQLScraper(BaseScraper):
    """httpx client for the storefront GraphQL batch endpoint; the ``graphql`` method."""

    method = "graphql"

    HEADERS = {
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9",
        "Content-Type": "application/json;charset=UTF-8",
        "Origin": "https://assetstore.unity.com",
        "Referer": "https://assetstore.unity.com/",
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36",
        "X-Requested-With": "XMLHttpRequest",
        "X-Source": "storefront",
        "Operations": "ProductReview,ProductRatingStar",
    }

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        endpoint: Optional[str] = None,
    ) -> None:
        self.endpoint = endpoint or settings.ASSET_STORE_GRAPHQL_URL
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
        self.review_parser = ReviewBreakdownParser()

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    @staticmethod
    def build_queries(asset_id: str) -> List[Dict[str, Any]]:
        return [
            {
                "operationName": "ProductReview",
                "query": PRODUCT_QUERY,
                "variables": {
                    "id": asset_id,
                    "rows": 10,
                    "page": 1,
                    "sort_by": "recent",
                    "rating": None,
                },
            },
            {
                "operationName": "ProductRatingStar",
                "query": RATING_QUERY,
                "variables": {"id": asset_id},
            },
        ]

    def _request_headers(self) -> Dict[str, str]:
        token = secrets.token_hex(16)
        cookies = [f"_csrf={token}", "NEXT_LOCALE=en-US", "AC_CURR=USD", "_sessionStart=true"]
        return {**self.HEADERS, "X-CSRF-Token": token, "Cookie": "; ".join(cookies)}

    async def scrape(self, url: str) -> Asset:
        asset_id = extract_asset_id(url)
        if not asset_id:
            raise ScrapeError(f"Could not extract asset ID from URL: {url}")

        logger.info("Scraping asset %s using the GraphQL API", asset_id)
        try:
            response = await self.client.post(
                self.endpoint,
                json=self.build_queries(asset_id),
                headers=self._request_headers(),
            )
        except httpx.HTTPError as exc:
            raise ScrapeError(f"Failed to scrape {url} with GraphQL: {exc}") from exc

        if response.status_code >= 400:
            raise ScrapeError(
                f"Failed to scrape {url} with GraphQL: request failed with status {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ScrapeError(f"Failed to scrape {url} with GraphQL: invalid JSON response") from exc

        try:
            asset = self.from_response(data, url, asset_id)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ScrapeError(f"Failed to map GraphQL response for {url}: {exc}") from exc
        logger.info("Successfully scraped asset %s using the GraphQL API", asset_id)
        return asset

    def from_response(self, data: Any, url: str, asset_id: str) -> Asset:
        """Map the batched query results onto an `Asset`.

        Raises:
            ScrapeError: the response has no product block.
        """
        if not isinstance(data, list) or not data:
            raise ScrapeError("Invalid GraphQL response format")
        product = ((data[0] or {}).get("data") or {}).get("product")
        if not isinstance(product, dict):
            raise ScrapeError("Product data not found in GraphQL response")

        stars = None
        if len(data) > 1 and isinstance(data[1], dict):
            stars = (data[1].get("data") or {}).get("rating")
        breakdown = self.review_parser.from_ratings(stars) or empty_review_breakdown()

        rating = product.get("rating") or {}
        images = product.get("images") or []
        screenshots = sum(1 for media in images if media.get("type") == "screenshot")
        videos = sum(1 for media in images if media.get("type") in VIDEO_MEDIA_TYPES)
        main_image = product.get("mainImage") or {}
        current_version = product.get("currentVersion") or {}
        versions = product.get("supportedUnityVersions") or []
        category = product.get("category") or {}
        publisher = product.get("publisher") or {}
        average = rating.get("average")

        return Asset(
            id=str(product.get("id") or asset_id),
            url=url,
            title=product.get("name") or UNKNOWN_TITLE,
            short_description=TextUtils.html_to_text(product.get("elevatorPitch")),
            long_description=TextUtils.html_to_text(product.get("description")),
            tags=[t["name"] for t in product.get("popularTags") or [] if t.get("name")],
            category=category.get("longName") or category.get("name") or extract_category(url),
            price=float((product.get("originalPrice") or {}).get("finalPrice") or 0),
            images_count=screenshots + (1 if main_image.get("big") else 0),
            videos_count=videos,
            rating=float(average) if average is not None else None,
            reviews_count=int(rating.get("count") or product.get("reviewCount") or 0),
            review_breakdown=breakdown,
            last_update=format_published_date(
                current_version.get("publishedDate") or product.get("firstPublishedDate")
            ),
            publisher=publisher.get("name") or UNKNOWN_PUBLISHER,
            size=TextUtils.format_file_size(product.get("downloadSize")),
            version=current_version.get("name") or (versions[-1] if versions else None),
            favorites=None,
        )
