"""Periodically re-scrapes tracked listings and stores the fresh records."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.config import settings
from db.database import get_tracked_urls, mark_scraped, upsert_asset
from tools.scraping.service import AssetScraperService

logger = logging.getLogger(__name__)


class AssetMonitor:
    """Refreshes every `TrackedAsset` URL using the configured scrape method."""

    def __init__(
        self,
        db: Session,
        service: Optional[AssetScraperService] = None,
        method: Optional[str] = None,
        cycle_sleep_seconds: Optional[int] = None,
    ) -> None:
        self.db = db
        self.service = service or AssetScraperService()
        self.method = method or settings.DEFAULT_SCRAPE_METHOD
        self.cycle_sleep_seconds = (
            settings.REFRESH_SLEEP_SECONDS if cycle_sleep_seconds is None else cycle_sleep_seconds
        )

    async def run_once(self) -> int:
        """Scrape each tracked URL once; returns how many were stored."""
        urls = get_tracked_urls(self.db)
        logger.info("AssetMonitor refreshing %s tracked listings", len(urls))

        stored = 0
        for url in urls:
            result = await self.service.scrape_asset(url, method=self.method)
            if not result.success:
                logger.error("Failed refreshing %s: %s", url, result.error)
                continue

            upsert_asset(self.db, result.asset, result.method)
            mark_scraped(self.db, url)
            stored += 1
            logger.info("Refreshed %s | %s", result.asset.title, url)

            await asyncio.sleep(self.cycle_sleep_seconds)

        logger.info("AssetMonitor finished all listings")
        return stored

    async def close(self):
        await self.service.close()
