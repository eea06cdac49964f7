import asyncio
import logging
import sys

from core.config import settings
from db.database import SessionLocal, init_db, track_url
from tools.monitoring.monitor import AssetMonitor
from tools.scraping.urls import is_asset_store_url

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)


def seed_tracked_urls(db, urls):
    """Register configured listing URLs; returns how many were accepted."""
    accepted = 0
    for url in urls:
        if not is_asset_store_url(url):
            logger.warning("Ignoring tracked URL that is not an Asset Store listing: %s", url)
            continue
        track_url(db, url)
        accepted += 1
    return accepted


async def worker_main():
    init_db()
    db = SessionLocal()
    seeded = seed_tracked_urls(db, settings.TRACKED_URLS)
    if seeded:
        logger.info("Tracking %s configured listing URLs", seeded)
    monitor = AssetMonitor(db=db)
    try:
        while True:
            try:
                logger.info("Starting new listing refresh cycle")
                stored = await monitor.run_once()
                logger.info("Refresh cycle stored %s listings", stored)
            except Exception as e:
                logger.error(f"Error in listing refresh: {e}", exc_info=True)
            logger.info(
                f"Sleeping for {settings.CYCLE_FREQUENCY_SECONDS} seconds before next cycle"
            )
            await asyncio.sleep(settings.CYCLE_FREQUENCY_SECONDS)
    finally:
        logger.info("Closing AssetMonitor and scraper resources")
        await monitor.close()
        db.close()


async def main():
    try:
        logger.info("Starting Asset Store listing refresh worker")
        await worker_main()
    finally:
        logger.info("Shutting down Asset Store listing refresh worker")


if __name__ == "__main__":
    asyncio.run(main())
