from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from core.config import settings
from models import Asset

DATABASE_URL = settings.DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(pytz.UTC).replace(tzinfo=None)


class TrackedAsset(Base):
    __tablename__ = "tracked_assets"

    id = Column(Integer, primary_key=True, index=True)
    url = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    last_scraped = Column(DateTime, nullable=True)


class AssetRecord(Base):
    __tablename__ = "asset_records"

    id = Column(Integer, primary_key=True, index=True)
    url = Column(String, unique=True, index=True, nullable=False)
    asset_id = Column(String, index=True, nullable=True)
    title = Column(String)
    short_description = Column(Text)
    long_description = Column(Text)
    tags = Column(JSON, default=list)
    category = Column(String)
    price = Column(Float, nullable=True)
    images_count = Column(Integer, default=0)
    videos_count = Column(Integer, default=0)
    rating = Column(Float, nullable=True)
    reviews_count = Column(Integer, default=0)
    review_breakdown = Column(JSON)
    last_update = Column(String, nullable=True)
    publisher = Column(String)
    size = Column(String, nullable=True)
    version = Column(String, nullable=True)
    favorites = Column(Integer, nullable=True)
    scrape_method = Column(String)
    first_seen = Column(DateTime, default=utcnow)
    last_scraped = Column(DateTime, default=utcnow)

    def to_asset(self) -> Asset:
        return Asset(
            id=self.asset_id,
            url=self.url,
            title=self.title,
            short_description=self.short_description,
            long_description=self.long_description,
            tags=self.tags,
            category=self.category,
            price=self.price,
            images_count=self.images_count,
            videos_count=self.videos_count,
            rating=self.rating,
            reviews_count=self.reviews_count,
            review_breakdown=self.review_breakdown,
            last_update=self.last_update,
            publisher=self.publisher,
            size=self.size,
            version=self.version,
            favorites=self.favorites,
        )


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_asset_by_url(db, url: str) -> Optional[AssetRecord]:
    """Fetch the stored record for a listing URL."""
    return db.query(AssetRecord).filter(AssetRecord.url == url).first()


def get_all_assets(db) -> List[AssetRecord]:
    return db.query(AssetRecord).order_by(AssetRecord.id).all()


def upsert_asset(db, asset: Asset, method: str) -> AssetRecord:
    """Insert or refresh the record for ``asset.url``; ``first_seen`` is kept."""
    record = get_asset_by_url(db, asset.url)
    if record is None:
        record = AssetRecord(url=asset.url, first_seen=utcnow())
        db.add(record)

    data = asset.to_dict()
    data["asset_id"] = data.pop("id")
    data.pop("url")
    for key, value in data.items():
        setattr(record, key, value)
    record.scrape_method = method
    record.last_scraped = utcnow()

    db.commit()
    db.refresh(record)
    return record


def track_url(db, url: str) -> TrackedAsset:
    """Add a listing URL to the refresh list; returns the existing row if present."""
    tracked = db.query(TrackedAsset).filter(TrackedAsset.url == url).first()
    if tracked is None:
        tracked = TrackedAsset(url=url, created_at=utcnow())
        db.add(tracked)
        db.commit()
        db.refresh(tracked)
    return tracked


def untrack_url(db, url: str) -> bool:
    tracked = db.query(TrackedAsset).filter(TrackedAsset.url == url).first()
    if tracked is None:
        return False
    db.delete(tracked)
    db.commit()
    return True


def get_tracked_urls(db) -> List[str]:
    return [url for (url,) in db.query(TrackedAsset.url).order_by(TrackedAsset.id).all()]


def mark_scraped(db, url: str):
    tracked = db.query(TrackedAsset).filter(TrackedAsset.url == url).first()
    if tracked:
        tracked.last_scraped = utcnow()
        db.commit()
