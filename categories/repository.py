"""Read-only access to the category guidance documents shipped in ``data/``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from tools.scraping.urls import category_slug_candidates
from .models import CategoryData, CategorySummary

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"

SUGGESTION_KINDS = ("tags", "keywords", "titles", "pricing")


class CategoryNotFoundError(LookupError):
    def __init__(self, slug: str):
        super().__init__(f"Unknown category: {slug}")
        self.slug = slug


class CategoryDataError(ValueError):
    """A category document on disk is unreadable or has the wrong shape."""


class CategoryRepository:
    """Loads every ``<slug>.json`` document once and serves lookups from memory."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None) -> None:
        self.data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
        self._categories: Optional[Dict[str, CategoryData]] = None

    def _load(self) -> Dict[str, CategoryData]:
        if self._categories is None:
            categories = {}
            for path in sorted(self.data_dir.glob("*.json")):
                category = self._load_file(path)
                categories[category.slug] = category
            logger.info("Loaded %s categories from %s", len(categories), self.data_dir)
            self._categories = categories
        return self._categories

    @staticmethod
    def _load_file(path: Path) -> CategoryData:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return CategoryData.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as exc:
            raise CategoryDataError(f"Invalid category data in {path.name}: {exc}") from exc

    def list_categories(self) -> List[CategorySummary]:
        return [
            CategorySummary(slug=c.slug, name=c.name, description=c.description)
            for _, c in sorted(self._load().items())
        ]

    def get(self, slug: str) -> CategoryData:
        try:
            return self._load()[slug]
        except KeyError:
            raise CategoryNotFoundError(slug) from None

    def suggestions(self, slug: str, kind: str) -> List[str]:
        """Suggestion list backing the listing editor's suggestion inputs."""
        if kind not in SUGGESTION_KINDS:
            raise ValueError(f"kind must be one of: {', '.join(SUGGESTION_KINDS)}")

        recommendations = self.get(slug).recommendations
        if kind == "tags":
            return list(recommendations.tags.common_tags)
        if kind == "titles":
            return list(recommendations.title.examples.good)
        if kind == "pricing":
            return [recommendations.pricing.range, *recommendations.pricing.strategy]

        keywords: List[str] = []
        for keyword in recommendations.keywords.primary + recommendations.keywords.secondary:
            if keyword not in keywords:
                keywords.append(keyword)
        return keywords

    def for_asset_url(self, url: str) -> Optional[CategoryData]:
        """Most specific category matching the listing URL's category path."""
        categories = self._load()
        for slug in category_slug_candidates(url):
            if slug in categories:
                return categories[slug]
        return None
