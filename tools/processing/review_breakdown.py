"""Recover per-star review counts from the visible text of a listing page."""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from models import REVIEW_BREAKDOWN_FIELDS, empty_review_breakdown

logger = logging.getLogger(__name__)

# "5 star123 4 star21 3 star7 2 star4 1 star0" as rendered by the reviews panel.
COMBINED_PATTERN = re.compile(
    r"5\s*star(\d+).*?4\s*star(\d+).*?3\s*star(\d+).*?2\s*star(\d+).*?1\s*star(\d+)",
    re.IGNORECASE,
)

STAR_PATTERNS = {
    field: re.compile(
        rf"(\d+)\s*{stars}\s*stars?|{stars}\s*stars?\s*(\d+)", re.IGNORECASE
    )
    for stars, field in zip(range(5, 0, -1), REVIEW_BREAKDOWN_FIELDS)
}


class ReviewBreakdownParser:
    """Regex scan used when the structured rating bars are unavailable."""

    def parse(self, text: Optional[str]) -> Dict[str, int]:
        breakdown = empty_review_breakdown()
        if not text:
            return breakdown

        match = COMBINED_PATTERN.search(text)
        if match:
            for field, value in zip(REVIEW_BREAKDOWN_FIELDS, match.groups()):
                breakdown[field] = int(value)
            logger.debug("Review breakdown from combined pattern: %s", breakdown)
            return breakdown

        for field, pattern in STAR_PATTERNS.items():
            for found in pattern.finditer(text):
                count = int(found.group(1) or found.group(2))
                # The same bar is often rendered more than once; keep the largest.
                if count > 0:
                    breakdown[field] = max(breakdown[field], count)

        logger.debug("Review breakdown from per-star patterns: %s", breakdown)
        return breakdown

    @staticmethod
    def from_ratings(ratings) -> Optional[Dict[str, int]]:
        """Build a breakdown from structured ``[{"value": "5", "count": "12"}, ...]``.

        Returns None when the data is missing or malformed so callers can fall
        back to the text scan.
        """
        if not isinstance(ratings, list) or not ratings:
            return None
        breakdown = empty_review_breakdown()
        fields = dict(zip(range(5, 0, -1), REVIEW_BREAKDOWN_FIELDS))
        try:
            for entry in ratings:
                field = fields.get(int(entry["value"]))
                if field:
                    breakdown[field] = int(entry["count"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.debug("Malformed structured ratings %r: %s", ratings, exc)
            return None
        return breakdown

    @staticmethod
    def average(breakdown: Dict[str, int]) -> Optional[float]:
        total = sum(breakdown.values())
        if not total:
            return None
        weighted = sum(
            stars * breakdown[field]
            for stars, field in zip(range(5, 0, -1), REVIEW_BREAKDOWN_FIELDS)
        )
        return round(weighted / total, 2)
