"""Utility helpers for turning scraped text into typed values."""

from __future__ import annotations

import copy
import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

_PRICE_RE = re.compile(r"\$?([\d,]+\.?\d*)")
_INT_RE = re.compile(r"([\d,]+)")
_WORD_START_RE = re.compile(r"\b\w")


class TextUtils:
    """Collection of static helpers for dealing with Asset Store strings."""

    @staticmethod
    def parse_price(text: Optional[str]) -> Optional[float]:
        """Return the listed price in dollars.

        "Free" listings map to 0. Anything without a number yields None.
        """
        if not text:
            return None
        if "free" in text.lower():
            return 0
        match = _PRICE_RE.search(text)
        if not match:
            return None
        try:
            return float(match.group(1).replace(",", ""))
        except ValueError:
            logger.debug("Unparseable price text: %s", text)
            return None

    @staticmethod
    def parse_int(text: Optional[str], default: Optional[int] = None) -> Optional[int]:
        """Return the first integer in *text* ("1,234 reviews" -> 1234)."""
        if not text:
            return default
        match = _INT_RE.search(text)
        if not match:
            return default
        digits = match.group(1).replace(",", "")
        return int(digits) if digits else default

    @staticmethod
    def parse_float(text: Optional[str]) -> Optional[float]:
        if text is None:
            return None
        try:
            return float(text)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def humanize_slug(slug: str) -> str:
        """'3d-props' -> '3d Props', 'tools' -> 'Tools'."""
        return _WORD_START_RE.sub(lambda m: m.group(0).upper(), slug.replace("-", " "))

    @staticmethod
    def html_to_text(markup: Optional[str]) -> str:
        """Flatten description HTML into readable plain text.

        Paragraphs become blank-line separated, list items become bullets.
        """
        if not markup:
            return ""
        return TextUtils.node_to_text(BeautifulSoup(markup, "html.parser"))

    @staticmethod
    def node_to_text(node: Tag) -> str:
        """Same as `html_to_text` for an already parsed node; *node* is left untouched."""
        node = copy.copy(node)
        for br in node.find_all("br"):
            br.replace_with("\n")
        for li in node.find_all("li"):
            li.insert(0, "• ")
            li.append("\n")
        for p in node.find_all("p"):
            p.append("\n\n")
        for div in node.find_all("div"):
            div.append("\n")
        text = node.get_text().replace("\xa0", " ")
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r" *\n[ \t]*", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    @staticmethod
    def format_file_size(size_in_bytes) -> Optional[str]:
        """Human readable size with one decimal, e.g. 2411724 -> '2.3 MB'."""
        if not size_in_bytes:
            return None
        try:
            size = int(size_in_bytes)
        except (TypeError, ValueError):
            return None
        if size < 1024:
            return f"{size} B"
        if size < 1024**2:
            return f"{size / 1024:.1f} KB"
        if size < 1024**3:
            return f"{size / 1024 ** 2:.1f} MB"
        return f"{size / 1024 ** 3:.1f} GB"
