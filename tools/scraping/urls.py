"""Helpers for Unity Asset Store listing URLs."""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urlsplit

import validators

from models import UNKNOWN_CATEGORY
from tools.utils.text_helpers import TextUtils

ASSET_STORE_MARKER = "assetstore.unity.com/packages/"

_ID_IN_PATH_RE = re.compile(r"/packages/[^/]+/[^/]+/(\d+)")
_ID_SUFFIX_RE = re.compile(r"-(\d+)$")
_CATEGORY_RE = re.compile(r"/packages/([^/]+)/")


def _normalise(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}".rstrip("/")


def is_asset_store_url(url) -> bool:
    """Return True for a well-formed Unity Asset Store listing URL."""
    if not isinstance(url, str) or not validators.url(url):
        return False
    return ASSET_STORE_MARKER in url


def extract_asset_id(url: str) -> Optional[str]:
    url = _normalise(url)
    match = _ID_IN_PATH_RE.search(url) or _ID_SUFFIX_RE.search(url)
    return match.group(1) if match else None


def extract_category(url: str) -> str:
    """Top level category from the URL path ('tools' -> 'Tools')."""
    match = _CATEGORY_RE.search(_normalise(url))
    if not match:
        return UNKNOWN_CATEGORY
    return TextUtils.humanize_slug(match.group(1))


def _category_segments(url: str) -> List[str]:
    path = urlsplit(url).path.strip("/")
    segments = path.split("/")
    if "packages" not in segments:
        return []
    # The last segment is the listing slug itself.
    return segments[segments.index("packages") + 1 : -1]


def extract_category_slug(url: str) -> Optional[str]:
    """'/packages/tools/camera/cinemachine-123' -> 'tools-camera'."""
    segments = _category_segments(url)
    return "-".join(segments) if segments else None


def category_slug_candidates(url: str) -> List[str]:
    """Most specific first: tools-camera, tools."""
    segments = _category_segments(url)
    return ["-".join(segments[:n]) for n in range(len(segments), 0, -1)]
