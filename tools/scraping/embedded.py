"""Locate the listing state that the Asset Store embeds in its page source.

The server-rendered page carries a JSON object keyed by the package id,
``"12345": {...}``. Pulling it out by brace matching is far more reliable
than the obfuscated CSS class names.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _matching_brace(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def find_embedded_asset_json(html: str, asset_id: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the embedded JSON object for *asset_id*, or None."""
    if not html or not asset_id:
        return None

    marker = f'"{asset_id}": {{'
    start = html.find(marker)
    if start == -1:
        marker = f'"{asset_id}":{{'
        start = html.find(marker)
    if start == -1:
        logger.debug("No embedded JSON block for asset %s", asset_id)
        return None

    brace = start + len(marker) - 1
    end = _matching_brace(html, brace)
    if end is None:
        logger.warning("Unbalanced embedded JSON block for asset %s", asset_id)
        return None

    try:
        data = json.loads(html[brace : end + 1])
    except ValueError as exc:
        logger.warning("Failed to parse embedded JSON for asset %s: %s", asset_id, exc)
        return None
    return data if isinstance(data, dict) else None
