"""Request bodies accepted by the HTTP API."""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ScrapeRequest(BaseModel):
    url: str
    method: str = "html"
    debug: bool = False
    persist: bool = False


class OptimizeRequest(BaseModel):
    options: Dict[str, Any]
    debug: bool = False


class GradeRequest(BaseModel):
    asset: Dict[str, Any]
    vocabulary: Optional[Dict[str, Any]] = None
