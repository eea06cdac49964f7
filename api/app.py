"""HTTP API: listing scraping, category guidance and optimizer forwarding.

Run with ``uvicorn api.app:app``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
from urllib.parse import urlsplit

import httpx
import pytz
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from categories import (
    SUGGESTION_KINDS,
    CategoryNotFoundError,
    CategoryRepository,
)
from clients import OPTIMIZABLE_FIELDS, OptimizerClient, close_client, get_optimizer_client
from core.config import SCRAPE_METHODS, settings
from db.database import get_db, init_db, upsert_asset
from tools.scraping.service import AssetScraperService
from tools.scraping.urls import is_asset_store_url
from .schemas import GradeRequest, OptimizeRequest, ScrapeRequest

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_HOSTS = (
    "assetstorev1-prd-cdn.unity3d.com",
    "cdn.unity3d.com",
    "connect-prd-cdn.unity.com",
    "assetstore-keyimage.unity.com",
)
IMAGE_CACHE_CONTROL = "public, max-age=3600, s-maxage=86400, stale-while-revalidate=604800"
IMAGE_PASSTHROUGH_HEADERS = ("etag", "last-modified")
IMAGE_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "image/webp,image/apng,image/*,*/*;q=0.8",
    "Referer": "https://assetstore.unity.com/",
}

_scraper_service: Optional[AssetScraperService] = None
_category_repository: Optional[CategoryRepository] = None
_image_client: Optional[httpx.AsyncClient] = None


def get_scraper_service() -> AssetScraperService:
    global _scraper_service
    if _scraper_service is None:
        _scraper_service = AssetScraperService()
    return _scraper_service


def get_category_repository() -> CategoryRepository:
    global _category_repository
    if _category_repository is None:
        _category_repository = CategoryRepository(settings.CATEGORY_DATA_DIR)
    return _category_repository


def get_image_client() -> httpx.AsyncClient:
    global _image_client
    if _image_client is None:
        _image_client = httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT_SECONDS, follow_redirects=True
        )
    return _image_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    global _scraper_service, _image_client
    if _scraper_service is not None:
        await _scraper_service.close()
        _scraper_service = None
    if _image_client is not None:
        await _image_client.aclose()
        _image_client = None
    await close_client()


app = FastAPI(title="Asset Store Listing API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "HEAD", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors and errors[0].get("type") == "json_invalid":
        return error_response(400, "Invalid JSON in request body")
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return error_response(400, "; ".join(messages) or "Invalid request")


@app.exception_handler(CategoryNotFoundError)
async def category_not_found_handler(request: Request, exc: CategoryNotFoundError):
    return error_response(404, str(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=True
    )
    return error_response(500, str(exc) or "Internal server error")


@app.get("/health", response_class=PlainTextResponse)
async def health():
    return "OK"


@app.get("/scrape")
async def scrape_docs():
    return {
        "endpoint": "/scrape",
        "method": "POST",
        "description": "Scrape asset data from a Unity Asset Store URL",
        "parameters": {
            "url": {
                "type": "string",
                "required": True,
                "description": "Unity Asset Store URL (must contain assetstore.unity.com/packages/)",
            },
            "method": {
                "type": "string",
                "required": False,
                "default": "html",
                "enum": list(SCRAPE_METHODS),
            },
            "debug": {"type": "boolean", "required": False, "default": False},
            "persist": {"type": "boolean", "required": False, "default": False},
        },
        "scraping_methods": {
            "html": "Static HTML only; fast, no browser, limited to server-rendered content",
            "graphql": "Storefront GraphQL API; fast, no browser, includes the star breakdown",
            "puppeteer": "Headless Chromium; complete data including client-rendered content",
            "fallback": "GraphQL first, then headless Chromium, then static HTML",
        },
    }


@app.post("/scrape")
async def scrape(
    body: ScrapeRequest,
    service: AssetScraperService = Depends(get_scraper_service),
    repository: CategoryRepository = Depends(get_category_repository),
    db: Session = Depends(get_db),
):
    if body.method not in SCRAPE_METHODS:
        return error_response(400, f"Method must be one of: {', '.join(SCRAPE_METHODS)}")
    if not is_asset_store_url(body.url):
        return error_response(400, "URL must be a valid Unity Asset Store URL")

    if body.debug:
        logger.info("Using %s scraping method for URL: %s", body.method, body.url)

    result = await service.scrape_asset(body.url, method=body.method)
    if not result.success:
        return error_response(500, result.error or "Scraping failed")

    if body.persist:
        upsert_asset(db, result.asset, result.method)

    category = repository.for_asset_url(body.url)
    return {
        "success": True,
        "asset": result.asset.to_dict(),
        "scraping_method": result.method,
        "category_slug": category.slug if category else None,
        "scraped_at": datetime.now(pytz.UTC).isoformat(),
    }


@app.post("/optimize")
async def optimize(
    body: OptimizeRequest,
    field: Optional[str] = Query(default=None),
    client: OptimizerClient = Depends(get_optimizer_client),
):
    if field is not None and field not in OPTIMIZABLE_FIELDS:
        return error_response(
            400, f"Invalid field: {field}. Valid fields are: {', '.join(OPTIMIZABLE_FIELDS)}"
        )
    if field is not None and not body.options.get("assetData"):
        return error_response(400, "assetData is required for field generation")

    if body.debug:
        logger.info("Optimizing %s", f"field {field}" if field else "all fields")

    try:
        if field:
            return await client.optimize_field(field, body.options)
        return await client.optimize(body.options)
    except httpx.HTTPError as exc:
        return error_response(502, f"Optimizer request failed: {exc}")


@app.post("/grade")
async def grade(
    body: GradeRequest,
    client: OptimizerClient = Depends(get_optimizer_client),
):
    try:
        return await client.grade(body.asset, body.vocabulary)
    except httpx.HTTPError as exc:
        return error_response(502, f"Optimizer request failed: {exc}")


@app.get("/categories")
async def list_categories(repository: CategoryRepository = Depends(get_category_repository)):
    return [summary.model_dump(by_alias=True) for summary in repository.list_categories()]


@app.get("/categories/{slug}")
async def get_category(slug: str, repository: CategoryRepository = Depends(get_category_repository)):
    return repository.get(slug).model_dump(by_alias=True)


@app.get("/categories/{slug}/suggestions")
async def get_suggestions(
    slug: str,
    kind: str = Query(default="tags"),
    repository: CategoryRepository = Depends(get_category_repository),
):
    if kind not in SUGGESTION_KINDS:
        return error_response(400, f"kind must be one of: {', '.join(SUGGESTION_KINDS)}")
    return {"slug": slug, "kind": kind, "suggestions": repository.suggestions(slug, kind)}


def _image_url_error(url: str) -> Optional[JSONResponse]:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return error_response(400, "Invalid image URL")
    if not any(
        parts.hostname == host or parts.hostname.endswith("." + host)
        for host in ALLOWED_IMAGE_HOSTS
    ):
        return error_response(403, "Image host not allowed")
    return None


def _is_image(upstream: httpx.Response) -> bool:
    return upstream.headers.get("content-type", "").lower().startswith("image/")


def _image_headers(upstream: httpx.Response) -> dict:
    headers = {"Cache-Control": IMAGE_CACHE_CONTROL}
    for name in IMAGE_PASSTHROUGH_HEADERS:
        if name in upstream.headers:
            headers[name] = upstream.headers[name]
    return headers


@app.get("/proxy/image")
async def proxy_image(
    url: str = Query(...),
    client: httpx.AsyncClient = Depends(get_image_client),
):
    invalid = _image_url_error(url)
    if invalid is not None:
        return invalid

    request = client.build_request("GET", url, headers=IMAGE_HEADERS)
    try:
        upstream = await client.send(request, stream=True)
    except httpx.HTTPError as exc:
        logger.error("Image proxy request for %s failed: %s", url, exc)
        return error_response(502, "Failed to fetch image")

    if upstream.status_code >= 400:
        await upstream.aclose()
        return error_response(upstream.status_code, "Failed to fetch image")
    if not _is_image(upstream):
        await upstream.aclose()
        return error_response(400, "URL does not point to a valid image")

    # The upstream connection stays open until the body is fully relayed.
    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type=upstream.headers["content-type"],
        headers=_image_headers(upstream),
        background=BackgroundTask(upstream.aclose),
    )


@app.head("/proxy/image")
async def proxy_image_head(
    url: str = Query(...),
    client: httpx.AsyncClient = Depends(get_image_client),
):
    invalid = _image_url_error(url)
    if invalid is not None:
        return Response(status_code=invalid.status_code)

    try:
        upstream = await client.head(url, headers=IMAGE_HEADERS)
    except httpx.HTTPError as exc:
        logger.error("Image proxy HEAD request for %s failed: %s", url, exc)
        return Response(status_code=502)

    if upstream.status_code >= 400:
        return Response(status_code=upstream.status_code)
    if not _is_image(upstream):
        return Response(status_code=400)

    headers = _image_headers(upstream)
    if "content-length" in upstream.headers:
        headers["Content-Length"] = upstream.headers["content-length"]
    return Response(media_type=upstream.headers["content-type"], headers=headers)
