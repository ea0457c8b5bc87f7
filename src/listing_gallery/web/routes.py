"""Scrape API routes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from listing_gallery import __version__
from listing_gallery.config import Settings
from listing_gallery.errors import ListingValidationError, ProxyAuthError, ScraperError
from listing_gallery.logging import get_logger
from listing_gallery.models import ConnectionConfig
from listing_gallery.scrapers import GalleryScraper
from listing_gallery.utils.urls import validate_listing_url
from listing_gallery.web.schemas import (
    INVALID_MAX_IMAGES,
    INVALID_URL,
    PROXY_SUGGESTION,
    SCRAPE_FAILED,
    URL_REQUIRED,
    ScrapeRequest,
    error_response,
    parse_max_images,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


def _get_scraper(request: Request) -> GalleryScraper:
    return request.app.state.scraper  # type: ignore[no-any-return]


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def _wants_proxy_hint(error: Exception, requested_proxy: bool) -> bool:
    """Hint at proxy trouble only if the connection in effect used one.

    A managed attach that fell back to a direct launch reports no proxy.
    """
    proxy_used = error.proxy_used if isinstance(error, ScraperError) else None
    if proxy_used is None:
        proxy_used = requested_proxy
    return proxy_used and (isinstance(error, ProxyAuthError) or "ERR_" in str(error))


@router.post("/scrape")
async def scrape_listing(body: ScrapeRequest, request: Request) -> JSONResponse:
    """Scrape a listing's interior photo gallery."""
    logger.info(
        "api_scrape_requested",
        url=body.url,
        use_proxy=body.use_proxy,
        max_images=body.max_images,
    )

    if not body.url:
        return error_response(400, URL_REQUIRED)
    if not validate_listing_url(body.url):
        return error_response(400, INVALID_URL)
    try:
        max_images = parse_max_images(body.max_images)
    except ValueError:
        return error_response(400, INVALID_MAX_IMAGES)

    use_proxy = body.proxy_override()
    settings = _get_settings(request)
    requested_proxy = ConnectionConfig.resolve(settings, use_proxy=use_proxy).strategy.uses_proxy

    try:
        result = await _get_scraper(request).scrape(
            body.url, use_proxy=use_proxy, max_images=max_images
        )
    except ListingValidationError as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.error(
            "api_scrape_failed",
            url=body.url,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        extra: dict[str, str] = {"message": str(e)}
        if _wants_proxy_hint(e, requested_proxy):
            extra["suggestion"] = PROXY_SUGGESTION
        return error_response(500, SCRAPE_FAILED, **extra)

    logger.info(
        "api_scrape_succeeded",
        url=body.url,
        title=result.data.title[:50],
        images=len(result.data.gallery),
    )
    return JSONResponse({"success": True, **result.model_dump(mode="json", by_alias=True)})


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    """Report service status and the default connection mode."""
    settings = _get_settings(request)
    return JSONResponse(
        {
            "status": "OK",
            "message": "Listing Gallery API is running",
            "version": __version__,
            "proxy": settings.proxy_status().model_dump(),
        }
    )
