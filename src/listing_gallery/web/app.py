"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from listing_gallery.config import Settings
from listing_gallery.logging import configure_logging, get_logger
from listing_gallery.scrapers import GalleryScraper
from listing_gallery.web.schemas import INVALID_BODY, error_response

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


async def _invalid_body_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("invalid_request_body", path=request.url.path, error=str(exc))
    return error_response(400, INVALID_BODY)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", path=request.url.path, error=str(exc), exc_info=exc)
    return error_response(500, "Something went wrong!")


def create_app(
    settings: Settings | None = None,
    *,
    scraper: GalleryScraper | None = None,
    setup_logging: bool = True,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Application settings. Loaded from env if not provided.
        scraper: Scraper used by the routes. Built from settings if not provided.
        setup_logging: Configure structlog from settings.
    """
    if settings is None:
        settings = Settings()
    if setup_logging:
        configure_logging(json_output=settings.log_json, level=settings.log_level)
    gallery_scraper = scraper or GalleryScraper(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.settings = settings
        app.state.scraper = gallery_scraper
        status = settings.proxy_status()
        logger.info(
            "web_server_started",
            proxy_enabled=status.enabled,
            proxy_type=status.type,
            proxy_host=status.host,
        )
        yield
        logger.info("web_server_stopped")

    app = FastAPI(title="Listing Gallery", lifespan=lifespan)
    app.state.settings = settings
    app.state.scraper = gallery_scraper

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=600,
    )

    app.add_exception_handler(RequestValidationError, _invalid_body_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    @app.get("/")
    async def index() -> dict[str, object]:
        return {
            "message": "Listing Gallery API",
            "endpoints": {"scrape": "POST /api/scrape", "health": "GET /api/health"},
        }

    from listing_gallery.web.routes import router

    app.include_router(router)

    return app
