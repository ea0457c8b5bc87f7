"""End-to-end listing gallery scrape: connect, load, open gallery, extract, filter."""

import asyncio

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from listing_gallery.config import Settings
from listing_gallery.errors import (
    ExtractionError,
    ListingValidationError,
    ScraperError,
    ScrapeTimeoutError,
)
from listing_gallery.filters.category import CategoryFilter
from listing_gallery.logging import get_logger
from listing_gallery.models import ConnectionConfig, GalleryResult, ScrapeResult
from listing_gallery.scrapers.connection import DriverFactory, open_session
from listing_gallery.scrapers.extractor import ExtractedPage, PageExtractor, dismiss_modal
from listing_gallery.scrapers.gallery import activate_gallery
from listing_gallery.scrapers.navigation import navigate, prepare_page
from listing_gallery.scrapers.scroller import LazyLoadScroller
from listing_gallery.scrapers.timing import SettleDelays
from listing_gallery.utils.urls import validate_listing_url

logger = get_logger(__name__)


class GalleryScraper:
    """Scrapes the interior photo gallery and title of a single listing.

    Each call resolves its own connection config, so concurrent scrapes with
    different proxy overrides never see each other's settings.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        delays: SettleDelays | None = None,
        driver_factory: DriverFactory = async_playwright,
        category_filter: CategoryFilter | None = None,
    ) -> None:
        """Initialize the scraper.

        Args:
            settings: Process-wide defaults.
            delays: Settle waits. Derived from settings if not provided.
            driver_factory: Factory for the browser driver context manager.
            category_filter: Filter applied to extracted images.
        """
        self._settings = settings
        self._delays = delays or SettleDelays.from_settings(settings)
        self._driver_factory = driver_factory
        self._filter = category_filter or CategoryFilter()

    async def scrape(
        self,
        url: str,
        *,
        use_proxy: bool | None = None,
        max_images: int | None = None,
    ) -> ScrapeResult:
        """Scrape a listing's gallery.

        Args:
            url: Listing URL.
            use_proxy: Per-call override of both proxy modes (None keeps defaults).
            max_images: Cap on returned images (None uses the configured default).

        Returns:
            ScrapeResult with the filtered gallery and title.

        Raises:
            ListingValidationError: Bad URL or max_images.
            BrowserConnectionError: No browser could be obtained.
            NavigationError: The page never became ready.
            ScrapeTimeoutError: The overall deadline expired.
            ProxyAuthError: Proxy credentials were rejected.
            ExtractionError: Reading the DOM failed.
        """
        if not validate_listing_url(url):
            raise ListingValidationError(f"Not a valid listing URL: {url!r}")
        limit = self._settings.max_images if max_images is None else max_images
        if limit < 1:
            raise ListingValidationError("max_images must be a positive integer")

        config = ConnectionConfig.resolve(self._settings, use_proxy=use_proxy)
        deadline = self._settings.scrape_timeout_seconds
        logger.info(
            "scrape_started",
            url=url,
            strategy=config.strategy.value,
            max_images=limit,
        )

        timeout = asyncio.timeout(deadline)
        try:
            async with timeout:
                extracted, proxy_used = await self._run(url, config)
        except TimeoutError as e:
            if timeout.expired():
                logger.error("scrape_deadline_exceeded", url=url, seconds=deadline)
                raise ScrapeTimeoutError(f"Scrape exceeded the {deadline:.0f}s deadline") from e
            raise

        images = self._filter.filter_images(extracted.images)
        result = ScrapeResult(
            url=url,
            proxy_used=proxy_used,
            data=GalleryResult.from_images(extracted.title, images, limit),
        )
        logger.info(
            "scrape_complete",
            url=url,
            extracted=len(extracted.images),
            total_images=result.data.total_images,
            returned=len(result.data.gallery),
        )
        return result

    async def _run(self, url: str, config: ConnectionConfig) -> tuple[ExtractedPage, bool]:
        """Drive one browser session from launch to extraction."""
        async with open_session(config, driver_factory=self._driver_factory) as session:
            try:
                page = await prepare_page(
                    session,
                    block_restricted_navigation=self._settings.block_restricted_navigation,
                )
                await navigate(session, url, delays=self._delays)
                await activate_gallery(page, delays=self._delays)

                scroller = LazyLoadScroller(
                    page, delays=self._delays, step_px=self._settings.scroll_step_px
                )
                try:
                    await scroller.exhaust()
                except PlaywrightError as e:
                    raise ExtractionError(f"Failed to scroll gallery content: {e}") from e

                extracted = await PageExtractor(page).extract()
                await dismiss_modal(page)
                return extracted, session.proxy_used
            except ScraperError as e:
                e.proxy_used = session.proxy_used
                raise
