"""Browser connection strategy: managed attach, proxied launch, or direct launch."""

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

from playwright.async_api import BrowserType, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from listing_gallery.errors import BrowserConnectionError
from listing_gallery.logging import get_logger
from listing_gallery.models import ConnectionConfig, ConnectionStrategy
from listing_gallery.scrapers.constants import LAUNCH_ARGS, MANAGED_CONNECT_TIMEOUT_MS
from listing_gallery.scrapers.session import PageSession

logger = get_logger(__name__)

DriverFactory = Callable[[], AbstractAsyncContextManager[Playwright]]


async def connect_browser(browser_type: BrowserType, config: ConnectionConfig) -> PageSession:
    """Obtain a controllable browser according to the connection config.

    Managed-browser mode attaches over CDP and falls back to a single local
    launch if the attach fails. HTTP-proxy mode launches locally through the
    proxy; credentials are applied later, when the page context is created.

    Args:
        browser_type: Playwright browser type (Chromium).
        config: Resolved connection settings for this scrape.

    Returns:
        An open PageSession without a page.

    Raises:
        BrowserConnectionError: If no browser could be launched.
    """
    match config.strategy:
        case ConnectionStrategy.MANAGED_BROWSER:
            logger.info("connecting_managed_browser", endpoint=config.endpoint)
            try:
                browser = await browser_type.connect_over_cdp(
                    config.managed_endpoint, timeout=MANAGED_CONNECT_TIMEOUT_MS
                )
            except PlaywrightError as e:
                logger.warning(
                    "managed_browser_attach_failed",
                    endpoint=config.endpoint,
                    error=str(e),
                    fallback="local_launch",
                )
                browser = await _launch(browser_type)
                logger.info("strategy_selected", strategy=ConnectionStrategy.DIRECT.value)
                return PageSession(browser, ConnectionStrategy.DIRECT, config)
            logger.info("strategy_selected", strategy=ConnectionStrategy.MANAGED_BROWSER.value)
            return PageSession(browser, ConnectionStrategy.MANAGED_BROWSER, config)

        case ConnectionStrategy.HTTP_PROXY:
            browser = await _launch(browser_type, proxy={"server": f"http://{config.endpoint}"})
            logger.info(
                "strategy_selected",
                strategy=ConnectionStrategy.HTTP_PROXY.value,
                proxy=config.endpoint,
            )
            return PageSession(browser, ConnectionStrategy.HTTP_PROXY, config)

        case ConnectionStrategy.DIRECT:
            browser = await _launch(browser_type)
            logger.info("strategy_selected", strategy=ConnectionStrategy.DIRECT.value)
            return PageSession(browser, ConnectionStrategy.DIRECT, config)


async def _launch(browser_type: BrowserType, *, proxy: dict[str, str] | None = None) -> Any:
    """Launch a local headless browser."""
    options: dict[str, Any] = {"headless": True, "args": list(LAUNCH_ARGS)}
    if proxy:
        options["proxy"] = proxy
    try:
        return await browser_type.launch(**options)
    except PlaywrightError as e:
        raise BrowserConnectionError(f"Failed to launch browser: {e}") from e


@asynccontextmanager
async def open_session(
    config: ConnectionConfig, *, driver_factory: DriverFactory = async_playwright
) -> AsyncIterator[PageSession]:
    """Start the browser driver and yield a connected session.

    The session and the driver are torn down on every exit path, including
    errors and cancellation.
    """
    async with driver_factory() as playwright:
        session = await connect_browser(playwright.chromium, config)
        try:
            yield session
        finally:
            await session.close()
