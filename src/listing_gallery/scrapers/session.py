"""Scoped ownership of one browser and one page for a single scrape."""

from dataclasses import dataclass, field
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page
from playwright.async_api import Error as PlaywrightError

from listing_gallery.logging import get_logger
from listing_gallery.models import ConnectionConfig, ConnectionStrategy

logger = get_logger(__name__)


@dataclass
class PageSession:
    """Exclusive owner of a browser instance and its single page.

    ``strategy`` is the strategy actually in effect, which differs from the
    requested one when a managed-browser attach fell back to a local launch.
    """

    browser: Browser
    strategy: ConnectionStrategy
    config: ConnectionConfig
    context: BrowserContext | None = None
    page: Page | None = None
    _closed: bool = field(default=False, repr=False)

    @property
    def is_managed(self) -> bool:
        return self.strategy is ConnectionStrategy.MANAGED_BROWSER

    @property
    def proxy_used(self) -> bool:
        return self.strategy.uses_proxy

    async def new_page(
        self,
        *,
        user_agent: str,
        viewport: dict[str, int],
        proxy: dict[str, str] | None = None,
    ) -> Page:
        """Open the session's page in a fresh browser context.

        Args:
            user_agent: User agent string for the context.
            viewport: Fixed viewport size.
            proxy: Context-level proxy settings (server plus credentials).

        Returns:
            The newly created page.
        """
        if self.page is not None:
            raise RuntimeError("PageSession already owns a page")
        options: dict[str, Any] = {"user_agent": user_agent, "viewport": viewport}
        if proxy:
            options["proxy"] = proxy
        self.context = await self.browser.new_context(**options)
        self.page = await self.context.new_page()
        return self.page

    async def close(self) -> None:
        """Close the browser. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.browser.close()
        except PlaywrightError as e:
            # A dead browser must not mask the error that triggered teardown
            logger.warning("browser_close_failed", strategy=self.strategy.value, error=str(e))
        else:
            logger.debug("browser_closed", strategy=self.strategy.value)
