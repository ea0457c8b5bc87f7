"""Drive a listing page to an extraction-ready state."""

import re
from typing import Final
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Route
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from listing_gallery.errors import BrowserConnectionError, NavigationError, ProxyAuthError
from listing_gallery.logging import get_logger
from listing_gallery.models import ConnectionStrategy
from listing_gallery.scrapers.constants import (
    IMAGE_WAIT_TIMEOUT_MS,
    LOCAL_NAVIGATION_TIMEOUT_MS,
    MANAGED_NAVIGATION_TIMEOUT_MS,
    RESTRICTED_PATH_MARKERS,
    USER_AGENT,
    VIEWPORT,
)
from listing_gallery.scrapers.session import PageSession
from listing_gallery.scrapers.timing import SettleDelays

logger = get_logger(__name__)

_PROXY_AUTH_MARKERS: Final = (
    "ERR_PROXY_AUTH",
    "ERR_INVALID_AUTH_CREDENTIALS",
    "407",
)

# Route matcher form of is_restricted_url for absolute URLs: only the path,
# after the authority and before any query or fragment, is searched.
RESTRICTED_URL_PATTERN: Final = re.compile(
    r"^[^:/?#]+://[^/?#]*(?=/)[^?#]*?(?:"
    + "|".join(re.escape(marker) for marker in RESTRICTED_PATH_MARKERS)
    + ")",
    re.IGNORECASE,
)


def is_restricted_url(url: str) -> bool:
    """Check whether a URL targets a contact or host-messaging path."""
    path = urlparse(url).path.lower()
    return any(marker in path for marker in RESTRICTED_PATH_MARKERS)


async def prepare_page(session: PageSession, *, block_restricted_navigation: bool = True) -> Page:
    """Open the session's page with a desktop profile.

    Proxy credentials are only attached for a plain HTTP proxy; a managed
    browser authenticates through its endpoint URL instead.
    """
    config = session.config
    proxy: dict[str, str] | None = None
    if session.strategy is ConnectionStrategy.HTTP_PROXY and config.has_credentials:
        proxy = {
            "server": f"http://{config.endpoint}",
            "username": config.username,
            "password": config.password.get_secret_value(),
        }
        logger.debug("proxy_credentials_attached", proxy=config.endpoint)

    try:
        page = await session.new_page(
            user_agent=USER_AGENT, viewport=dict(VIEWPORT), proxy=proxy
        )
    except PlaywrightError as e:
        raise BrowserConnectionError(f"Failed to open a page: {e}") from e
    if block_restricted_navigation:
        await install_navigation_guard(page)
    return page


async def install_navigation_guard(page: Page) -> None:
    """Abort top-level navigations to restricted paths.

    Keeps an over-eager gallery click from leaving the listing page.
    """

    async def guard(route: Route) -> None:
        request = route.request
        if request.is_navigation_request() and request.frame == page.main_frame:
            logger.warning("restricted_navigation_blocked", url=request.url)
            await route.abort()
        else:
            await route.fallback()

    await page.route(RESTRICTED_URL_PATTERN, guard)


async def navigate(session: PageSession, url: str, *, delays: SettleDelays) -> None:
    """Load the listing and wait until it has rendered images.

    Args:
        session: Session whose page has been prepared.
        url: Listing URL, already validated by the caller.
        delays: Settle waits.

    Raises:
        NavigationError: On timeouts or load failures.
        ProxyAuthError: If the HTTP proxy rejected the credentials.
    """
    page = session.page
    if page is None:
        raise NavigationError("Session has no page; call prepare_page first")

    timeout = MANAGED_NAVIGATION_TIMEOUT_MS if session.is_managed else LOCAL_NAVIGATION_TIMEOUT_MS
    logger.info("navigating", url=url, timeout_s=timeout // 1000, strategy=session.strategy.value)

    try:
        response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
    except PlaywrightTimeoutError as e:
        raise NavigationError(f"Timed out after {timeout // 1000}s loading {url}: {e}") from e
    except PlaywrightError as e:
        if session.proxy_used and _is_proxy_auth_failure(str(e)):
            raise ProxyAuthError(f"Proxy authentication failed: {e}") from e
        raise NavigationError(f"Failed to load {url}: {e}") from e

    if response is not None and response.status == 407:
        raise ProxyAuthError("Proxy authentication failed: HTTP 407 from proxy")

    try:
        await page.wait_for_selector("img", state="attached", timeout=IMAGE_WAIT_TIMEOUT_MS)
    except PlaywrightTimeoutError as e:
        raise NavigationError(
            f"No images rendered within {IMAGE_WAIT_TIMEOUT_MS // 1000}s on {url}"
        ) from e

    await delays.after_navigation()
    logger.info("page_ready", url=url)


def _is_proxy_auth_failure(message: str) -> bool:
    return any(marker in message for marker in _PROXY_AUTH_MARKERS)
