"""Exceptions raised by the scraping pipeline."""


class ScraperError(Exception):
    """Base class for scrape failures surfaced to callers.

    Attributes:
        proxy_used: Whether the connection in effect when the failure happened
            went through a proxy. None if no browser session was open.
    """

    proxy_used: bool | None = None


class ListingValidationError(ScraperError):
    """The listing URL or request parameters were rejected before scraping."""


class BrowserConnectionError(ScraperError):
    """No browser could be launched or attached."""


class NavigationError(ScraperError):
    """The page never reached an extraction-ready state."""


class ScrapeTimeoutError(NavigationError):
    """The overall scrape deadline expired."""


class ProxyAuthError(ScraperError):
    """The HTTP proxy rejected the configured credentials."""


class ExtractionError(ScraperError):
    """Reading images or title from the page failed unexpectedly."""
