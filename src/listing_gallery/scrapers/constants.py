"""Shared constants for the headless-browser listing scraper."""

from typing import Final

USER_AGENT: Final = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
VIEWPORT: Final = {"width": 1920, "height": 1080}

# Needed for unprivileged containers and to hide navigator.webdriver
LAUNCH_ARGS: Final = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
)

# Timeouts in milliseconds (Playwright convention)
MANAGED_CONNECT_TIMEOUT_MS: Final = 2 * 60 * 1000
MANAGED_NAVIGATION_TIMEOUT_MS: Final = 2 * 60 * 1000
LOCAL_NAVIGATION_TIMEOUT_MS: Final = 30_000
IMAGE_WAIT_TIMEOUT_MS: Final = 15_000

# Media CDN and URL fragments that mark avatars or UI assets
MEDIA_HOST_MARKER: Final = "muscache.com"
EXCLUDED_IMAGE_MARKERS: Final = ("profile", "user", "platform-assets")

MODAL_SELECTOR: Final = '[role="dialog"], [aria-modal="true"]'
SLIDE_SELECTOR: Final = '[role="group"], [data-testid*="photo-viewer-section"]'

PHOTO_TRIGGER_SELECTORS: Final = (
    'button[aria-label*="photo" i]',
    '[data-testid*="photo" i] button',
    'button[data-testid*="photo" i]',
    'a[href*="/photos"]',
    '[aria-label*="show all" i]',
)
CLICKABLE_SELECTOR: Final = 'button, [role="button"], a'

# Top-level navigations the gallery heuristic must never follow
RESTRICTED_PATH_MARKERS: Final = ("contact_host", "/contact", "/messaging")
