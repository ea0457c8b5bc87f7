"""Heuristics for opening a listing's full photo gallery."""

import re
from dataclasses import dataclass
from typing import Any, Final
from urllib.parse import urlparse

from playwright.async_api import Page

from listing_gallery.logging import get_logger
from listing_gallery.scrapers.constants import CLICKABLE_SELECTOR, PHOTO_TRIGGER_SELECTORS
from listing_gallery.scrapers.navigation import is_restricted_url
from listing_gallery.scrapers.timing import SettleDelays

logger = get_logger(__name__)

_PHOTO_WORDS: Final = re.compile(r"\b(photos?|pictures?|fotos?)\b", re.IGNORECASE)
_CLICK_TIMEOUT_MS: Final = 5_000

# Runs in the page: one round trip describes every element matching a selector
_DESCRIBE_ELEMENTS_JS: Final = """
elements => elements.map(el => ({
    text: (el.innerText || el.textContent || '').trim().slice(0, 200),
    ariaLabel: el.getAttribute('aria-label') || '',
    href: el.getAttribute('href') || '',
    visible: !!(el.offsetWidth || el.offsetHeight || el.getClientRects().length),
}))
"""


@dataclass(frozen=True)
class TriggerCandidate:
    """A clickable element judged to open the photo gallery."""

    selector: str
    index: int
    text: str
    aria_label: str
    href: str


def is_photo_trigger(text: str, aria_label: str, href: str) -> bool:
    """Decide whether an element's text, label or link expresses photo intent.

    Links into contact or host-messaging pages never qualify, whatever their
    wording.
    """
    if href and is_restricted_url(href):
        return False
    if _PHOTO_WORDS.search(text or "") or _PHOTO_WORDS.search(aria_label or ""):
        return True
    return bool(href) and "/photos" in urlparse(href).path.lower()


def pick_trigger(selector: str, descriptors: list[dict[str, Any]]) -> TriggerCandidate | None:
    """Return the first visible descriptor satisfying the photo-intent predicate."""
    for index, desc in enumerate(descriptors):
        if not desc.get("visible", True):
            continue
        text = desc.get("text") or ""
        aria_label = desc.get("ariaLabel") or ""
        href = desc.get("href") or ""
        if is_photo_trigger(text, aria_label, href):
            return TriggerCandidate(selector, index, text, aria_label, href)
    return None


async def find_photo_trigger(page: Page) -> TriggerCandidate | None:
    """Try the specific photo selectors first, then every clickable element."""
    for selector in (*PHOTO_TRIGGER_SELECTORS, CLICKABLE_SELECTOR):
        descriptors = await page.eval_on_selector_all(selector, _DESCRIBE_ELEMENTS_JS)
        candidate = pick_trigger(selector, descriptors)
        if candidate is not None:
            return candidate
    return None


async def activate_gallery(page: Page, *, delays: SettleDelays) -> bool:
    """Try to open the full-gallery view.

    Best effort: a missing trigger is a normal outcome and any failure is
    logged, never raised.

    Returns:
        True if a trigger was clicked.
    """
    try:
        candidate = await find_photo_trigger(page)
        if candidate is None:
            logger.info("gallery_trigger_not_found")
            return False
        await page.locator(candidate.selector).nth(candidate.index).click(
            timeout=_CLICK_TIMEOUT_MS
        )
        logger.info(
            "gallery_trigger_clicked",
            selector=candidate.selector,
            text=candidate.text[:50],
            aria_label=candidate.aria_label,
        )
        await delays.after_modal_open()
        return True
    except Exception as e:
        logger.warning("gallery_activation_failed", error=str(e))
        return False
