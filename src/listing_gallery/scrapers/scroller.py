"""Exhaust lazily loaded gallery content by scrolling until the height settles."""

import json
from typing import Final

from playwright.async_api import Page

from listing_gallery.logging import get_logger
from listing_gallery.scrapers.constants import (
    EXCLUDED_IMAGE_MARKERS,
    MEDIA_HOST_MARKER,
    MODAL_SELECTOR,
)
from listing_gallery.scrapers.extractor import pick_gallery_modal
from listing_gallery.scrapers.timing import SettleDelays

logger = get_logger(__name__)

# Listing photos per open dialog, in document order. Mirrors
# is_qualifying_image_url so the scroller and the extractor agree on the gallery.
_COUNT_DIALOG_PHOTOS_JS: Final = """
() => {
    const host = %s;
    const excluded = %s;
    const countPhotos = dialog => [...dialog.querySelectorAll('img')].filter(img => {
        const url = img.currentSrc || img.getAttribute('src')
            || img.getAttribute('data-src') || '';
        const path = url.split('?')[0].toLowerCase();
        return url.includes(host) && !excluded.some(marker => path.includes(marker));
    }).length;
    return [...document.querySelectorAll(%s)].map(countPhotos);
}
""" % (
    json.dumps(MEDIA_HOST_MARKER),
    json.dumps(list(EXCLUDED_IMAGE_MARKERS)),
    json.dumps(MODAL_SELECTOR),
)

# Scroll surface for the chosen dialog: its first scrollable node, the dialog
# itself, or the document when no dialog was chosen.
_SCROLL_TARGET_JS: Final = """
index => {
    const modal = index === null ? null : document.querySelectorAll(%s)[index];
    if (modal) {
        for (const node of [modal, ...modal.querySelectorAll('*')]) {
            const overflow = getComputedStyle(node).overflowY;
            if ((overflow === 'auto' || overflow === 'scroll')
                    && node.scrollHeight > node.clientHeight) {
                return node;
            }
        }
        return modal;
    }
    return document.scrollingElement || document.body;
}
""" % json.dumps(MODAL_SELECTOR)

_MEASURE_JS: Final = f"index => ({_SCROLL_TARGET_JS})(index).scrollHeight"
_SCROLL_BY_JS: Final = f"([index, step]) => ({_SCROLL_TARGET_JS})(index).scrollBy(0, step)"
_RESET_JS: Final = f"index => ({_SCROLL_TARGET_JS})(index).scrollTo(0, 0)"


class LazyLoadScroller:
    """Scrolls the gallery surface in fixed steps until nothing new loads."""

    def __init__(self, page: Page, *, delays: SettleDelays, step_px: int = 1000) -> None:
        """Initialize the scroller.

        Args:
            page: Page to scroll.
            delays: Settle waits applied after each step and after the reset.
            step_px: Pixels scrolled per step.
        """
        self._page = page
        self._delays = delays
        self._step_px = step_px

    async def find_gallery_dialog(self) -> int | None:
        """Index of the open dialog holding the most listing photos, if any."""
        counts = await self._page.evaluate(_COUNT_DIALOG_PHOTOS_JS)
        return pick_gallery_modal([int(count) for count in counts or []])

    async def _measure(self, dialog: int | None) -> int:
        return int(await self._page.evaluate(_MEASURE_JS, dialog))

    async def exhaust(self) -> int:
        """Scroll until two consecutive height measurements are equal.

        There is no iteration cap: convergence is the only exit, bounded by
        the listing's finite content.

        Returns:
            Number of scroll cycles performed.
        """
        dialog = await self.find_gallery_dialog()
        previous = await self._measure(dialog)
        cycles = 0
        while True:
            await self._page.evaluate(_SCROLL_BY_JS, [dialog, self._step_px])
            await self._delays.after_scroll_step()
            cycles += 1
            current = await self._measure(dialog)
            if current <= previous:
                break
            previous = current

        await self._page.evaluate(_RESET_JS, dialog)
        await self._delays.after_scroll_reset()
        logger.info(
            "lazy_load_exhausted",
            cycles=cycles,
            scroll_height=previous,
            surface="document" if dialog is None else f"dialog[{dialog}]",
        )
        return cycles
