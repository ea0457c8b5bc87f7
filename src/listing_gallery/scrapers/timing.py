"""Named settle waits used between browser interactions."""

import asyncio
from dataclasses import dataclass
from typing import Self

from listing_gallery.config import Settings


@dataclass(frozen=True)
class SettleDelays:
    """Fixed delays that give client-side rendering time to catch up.

    Each wait is a named step so it can be swapped for a condition-based wait
    or set to zero in tests.
    """

    navigation: float = 5.0
    modal_open: float = 4.0
    scroll_step: float = 1.5
    scroll_reset: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(
            navigation=settings.navigation_settle_seconds,
            modal_open=settings.modal_settle_seconds,
            scroll_step=settings.scroll_settle_seconds,
            scroll_reset=min(1.0, settings.scroll_settle_seconds),
        )

    @classmethod
    def none(cls) -> Self:
        """All waits disabled."""
        return cls(navigation=0.0, modal_open=0.0, scroll_step=0.0, scroll_reset=0.0)

    async def after_navigation(self) -> None:
        await _sleep(self.navigation)

    async def after_modal_open(self) -> None:
        await _sleep(self.modal_open)

    async def after_scroll_step(self) -> None:
        await _sleep(self.scroll_step)

    async def after_scroll_reset(self) -> None:
        await _sleep(self.scroll_reset)


async def _sleep(seconds: float) -> None:
    if seconds > 0:
        await asyncio.sleep(seconds)
