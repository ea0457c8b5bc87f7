"""Shared pytest fixtures."""

import os
import sys
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import HealthCheck, settings

from listing_gallery.config import Settings
from listing_gallery.scrapers.timing import SettleDelays

_SETTINGS_ENV_VARS = (
    "USE_PROXY",
    "USE_MANAGED_BROWSER",
    "PROXY_HOST",
    "PROXY_PORT",
    "PROXY_USERNAME",
    "PROXY_PASSWORD",
    "MAX_IMAGES",
    "SCRAPE_TIMEOUT_SECONDS",
    "CORS_ORIGINS",
    "LOG_LEVEL",
    "LOG_JSON",
)


def pytest_configure(config: pytest.Config) -> None:
    """Force line-buffered stdout when piped."""
    if hasattr(sys.stdout, "reconfigure") and not sys.stdout.isatty():
        sys.stdout.reconfigure(line_buffering=True)


# Hypothesis settings profiles for different environments
settings.register_profile("fast", max_examples=25)
settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "fast"))


@pytest.fixture(autouse=True)
def _isolate_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prevent a local .env file or exported proxy variables from leaking into tests."""
    monkeypatch.setattr(
        Settings,
        "model_config",
        {**Settings.model_config, "env_file": None},
    )
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixtures_path() -> Path:
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def gallery_html(fixtures_path: Path) -> str:
    """Listing page with an open gallery modal: 3 interior and 2 balcony photos."""
    return (fixtures_path / "listing_gallery_modal.html").read_text()


@pytest.fixture
def no_modal_html(fixtures_path: Path) -> str:
    """Listing page without a gallery modal."""
    return (fixtures_path / "listing_no_modal.html").read_text()


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        proxy_host="proxy.example.com",
        proxy_port=22225,
        proxy_username="customer-1",
        proxy_password="s3cret",
        max_images=50,
    )


@pytest.fixture
def no_delays() -> SettleDelays:
    return SettleDelays.none()


def make_browser_page(
    html: str = "<html></html>",
    heights: tuple[int, ...] = (2000,),
    photo_counts: tuple[int, ...] = (5,),
) -> MagicMock:
    """Fake Playwright page covering every call the pipeline makes.

    ``photo_counts`` are the listing photos per open dialog, in document order.
    """
    page = MagicMock(name="page")
    page.main_frame = MagicMock(name="main_frame")
    page.route = AsyncMock()
    page.goto = AsyncMock(return_value=SimpleNamespace(status=200))
    page.wait_for_selector = AsyncMock()
    page.eval_on_selector_all = AsyncMock(
        return_value=[{"text": "Show all photos", "ariaLabel": "", "href": "", "visible": True}]
    )
    trigger = MagicMock(name="trigger")
    trigger.click = AsyncMock()
    page.locator.return_value.nth.return_value = trigger
    page.content = AsyncMock(return_value=html)
    page.keyboard.press = AsyncMock()

    remaining = list(heights)

    async def evaluate(script: str, arg: Any = None) -> Any:
        if "countPhotos" in script:
            return list(photo_counts)
        if "scrollBy(" in script or "scrollTo(" in script:
            return None
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    page.evaluate = AsyncMock(side_effect=evaluate)
    return page


def make_browser(page: MagicMock) -> MagicMock:
    browser = MagicMock(name="browser")
    context = MagicMock(name="context")
    context.new_page = AsyncMock(return_value=page)
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    return browser


def make_browser_type(browser: MagicMock) -> MagicMock:
    browser_type = MagicMock(name="chromium")
    browser_type.launch = AsyncMock(return_value=browser)
    browser_type.connect_over_cdp = AsyncMock(return_value=browser)
    return browser_type


def make_driver_factory(
    browser_type: MagicMock,
) -> Callable[[], AbstractAsyncContextManager[Any]]:
    """Stand-in for ``async_playwright`` yielding the fake browser type."""

    @asynccontextmanager
    async def driver() -> AsyncIterator[Any]:
        yield SimpleNamespace(chromium=browser_type)

    return driver


@pytest.fixture
def fake_page() -> Callable[..., MagicMock]:
    return make_browser_page


@pytest.fixture
def fake_browser() -> Callable[[MagicMock], MagicMock]:
    return make_browser


@pytest.fixture
def fake_browser_type() -> Callable[[MagicMock], MagicMock]:
    return make_browser_type


@pytest.fixture
def fake_driver_factory() -> Callable[[MagicMock], Callable[[], AbstractAsyncContextManager[Any]]]:
    return make_driver_factory
