"""Tests for the scrape and health API routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from listing_gallery import __version__
from listing_gallery.config import Settings
from listing_gallery.errors import ListingValidationError, NavigationError, ProxyAuthError
from listing_gallery.models import CategorizedImage, GalleryResult, ScrapeResult
from listing_gallery.web.app import create_app
from listing_gallery.web.schemas import (
    INVALID_BODY,
    INVALID_MAX_IMAGES,
    INVALID_URL,
    PROXY_SUGGESTION,
    SCRAPE_FAILED,
    URL_REQUIRED,
)

LISTING_URL = "https://www.airbnb.com/rooms/12345"


@pytest.fixture
def scrape_result() -> ScrapeResult:
    images = [
        CategorizedImage(
            url="https://a0.muscache.com/im/pictures/hosting/living-aaa.jpeg?im_w=1200",
            alt="Living room with a grey sofa",
            width=720,
            height=480,
            category="Living room",
        ),
        CategorizedImage(
            url="https://a0.muscache.com/im/pictures/hosting/bedroom-bbb.jpeg?im_w=1200",
            category="Bedroom",
        ),
    ]
    return ScrapeResult(
        url=LISTING_URL,
        proxy_used=False,
        data=GalleryResult.from_images("Bright loft near the canal", images, max_images=50),
    )


@pytest.fixture
def scraper(scrape_result: ScrapeResult) -> MagicMock:
    mock = MagicMock()
    mock.scrape = AsyncMock(return_value=scrape_result)
    return mock


@pytest.fixture
def client(app_settings: Settings, scraper: MagicMock) -> TestClient:
    app = create_app(app_settings, scraper=scraper, setup_logging=False)
    return TestClient(app)


class TestHealth:
    def test_reports_direct_connection(self, client: TestClient) -> None:
        resp = client.get("/api/health")

        assert resp.status_code == 200
        assert resp.json() == {
            "status": "OK",
            "message": "Listing Gallery API is running",
            "version": __version__,
            "proxy": {"enabled": False, "type": "Direct Connection", "host": None},
        }

    def test_reports_proxy_mode(self, app_settings: Settings, scraper: MagicMock) -> None:
        settings = app_settings.model_copy(update={"use_proxy": True})
        client = TestClient(create_app(settings, scraper=scraper, setup_logging=False))

        proxy = client.get("/api/health").json()["proxy"]

        assert proxy == {"enabled": True, "type": "HTTP Proxy", "host": "proxy.example.com:22225"}


class TestScrapeValidation:
    def test_missing_url(self, client: TestClient, scraper: MagicMock) -> None:
        resp = client.post("/api/scrape", json={})

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": URL_REQUIRED}
        scraper.scrape.assert_not_awaited()

    def test_empty_url(self, client: TestClient) -> None:
        resp = client.post("/api/scrape", json={"url": ""})
        assert resp.json()["error"] == URL_REQUIRED

    def test_not_a_listing_url(self, client: TestClient, scraper: MagicMock) -> None:
        resp = client.post("/api/scrape", json={"url": "https://example.com/rooms/1"})

        assert resp.status_code == 400
        assert resp.json()["error"] == INVALID_URL
        scraper.scrape.assert_not_awaited()

    @pytest.mark.parametrize("value", [0, -3, "abc", 2.5, True, [5]])
    def test_invalid_max_images(self, client: TestClient, value: object) -> None:
        resp = client.post("/api/scrape", json={"url": LISTING_URL, "maxImages": value})

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": INVALID_MAX_IMAGES}

    def test_malformed_json(self, client: TestClient) -> None:
        resp = client.post(
            "/api/scrape",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": INVALID_BODY}

    def test_non_object_body(self, client: TestClient) -> None:
        resp = client.post("/api/scrape", json=["https://www.airbnb.com/rooms/1"])

        assert resp.status_code == 400
        assert resp.json()["error"] == INVALID_BODY

    def test_scraper_rejection_is_bad_request(
        self, client: TestClient, scraper: MagicMock
    ) -> None:
        scraper.scrape.side_effect = ListingValidationError(
            "max_images must be a positive integer"
        )

        resp = client.post("/api/scrape", json={"url": LISTING_URL})

        assert resp.status_code == 400
        assert resp.json()["error"] == "max_images must be a positive integer"


class TestScrapeSuccess:
    def test_response_envelope(self, client: TestClient) -> None:
        resp = client.post("/api/scrape", json={"url": LISTING_URL})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["url"] == LISTING_URL
        assert body["proxyUsed"] is False
        assert body["data"]["title"] == "Bright loft near the canal"
        assert body["data"]["totalImages"] == 2
        assert body["data"]["gallery"][0] == {
            "url": "https://a0.muscache.com/im/pictures/hosting/living-aaa.jpeg?im_w=1200",
            "alt": "Living room with a grey sofa",
            "width": 720,
            "height": 480,
            "category": "Living room",
        }

    def test_defaults_passed_to_scraper(self, client: TestClient, scraper: MagicMock) -> None:
        client.post("/api/scrape", json={"url": LISTING_URL})

        scraper.scrape.assert_awaited_once_with(LISTING_URL, use_proxy=None, max_images=None)

    @pytest.mark.parametrize(("value", "expected"), [(10, 10), ("10", 10), (3.0, 3)])
    def test_max_images_parsed(
        self, client: TestClient, scraper: MagicMock, value: object, expected: int
    ) -> None:
        client.post("/api/scrape", json={"url": LISTING_URL, "maxImages": value})

        assert scraper.scrape.await_args.kwargs["max_images"] == expected

    @pytest.mark.parametrize(("value", "expected"), [(True, True), (False, False), ("yes", None)])
    def test_use_proxy_override(
        self, client: TestClient, scraper: MagicMock, value: object, expected: bool | None
    ) -> None:
        client.post("/api/scrape", json={"url": LISTING_URL, "useProxy": value})

        assert scraper.scrape.await_args.kwargs["use_proxy"] is expected


class TestScrapeFailure:
    def test_failure_envelope(self, client: TestClient, scraper: MagicMock) -> None:
        scraper.scrape.side_effect = NavigationError("Timed out after 30s loading the listing")

        resp = client.post("/api/scrape", json={"url": LISTING_URL})

        assert resp.status_code == 500
        assert resp.json() == {
            "success": False,
            "error": SCRAPE_FAILED,
            "message": "Timed out after 30s loading the listing",
        }

    def test_proxy_hint_on_auth_failure(self, client: TestClient, scraper: MagicMock) -> None:
        scraper.scrape.side_effect = ProxyAuthError("Proxy authentication failed")

        resp = client.post("/api/scrape", json={"url": LISTING_URL, "useProxy": True})

        assert resp.status_code == 500
        assert resp.json()["suggestion"] == PROXY_SUGGESTION

    def test_proxy_hint_on_network_error_code(
        self, app_settings: Settings, scraper: MagicMock
    ) -> None:
        settings = app_settings.model_copy(update={"use_managed_browser": True})
        client = TestClient(create_app(settings, scraper=scraper, setup_logging=False))
        scraper.scrape.side_effect = NavigationError("net::ERR_TUNNEL_CONNECTION_FAILED")

        resp = client.post("/api/scrape", json={"url": LISTING_URL})

        assert resp.json()["suggestion"] == PROXY_SUGGESTION

    def test_no_proxy_hint_for_direct_connection(
        self, client: TestClient, scraper: MagicMock
    ) -> None:
        scraper.scrape.side_effect = NavigationError("net::ERR_NAME_NOT_RESOLVED")

        resp = client.post("/api/scrape", json={"url": LISTING_URL})

        assert "suggestion" not in resp.json()

    def test_no_proxy_hint_when_request_disables_proxy(
        self, app_settings: Settings, scraper: MagicMock
    ) -> None:
        settings = app_settings.model_copy(update={"use_proxy": True})
        client = TestClient(create_app(settings, scraper=scraper, setup_logging=False))
        scraper.scrape.side_effect = NavigationError("net::ERR_CONNECTION_RESET")

        resp = client.post("/api/scrape", json={"url": LISTING_URL, "useProxy": False})

        assert "suggestion" not in resp.json()

    def test_no_proxy_hint_after_fallback_to_direct(
        self, app_settings: Settings, scraper: MagicMock
    ) -> None:
        settings = app_settings.model_copy(update={"use_managed_browser": True})
        client = TestClient(create_app(settings, scraper=scraper, setup_logging=False))
        error = NavigationError("net::ERR_NAME_NOT_RESOLVED")
        error.proxy_used = False
        scraper.scrape.side_effect = error

        resp = client.post("/api/scrape", json={"url": LISTING_URL, "useProxy": True})

        assert resp.status_code == 500
        assert "suggestion" not in resp.json()

    def test_unexpected_error(self, client: TestClient, scraper: MagicMock) -> None:
        scraper.scrape.side_effect = RuntimeError("boom")

        resp = client.post("/api/scrape", json={"url": LISTING_URL})

        assert resp.status_code == 500
        assert resp.json()["message"] == "boom"


class TestApp:
    def test_index(self, client: TestClient) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["endpoints"]["scrape"] == "POST /api/scrape"

    def test_security_headers(self, client: TestClient) -> None:
        resp = client.get("/api/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"

    def test_cors_preflight(self, client: TestClient) -> None:
        resp = client.options(
            "/api/scrape",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_cors_rejects_unknown_origin(self, client: TestClient) -> None:
        resp = client.get("/api/health", headers={"Origin": "https://evil.example"})
        assert "access-control-allow-origin" not in resp.headers
