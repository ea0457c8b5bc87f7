"""Pydantic models for connection settings and extracted galleries."""

from enum import Enum
from typing import TYPE_CHECKING, Final, Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

if TYPE_CHECKING:
    from listing_gallery.config import Settings

DEFAULT_CATEGORY: Final = "interior"


class ConnectionStrategy(str, Enum):
    """How a controllable browser instance is obtained."""

    MANAGED_BROWSER = "managed_browser"
    HTTP_PROXY = "http_proxy"
    DIRECT = "direct"

    @property
    def uses_proxy(self) -> bool:
        """Whether traffic leaves through proxy infrastructure."""
        return self is not ConnectionStrategy.DIRECT


class ConnectionConfig(BaseModel):
    """Connection settings for a single scrape invocation."""

    model_config = ConfigDict(frozen=True)

    use_proxy: bool = False
    use_managed_browser: bool = False
    host: str = "brd.superproxy.io"
    port: int = Field(default=9222, ge=1, le=65535)
    username: str = ""
    password: SecretStr = SecretStr("")

    @classmethod
    def resolve(cls, settings: "Settings", *, use_proxy: bool | None = None) -> "ConnectionConfig":
        """Build the config for one call from process defaults and a request override.

        An explicit ``use_proxy`` override switches both proxy modes on or off
        together; ``None`` keeps the process defaults.
        """
        use_http_proxy = settings.use_proxy
        use_managed = settings.use_managed_browser
        if use_proxy is not None:
            use_http_proxy = use_proxy
            use_managed = use_proxy
        return cls(
            use_proxy=use_http_proxy,
            use_managed_browser=use_managed,
            host=settings.proxy_host,
            port=settings.proxy_port,
            username=settings.proxy_username,
            password=settings.proxy_password,
        )

    @property
    def strategy(self) -> ConnectionStrategy:
        """Requested strategy. Managed browser wins when both modes are set."""
        if self.use_managed_browser:
            return ConnectionStrategy.MANAGED_BROWSER
        if self.use_proxy:
            return ConnectionStrategy.HTTP_PROXY
        return ConnectionStrategy.DIRECT

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password.get_secret_value())

    @property
    def managed_endpoint(self) -> str:
        """Remote-control websocket endpoint for the managed browser."""
        if self.has_credentials:
            return (
                f"wss://{self.username}:{self.password.get_secret_value()}@{self.endpoint}"
            )
        return f"wss://{self.endpoint}"


class RawImage(BaseModel):
    """An image harvested from the listing page."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Canonical URL with the width hint appended")
    alt: str = ""
    width: int | None = None
    height: int | None = None

    @property
    def canonical_key(self) -> str:
        """Deduplication key: the URL without its query string."""
        return self.url.split("?", 1)[0]


class CategorizedImage(RawImage):
    """An image with the gallery section label it was found under."""

    category: str = DEFAULT_CATEGORY


class GalleryResult(BaseModel):
    """Filtered, capped gallery for one listing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    total_images: int = Field(ge=0, alias="totalImages")
    gallery: tuple[CategorizedImage, ...] = ()

    @model_validator(mode="after")
    def check_gallery_size(self) -> Self:
        """The returned gallery can never exceed the pre-cap count."""
        if len(self.gallery) > self.total_images:
            raise ValueError("gallery cannot contain more images than total_images")
        return self

    @classmethod
    def from_images(
        cls, title: str, images: list[CategorizedImage], max_images: int
    ) -> "GalleryResult":
        """Assemble a result, capping the gallery but counting every image."""
        return cls(title=title, total_images=len(images), gallery=tuple(images[:max_images]))


class ScrapeResult(BaseModel):
    """Payload returned for a successful scrape."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    proxy_used: bool = Field(alias="proxyUsed")
    data: GalleryResult


class ProxyStatus(BaseModel):
    """Effective default connection mode, reported by the health endpoint."""

    enabled: bool
    type: str
    host: str | None = None
