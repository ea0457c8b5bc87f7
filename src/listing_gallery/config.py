"""Application configuration using pydantic-settings."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from listing_gallery.models import ProxyStatus


class Settings(BaseSettings):
    """Process-wide defaults loaded from environment variables.

    Request-level overrides never mutate this object; they are applied when
    a ``ConnectionConfig`` is resolved for a single scrape.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Connection
    use_proxy: bool = Field(
        default=False,
        description="Launch the local browser through an HTTP proxy",
    )
    use_managed_browser: bool = Field(
        default=False,
        description="Attach to a remote managed browser instead of launching locally",
    )
    proxy_host: str = Field(default="brd.superproxy.io")
    proxy_port: int = Field(default=9222, ge=1, le=65535)
    proxy_username: str = Field(default="")
    proxy_password: SecretStr = Field(default=SecretStr(""))

    # Scraping
    max_images: int = Field(
        default=50,
        ge=1,
        description="Default cap on gallery images returned per listing",
    )
    scrape_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Overall deadline for one scrape, including browser teardown",
    )
    navigation_settle_seconds: float = Field(default=5.0, ge=0)
    modal_settle_seconds: float = Field(default=4.0, ge=0)
    scroll_settle_seconds: float = Field(default=1.5, ge=0)
    scroll_step_px: int = Field(default=1000, ge=100)
    block_restricted_navigation: bool = Field(
        default=True,
        description="Abort navigations to contact/host-messaging pages",
    )

    # Web server
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    def get_cors_origins(self) -> list[str]:
        """Parse cors_origins string into a list of origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def proxy_status(self) -> ProxyStatus:
        """Describe the default connection mode for the health endpoint."""
        endpoint = f"{self.proxy_host}:{self.proxy_port}"
        if self.use_managed_browser:
            return ProxyStatus(enabled=True, type="Managed Browser", host=endpoint)
        if self.use_proxy:
            return ProxyStatus(enabled=True, type="HTTP Proxy", host=endpoint)
        return ProxyStatus(enabled=False, type="Direct Connection", host=None)
