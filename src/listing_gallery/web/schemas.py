"""Request models and response helpers for the scrape API."""

from typing import Any, Final

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

URL_REQUIRED: Final = "URL is required"
INVALID_URL: Final = "Invalid Airbnb URL. Please provide a valid Airbnb listing URL."
INVALID_MAX_IMAGES: Final = "Invalid maxImages value. Must be a positive integer."
INVALID_BODY: Final = "Invalid request body. Expected a JSON object."
SCRAPE_FAILED: Final = "Failed to scrape the listing"
PROXY_SUGGESTION: Final = (
    "Proxy connection failed. Try setting useProxy to false in the request body."
)


class ScrapeRequest(BaseModel):
    """Body of ``POST /api/scrape``.

    ``useProxy`` and ``maxImages`` are kept loosely typed: a non-boolean
    ``useProxy`` is ignored, and ``maxImages`` accepts numeric strings.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str | None = None
    use_proxy: Any = Field(default=None, alias="useProxy")
    max_images: Any = Field(default=None, alias="maxImages")

    def proxy_override(self) -> bool | None:
        return self.use_proxy if isinstance(self.use_proxy, bool) else None


def parse_max_images(value: Any) -> int | None:
    """Parse a maxImages value.

    Returns:
        The positive integer, or None when not provided.

    Raises:
        ValueError: If the value is not a positive integer.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("maxImages must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float) and value.is_integer():
        parsed = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValueError("maxImages must be an integer")
    if parsed < 1:
        raise ValueError("maxImages must be >= 1")
    return parsed


def error_response(status_code: int, error: str, **extra: Any) -> JSONResponse:
    """Build the ``{"success": false, "error": ...}`` envelope."""
    return JSONResponse({"success": False, "error": error, **extra}, status_code=status_code)
