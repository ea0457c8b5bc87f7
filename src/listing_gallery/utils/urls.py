"""Listing URL validation and image URL canonicalization."""

import re
from typing import Final
from urllib.parse import urlparse

# airbnb.com, airbnb.co.uk, airbnb.fr, airbnb.com.au style hostnames
_LISTING_HOST_PATTERN: Final = re.compile(
    r"^(www\.)?airbnb\.(com|co\.[a-z]{2}|com\.[a-z]{2}|[a-z]{2,3})$", re.IGNORECASE
)

IMAGE_WIDTH_HINT: Final = "im_w=1200"


def validate_listing_url(url: str | None) -> bool:
    """Check whether a URL points at an Airbnb-style listing host.

    Args:
        url: Candidate listing URL.

    Returns:
        True when the scheme is http(s) and the hostname matches.
    """
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    return bool(_LISTING_HOST_PATTERN.match(parsed.hostname))


def strip_query(url: str) -> str:
    """Drop everything from the first ``?`` onward."""
    return url.split("?", 1)[0]


def canonicalize_image_url(url: str) -> str:
    """Strip the query string and request a consistent larger rendition."""
    return f"{strip_query(url)}?{IMAGE_WIDTH_HINT}"
