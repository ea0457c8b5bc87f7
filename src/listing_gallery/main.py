"""Command-line entry point: scrape one listing or serve the API."""

import argparse
import asyncio
import logging
import sys

from listing_gallery.config import Settings
from listing_gallery.errors import ScraperError
from listing_gallery.logging import configure_logging, get_logger
from listing_gallery.scrapers import GalleryScraper

logger = get_logger(__name__)


async def run_scrape(
    settings: Settings,
    url: str,
    *,
    use_proxy: bool | None = None,
    max_images: int | None = None,
) -> int:
    """Scrape a listing and print the result as JSON.

    Returns:
        Process exit code.
    """
    scraper = GalleryScraper(settings)
    try:
        result = await scraper.scrape(url, use_proxy=use_proxy, max_images=max_images)
    except ScraperError as e:
        logger.error("scrape_failed", url=url, error=str(e), error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(result.model_dump_json(by_alias=True, indent=2))
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Listing Gallery - scrape interior photos from a listing page"
    )
    parser.add_argument("url", nargs="?", help="Listing URL to scrape")
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP API instead of scraping a single URL",
    )
    proxy_group = parser.add_mutually_exclusive_group()
    proxy_group.add_argument(
        "--proxy",
        dest="use_proxy",
        action="store_true",
        default=None,
        help="Force proxy / managed browser on for this scrape",
    )
    proxy_group.add_argument(
        "--no-proxy",
        dest="use_proxy",
        action="store_false",
        help="Force a direct connection for this scrape",
    )
    parser.add_argument(
        "--max-images",
        type=int,
        default=None,
        help="Maximum number of gallery images to return",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug-level logging for troubleshooting",
    )
    args = parser.parse_args()

    try:
        settings = Settings()
    except Exception as e:
        print(f"Error: Failed to load settings. {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(
        json_output=settings.log_json,
        level=logging.DEBUG if args.debug else settings.log_level,
    )

    if args.serve:
        import uvicorn

        from listing_gallery.web.app import create_app

        app = create_app(settings, setup_logging=False)
        uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")
        return

    if not args.url:
        parser.error("a listing URL is required unless --serve is given")
    if args.max_images is not None and args.max_images < 1:
        parser.error("--max-images must be a positive integer")

    sys.exit(
        asyncio.run(
            run_scrape(settings, args.url, use_proxy=args.use_proxy, max_images=args.max_images)
        )
    )


if __name__ == "__main__":
    main()
