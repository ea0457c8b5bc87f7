"""Headless-browser scraping pipeline for listing photo galleries."""

from listing_gallery.scrapers.listing import GalleryScraper
from listing_gallery.scrapers.session import PageSession

__all__ = [
    "GalleryScraper",
    "PageSession",
]
