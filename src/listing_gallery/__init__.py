"""Listing photo gallery scraper."""

__version__ = "1.0.0"
