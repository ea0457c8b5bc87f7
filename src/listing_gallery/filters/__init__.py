"""Filters applied to extracted gallery images."""

from listing_gallery.filters.category import EXTERIOR_KEYWORDS, CategoryFilter, is_exterior

__all__ = [
    "EXTERIOR_KEYWORDS",
    "CategoryFilter",
    "is_exterior",
]
