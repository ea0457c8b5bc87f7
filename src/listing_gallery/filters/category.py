"""Interior/exterior classification of gallery images."""

from typing import Final

from listing_gallery.logging import get_logger
from listing_gallery.models import CategorizedImage

logger = get_logger(__name__)

# Substrings of category or alt text that mark outdoor shots
EXTERIOR_KEYWORDS: Final = (
    "balcony",
    "balcon",  # es/fr
    "balkon",  # de/nl/pl
    "balcone",  # it
    "patio",
    "terrace",
    "garden",
    "yard",
    "pool",
    "exterior",
    "outdoor",
    "outside",
    "street",
    "building",
    "neighborhood",
    "neighbourhood",
    "entrance",
    "facade",
    "façade",
    "roof",
    "aerial",
    "view from",
    "city view",
)


def matched_exterior_keyword(image: CategorizedImage) -> str | None:
    """Return the first exterior keyword found in the image's category and alt text."""
    haystack = f"{image.category} {image.alt}".lower()
    for keyword in EXTERIOR_KEYWORDS:
        if keyword in haystack:
            return keyword
    return None


def is_exterior(image: CategorizedImage) -> bool:
    """Check whether an image shows an outdoor or exterior view."""
    return matched_exterior_keyword(image) is not None


class CategoryFilter:
    """Drop exterior shots from a gallery, preserving order."""

    def filter_images(self, images: list[CategorizedImage]) -> list[CategorizedImage]:
        """Filter images by category.

        Args:
            images: Extracted images in gallery order.

        Returns:
            Interior images in their original order.
        """
        kept: list[CategorizedImage] = []
        for image in images:
            keyword = matched_exterior_keyword(image)
            if keyword is None:
                kept.append(image)
                continue
            logger.info(
                "exterior_image_filtered",
                url=image.url,
                category=image.category,
                alt=image.alt[:60],
                keyword=keyword,
            )

        logger.info(
            "category_filter_complete",
            total_images=len(images),
            kept=len(kept),
            removed=len(images) - len(kept),
        )
        return kept
