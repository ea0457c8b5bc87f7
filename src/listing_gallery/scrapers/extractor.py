"""Image and title extraction from a listing page's DOM snapshot.

The heuristics are pure functions over serialized HTML so they can be
exercised against fixture pages without a browser. ``PageExtractor`` is the
thin adapter that pulls the snapshot from a live page.
"""

import asyncio
import re
from typing import Final, NamedTuple

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from listing_gallery.errors import ExtractionError
from listing_gallery.logging import get_logger
from listing_gallery.models import DEFAULT_CATEGORY, CategorizedImage
from listing_gallery.scrapers.constants import (
    EXCLUDED_IMAGE_MARKERS,
    MEDIA_HOST_MARKER,
    MODAL_SELECTOR,
    SLIDE_SELECTOR,
)
from listing_gallery.utils.urls import canonicalize_image_url, strip_query

logger = get_logger(__name__)

_PAGINATION_PATTERN: Final = re.compile(r"^\d+\s*(?:of|/)\s*\d+$", re.IGNORECASE)
_BACKGROUND_URL_PATTERN: Final = re.compile(
    r"""url\(["']?(https://[^"')]+muscache\.com[^"')]+)"""
)
_TITLE_SEPARATORS: Final = ("·", "|")
_SITE_SUFFIX_PATTERN: Final = re.compile(r"\s*[·|\-–—]\s*Airbnb\s*$", re.IGNORECASE)
_LABEL_MIN_CHARS: Final = 2
_LABEL_MAX_CHARS: Final = 30


class ExtractedPage(NamedTuple):
    """Everything read from one DOM snapshot."""

    title: str
    images: list[CategorizedImage]


def is_qualifying_image_url(url: str | None) -> bool:
    """Check that a URL is a listing photo on the media host, not an avatar or UI asset."""
    if not url or MEDIA_HOST_MARKER not in url:
        return False
    path = strip_query(url).lower()
    return not any(marker in path for marker in EXCLUDED_IMAGE_MARKERS)


def _image_source(img: Tag) -> str:
    """Best equivalent of ``currentSrc`` available in serialized HTML."""
    src = str(img.get("src") or img.get("data-src") or "")
    if src:
        return src
    srcsets = [img.get("srcset")]
    if isinstance(img.parent, Tag) and img.parent.name == "picture":
        srcsets.extend(source.get("srcset") for source in img.parent.find_all("source"))
    for srcset in srcsets:
        if srcset:
            return str(srcset).split(",")[0].strip().split(" ")[0]
    return ""


def _dimension(value: object) -> int | None:
    if value is None:
        return None
    try:
        number = int(str(value).strip().removesuffix("px"))
    except ValueError:
        return None
    return number or None


def _clean_text(text: str) -> str:
    return " ".join(text.split())


def _is_slide(tag: Tag) -> bool:
    return tag.get("role") == "group" or "photo-viewer-section" in str(tag.get("data-testid", ""))


def _nearest_slide(img: Tag, modal: Tag) -> Tag | None:
    for parent in img.parents:
        if parent is modal:
            return None
        if _is_slide(parent):
            return parent
    return None


def slide_label(slide: Tag) -> str | None:
    """Read the short section label attached to a gallery slide.

    Prefers a heading; otherwise the first short text node that isn't a
    pagination counter like "3 of 12".
    """
    heading = slide.find(["h1", "h2", "h3", "h4"])
    if isinstance(heading, Tag):
        text = _clean_text(heading.get_text(" ", strip=True))
        if text:
            return text
    for string in slide.stripped_strings:
        text = _clean_text(string)
        if (
            _LABEL_MIN_CHARS <= len(text) <= _LABEL_MAX_CHARS
            and not _PAGINATION_PATTERN.match(text)
        ):
            return text
    return None


class _ImageCollector:
    """Accumulates images in discovery order, deduplicated by canonical URL."""

    def __init__(self) -> None:
        self.images: list[CategorizedImage] = []
        self.seen: set[str] = set()

    def add(
        self,
        url: str,
        *,
        alt: str = "",
        width: int | None = None,
        height: int | None = None,
        category: str = DEFAULT_CATEGORY,
    ) -> bool:
        key = strip_query(url)
        if key in self.seen:
            return False
        self.seen.add(key)
        self.images.append(
            CategorizedImage(
                url=canonicalize_image_url(url),
                alt=alt,
                width=width,
                height=height,
                category=category,
            )
        )
        return True

    def add_img(self, img: Tag, category: str = DEFAULT_CATEGORY) -> bool:
        return self.add(
            _image_source(img),
            alt=str(img.get("alt") or ""),
            width=_dimension(img.get("width")),
            height=_dimension(img.get("height")),
            category=category,
        )


def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _qualifying_imgs(root: Tag) -> list[Tag]:
    return [img for img in root.find_all("img") if is_qualifying_image_url(_image_source(img))]


def pick_gallery_modal(photo_counts: list[int]) -> int | None:
    """Choose the gallery among open dialogs, given their photo counts in document order.

    The dialog holding the most listing photos wins; ties go to the earlier
    one. Returns None when no dialog holds a photo. The scroller applies the
    same rule to counts measured in the live page.
    """
    best: int | None = None
    for index, count in enumerate(photo_counts):
        if count > 0 and (best is None or count > photo_counts[best]):
            best = index
    return best


def _find_gallery_modal(soup: BeautifulSoup) -> Tag | None:
    modals = soup.select(MODAL_SELECTOR)
    index = pick_gallery_modal([len(_qualifying_imgs(m)) for m in modals])
    return None if index is None else modals[index]


def _collect_slides(modal: Tag, collector: _ImageCollector) -> dict[str, str]:
    """Primary pass: one main image and its label per slide container."""
    labels: dict[str, str] = {}
    for slide in modal.select(SLIDE_SELECTOR):
        images = _qualifying_imgs(slide)
        if not images:
            continue
        main = images[0]
        label = slide_label(slide)
        category = label or DEFAULT_CATEGORY
        key = strip_query(_image_source(main))
        if label and key not in labels:
            labels[key] = label
        collector.add_img(main, category)
    return labels


def _collect_modal_images(modal: Tag, collector: _ImageCollector, labels: dict[str, str]) -> None:
    """Secondary pass: every remaining photo in the modal."""
    for img in _qualifying_imgs(modal):
        key = strip_query(_image_source(img))
        if key in collector.seen:
            continue
        category = labels.get(key)
        if category is None:
            slide = _nearest_slide(img, modal)
            category = (slide_label(slide) if slide is not None else None) or DEFAULT_CATEGORY
        collector.add_img(img, category)


def _collect_document_images(soup: BeautifulSoup, collector: _ImageCollector) -> None:
    """Fallback pass: every photo in the page plus inline background images."""
    for img in _qualifying_imgs(soup):
        collector.add_img(img)
    for elem in soup.select('[style*="background-image"]'):
        match = _BACKGROUND_URL_PATTERN.search(str(elem.get("style", "")))
        if match and is_qualifying_image_url(match.group(1)):
            collector.add(match.group(1))


def extract_images(html: str, *, categorize: bool = True) -> list[CategorizedImage]:
    """Collect deduplicated listing photos from a DOM snapshot.

    Args:
        html: Serialized page DOM.
        categorize: Read section labels from an open gallery modal. When False,
            or when the modal yields nothing, the whole document is scanned and
            every image gets the default category.

    Returns:
        Images in discovery order, unique by query-stripped URL.
    """
    return _images_from_soup(_parse(html), categorize=categorize)


def _images_from_soup(soup: BeautifulSoup, *, categorize: bool) -> list[CategorizedImage]:
    collector = _ImageCollector()

    if categorize:
        modal = _find_gallery_modal(soup)
        if modal is not None:
            labels = _collect_slides(modal, collector)
            _collect_modal_images(modal, collector, labels)

    source = "modal"
    if not collector.images:
        source = "document"
        _collect_document_images(soup, collector)

    logger.debug("images_extracted", count=len(collector.images), source=source)
    return collector.images


def _strip_site_suffix(text: str) -> str:
    text = _SITE_SUFFIX_PATTERN.sub("", _clean_text(text))
    return text.strip(" ·|-–—")


def extract_title(html: str) -> str:
    """Read the listing title, first non-empty source wins.

    Order: ``h1``, the title section's ``h2``, ``og:title``, then the document
    title up to its first separator.
    """
    return _title_from_soup(_parse(html))


def _title_from_soup(soup: BeautifulSoup) -> str:
    h1 = soup.find("h1")
    if isinstance(h1, Tag):
        text = _clean_text(h1.get_text(" ", strip=True))
        if text:
            return text

    section_heading = soup.select_one('[data-section-id="TITLE_DEFAULT"] h2')
    if section_heading is not None:
        text = _clean_text(section_heading.get_text(" ", strip=True))
        if text:
            return text

    meta = soup.find("meta", attrs={"property": "og:title"})
    if isinstance(meta, Tag):
        text = _strip_site_suffix(str(meta.get("content") or ""))
        if text:
            return text

    if soup.title is not None and soup.title.string:
        document_title = soup.title.string
        for separator in _TITLE_SEPARATORS:
            document_title = document_title.split(separator)[0]
        return _strip_site_suffix(document_title)

    return ""


def extract_page(html: str, *, categorize: bool = True) -> ExtractedPage:
    """Extract title and images from one snapshot, parsing it once.

    CPU-bound on large listing pages; async callers run it in a worker thread.
    """
    soup = _parse(html)
    return ExtractedPage(
        title=_title_from_soup(soup),
        images=_images_from_soup(soup, categorize=categorize),
    )


class PageExtractor:
    """Reads a DOM snapshot from a live page and applies the extraction heuristics."""

    def __init__(self, page: Page, *, categorize: bool = True) -> None:
        self._page = page
        self._categorize = categorize

    async def extract(self) -> ExtractedPage:
        """Snapshot the page and extract title and images.

        Raises:
            ExtractionError: If the DOM could not be read or parsed.
        """
        try:
            html = await self._page.content()
        except PlaywrightError as e:
            raise ExtractionError(f"Failed to read page DOM: {e}") from e
        try:
            extracted = await asyncio.to_thread(extract_page, html, categorize=self._categorize)
        except (ValueError, TypeError, AttributeError) as e:
            raise ExtractionError(f"Failed to parse page DOM: {e}") from e
        logger.info(
            "page_extracted",
            title=extracted.title[:50],
            images=len(extracted.images),
        )
        return extracted


async def dismiss_modal(page: Page) -> None:
    """Close any open gallery overlay before teardown. Failures are only logged."""
    try:
        await page.keyboard.press("Escape")
    except Exception as e:
        logger.debug("modal_dismiss_failed", error=str(e))
