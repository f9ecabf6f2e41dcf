"""Fragment model: positioned text runs and page-space rectangles.

All coordinates in this module are in page/user space: origin at the
bottom-left corner of the page, y growing upward, units in points. PyMuPDF
reports text boxes on the unrotated page with a top-left origin, so
extraction first rotates each box onto the visible page and then flips the
y axis using the visible page height.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import fitz  # PyMuPDF

from pdf_blackout.errors import InvalidInput

logger = logging.getLogger(__name__)

# Supported extraction granularities.
GRANULARITIES: tuple[str, ...] = ("word", "span")


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its corner ``(x, y)`` and size.

    Used for both page space (``y`` is the bottom edge) and screen space
    (``y`` is the top edge); the coordinate system is implied by the caller.
    """

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class TextFragment:
    """One positioned run of text as emitted by a page's content stream.

    Attributes:
        page_index: Zero-based page the fragment belongs to.
        text: The fragment text, unmodified.
        origin_x: Left edge in page space.
        origin_y: Bottom edge in page space.
        width: Horizontal extent in page units.
        height: Vertical extent in page units.
    """

    page_index: int
    text: str
    origin_x: float
    origin_y: float
    width: float
    height: float


@dataclass(frozen=True)
class RedactionRegion:
    """A page-space rectangle to be blacked out.

    Regions are immutable; removing one and adding a new one is the only way
    to change the redaction set.
    """

    page_index: int
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.page_index < 0:
            raise InvalidInput(f"Page index must be non-negative, got {self.page_index}")
        if self.width < 0 or self.height < 0:
            raise InvalidInput(
                f"Region size must be non-negative, got {self.width} x {self.height}"
            )

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @classmethod
    def from_rect(cls, page_index: int, rect: Rect) -> RedactionRegion:
        return cls(page_index, rect.x, rect.y, rect.width, rect.height)


def _from_top_left_box(
    page_index: int, text: str, box: Iterable[float], page: fitz.Page
) -> TextFragment:
    # Text boxes are unrotated; page.rect is the visible (rotated) page.
    rect = fitz.Rect(box) * page.rotation_matrix
    return TextFragment(
        page_index=page_index,
        text=text,
        origin_x=rect.x0,
        origin_y=page.rect.height - rect.y1,
        width=rect.width,
        height=rect.height,
    )


def extract_fragments(
    page: fitz.Page, page_index: int, granularity: str = "word"
) -> list[TextFragment]:
    """Extract the positioned text fragments of a single page.

    Fragments are returned in the order PyMuPDF reads them from the content
    stream and are never re-sorted; the span matcher relies on that order.

    Args:
        page: The PyMuPDF page to read.
        page_index: Zero-based index stored on every fragment.
        granularity: ``"word"`` for one fragment per whitespace-delimited
            word, ``"span"`` for one fragment per font span.

    Returns:
        List of fragments in page space. Items with empty text are skipped.

    Raises:
        InvalidInput: If ``granularity`` is not supported.
    """
    if granularity not in GRANULARITIES:
        raise InvalidInput(
            f"Unknown granularity {granularity!r}; expected one of {GRANULARITIES}"
        )

    fragments: list[TextFragment] = []

    if granularity == "word":
        for x0, y0, x1, y1, word, *_ in page.get_text("words"):
            if word:
                fragments.append(
                    _from_top_left_box(page_index, word, (x0, y0, x1, y1), page)
                )
    else:
        for block in page.get_text("dict")["blocks"]:
            if block.get("type") != 0:  # image block
                continue
            for line in block["lines"]:
                for span in line["spans"]:
                    if span["text"]:
                        fragments.append(
                            _from_top_left_box(
                                page_index, span["text"], span["bbox"], page
                            )
                        )

    logger.debug("Page %d: %d fragments (%s)", page_index, len(fragments), granularity)
    return fragments


def extract_document_fragments(
    doc: fitz.Document, granularity: str = "word"
) -> list[TextFragment]:
    """Extract fragments for every page of ``doc``, in page order."""
    fragments: list[TextFragment] = []
    for page_index, page in enumerate(doc):
        fragments.extend(extract_fragments(page, page_index, granularity))
    return fragments
