"""Merge matched fragments or drawn rectangles into padded redaction regions."""

from __future__ import annotations

import math
from typing import Sequence

from pdf_blackout.errors import InvalidInput
from pdf_blackout.fragments import Rect, RedactionRegion, TextFragment
from pdf_blackout.matcher import MatchSpan, SpanMatcher, find_matches

# Margin added on every side of a matched phrase, in page units. Covers
# ascenders, descenders and anti-aliasing bleed.
REGION_PADDING = 1.0


def span_to_region(span: MatchSpan, padding: float = REGION_PADDING) -> RedactionRegion | None:
    """Return the padded union bounding box of a match span.

    Each fragment contributes its own vertical extent, so runs mixing font
    sizes are fully covered. Returns ``None`` when no fragment contributed a
    finite bound.
    """
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for fragment in span.fragments:
        min_x = min(min_x, fragment.origin_x)
        min_y = min(min_y, fragment.origin_y)
        max_x = max(max_x, fragment.origin_x + fragment.width)
        max_y = max(max_y, fragment.origin_y + fragment.height)

    if not all(math.isfinite(v) for v in (min_x, min_y, max_x, max_y)):
        return None

    return RedactionRegion(
        page_index=span.page_index,
        x=min_x - padding,
        y=min_y - padding,
        width=(max_x - min_x) + 2 * padding,
        height=(max_y - min_y) + 2 * padding,
    )


def rect_to_region(page_index: int, rect: Rect, padding: float = 0.0) -> RedactionRegion:
    """Build a region from a page-space rectangle, optionally padded."""
    return RedactionRegion(
        page_index=page_index,
        x=rect.x - padding,
        y=rect.y - padding,
        width=rect.width + 2 * padding,
        height=rect.height + 2 * padding,
    )


def to_region(
    item: MatchSpan | Rect,
    page_index: int | None = None,
    padding: float | None = None,
) -> RedactionRegion | None:
    """Convert a match span or a manual page-space rectangle to a region.

    Spans are padded by ``REGION_PADDING`` unless ``padding`` is given; manual
    rectangles are left as drawn unless ``padding`` is given and need an
    explicit ``page_index``.
    """
    if isinstance(item, MatchSpan):
        return span_to_region(item, REGION_PADDING if padding is None else padding)
    if page_index is None:
        raise InvalidInput("A manual rectangle needs a page index.")
    return rect_to_region(page_index, item, 0.0 if padding is None else padding)


def regions_for_term(
    term: str,
    fragments: Sequence[TextFragment],
    matcher: SpanMatcher | None = None,
    padding: float = REGION_PADDING,
) -> list[RedactionRegion]:
    """Find ``term`` in ``fragments`` and return one region per match."""
    regions = []
    for span in find_matches(term, fragments, matcher):
        region = span_to_region(span, padding)
        if region is not None:
            regions.append(region)
    return regions
