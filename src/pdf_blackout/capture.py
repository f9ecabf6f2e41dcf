"""Manual rectangle capture and the ordered region collection."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from pdf_blackout.aggregate import rect_to_region
from pdf_blackout.fragments import Rect, RedactionRegion
from pdf_blackout.geometry import ViewportTransform, viewport_to_page

logger = logging.getLogger(__name__)

# Drags must exceed this many screen pixels in both directions; anything
# smaller is a click, not a selection.
MIN_DRAG_SIZE = 5.0


def capture_region(
    screen_rect: Rect,
    viewport: ViewportTransform,
    page_index: int,
    min_size: float = MIN_DRAG_SIZE,
) -> RedactionRegion | None:
    """Convert a rectangle drawn on screen into a page-space region.

    Args:
        screen_rect: Top-left-anchored rectangle in viewport pixels.
        viewport: The viewport the rectangle was drawn in.
        page_index: Page shown in the viewport.
        min_size: Minimum width and height, in pixels, for the drag to count.

    Returns:
        The region, or ``None`` if the rectangle is too small.
    """
    if screen_rect.width <= min_size or screen_rect.height <= min_size:
        logger.debug("Ignoring %.1fx%.1f drag", screen_rect.width, screen_rect.height)
        return None
    return rect_to_region(page_index, viewport_to_page(screen_rect, viewport))


class RegionCollection:
    """Ordered list of regions; insertion order is undo order.

    Regions are immutable and duplicates or overlaps are kept as-is. The
    collection belongs to the interaction thread; exports work on a
    ``snapshot()``.
    """

    def __init__(self, regions: Iterable[RedactionRegion] = ()) -> None:
        self._regions: list[RedactionRegion] = list(regions)

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[RedactionRegion]:
        return iter(tuple(self._regions))

    def __getitem__(self, index: int) -> RedactionRegion:
        return self._regions[index]

    def add(self, region: RedactionRegion) -> None:
        self._regions.append(region)

    def extend(self, regions: Iterable[RedactionRegion]) -> None:
        self._regions.extend(regions)

    def undo(self) -> RedactionRegion | None:
        """Remove and return the most recently added region, if any."""
        if not self._regions:
            return None
        return self._regions.pop()

    def remove(self, index: int) -> RedactionRegion:
        return self._regions.pop(index)

    def index_at(self, page_index: int, x: float, y: float) -> int | None:
        """Index of the topmost region on ``page_index`` containing ``(x, y)``.

        Later regions are drawn over earlier ones, so the most recently added
        match wins. Edges count as inside.
        """
        for index in range(len(self._regions) - 1, -1, -1):
            region = self._regions[index]
            if (
                region.page_index == page_index
                and region.x <= x <= region.x + region.width
                and region.y <= y <= region.y + region.height
            ):
                return index
        return None

    def clear(self) -> None:
        self._regions.clear()

    def for_page(self, page_index: int) -> list[RedactionRegion]:
        return [r for r in self._regions if r.page_index == page_index]

    def snapshot(self) -> tuple[RedactionRegion, ...]:
        return tuple(self._regions)
