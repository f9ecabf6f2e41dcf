"""Conversions between page space, the interactive viewport and the flatten raster.

Page space has its origin at the bottom-left of the page with y growing
upward. Both raster spaces (the on-screen canvas and the bitmap rendered by
the secure pipeline) have their origin at the top-left with y growing
downward, so every conversion flips the vertical axis around the canvas
height.

All functions here are pure; the viewport state is passed in explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pdf_blackout.fragments import Rect

# Oversampling factor of the secure (flatten) pipeline.
FLATTEN_SCALE = 2.0


class RectLike(Protocol):
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ViewportTransform:
    """How page space maps onto a top-left-origin raster.

    Attributes:
        scale: Raster pixels per page unit.
        canvas_height: Height of the raster in pixels (page height * scale).
        pan_x: Horizontal offset of the page inside the raster, in pixels.
        pan_y: Vertical offset of the page inside the raster, in pixels.
    """

    scale: float
    canvas_height: float
    pan_x: float = 0.0
    pan_y: float = 0.0

    def __post_init__(self) -> None:
        if self.scale <= 0:
            raise ValueError(f"Viewport scale must be positive, got {self.scale}")


def page_to_viewport(rect: RectLike, viewport: ViewportTransform) -> Rect:
    """Map a page-space rectangle to a top-left-origin raster rectangle."""
    scale = viewport.scale
    return Rect(
        x=rect.x * scale + viewport.pan_x,
        y=viewport.canvas_height - (rect.y + rect.height) * scale + viewport.pan_y,
        width=rect.width * scale,
        height=rect.height * scale,
    )


def viewport_to_page(rect: RectLike, viewport: ViewportTransform) -> Rect:
    """Inverse of ``page_to_viewport``."""
    scale = viewport.scale
    height = rect.height / scale
    return Rect(
        x=(rect.x - viewport.pan_x) / scale,
        y=(viewport.canvas_height - (rect.y - viewport.pan_y)) / scale - height,
        width=rect.width / scale,
        height=height,
    )


def raster_viewport(page_height: float, scale: float = FLATTEN_SCALE) -> ViewportTransform:
    """Viewport of a full page rendered at ``scale`` with no panning."""
    return ViewportTransform(scale=scale, canvas_height=page_height * scale)


def page_to_raster(rect: RectLike, page_height: float, scale: float = FLATTEN_SCALE) -> Rect:
    return page_to_viewport(rect, raster_viewport(page_height, scale))


def raster_to_page(rect: RectLike, page_height: float, scale: float = FLATTEN_SCALE) -> Rect:
    return viewport_to_page(rect, raster_viewport(page_height, scale))


def normalize_drag(start: tuple[float, float], end: tuple[float, float]) -> Rect:
    """Turn the two corners of a mouse drag into a top-left-anchored rectangle."""
    (x0, y0), (x1, y1) = start, end
    return Rect(x=min(x0, x1), y=min(y0, y1), width=abs(x1 - x0), height=abs(y1 - y0))
