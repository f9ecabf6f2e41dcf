"""Apply redaction regions to a PDF in one of two modes.

``ExportMode.RECOVERABLE`` draws opaque rectangles over the existing page
content. The text underneath is still in the file and can be extracted; this
mode must never be presented as secure.

``ExportMode.SECURE`` rasterizes every page, paints the regions into the
bitmap and builds a brand-new PDF holding one image per page. No text, vector
paths or fonts from the source survive.

Both modes produce an in-memory ``bytes`` object that is only returned once
fully assembled.
"""

from __future__ import annotations

import logging
import math
import threading
from collections import defaultdict
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Sequence

import fitz  # PyMuPDF

from pdf_blackout.document import load_document, to_fitz_rect
from pdf_blackout.errors import (
    ExportCancelled,
    ExportFailure,
    InvalidInput,
    RedactionError,
)
from pdf_blackout.fragments import RedactionRegion
from pdf_blackout.geometry import FLATTEN_SCALE, page_to_raster

logger = logging.getLogger(__name__)

# Default redaction fill color (black).
DEFAULT_FILL_COLOR: tuple[float, float, float] = (0.0, 0.0, 0.0)

ProgressCallback = Callable[[int, int], None]


class ExportMode(Enum):
    RECOVERABLE = "recoverable"
    SECURE = "secure"


def redacted_filename(source_name: str | Path | None, mode: ExportMode) -> str:
    """Derive the output file name from the source name and export mode.

    ``"report.pdf"`` becomes ``"report_redacted_secure.pdf"``; without a
    source name the result is ``"redacted-document-secure.pdf"``.
    """
    if not source_name:
        return f"redacted-document-{mode.value}.pdf"
    return f"{Path(source_name).stem}_redacted_{mode.value}.pdf"


def validate_regions(regions: Iterable[RedactionRegion], page_count: int) -> None:
    """Raise ``InvalidInput`` for any region outside ``[0, page_count)``."""
    for region in regions:
        if not 0 <= region.page_index < page_count:
            raise InvalidInput(
                f"Region on page {region.page_index + 1} but the document has "
                f"{page_count} pages"
            )


def _group_by_page(
    regions: Iterable[RedactionRegion],
) -> dict[int, list[RedactionRegion]]:
    grouped: dict[int, list[RedactionRegion]] = defaultdict(list)
    for region in regions:
        grouped[region.page_index].append(region)
    return grouped


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ExportCancelled("Export cancelled.")


def _fill_samples(fill_color: tuple[float, float, float]) -> tuple[int, int, int]:
    """RGB floats in 0..1 to the 0..255 sample values of a pixmap."""
    return tuple(max(0, min(255, round(c * 255))) for c in fill_color)  # type: ignore[return-value]


# ------------------------------------------------------------------
# Recoverable (vector overlay)
# ------------------------------------------------------------------


def apply_recoverable(
    data: bytes,
    regions: Sequence[RedactionRegion],
    fill_color: tuple[float, float, float] = DEFAULT_FILL_COLOR,
    progress_callback: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> bytes:
    """Draw filled rectangles over the regions, leaving all content in place.

    Only drawing operations are appended to the affected pages; text, fonts
    and the page count are unchanged.

    Raises:
        UnreadableDocument: If ``data`` is not a readable PDF.
        ProtectedDocument: If the PDF is encrypted.
        InvalidInput: If a region lies on a page the document does not have.
        ExportCancelled: If ``cancel_event`` is set before completion.
        ExportFailure: If drawing or saving fails.
    """
    regions = tuple(regions)
    doc = load_document(data)
    try:
        total_pages = doc.page_count
        validate_regions(regions, total_pages)
        by_page = _group_by_page(regions)
        logger.info("Recoverable export: %d regions over %d pages", len(regions), total_pages)

        try:
            for page_index, page in enumerate(doc):
                _check_cancelled(cancel_event)
                page_height = page.rect.height
                for region in by_page.get(page_index, ()):
                    # Drawing uses unrotated coordinates.
                    rect = to_fitz_rect(region, page_height) * page.derotation_matrix
                    page.draw_rect(rect, color=None, fill=fill_color, width=0, overlay=True)
                if progress_callback is not None:
                    progress_callback(page_index + 1, total_pages)
            _check_cancelled(cancel_event)
            return doc.tobytes()
        except RedactionError:
            raise
        except Exception as exc:
            raise ExportFailure(
                ExportMode.RECOVERABLE, f"Could not generate the recoverable PDF: {exc}"
            ) from exc
    finally:
        doc.close()


# ------------------------------------------------------------------
# Secure (flatten to images)
# ------------------------------------------------------------------


def flatten_page(
    page: fitz.Page,
    regions: Iterable[RedactionRegion],
    scale: float = FLATTEN_SCALE,
    fill_color: tuple[float, float, float] = DEFAULT_FILL_COLOR,
) -> fitz.Pixmap:
    """Render ``page`` to an RGB bitmap and overwrite every region's pixels.

    Region edges are rounded outward to whole pixels so partially covered
    pixels are filled too.
    """
    pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
    page_width, page_height = page.rect.width, page.rect.height
    render_scale = pix.width / page_width
    fill = _fill_samples(fill_color)

    for region in regions:
        raster = page_to_raster(region, page_height, render_scale)
        irect = fitz.IRect(
            math.floor(raster.x),
            math.floor(raster.y),
            math.ceil(raster.x + raster.width),
            math.ceil(raster.y + raster.height),
        ) & pix.irect
        if irect.is_empty:
            continue
        pix.set_rect(irect, fill)

    return pix


def apply_secure(
    data: bytes,
    regions: Sequence[RedactionRegion],
    scale: float = FLATTEN_SCALE,
    fill_color: tuple[float, float, float] = DEFAULT_FILL_COLOR,
    progress_callback: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> bytes:
    """Rebuild the document as one lossless image per page with regions burned in.

    Every page is flattened, whether or not it carries a region, so the
    output never contains text or vector content from the source. If any
    page fails to rasterize the whole export is abandoned.

    Raises:
        UnreadableDocument: If ``data`` is not a readable PDF.
        ProtectedDocument: If the PDF is encrypted.
        InvalidInput: If a region lies on a page the document does not have.
        ExportCancelled: If ``cancel_event`` is set before completion.
        ExportFailure: If a page cannot be rasterized or the output saved.
    """
    if scale <= 0:
        raise InvalidInput(f"Flatten scale must be positive, got {scale}")

    regions = tuple(regions)
    source = load_document(data)
    try:
        total_pages = source.page_count
        validate_regions(regions, total_pages)
        by_page = _group_by_page(regions)
        logger.info(
            "Secure export: %d regions over %d pages at %.1fx", len(regions), total_pages, scale
        )

        output = fitz.open()
        try:
            for page_index, page in enumerate(source):
                _check_cancelled(cancel_event)
                try:
                    pix = flatten_page(page, by_page.get(page_index, ()), scale, fill_color)
                    image = pix.tobytes("png")
                    target = output.new_page(width=page.rect.width, height=page.rect.height)
                    target.insert_image(target.rect, stream=image)
                except Exception as exc:
                    raise ExportFailure(
                        ExportMode.SECURE,
                        f"Could not rasterize page {page_index + 1}: {exc}",
                    ) from exc
                logger.debug("Flattened page %d/%d", page_index + 1, total_pages)
                if progress_callback is not None:
                    progress_callback(page_index + 1, total_pages)

            _check_cancelled(cancel_event)
            try:
                return output.tobytes(garbage=4, deflate=True)
            except Exception as exc:
                raise ExportFailure(
                    ExportMode.SECURE, f"Could not generate the secure PDF: {exc}"
                ) from exc
        finally:
            output.close()
    finally:
        source.close()


_APPLIERS: dict[ExportMode, Callable[..., bytes]] = {
    ExportMode.RECOVERABLE: apply_recoverable,
    ExportMode.SECURE: apply_secure,
}


def apply_redactions(
    data: bytes,
    regions: Sequence[RedactionRegion],
    mode: ExportMode,
    **options,
) -> bytes:
    """Apply ``regions`` to ``data`` with the applier selected by ``mode``.

    Extra keyword arguments are forwarded to ``apply_recoverable`` or
    ``apply_secure``.
    """
    return _APPLIERS[ExportMode(mode)](data, regions, **options)
