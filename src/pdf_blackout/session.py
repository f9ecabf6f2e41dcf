"""Interactive redaction session over one loaded document.

A session owns the source bytes, the extracted text fragments and the
ordered region collection. Exports run against a snapshot of the regions so
edits made while a long secure export is running do not leak into it, and
only one export may run at a time.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import fitz  # PyMuPDF

from pdf_blackout.aggregate import REGION_PADDING, span_to_region
from pdf_blackout.capture import RegionCollection, capture_region
from pdf_blackout.document import load_document
from pdf_blackout.errors import ExportInProgress, InvalidInput
from pdf_blackout.export import (
    ExportMode,
    ProgressCallback,
    apply_redactions,
    redacted_filename,
    validate_regions,
)
from pdf_blackout.fragments import Rect, RedactionRegion, TextFragment, extract_document_fragments
from pdf_blackout.geometry import ViewportTransform, viewport_to_page
from pdf_blackout.matcher import MatchSpan, SpanMatcher, find_matches
from pdf_blackout.render import DISPLAY_SCALE, PageRenderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """A fully assembled export, ready to be written out."""

    data: bytes
    filename: str
    mode: ExportMode
    region_count: int
    page_count: int


class RedactionSession:
    """Holds one document and the redactions drawn or matched on it.

    Raises on construction:
        UnreadableDocument: If ``data`` is not a readable PDF.
        ProtectedDocument: If the PDF is encrypted.
    """

    def __init__(
        self,
        data: bytes,
        filename: str = "",
        granularity: str = "word",
        matcher: SpanMatcher | None = None,
        padding: float = REGION_PADDING,
        display_scale: float = DISPLAY_SCALE,
    ) -> None:
        self._data = bytes(data)
        self.filename = filename
        self.granularity = granularity
        self.matcher = matcher
        self.padding = padding
        self.regions = RegionCollection()

        self._doc: fitz.Document = load_document(self._data)
        self.page_count = self._doc.page_count
        self.renderer = PageRenderer(self._doc, display_scale)
        self._fragments: list[TextFragment] | None = None
        self._export_lock = threading.Lock()
        logger.info("Loaded %s (%d pages)", filename or "<memory>", self.page_count)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        with self.renderer.doc_lock:
            self._doc.close()

    def __enter__(self) -> RedactionSession:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Region editing
    # ------------------------------------------------------------------

    @property
    def fragments(self) -> list[TextFragment]:
        """Text fragments of the whole document, extracted once."""
        if self._fragments is None:
            with self.renderer.doc_lock:
                self._fragments = extract_document_fragments(self._doc, self.granularity)
        return self._fragments

    def find_matches(self, term: str) -> list[MatchSpan]:
        return find_matches(term, self.fragments, self.matcher)

    def redact_term(self, term: str) -> list[RedactionRegion]:
        """Add a region for every occurrence of ``term`` and return the new regions.

        Raises:
            InvalidInput: If ``term`` is empty or whitespace only.
        """
        if not term.strip():
            raise InvalidInput("Please enter a word or phrase to redact.")
        added = []
        for span in self.find_matches(term):
            region = span_to_region(span, self.padding)
            if region is not None:
                added.append(region)
        self.regions.extend(added)
        logger.info("Term %r: %d regions added", term, len(added))
        return added

    def add_manual(
        self, screen_rect: Rect, viewport: ViewportTransform, page_index: int
    ) -> RedactionRegion | None:
        """Add the region drawn on screen, or return ``None`` for a too-small drag."""
        if not 0 <= page_index < self.page_count:
            raise InvalidInput(f"Page {page_index + 1} does not exist")
        region = capture_region(screen_rect, viewport, page_index)
        if region is not None:
            self.regions.add(region)
        return region

    def remove_at(
        self, screen_point: tuple[float, float], viewport: ViewportTransform, page_index: int
    ) -> RedactionRegion | None:
        """Remove the topmost region under a point clicked on screen.

        Returns:
            The removed region, or ``None`` if nothing was under the point.
        """
        x, y = screen_point
        point = viewport_to_page(Rect(x, y, 0, 0), viewport)
        index = self.regions.index_at(page_index, point.x, point.y)
        if index is None:
            return None
        region = self.regions.remove(index)
        logger.debug("Removed region %d on page %d", index, page_index)
        return region

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    @property
    def is_exporting(self) -> bool:
        return self._export_lock.locked()

    def export(
        self,
        mode: ExportMode,
        cancel_event: threading.Event | None = None,
        progress_callback: ProgressCallback | None = None,
        **options,
    ) -> ExportResult:
        """Export the current regions with ``mode``.

        The region list is snapshotted when the export starts and is never
        modified by it.

        Raises:
            ExportInProgress: If another export on this session is running.
            InvalidInput: If there are no regions to apply.
            ExportCancelled: If ``cancel_event`` is set before completion.
            ExportFailure: If the selected pipeline fails.
        """
        mode = ExportMode(mode)
        if not self._export_lock.acquire(blocking=False):
            raise ExportInProgress("An export is already running.")
        try:
            regions = self.regions.snapshot()
            if not regions:
                raise InvalidInput("There are no redactions to apply.")
            validate_regions(regions, self.page_count)

            logger.info("Exporting %d regions (%s)", len(regions), mode.value)
            data = apply_redactions(
                self._data,
                regions,
                mode,
                progress_callback=progress_callback,
                cancel_event=cancel_event,
                **options,
            )
            return ExportResult(
                data=data,
                filename=redacted_filename(self.filename, mode),
                mode=mode,
                region_count=len(regions),
                page_count=self.page_count,
            )
        finally:
            self._export_lock.release()
