"""Cancellable page rendering for interactive previews.

Only the most recent render request is live: starting a render for another
page cancels the one in flight, and the completion of a cancelled render is
dropped instead of painting stale content.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

import fitz  # PyMuPDF

from pdf_blackout.errors import RenderCancelled
from pdf_blackout.geometry import ViewportTransform

logger = logging.getLogger(__name__)

# Zoom of the on-screen preview, in pixels per page unit.
DISPLAY_SCALE = 1.5


@dataclass
class RenderTicket:
    """Handle of one render request."""

    page_index: int
    generation: int
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class PageRenderer:
    """Renders pages of one document, keeping only the latest request alive.

    ``start`` is called from the interaction thread; ``render`` may run on a
    worker thread; ``deliver`` hands the result back and drops it if a newer
    request has been made in the meantime.
    """

    def __init__(self, doc: fitz.Document, scale: float = DISPLAY_SCALE) -> None:
        self._doc = doc
        self.scale = scale
        self._lock = threading.Lock()
        self._generation = 0
        self._current: RenderTicket | None = None
        # PyMuPDF documents are not safe for concurrent access.
        self.doc_lock = threading.Lock()

    def start(self, page_index: int) -> RenderTicket:
        """Begin a new render request, cancelling the one in flight."""
        if not 0 <= page_index < self._doc.page_count:
            raise IndexError(f"Page {page_index} out of range")
        with self._lock:
            if self._current is not None:
                self._current.cancel()
            self._generation += 1
            self._current = RenderTicket(page_index, self._generation)
            return self._current

    def is_current(self, ticket: RenderTicket) -> bool:
        with self._lock:
            return ticket is self._current and not ticket.cancelled

    def render(self, ticket: RenderTicket) -> fitz.Pixmap:
        """Render the ticket's page.

        Raises:
            RenderCancelled: If the ticket was superseded before or while
                the page was being rendered.
        """
        if ticket.cancelled:
            raise RenderCancelled(f"Render of page {ticket.page_index} cancelled")
        with self.doc_lock:
            page = self._doc[ticket.page_index]
            pix = page.get_pixmap(matrix=fitz.Matrix(self.scale, self.scale), alpha=False)
        if ticket.cancelled:
            raise RenderCancelled(f"Render of page {ticket.page_index} cancelled")
        logger.debug("Rendered page %d (%dx%d)", ticket.page_index, pix.width, pix.height)
        return pix

    def deliver(
        self,
        ticket: RenderTicket,
        pixmap: fitz.Pixmap,
        callback: Callable[[int, fitz.Pixmap], None],
    ) -> bool:
        """Invoke ``callback(page_index, pixmap)`` if ``ticket`` is still current.

        Returns:
            ``True`` if the callback ran, ``False`` if the result was stale.
        """
        if not self.is_current(ticket):
            logger.debug("Dropping stale render of page %d", ticket.page_index)
            return False
        callback(ticket.page_index, pixmap)
        return True

    def viewport_for(self, page_index: int) -> ViewportTransform:
        """Viewport of a page rendered by this renderer at the canvas origin."""
        with self.doc_lock:
            page_height = self._doc[page_index].rect.height
        return ViewportTransform(scale=self.scale, canvas_height=page_height * self.scale)
