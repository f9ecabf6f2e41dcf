"""Thin adapter over PyMuPDF for loading documents and mapping rectangles."""

from __future__ import annotations

import logging
from pathlib import Path

import fitz  # PyMuPDF

from pdf_blackout.errors import InvalidInput, ProtectedDocument, UnreadableDocument
from pdf_blackout.geometry import RectLike, ViewportTransform, page_to_viewport

logger = logging.getLogger(__name__)


def ensure_pdf_filename(name: str | Path) -> None:
    """Reject anything that does not look like a PDF file name."""
    if Path(name).suffix.lower() != ".pdf":
        raise InvalidInput(f"Not a PDF file: {name}")


def load_document(data: bytes) -> fitz.Document:
    """Open PDF bytes with PyMuPDF.

    Raises:
        UnreadableDocument: If the bytes are empty or not a readable PDF.
        ProtectedDocument: If the document is encrypted or needs a password.
    """
    if not data:
        raise UnreadableDocument("The document is empty.")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except RuntimeError as exc:  # FileDataError, EmptyFileError
        raise UnreadableDocument(f"Could not read the PDF: {exc}") from exc

    if doc.needs_pass or doc.is_encrypted or (doc.metadata or {}).get("encryption"):
        doc.close()
        raise ProtectedDocument(
            "The document is password protected or encrypted and cannot be modified."
        )
    if doc.page_count == 0:
        doc.close()
        raise UnreadableDocument("The document has no pages.")

    logger.debug("Loaded PDF with %d pages", doc.page_count)
    return doc


def page_dimensions(page: fitz.Page) -> tuple[float, float]:
    """Width and height of the visible page in page units."""
    return page.rect.width, page.rect.height


def to_fitz_rect(rect: RectLike, page_height: float) -> fitz.Rect:
    """Convert a bottom-left-origin page rectangle to PyMuPDF's top-left one.

    PyMuPDF's page coordinates are page space flipped vertically at scale 1.
    """
    flipped = page_to_viewport(rect, ViewportTransform(scale=1.0, canvas_height=page_height))
    return fitz.Rect(
        flipped.x, flipped.y, flipped.x + flipped.width, flipped.y + flipped.height
    )
