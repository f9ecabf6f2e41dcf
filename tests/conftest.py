"""Shared fixtures: small PDFs generated on the fly with PyMuPDF."""

from __future__ import annotations

from typing import Callable

import fitz  # PyMuPDF
import pytest

PAGE_WIDTH = 612
PAGE_HEIGHT = 792


def build_pdf_bytes(pages: list[str], rotation: int = 0, **save_options) -> bytes:
    """Create a PDF with the given text on each page, at (72, 72) from the top-left.

    ``rotation`` is applied to every page after the text is written, so the
    text sits at the same unrotated position whatever the rotation.
    """
    doc = fitz.open()
    for text in pages:
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        page.insert_text((72, 72), text, fontsize=12)
        if rotation:
            page.set_rotation(rotation)
    data = doc.tobytes(**save_options)
    doc.close()
    return data


def visible_word_box(data: bytes, word: str, page_index: int = 0) -> fitz.Rect:
    """Box of the first occurrence of ``word`` as it appears on the displayed page."""
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        page = doc[page_index]
        return page.search_for(word)[0] * page.rotation_matrix
    finally:
        doc.close()


def dark_fraction(data: bytes, box: fitz.Rect, page_index: int = 0) -> float:
    """Share of near-black pixels inside ``box`` on the page rendered at 1x.

    A one-pixel border is left out so anti-aliased edges do not count.
    """
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        pix = doc[page_index].get_pixmap(alpha=False)
    finally:
        doc.close()

    xs = range(max(int(box.x0) + 1, 0), min(int(box.x1) - 1, pix.width))
    ys = range(max(int(box.y0) + 1, 0), min(int(box.y1) - 1, pix.height))
    total = len(xs) * len(ys)
    if not total:
        return 0.0
    dark = sum(1 for x in xs for y in ys if max(pix.pixel(x, y)) < 64)
    return dark / total


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf_bytes


@pytest.fixture
def word_box() -> Callable[..., fitz.Rect]:
    return visible_word_box


@pytest.fixture
def darkness() -> Callable[..., float]:
    return dark_fraction


@pytest.fixture
def encrypted_pdf() -> bytes:
    return build_pdf_bytes(
        ["Top secret"],
        encryption=fitz.PDF_ENCRYPT_AES_256,
        owner_pw="owner",
        user_pw="user",
    )
