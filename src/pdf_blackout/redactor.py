"""Batch redaction of search terms in a PDF file.

Finds every occurrence of the given terms with the span matcher, turns each
match into a padded region and exports the result in the requested mode. The
default is ``ExportMode.SECURE``, which leaves nothing recoverable behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from pdf_blackout.aggregate import REGION_PADDING, span_to_region
from pdf_blackout.document import ensure_pdf_filename, load_document
from pdf_blackout.errors import InvalidInput
from pdf_blackout.export import (
    DEFAULT_FILL_COLOR,
    ExportMode,
    apply_redactions,
    redacted_filename,
)
from pdf_blackout.fragments import RedactionRegion, extract_document_fragments
from pdf_blackout.matcher import find_matches

logger = logging.getLogger(__name__)


@dataclass
class RedactionResult:
    """Summary of a completed redaction operation.

    Attributes:
        output_path: Where the redacted PDF was saved.
        mode: Export mode used.
        total_matches: Total number of matches redacted across all pages.
        matches_per_term: Count of matches found for each search term.
        pages_modified: Number of pages that contained at least one match.
        pages_total: Total number of pages in the document.
    """

    output_path: Path
    mode: ExportMode
    total_matches: int
    matches_per_term: dict[str, int]
    pages_modified: int
    pages_total: int
    terms_not_found: list[str] = field(default_factory=list)


def parse_terms(raw_input: str) -> list[str]:
    """Parse a raw string of redaction terms into a deduplicated list.

    Terms can be separated by newlines or commas. Leading/trailing whitespace
    is stripped from each term. Empty terms and duplicates are removed.

    Args:
        raw_input: Raw text containing terms separated by newlines or commas.

    Returns:
        Ordered list of unique, non-empty terms.
    """
    seen: set[str] = set()
    terms: list[str] = []
    for line in raw_input.splitlines():
        for part in line.split(","):
            term = part.strip()
            if term and term not in seen:
                seen.add(term)
                terms.append(term)
    return terms


def write_output(path: Path, data: bytes) -> None:
    """Write ``data`` next to ``path`` and move it into place in one step."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def redact_pdf(
    input_path: Path,
    terms: list[str],
    output_path: Path | None = None,
    mode: ExportMode = ExportMode.SECURE,
    fill_color: tuple[float, float, float] = DEFAULT_FILL_COLOR,
    granularity: str = "word",
    padding: float = REGION_PADDING,
    progress_callback: Callable[[int, int], None] | None = None,
) -> RedactionResult:
    """Search for and redact all occurrences of terms in a PDF.

    Each match is covered with a filled rectangle. In secure mode every page
    is rasterized so the covered text is destroyed; in recoverable mode the
    text stays in the file underneath the rectangle.

    Args:
        input_path: Path to the source PDF file.
        terms: List of text strings to search for and redact.
        output_path: Where to save the redacted PDF. Defaults to
            ``<original_stem>_redacted_<mode>.pdf`` in the same directory.
        mode: ``ExportMode.SECURE`` (default) or ``ExportMode.RECOVERABLE``.
        fill_color: RGB fill color for redaction boxes, each component 0.0-1.0.
            Defaults to black ``(0, 0, 0)``.
        granularity: Text fragment granularity, ``"word"`` or ``"span"``.
        padding: Margin added around each match, in page units.
        progress_callback: Optional callable invoked after each page is
            exported, receiving ``(current_page, total_pages)`` (1-indexed).

    Returns:
        A ``RedactionResult`` summarizing what was redacted and where the
        output was saved.

    Raises:
        FileNotFoundError: If ``input_path`` does not exist.
        InvalidInput: If ``terms`` is empty or the file is not a PDF.
        UnreadableDocument: If the file is not a valid PDF.
        ProtectedDocument: If the PDF is encrypted.
        ExportFailure: If the export pipeline fails.
        PermissionError: If the output file cannot be written.
    """
    input_path = Path(input_path)
    if not input_path.exists():
        raise FileNotFoundError(f"PDF not found: {input_path}")
    ensure_pdf_filename(input_path)
    if not terms:
        raise InvalidInput("At least one redaction term is required.")
    mode = ExportMode(mode)

    if output_path is None:
        output_path = input_path.with_name(redacted_filename(input_path.name, mode))
    output_path = Path(output_path)

    logger.info("Opening PDF: %s (%d terms to redact)", input_path, len(terms))
    data = input_path.read_bytes()

    doc = load_document(data)
    try:
        total_pages = doc.page_count
        fragments = extract_document_fragments(doc, granularity)
    finally:
        doc.close()

    matches_per_term: dict[str, int] = {term: 0 for term in terms}
    regions: list[RedactionRegion] = []
    for term in terms:
        for span in find_matches(term, fragments):
            region = span_to_region(span, padding)
            if region is not None:
                regions.append(region)
                matches_per_term[term] += 1

    pages_modified = len({region.page_index for region in regions})
    redacted = apply_redactions(
        data,
        regions,
        mode,
        fill_color=fill_color,
        progress_callback=progress_callback,
    )
    write_output(output_path, redacted)
    logger.info("Saved redacted PDF (%s): %s", mode.value, output_path)

    total_matches = sum(matches_per_term.values())
    terms_not_found = [t for t, count in matches_per_term.items() if count == 0]

    if terms_not_found:
        logger.warning("Terms with no matches: %s", terms_not_found)

    return RedactionResult(
        output_path=output_path,
        mode=mode,
        total_matches=total_matches,
        matches_per_term=matches_per_term,
        pages_modified=pages_modified,
        pages_total=total_pages,
        terms_not_found=terms_not_found,
    )
