"""PDF redaction engine with recoverable and secure export modes.

Usage::

    from pdf_blackout import ExportMode, RedactionSession

    with RedactionSession(Path("input.pdf").read_bytes(), "input.pdf") as session:
        session.redact_term("Jane Smith")
        result = session.export(ExportMode.SECURE)
    Path(result.filename).write_bytes(result.data)

Or redact terms in a file in one call::

    from pdf_blackout import redact_pdf, parse_terms

    result = redact_pdf(Path("input.pdf"), parse_terms("secret, confidential"))

Or run the GUI::

    python -m pdf_blackout
"""

from pdf_blackout.aggregate import rect_to_region, span_to_region, to_region
from pdf_blackout.capture import RegionCollection, capture_region
from pdf_blackout.errors import (
    ExportCancelled,
    ExportFailure,
    ExportInProgress,
    InvalidInput,
    ProtectedDocument,
    RedactionError,
    RenderCancelled,
    UnreadableDocument,
)
from pdf_blackout.export import (
    ExportMode,
    apply_recoverable,
    apply_redactions,
    apply_secure,
    redacted_filename,
)
from pdf_blackout.fragments import Rect, RedactionRegion, TextFragment, extract_fragments
from pdf_blackout.geometry import (
    ViewportTransform,
    page_to_raster,
    page_to_viewport,
    raster_to_page,
    viewport_to_page,
)
from pdf_blackout.matcher import MatchSpan, PrefixSpanMatcher, SpanMatcher, find_matches
from pdf_blackout.redactor import RedactionResult, parse_terms, redact_pdf
from pdf_blackout.session import ExportResult, RedactionSession

__all__ = [
    "ExportCancelled",
    "ExportFailure",
    "ExportInProgress",
    "ExportMode",
    "ExportResult",
    "InvalidInput",
    "MatchSpan",
    "PrefixSpanMatcher",
    "ProtectedDocument",
    "Rect",
    "RedactionError",
    "RedactionRegion",
    "RedactionResult",
    "RedactionSession",
    "RegionCollection",
    "RenderCancelled",
    "SpanMatcher",
    "TextFragment",
    "UnreadableDocument",
    "ViewportTransform",
    "apply_recoverable",
    "apply_redactions",
    "apply_secure",
    "capture_region",
    "extract_fragments",
    "find_matches",
    "page_to_raster",
    "page_to_viewport",
    "parse_terms",
    "raster_to_page",
    "rect_to_region",
    "redact_pdf",
    "redacted_filename",
    "span_to_region",
    "to_region",
    "viewport_to_page",
]
