"""Exception hierarchy for the redaction engine.

Every error raised on purpose by ``pdf_blackout`` derives from
``RedactionError`` so front ends can tell engine failures apart from bugs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pdf_blackout.export import ExportMode


class RedactionError(Exception):
    """Base class for all redaction engine errors."""


class InvalidInput(RedactionError, ValueError):
    """Input rejected before any engine work (wrong file type, empty term, bad region)."""


class UnreadableDocument(RedactionError):
    """The document is corrupt, empty, or not a supported container."""


class ProtectedDocument(RedactionError):
    """The document is password protected or encrypted and cannot be modified."""


class RenderCancelled(RedactionError):
    """A page render was superseded by a newer render request."""


class ExportInProgress(RedactionError):
    """An export was requested while another one is still running."""


class ExportCancelled(RedactionError):
    """An export was stopped before the output was fully assembled."""


class ExportFailure(RedactionError):
    """An export failed part way through; no output was produced.

    Attributes:
        mode: The ``ExportMode`` that failed, so the user can retry or pick
            the other mode.
    """

    def __init__(self, mode: ExportMode, message: str) -> None:
        super().__init__(message)
        self.mode = mode
