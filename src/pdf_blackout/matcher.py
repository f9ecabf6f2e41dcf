"""Locate a phrase that may be split across several text fragments.

A renderer is free to emit "Jane Smith" as one fragment, as ``"Jane"`` and
``"Smith"``, or as ``"Ja"``, ``"ne "``, ``"Smith"``. Matching therefore works
on a normalized form of the text (lower-cased, all whitespace removed) and
accumulates consecutive fragments until the phrase is complete.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from pdf_blackout.errors import InvalidInput
from pdf_blackout.fragments import TextFragment

logger = logging.getLogger(__name__)

# A start position is abandoned once its buffer grows past this multiple of
# the normalized phrase length.
MAX_BUFFER_FACTOR = 2


def normalize(text: str) -> str:
    """Lower-case ``text`` and drop every whitespace character."""
    return "".join(text.lower().split())


@dataclass(frozen=True)
class MatchSpan:
    """A contiguous run of fragments on one page that spells the target phrase."""

    fragments: tuple[TextFragment, ...]

    def __post_init__(self) -> None:
        if not self.fragments:
            raise InvalidInput("A match span needs at least one fragment.")
        pages = {fragment.page_index for fragment in self.fragments}
        if len(pages) != 1:
            raise InvalidInput(f"A match span cannot cross pages, got pages {sorted(pages)}")

    @property
    def page_index(self) -> int:
        return self.fragments[0].page_index

    @property
    def text(self) -> str:
        return " ".join(fragment.text for fragment in self.fragments)


class SpanMatcher:
    """Strategy interface for finding phrase occurrences in a fragment list."""

    def find(self, term: str, fragments: Sequence[TextFragment]) -> list[MatchSpan]:
        raise NotImplementedError


class PrefixSpanMatcher(SpanMatcher):
    """Normalized-prefix matching over consecutive fragments.

    For every start index the matcher appends the normalized text of the
    following fragments to a buffer. Accumulation stops when the page
    changes, when the buffer and the phrase are no longer prefixes of one
    another, or when the buffer equals the phrase (a match). Matches never
    overlap: scanning resumes after the last fragment of a match.

    The result does not depend on font metrics or on where the renderer
    chose to split the text.
    """

    def __init__(self, max_buffer_factor: int = MAX_BUFFER_FACTOR) -> None:
        if max_buffer_factor < 1:
            raise InvalidInput("max_buffer_factor must be at least 1")
        self.max_buffer_factor = max_buffer_factor

    def find(self, term: str, fragments: Sequence[TextFragment]) -> list[MatchSpan]:
        needle = normalize(term)
        if not needle:
            return []

        keys = [normalize(fragment.text) for fragment in fragments]
        limit = len(needle) * self.max_buffer_factor
        matches: list[MatchSpan] = []

        i = 0
        while i < len(fragments):
            end = self._match_end(i, needle, fragments, keys, limit)
            if end is None:
                i += 1
                continue
            span = MatchSpan(tuple(fragments[i : end + 1]))
            logger.debug("Matched %r on page %d: %r", term, span.page_index, span.text)
            matches.append(span)
            i = end + 1

        return matches

    @staticmethod
    def _match_end(
        start: int,
        needle: str,
        fragments: Sequence[TextFragment],
        keys: Sequence[str],
        limit: int,
    ) -> int | None:
        """Return the index of the last fragment of a match starting at ``start``."""
        if not keys[start]:
            # Whitespace-only fragments never open a match.
            return None

        page_index = fragments[start].page_index
        buffer = ""
        for j in range(start, len(fragments)):
            if fragments[j].page_index != page_index:
                return None
            buffer += keys[j]
            if buffer == needle:
                return j
            if len(buffer) > limit:
                return None
            if not needle.startswith(buffer) and not buffer.startswith(needle):
                return None
        return None


_DEFAULT_MATCHER = PrefixSpanMatcher()


def find_matches(
    term: str,
    fragments: Sequence[TextFragment],
    matcher: SpanMatcher | None = None,
) -> list[MatchSpan]:
    """Return every non-overlapping occurrence of ``term`` in ``fragments``.

    Args:
        term: Phrase to look for; casing and whitespace are ignored.
        fragments: Fragments in content-stream order, possibly spanning
            several pages.
        matcher: Matching strategy. Defaults to ``PrefixSpanMatcher``.

    Returns:
        Match spans in document order. A term without any non-whitespace
        character yields an empty list.
    """
    return (matcher or _DEFAULT_MATCHER).find(term, fragments)
