"""Tests for region aggregation, manual capture and the region collection."""

from __future__ import annotations

import math

import pytest

from pdf_blackout.aggregate import (
    rect_to_region,
    regions_for_term,
    span_to_region,
    to_region,
)
from pdf_blackout.capture import RegionCollection, capture_region
from pdf_blackout.errors import InvalidInput
from pdf_blackout.fragments import Rect, RedactionRegion, TextFragment
from pdf_blackout.geometry import ViewportTransform, page_to_viewport
from pdf_blackout.matcher import MatchSpan, find_matches

JANE = TextFragment(0, "Jane", origin_x=72, origin_y=700, width=30, height=12)
SMITH = TextFragment(0, "Smith", origin_x=105, origin_y=698, width=35, height=14)


# ------------------------------------------------------------------
# Aggregation
# ------------------------------------------------------------------


class TestSpanToRegion:
    def test_union_of_fragments_plus_padding(self) -> None:
        region = span_to_region(MatchSpan((JANE, SMITH)), padding=1.0)

        assert region == RedactionRegion(0, x=71, y=697, width=70, height=16)

    def test_without_padding(self) -> None:
        region = span_to_region(MatchSpan((JANE, SMITH)), padding=0.0)
        assert region == RedactionRegion(0, x=72, y=698, width=68, height=14)

    def test_encloses_every_fragment(self) -> None:
        region = span_to_region(MatchSpan((JANE, SMITH)))
        assert region is not None
        for f in (JANE, SMITH):
            assert region.x < f.origin_x
            assert region.y < f.origin_y
            assert region.x + region.width > f.origin_x + f.width
            assert region.y + region.height > f.origin_y + f.height

    def test_non_finite_bounds_produce_nothing(self) -> None:
        broken = TextFragment(0, "x", origin_x=math.inf, origin_y=0, width=1, height=1)
        assert span_to_region(MatchSpan((broken,))) is None

    def test_jane_smith_scenario(self) -> None:
        matches = find_matches("jane smith", [JANE, SMITH])
        assert len(matches) == 1

        region = to_region(matches[0])
        assert region is not None
        assert region.page_index == 0
        assert region.x == pytest.approx(71)
        assert region.width == pytest.approx(70)


class TestManualRegions:
    def test_rect_to_region_unpadded(self) -> None:
        assert rect_to_region(2, Rect(1, 2, 3, 4)) == RedactionRegion(2, 1, 2, 3, 4)

    def test_rect_to_region_padded(self) -> None:
        assert rect_to_region(0, Rect(10, 10, 5, 5), padding=1) == RedactionRegion(
            0, 9, 9, 7, 7
        )

    def test_to_region_needs_page_index(self) -> None:
        with pytest.raises(InvalidInput):
            to_region(Rect(1, 2, 3, 4))

    def test_to_region_with_rect(self) -> None:
        assert to_region(Rect(1, 2, 3, 4), page_index=1) == RedactionRegion(1, 1, 2, 3, 4)

    def test_regions_for_term(self) -> None:
        other = TextFragment(1, "jane smith", origin_x=0, origin_y=0, width=50, height=10)
        regions = regions_for_term("Jane Smith", [JANE, SMITH, other])

        assert [r.page_index for r in regions] == [0, 1]


class TestRedactionRegion:
    def test_rejects_negative_size(self) -> None:
        with pytest.raises(InvalidInput):
            RedactionRegion(0, 0, 0, -1, 5)

    def test_rejects_negative_page(self) -> None:
        with pytest.raises(InvalidInput):
            RedactionRegion(-1, 0, 0, 1, 1)

    def test_invalid_input_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            RedactionRegion(0, 0, 0, 1, -1)


# ------------------------------------------------------------------
# Manual capture
# ------------------------------------------------------------------


class TestCaptureRegion:
    viewport = ViewportTransform(scale=1.5, canvas_height=1188)

    def test_tiny_drag_rejected(self) -> None:
        assert capture_region(Rect(100, 100, 2, 2), self.viewport, 0) is None

    def test_threshold_is_exclusive(self) -> None:
        assert capture_region(Rect(100, 100, 5, 50), self.viewport, 0) is None
        assert capture_region(Rect(100, 100, 50, 5), self.viewport, 0) is None

    def test_drag_round_trips_to_screen(self) -> None:
        screen = Rect(120, 340, 50, 20)
        region = capture_region(screen, self.viewport, 3)

        assert region is not None
        assert region.page_index == 3
        back = page_to_viewport(region, self.viewport)
        assert back.x == pytest.approx(screen.x, abs=1e-6)
        assert back.y == pytest.approx(screen.y, abs=1e-6)
        assert back.width == pytest.approx(screen.width, abs=1e-6)
        assert back.height == pytest.approx(screen.height, abs=1e-6)

    def test_region_is_in_page_units(self) -> None:
        region = capture_region(Rect(0, 0, 150, 30), self.viewport, 0)

        assert region is not None
        assert region.width == pytest.approx(100)
        assert region.height == pytest.approx(20)
        assert region.y == pytest.approx(792 - 20)


# ------------------------------------------------------------------
# Region collection
# ------------------------------------------------------------------


class TestRegionCollection:
    a = RedactionRegion(0, 1, 1, 1, 1)
    b = RedactionRegion(1, 2, 2, 2, 2)

    def test_undo_removes_last_added(self) -> None:
        regions = RegionCollection()
        regions.add(self.a)
        regions.add(self.b)

        assert regions.undo() == self.b
        assert list(regions) == [self.a]

    def test_undo_on_empty(self) -> None:
        assert RegionCollection().undo() is None

    def test_duplicates_kept(self) -> None:
        regions = RegionCollection([self.a, self.a])
        assert len(regions) == 2

    def test_remove_and_clear(self) -> None:
        regions = RegionCollection([self.a, self.b, self.a])

        assert regions.remove(1) == self.b
        assert list(regions) == [self.a, self.a]
        regions.clear()
        assert len(regions) == 0

    def test_index_at_picks_latest_covering_region(self) -> None:
        low = RedactionRegion(0, 10, 10, 100, 100)
        high = RedactionRegion(0, 50, 50, 20, 20)
        other_page = RedactionRegion(1, 0, 0, 500, 500)
        regions = RegionCollection([low, high, other_page])

        assert regions.index_at(0, 60, 60) == 1
        assert regions.index_at(0, 20, 20) == 0
        assert regions.index_at(0, 110, 110) == 0
        assert regions.index_at(0, 5, 5) is None
        assert regions.index_at(1, 5, 5) == 2
        assert regions.index_at(2, 5, 5) is None

    def test_for_page(self) -> None:
        regions = RegionCollection([self.a, self.b, self.a])
        assert regions.for_page(0) == [self.a, self.a]

    def test_snapshot_unaffected_by_later_edits(self) -> None:
        regions = RegionCollection([self.a])
        snapshot = regions.snapshot()
        regions.add(self.b)
        regions.undo()
        regions.undo()

        assert snapshot == (self.a,)
