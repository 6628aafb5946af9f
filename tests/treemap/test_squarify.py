"""Tests for treemap.squarify."""

import pytest

from alertboard.treemap import Rect, squarify


def _area(rect):
    return rect.width * rect.height


def _inside(rect, bounds, tol=1e-9):
    return (
        rect.x0 >= bounds.x0 - tol
        and rect.y0 >= bounds.y0 - tol
        and rect.x1 <= bounds.x1 + tol
        and rect.y1 <= bounds.y1 + tol
    )


def _overlap(a, b):
    w = min(a.x1, b.x1) - max(a.x0, b.x0)
    h = min(a.y1, b.y1) - max(a.y0, b.y0)
    return max(w, 0.0) * max(h, 0.0)


class TestSquarify:
    def test_single_value_fills_bounds(self):
        bounds = Rect(0, 0, 10, 20)
        assert squarify([5], bounds) == [bounds]

    def test_two_equal_values_split_wide_box(self):
        rects = squarify([1, 1], Rect(0, 0, 100, 50))
        assert rects == [Rect(0, 0, 50, 50), Rect(50, 0, 100, 50)]

    def test_tall_box_is_diced(self):
        rects = squarify([1, 1], Rect(0, 0, 50, 100))
        assert rects == [Rect(0, 0, 50, 50), Rect(0, 50, 50, 100)]

    def test_areas_proportional_to_values(self):
        values = [6, 6, 4, 3, 2, 2, 1]
        bounds = Rect(0, 0, 600, 400)
        rects = squarify(values, bounds)
        total_area = bounds.width * bounds.height
        for value, rect in zip(values, rects):
            assert _area(rect) == pytest.approx(total_area * value / sum(values))

    def test_tiles_cover_bounds_without_overlap(self):
        values = [40, 25, 10, 10, 8, 4, 2, 1]
        bounds = Rect(5, 5, 305, 205)
        rects = squarify(values, bounds)
        assert sum(_area(r) for r in rects) == pytest.approx(300 * 200)
        for i, a in enumerate(rects):
            assert _inside(a, bounds)
            for b in rects[i + 1:]:
                assert _overlap(a, b) == pytest.approx(0.0, abs=1e-6)

    def test_results_in_input_order(self):
        rects = squarify([1, 9], Rect(0, 0, 100, 100))
        assert _area(rects[0]) == pytest.approx(1000)
        assert _area(rects[1]) == pytest.approx(9000)

    def test_zero_values_get_zero_area(self):
        rects = squarify([5, 0, 5], Rect(0, 0, 100, 100))
        assert _area(rects[1]) == 0
        assert _area(rects[0]) + _area(rects[2]) == pytest.approx(10_000)

    def test_empty_input(self):
        assert squarify([], Rect(0, 0, 10, 10)) == []

    @pytest.mark.parametrize("bounds", [Rect(0, 0, 0, 10), Rect(0, 0, 10, 0), Rect(5, 5, 2, 2)])
    def test_degenerate_bounds(self, bounds):
        rects = squarify([1, 2], bounds)
        assert len(rects) == 2
        assert all(_area(r) == 0 for r in rects)

    def test_all_zero_values(self):
        rects = squarify([0, 0], Rect(0, 0, 10, 10))
        assert rects == [Rect(0, 0, 0, 0), Rect(0, 0, 0, 0)]

    def test_many_small_values(self):
        values = [1.0] * 500
        rects = squarify(values, Rect(0, 0, 1000, 800))
        assert sum(_area(r) for r in rects) == pytest.approx(800_000)
