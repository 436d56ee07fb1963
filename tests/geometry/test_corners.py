"""
Unit tests for corner estimation.

Tests line fitting, intersection and the extremal-point fallback.
"""

import numpy as np
import pytest

from idcard_reader.libs.geometry import corners
from idcard_reader.libs.geometry.corners import (
    extremal_corners,
    find_corners,
    fit_line,
    intersect_lines,
    polar_angle,
)
from idcard_reader.types import Point


def square_contour(x1, y1, x2, y2, step=10):
    """Dense outline of an axis-aligned rectangle, shape (N, 1, 2)."""
    pts = []
    pts += [(x, y1) for x in range(x1, x2, step)]
    pts += [(x2, y) for y in range(y1, y2, step)]
    pts += [(x, y2) for x in range(x2, x1, -step)]
    pts += [(x1, y) for y in range(y2, y1, -step)]
    return np.array(pts, dtype=np.int32).reshape(-1, 1, 2)


def assert_close(point, expected, tol=1.0):
    assert abs(point.x - expected[0]) <= tol, f"{point} != {expected}"
    assert abs(point.y - expected[1]) <= tol, f"{point} != {expected}"


class TestPolarAngle:
    """Test the mirrored polar angle."""

    def test_quadrant_order(self):
        c = Point(0, 0)

        assert polar_angle(c, Point(1, -1)) == pytest.approx(45)   # top-right
        assert polar_angle(c, Point(-1, -1)) == pytest.approx(135)  # top-left
        assert polar_angle(c, Point(-1, 1)) == pytest.approx(225)  # bottom-left
        assert polar_angle(c, Point(1, 1)) == pytest.approx(315)   # bottom-right

    def test_range(self):
        c = Point(5, 5)
        for p in [Point(6, 5), Point(5, 4), Point(4, 5), Point(5, 6)]:
            assert 0 <= polar_angle(c, p) < 360


class TestLineFitting:
    """Test least-squares fits and intersections."""

    def test_horizontal_line(self):
        line = fit_line([Point(0, 2), Point(4, 4), Point(8, 6)])

        a, b, c = line
        # -a*x + y = b form with slope 0.5 and intercept 2
        assert a == pytest.approx(-0.5, abs=1e-4)
        assert b == 1.0
        assert c == pytest.approx(2.0, abs=1e-4)

    def test_vertical_line(self):
        line = fit_line([Point(3, 0), Point(3, 10), Point(3, 20)], vertical=True)

        a, b, c = line
        assert a == 1.0
        assert b == pytest.approx(0.0, abs=1e-6)
        assert c == pytest.approx(3.0, abs=1e-6)

    def test_single_distinct_point_returns_none(self):
        assert fit_line([Point(1, 1), Point(1, 1)]) is None
        assert fit_line([], vertical=True) is None

    def test_intersection(self):
        horizontal = (0.0, 1.0, 100.0)  # y = 100
        vertical = (1.0, 0.0, 30.0)  # x = 30

        p = intersect_lines(horizontal, vertical)

        assert_close(p, (30, 100), tol=1e-9)

    def test_parallel_lines_return_none(self):
        assert intersect_lines((0.0, 1.0, 1.0), (0.0, 1.0, 5.0)) is None


class TestExtremalCorners:
    """Test the quadrant fallback."""

    def test_farthest_point_per_quadrant(self):
        c = Point(10, 10)
        pts = [Point(0, 0), Point(5, 5), Point(20, 1), Point(2, 19), Point(18, 18), Point(19, 19)]

        quad = extremal_corners(pts, c)

        assert quad.top_left == Point(0, 0)
        assert quad.top_right == Point(20, 1)
        assert quad.bottom_left == Point(2, 19)
        assert quad.bottom_right == Point(19, 19)

    def test_empty_quadrant_yields_center(self):
        c = Point(10, 10)

        quad = extremal_corners([Point(0, 0)], c)

        assert quad.top_left == Point(0, 0)
        assert quad.top_right == c
        assert quad.bottom_left == c
        assert quad.bottom_right == c


class TestFindCorners:
    """Test corner estimation on contours."""

    def test_perfect_square(self):
        contour = square_contour(100, 100, 300, 300)

        quad = find_corners(contour)

        assert_close(quad.top_left, (100, 100))
        assert_close(quad.top_right, (300, 100))
        assert_close(quad.bottom_left, (100, 300))
        assert_close(quad.bottom_right, (300, 300))

    def test_point_order_does_not_matter(self):
        contour = square_contour(50, 40, 250, 160, step=5).reshape(-1, 2)
        shuffled = contour[np.random.RandomState(0).permutation(len(contour))]

        quad = find_corners(shuffled)

        assert_close(quad.top_left, (50, 40))
        assert_close(quad.bottom_right, (250, 160))

    def test_edges_intersect_beyond_rounded_corners(self):
        """Lines fitted along the edges recover corners cut off by rounding."""
        contour = square_contour(100, 100, 300, 200, step=4).reshape(-1, 2)
        inside = (
            (contour[:, 0] - 100) + (contour[:, 1] - 100) >= 8
        ) & (
            (300 - contour[:, 0]) + (200 - contour[:, 1]) >= 8
        ) & (
            (300 - contour[:, 0]) + (contour[:, 1] - 100) >= 8
        ) & (
            (contour[:, 0] - 100) + (200 - contour[:, 1]) >= 8
        )
        contour = contour[inside]

        quad = find_corners(contour, center=Point(200, 150))

        assert_close(quad.top_left, (100, 100), tol=1.5)
        assert_close(quad.top_right, (300, 100), tol=1.5)
        assert_close(quad.bottom_left, (100, 200), tol=1.5)
        assert_close(quad.bottom_right, (300, 200), tol=1.5)

    def test_degenerate_sectors_fall_back_without_intersection(self, monkeypatch):
        def fail(*args):
            raise AssertionError("intersect_lines must not be called")

        monkeypatch.setattr(corners, "intersect_lines", fail)
        center = Point(10, 10)
        contour = np.array([[10, 0], [10, 5], [10, 20]], dtype=np.int32)

        quad = find_corners(contour, center=center)

        assert all(p == center for p in quad)
