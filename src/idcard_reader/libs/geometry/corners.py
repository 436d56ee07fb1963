"""Quadrilateral corner estimation from a noisy card contour.

The contour is split into four edge sectors around its center, a straight
line is fitted to every sector and adjacent lines are intersected. Whenever
a fit or an intersection is degenerate the extremal points of the four
quadrants are returned instead.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ...types import CornerQuad, Point

logger = logging.getLogger(__name__)

# Guards least-squares denominators against near-singular fits
FIT_EPSILON = 1e-6
DET_EPSILON = 1e-9

# A line in general form: A*x + B*y = C
Line = Tuple[float, float, float]


def polar_angle(center: Point, point: Point) -> float:
    """Angle of ``point`` around ``center`` in degrees, [0, 360).

    Image y grows downwards, so the angle is mirrored: top-right points
    come first, then top-left, bottom-left and bottom-right.
    """
    theta = math.degrees(math.atan2(point.y - center.y, point.x - center.x))
    return (360 - theta) % 360


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def fit_line(points: Sequence[Point], vertical: bool = False) -> Optional[Line]:
    """Least-squares line through ``points``.

    Horizontal edges are fitted as ``y = a*x + b``, vertical edges as
    ``x = c*y + d`` so near-vertical lines stay well conditioned.

    Returns:
        Line coefficients (A, B, C), or None with fewer than 2 distinct points.
    """
    unique = {(p.x, p.y) for p in points}
    n = len(unique)
    if n < 2:
        return None

    xs = np.array([p[0] for p in unique], dtype=np.float64)
    ys = np.array([p[1] for p in unique], dtype=np.float64)

    if vertical:
        # x = c*y + d  ->  x - c*y = d
        c = (n * np.sum(xs * ys) - ys.sum() * xs.sum()) / (
            n * np.sum(ys * ys) - ys.sum() ** 2 + FIT_EPSILON
        )
        d = (xs.sum() - c * ys.sum()) / n
        return 1.0, float(-c), float(d)

    # y = a*x + b  ->  -a*x + y = b
    a = (n * np.sum(xs * ys) - xs.sum() * ys.sum()) / (
        n * np.sum(xs * xs) - xs.sum() ** 2 + FIT_EPSILON
    )
    b = (ys.sum() - a * xs.sum()) / n
    return float(-a), 1.0, float(b)


def intersect_lines(l1: Line, l2: Line) -> Optional[Point]:
    """Solve the 2x2 system of two lines; None when they are parallel."""
    a1, b1, c1 = l1
    a2, b2, c2 = l2
    det = a1 * b2 - a2 * b1
    if abs(det) < DET_EPSILON:
        return None
    return Point((b2 * c1 - b1 * c2) / det, (a1 * c2 - a2 * c1) / det)


def _as_points(contour: np.ndarray) -> List[Point]:
    pts = np.asarray(contour).reshape(-1, 2)
    return [Point(float(x), float(y)) for x, y in pts]


def extremal_corners(points: Sequence[Point], center: Point) -> CornerQuad:
    """Farthest point from ``center`` in each quadrant.

    Points lying exactly on a quadrant boundary are ignored; an empty
    quadrant yields the center itself.
    """
    best = {key: (center, 0.0) for key in ("tl", "tr", "bl", "br")}

    for point in points:
        if point.x < center.x and point.y < center.y:
            key = "tl"
        elif point.x > center.x and point.y < center.y:
            key = "tr"
        elif point.x < center.x and point.y > center.y:
            key = "bl"
        elif point.x > center.x and point.y > center.y:
            key = "br"
        else:
            continue

        dist = _distance(point, center)
        if dist > best[key][1]:
            best[key] = (point, dist)

    return CornerQuad(best["tl"][0], best["tr"][0], best["bl"][0], best["br"][0])


def find_corners(contour: np.ndarray, center: Optional[Point] = None) -> CornerQuad:
    """Estimate the four corners of a card-shaped contour.

    Args:
        contour: Integer points, shape (N, 1, 2) or (N, 2), ordered or not.
        center: Reference center; defaults to the rotated bounding
            rectangle center of the contour.

    Returns:
        Corners in (top_left, top_right, bottom_left, bottom_right) order.
    """
    contour = np.asarray(contour)
    if center is None:
        (cx, cy), _, _ = cv2.minAreaRect(contour.reshape(-1, 1, 2).astype(np.float32))
        center = Point(float(cx), float(cy))

    points = _as_points(contour)
    extremal = extremal_corners(points, center)
    tl, tr, bl, br = extremal

    a_tr = polar_angle(center, tr)
    a_tl = polar_angle(center, tl)
    a_bl = polar_angle(center, bl)
    a_br = polar_angle(center, br)

    top = [tl, tr]
    bottom = [bl, br]
    left = [tl, bl]
    right = [tr, br]

    for point in points:
        angle = polar_angle(center, point)
        if a_tr < angle < a_tl:
            top.append(point)
        elif a_tl < angle < a_bl:
            left.append(point)
        elif a_bl < angle < a_br:
            bottom.append(point)
        elif angle > a_br or angle < a_tr:
            right.append(point)

    lines = (
        fit_line(top),
        fit_line(bottom),
        fit_line(left, vertical=True),
        fit_line(right, vertical=True),
    )
    if any(line is None for line in lines):
        logger.debug("Edge sector too small for a line fit, using extremal corners")
        return extremal

    t, b, l, r = lines
    corners = (
        intersect_lines(t, l),
        intersect_lines(t, r),
        intersect_lines(b, l),
        intersect_lines(b, r),
    )
    if any(corner is None for corner in corners):
        logger.debug("Parallel edge lines, using extremal corners")
        return extremal

    return CornerQuad(*corners)
