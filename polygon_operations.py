"""
Polygon operations used by the NFP placement search: Graham-scan convex hull,
ray-casting point-in-polygon tests, Minkowski-sum NFP construction and the
rigid transforms applied to piece outlines.
"""

import functools
import math
from typing import List, Sequence

import numpy as np

from geometry_utils import Point, calculate_bounds, calculate_signed_area, cross_product

# Geometric tolerance (mm)
_EPS = 1e-9


def calculate_convex_hull(points: Sequence[Point]) -> List[Point]:
    """
    Graham scan convex hull.

    The pivot is the lowest point (leftmost on ties). Remaining points are
    sorted by polar angle around it and swept, popping the last hull point
    while the last three points do not make a left turn.

    Args:
        points: Input point cloud

    Returns:
        Hull vertices in counter-clockwise order. Inputs with fewer than 3
        points are returned unchanged.
    """
    if len(points) < 3:
        return list(points)

    unique = list(dict.fromkeys(Point(float(p[0]), float(p[1])) for p in points))
    if len(unique) < 3:
        return unique

    pivot = min(unique, key=lambda p: (p.y, p.x))
    others = [p for p in unique if p != pivot]

    def _distance(p: Point) -> float:
        return (p.x - pivot.x) ** 2 + (p.y - pivot.y) ** 2

    def _compare(a: Point, b: Point) -> int:
        turn = cross_product(pivot, a, b)
        if turn > 0:
            return -1
        if turn < 0:
            return 1
        da, db = _distance(a), _distance(b)
        return -1 if da < db else (1 if da > db else 0)

    ordered = sorted(others, key=functools.cmp_to_key(_compare))

    # Points on the closing ray are visited farthest first so the nearer
    # ones can be popped at the end.
    last = ordered[-1]
    tail_start = len(ordered) - 1
    while tail_start > 0 and cross_product(pivot, ordered[tail_start - 1], last) == 0:
        tail_start -= 1
    if tail_start > 0:
        ordered[tail_start:] = reversed(ordered[tail_start:])

    hull = [pivot]
    for point in ordered:
        while len(hull) > 1 and cross_product(hull[-2], hull[-1], point) <= 0:
            hull.pop()
        hull.append(point)

    while len(hull) > 2 and cross_product(hull[-2], hull[-1], hull[0]) <= 0:
        hull.pop()

    return hull


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """
    Ray-casting point-in-polygon test.

    Points exactly on the boundary are classified consistently but not
    necessarily as inside.
    """
    x, y = point[0], point[1]
    inside = False
    n = len(polygon)
    if n < 3:
        return False

    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside


def points_in_polygon(xs: np.ndarray, ys: np.ndarray, polygon: Sequence[Point]) -> np.ndarray:
    """
    Vectorized form of :func:`point_in_polygon` over arrays of coordinates.

    Uses the same crossing test, so every point gets the same answer as the
    scalar version.

    Returns:
        Boolean array with the shape of ``xs``
    """
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    inside = np.zeros(xs.shape, dtype=bool)
    n = len(polygon)
    if n < 3:
        return inside

    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        straddles = (yi > ys) != (yj > ys)
        if yj != yi:
            x_cross = (xj - xi) * (ys - yi) / (yj - yi) + xi
            inside ^= straddles & (xs < x_cross)
        j = i

    return inside


def calculate_minkowski_nfp(fixed_polygon: Sequence[Point], moving_polygon: Sequence[Point]) -> List[Point]:
    """
    Convex approximation of the no-fit polygon via a Minkowski sum.

    Every point of the moving polygon is negated and added to every point of
    the fixed polygon; the convex hull of that cloud is returned. For
    concave shapes this over-approximates the true NFP, which can miss
    placements but never admits an overlap.

    Args:
        fixed_polygon: Outline of the piece that stays put
        moving_polygon: Outline of the piece being placed, reference point at its origin

    Returns:
        NFP outline relative to the fixed piece's origin
    """
    sums = [
        Point(fp[0] - mp[0], fp[1] - mp[1])
        for fp in fixed_polygon
        for mp in moving_polygon
    ]
    return calculate_convex_hull(sums)


def ensure_ccw(polygon: Sequence[Point]) -> List[Point]:
    """Return the polygon in counter-clockwise order."""
    if calculate_signed_area(polygon) < 0:
        return list(reversed(polygon))
    return list(polygon)


def translate_polygon(polygon: Sequence[Point], dx: float, dy: float) -> List[Point]:
    return [Point(p[0] + dx, p[1] + dy) for p in polygon]


def rotate_polygon(polygon: Sequence[Point], angle_deg: float) -> List[Point]:
    """Rotate about the origin; quarter turns are applied exactly."""
    quarter = angle_deg % 360
    if quarter == 0:
        return [Point(p[0], p[1]) for p in polygon]
    if quarter == 90:
        return [Point(-p[1], p[0]) for p in polygon]
    if quarter == 180:
        return [Point(-p[0], -p[1]) for p in polygon]
    if quarter == 270:
        return [Point(p[1], -p[0]) for p in polygon]

    rad = math.radians(angle_deg)
    cos_a = math.cos(rad)
    sin_a = math.sin(rad)
    return [Point(p[0] * cos_a - p[1] * sin_a, p[0] * sin_a + p[1] * cos_a) for p in polygon]


def normalize_polygon(polygon: Sequence[Point]) -> List[Point]:
    """Shift the polygon so its bounding box starts at the origin."""
    if not polygon:
        return []
    min_x, min_y, _, _ = calculate_bounds(polygon)
    return translate_polygon(polygon, -min_x, -min_y)


def offset_polygon(polygon: Sequence[Point], distance: float) -> List[Point]:
    """
    Grow a polygon outward by ``distance``.

    The convex hull of the polygon is taken first; each edge is pushed out
    along its normal and each vertex along its bisector (mitre join), then
    the result is re-hulled. For axis-aligned rectangles the result is
    exactly the rectangle grown by ``distance`` on every side.
    """
    hull = calculate_convex_hull(polygon)
    if distance <= _EPS or len(hull) < 3:
        return list(hull)

    n = len(hull)
    expanded = []
    for i in range(n):
        x0, y0 = hull[i]
        x1, y1 = hull[(i + 1) % n]
        ex, ey = x1 - x0, y1 - y0
        length = math.hypot(ex, ey)
        if length < _EPS:
            continue
        # Outward normal of a CCW edge points to its right.
        nx, ny = ey / length, -ex / length
        expanded.append(Point(x0 + nx * distance, y0 + ny * distance))
        expanded.append(Point(x1 + nx * distance, y1 + ny * distance))

    for i in range(n):
        xp, yp = hull[(i - 1) % n]
        x0, y0 = hull[i]
        x1, y1 = hull[(i + 1) % n]
        l_in = math.hypot(x0 - xp, y0 - yp)
        l_out = math.hypot(x1 - x0, y1 - y0)
        if l_in < _EPS or l_out < _EPS:
            continue
        n_in = ((y0 - yp) / l_in, -(x0 - xp) / l_in)
        n_out = ((y1 - y0) / l_out, -(x1 - x0) / l_out)
        bx = n_in[0] + n_out[0]
        by = n_in[1] + n_out[1]
        bl = math.hypot(bx, by)
        if bl < _EPS:
            continue
        cos_half = bl / 2.0
        # Clamp very sharp corners so the mitre doesn't spike.
        d = distance / max(cos_half, 0.25)
        expanded.append(Point(x0 + bx / bl * d, y0 + by / bl * d))

    return calculate_convex_hull(expanded)
