"""
Geometry primitives for sheet nesting: areas, bounding boxes, rectangle
overlap, circle tessellation and the 2D cross product.
"""

import math
from typing import List, NamedTuple, Sequence, Tuple

import numpy as np


class Point(NamedTuple):
    """Plane coordinate in millimeters."""
    x: float
    y: float


def cross_product(a: Point, b: Point, c: Point) -> float:
    """
    Signed area (doubled) of the triangle a, b, c.

    Positive for a counter-clockwise (left) turn, negative for a clockwise
    turn and zero when the points are collinear.
    """
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def calculate_signed_area(points: Sequence[Point]) -> float:
    """Signed shoelace area (positive for counter-clockwise winding)."""
    n = len(points)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        area += x1 * y2 - x2 * y1
    return area / 2.0


def calculate_polygon_area(points: Sequence[Point]) -> float:
    """
    Calculate polygon area using the shoelace formula.

    Args:
        points: Polygon vertices, implicitly closed

    Returns:
        Absolute area in square mm, 0 for fewer than 3 points
    """
    return abs(calculate_signed_area(points))


def calculate_bounds(points: Sequence[Point]) -> Tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y) of the points, zeros when empty."""
    if not points:
        return 0.0, 0.0, 0.0, 0.0
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def calculate_bounding_box(points: Sequence[Point]) -> Tuple[float, float]:
    """
    Calculate the axis-aligned bounding box size of a point set.

    Args:
        points: Points to measure

    Returns:
        Tuple of (width, height); (0, 0) for empty input
    """
    min_x, min_y, max_x, max_y = calculate_bounds(points)
    return max_x - min_x, max_y - min_y


def calculate_overlap_area(rect1: Tuple[float, float, float, float],
                           rect2: Tuple[float, float, float, float]) -> float:
    """
    Calculate the intersection area of two axis-aligned rectangles.

    Rectangles that only touch along an edge do not overlap.

    Args:
        rect1, rect2: Rectangles as (x, y, width, height)

    Returns:
        Overlap area in square mm
    """
    x1, y1, w1, h1 = rect1
    x2, y2, w2, h2 = rect2

    left = max(x1, x2)
    right = min(x1 + w1, x2 + w2)
    bottom = max(y1, y2)
    top = min(y1 + h1, y2 + h2)

    if left >= right or bottom >= top:
        return 0.0

    return (right - left) * (top - bottom)


def circle_to_polygon(radius: float, segments: int = 16) -> List[Point]:
    """
    Approximate a circle with a regular polygon.

    The polygon is centered at (radius, radius) so that its bounding box
    matches the 2·radius square of the piece.

    Args:
        radius: Circle radius in mm
        segments: Number of polygon vertices

    Returns:
        Polygon vertices in counter-clockwise order
    """
    angles = np.arange(segments) * (2 * math.pi / segments)
    xs = radius + radius * np.cos(angles)
    ys = radius + radius * np.sin(angles)
    return [Point(float(x), float(y)) for x, y in zip(xs, ys)]
