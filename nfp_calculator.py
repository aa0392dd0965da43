"""
No-Fit-Polygon calculator.

Converts pieces into polygons and computes the region where a moving piece's
reference corner may not go without overlapping a fixed piece.
"""

import logging
from typing import List

from config import DEFAULT_KERF, NFP_CONFIG
from data_models import GeometryKind, NFPResult, Piece
from geometry_utils import Point, calculate_bounding_box, calculate_polygon_area, circle_to_polygon
from polygon_operations import calculate_minkowski_nfp, ensure_ccw, offset_polygon

logger = logging.getLogger(__name__)


def _rectangle_polygon(width: float, height: float) -> List[Point]:
    return [Point(0.0, 0.0), Point(width, 0.0), Point(width, height), Point(0.0, height)]


class NFPCalculator:
    """Computes no-fit polygons between pairs of pieces for a given kerf."""

    def __init__(self, kerf: float = DEFAULT_KERF, inflate_polygons: bool = NFP_CONFIG['inflate_polygons'],
                 circle_segments: int = NFP_CONFIG['circle_segments']):
        """
        Initialize the calculator.

        Args:
            kerf: Kerf width in mm
            inflate_polygons: Offset the moving polygon by kerf/2 before the
                Minkowski sum so non-rectangular pairs get the same clearance
                as the rectangle shortcut. False keeps kerf out of the
                polygon path entirely.
            circle_segments: Tessellation used for circular pieces
        """
        self.kerf = kerf
        self.inflate_polygons = inflate_polygons
        self.circle_segments = circle_segments

    def piece_to_polygon(self, piece: Piece) -> List[Point]:
        """
        Convert a piece to its outline polygon.

        Args:
            piece: Piece to convert

        Returns:
            Outline points in counter-clockwise order; rectangles and
            polygon pieces without a usable outline (fewer than three points
            or zero area) become their corner quad
        """
        kind = piece.geometry_kind
        if kind == GeometryKind.RECTANGLE:
            return _rectangle_polygon(piece.width, piece.height)
        elif kind == GeometryKind.CIRCLE:
            return circle_to_polygon(piece.get_radius(), self.circle_segments)
        elif kind in (GeometryKind.POLYGON, GeometryKind.COMPLEX):
            if piece.has_outline():
                return ensure_ccw(piece.geometry_points)
            return _rectangle_polygon(piece.width, piece.height)
        raise ValueError(f"Unhandled geometry kind: {kind}")

    def calculate_nfp(self, fixed_piece: Piece, moving_piece: Piece) -> NFPResult:
        """
        Closed-form NFP of two rectangles.

        The moving piece's reference corner is excluded from
        [-mw - k/2, fw + k/2] x [-mh - k/2, fh + k/2].
        """
        half = self.kerf / 2
        expanded_width = fixed_piece.width + moving_piece.width + self.kerf
        expanded_height = fixed_piece.height + moving_piece.height + self.kerf

        polygon = [
            Point(-moving_piece.width - half, -moving_piece.height - half),
            Point(fixed_piece.width + half, -moving_piece.height - half),
            Point(fixed_piece.width + half, fixed_piece.height + half),
            Point(-moving_piece.width - half, fixed_piece.height + half),
        ]

        return NFPResult(
            polygon=polygon,
            area=expanded_width * expanded_height,
            bounding_box=(expanded_width, expanded_height)
        )

    def calculate_advanced_nfp(self, fixed_piece: Piece, moving_piece: Piece) -> NFPResult:
        """
        NFP for arbitrary shapes.

        Non-rectangular pairs go through the Minkowski sum of the two
        outlines; two rectangles use :meth:`calculate_nfp`.
        """
        if fixed_piece.is_rectangular() and moving_piece.is_rectangular():
            return self.calculate_nfp(fixed_piece, moving_piece)

        fixed_polygon = self.piece_to_polygon(fixed_piece)
        moving_polygon = self.piece_to_polygon(moving_piece)
        if self.inflate_polygons and self.kerf > 0:
            moving_polygon = offset_polygon(moving_polygon, self.kerf / 2)

        nfp_polygon = calculate_minkowski_nfp(fixed_polygon, moving_polygon)
        logger.debug(f"Minkowski NFP {fixed_piece} / {moving_piece}: {len(nfp_polygon)} vertices")

        return NFPResult(
            polygon=nfp_polygon,
            area=calculate_polygon_area(nfp_polygon),
            bounding_box=calculate_bounding_box(nfp_polygon)
        )
