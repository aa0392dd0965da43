"""Tests for nfp_calculator module."""
import pytest

from data_models import GeometryKind, Piece
from geometry_utils import Point, calculate_bounding_box
from nfp_calculator import NFPCalculator
from polygon_operations import point_in_polygon


class TestPieceToPolygon:

    def test_rectangle(self):
        polygon = NFPCalculator().piece_to_polygon(Piece(width=30, height=20))
        assert polygon == [Point(0, 0), Point(30, 0), Point(30, 20), Point(0, 20)]

    def test_circle_uses_radius(self, circle_piece):
        polygon = NFPCalculator(circle_segments=16).piece_to_polygon(circle_piece)
        assert len(polygon) == 16
        width, height = calculate_bounding_box(polygon)
        assert width == pytest.approx(50)
        assert height == pytest.approx(50)

    def test_polygon_points(self, triangle_piece):
        assert NFPCalculator().piece_to_polygon(triangle_piece) == [Point(0, 0), Point(60, 0), Point(0, 60)]

    def test_polygon_without_points_falls_back_to_rectangle(self):
        piece = Piece(width=30, height=20, geometry_kind=GeometryKind.POLYGON)
        assert NFPCalculator().piece_to_polygon(piece) == [Point(0, 0), Point(30, 0), Point(30, 20), Point(0, 20)]

    @pytest.mark.parametrize("points", [
        [(0, 0), (100, 0)],
        [(0, 0), (50, 0), (100, 0)],
    ])
    def test_degenerate_outline_falls_back_to_rectangle(self, points):
        piece = Piece(width=100, height=10, geometry_kind=GeometryKind.POLYGON, geometry_points=points)
        assert NFPCalculator().piece_to_polygon(piece) == [Point(0, 0), Point(100, 0), Point(100, 10), Point(0, 10)]

    def test_clockwise_outline_reversed(self):
        piece = Piece(width=60, height=60, geometry_kind=GeometryKind.POLYGON,
                      geometry_points=[(0, 0), (0, 60), (60, 0)])
        assert NFPCalculator().piece_to_polygon(piece) == [Point(60, 0), Point(0, 60), Point(0, 0)]

    def test_degenerate_outline_gets_a_real_exclusion_zone(self):
        piece = Piece(width=100, height=10, geometry_kind=GeometryKind.POLYGON, geometry_points=[(0, 0), (100, 0)])
        result = NFPCalculator(kerf=0).calculate_advanced_nfp(piece, piece)
        assert result.area == pytest.approx(200 * 20)
        assert point_in_polygon(Point(0, 0), result.polygon)


class TestRectangleNFP:

    def test_closed_form(self):
        result = NFPCalculator(kerf=2).calculate_nfp(Piece(width=100, height=50), Piece(width=40, height=30))
        assert result.polygon == [Point(-41, -31), Point(101, -31), Point(101, 51), Point(-41, 51)]
        assert result.area == pytest.approx(142 * 82)
        assert result.bounding_box == (142, 82)

    def test_zero_kerf(self):
        result = NFPCalculator(kerf=0).calculate_nfp(Piece(width=10, height=10), Piece(width=10, height=10))
        assert result.area == 400
        assert not point_in_polygon(Point(10, 0), result.polygon)
        assert point_in_polygon(Point(5, 5), result.polygon)

    def test_advanced_nfp_uses_shortcut_for_rectangles(self):
        calculator = NFPCalculator(kerf=2)
        fixed, moving = Piece(width=100, height=50), Piece(width=40, height=30)
        assert calculator.calculate_advanced_nfp(fixed, moving) == calculator.calculate_nfp(fixed, moving)


class TestAdvancedNFP:

    def test_polygon_pair_without_inflation(self, triangle_piece):
        square = Piece(width=10, height=10, geometry_kind=GeometryKind.POLYGON,
                       geometry_points=[(0, 0), (10, 0), (10, 10), (0, 10)])
        result = NFPCalculator(kerf=2, inflate_polygons=False).calculate_advanced_nfp(triangle_piece, square)
        assert calculate_bounding_box(result.polygon) == (70, 70)
        # Triangle area 1800 + square 100 + two 60x10 edge sweeps
        assert result.area == pytest.approx(1800 + 100 + 600 + 600)

    def test_inflation_adds_clearance(self, triangle_piece, circle_piece):
        plain = NFPCalculator(kerf=4, inflate_polygons=False).calculate_advanced_nfp(triangle_piece, circle_piece)
        inflated = NFPCalculator(kerf=4).calculate_advanced_nfp(triangle_piece, circle_piece)
        plain_w, plain_h = plain.bounding_box
        inflated_w, inflated_h = inflated.bounding_box
        assert inflated_w == pytest.approx(plain_w + 4, abs=0.5)
        assert inflated_h == pytest.approx(plain_h + 4, abs=0.5)
        assert inflated.area > plain.area

    def test_rectangle_against_polygon_uses_minkowski(self, triangle_piece):
        result = NFPCalculator(kerf=0).calculate_advanced_nfp(Piece(width=20, height=20), triangle_piece)
        assert calculate_bounding_box(result.polygon) == (80, 80)
        assert point_in_polygon(Point(10, 10), result.polygon)
        # Beyond the triangle hypotenuse the two shapes are apart
        assert not point_in_polygon(Point(-50, -50), result.polygon)
