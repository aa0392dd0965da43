"""
Shared test fixtures for the sheet nesting engine.
"""
import pytest

from data_models import GeometryKind, Piece, SheetConfig
from geometry_utils import Point


@pytest.fixture
def square_sheet():
    """A 1000x1000mm sheet with 2mm kerf."""
    return SheetConfig(width=1000, height=1000, kerf=2)


@pytest.fixture
def small_sheet():
    """A 200x200mm sheet with 2mm kerf, small enough for the grid search."""
    return SheetConfig(width=200, height=200, kerf=2)


@pytest.fixture
def unit_square():
    return [Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1)]


@pytest.fixture
def mixed_rectangles():
    """A handful of rectangles with quantities and one rotation lock."""
    return [
        Piece(width=400, height=300, quantity=2, tag="A"),
        Piece(width=250, height=600, quantity=1, tag="B"),
        Piece(width=120, height=80, quantity=5, tag="C"),
        Piece(width=700, height=150, quantity=1, allow_rotation=False, tag="D"),
    ]


@pytest.fixture
def triangle_piece():
    """Right triangle with 60mm legs."""
    return Piece(
        width=60,
        height=60,
        tag="tri",
        geometry_kind=GeometryKind.POLYGON,
        geometry_points=[(0, 0), (60, 0), (0, 60)],
    )


@pytest.fixture
def circle_piece():
    return Piece(width=50, height=50, tag="disc", geometry_kind=GeometryKind.CIRCLE, radius=25)
