"""
Core data models for the NestWise sheet nesting engine.
Defines Piece, FreeRectangle, PlacedPiece, Sheet, SheetConfig and the
result records returned by the optimizers.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import DEFAULT_COST_PER_KG, DEFAULT_DENSITY, DEFAULT_KERF, DEFAULT_THICKNESS
from geometry_utils import Point, calculate_bounding_box, calculate_polygon_area


class InvalidConfigurationError(ValueError):
    """Raised when a run is rejected before any placement is attempted."""


class GeometryKind(str, Enum):
    """Shape families a piece can have."""
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    POLYGON = "polygon"
    COMPLEX = "complex"


def _to_points(points: Optional[Sequence]) -> Optional[Tuple[Point, ...]]:
    if points is None:
        return None
    converted = []
    for p in points:
        if isinstance(p, dict):
            converted.append(Point(float(p['x']), float(p['y'])))
        else:
            converted.append(Point(float(p[0]), float(p[1])))
    return tuple(converted)


@dataclass(frozen=True)
class Piece:
    """
    A piece to be cut, as supplied by the caller.

    Pieces are immutable; each one is expanded into ``quantity`` independent
    instances before packing. A circular piece's footprint is always its
    diameter square: width and height are set to 2·radius, and a missing
    radius is taken from the smaller of width and height.
    """
    width: float
    height: float
    quantity: int = 1
    allow_rotation: bool = True
    tag: str = ""
    geometry_kind: GeometryKind = GeometryKind.RECTANGLE
    geometry_points: Optional[Tuple[Point, ...]] = None
    radius: Optional[float] = None
    piece_id: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'geometry_kind', GeometryKind(self.geometry_kind))
        object.__setattr__(self, 'geometry_points', _to_points(self.geometry_points))
        if self.geometry_kind == GeometryKind.CIRCLE:
            diameter = 2 * self.radius if self.radius is not None else min(self.width, self.height)
            object.__setattr__(self, 'radius', diameter / 2)
            object.__setattr__(self, 'width', diameter)
            object.__setattr__(self, 'height', diameter)

    def validate(self) -> None:
        """
        Check the piece dimensions.

        Raises:
            InvalidConfigurationError: If a dimension, quantity or radius is invalid
        """
        if self.width <= 0 or self.height <= 0:
            raise InvalidConfigurationError(
                f"Piece '{self.tag}' has non-positive dimensions {self.width}x{self.height}")
        if self.quantity < 1:
            raise InvalidConfigurationError(
                f"Piece '{self.tag}' has quantity {self.quantity}, expected at least 1")
        if self.geometry_kind == GeometryKind.CIRCLE and self.get_radius() <= 0:
            raise InvalidConfigurationError(f"Circular piece '{self.tag}' has non-positive radius")

    def is_rectangular(self) -> bool:
        return self.geometry_kind == GeometryKind.RECTANGLE

    def can_rotate(self) -> bool:
        return self.allow_rotation

    def get_radius(self) -> float:
        """Radius of a circular piece, falling back to half the width."""
        return self.radius if self.radius is not None else self.width / 2

    def get_area(self) -> float:
        """Bounding rectangle area in square mm."""
        return self.width * self.height

    def has_outline(self) -> bool:
        """True if the geometry points describe a polygon with non-zero area."""
        return (self.geometry_points is not None and len(self.geometry_points) >= 3 and
                calculate_polygon_area(self.geometry_points) > 0)

    def get_net_area(self) -> float:
        """
        Material area actually covered by the piece.

        Rectangles use width x height, circles use πr², polygons use the
        shoelace area of their outline (falling back to the bounding
        rectangle when the outline is missing or degenerate).
        """
        if self.geometry_kind == GeometryKind.RECTANGLE:
            return self.get_area()
        elif self.geometry_kind == GeometryKind.CIRCLE:
            return math.pi * self.get_radius() ** 2
        elif self.geometry_kind in (GeometryKind.POLYGON, GeometryKind.COMPLEX):
            if self.has_outline():
                return calculate_polygon_area(self.geometry_points)
            return self.get_area()
        raise ValueError(f"Unhandled geometry kind: {self.geometry_kind}")

    def get_bounding_box_area(self) -> float:
        """Area of the axis-aligned box around the piece outline."""
        if self.geometry_kind in (GeometryKind.POLYGON, GeometryKind.COMPLEX) and self.has_outline():
            width, height = calculate_bounding_box(self.geometry_points)
            return width * height
        return self.get_area()

    def get_dimensions_for_placement(self, rotated: bool = False) -> Tuple[float, float]:
        """
        Get dimensions considering a 90 degree rotation.

        Args:
            rotated: Whether the piece should be rotated 90 degrees

        Returns:
            Tuple of (width, height) for placement
        """
        if rotated and self.can_rotate():
            return self.height, self.width
        return self.width, self.height

    def __str__(self) -> str:
        return f"Piece({self.tag or self.piece_id}, {self.width}x{self.height}, {self.geometry_kind.value})"


@dataclass(frozen=True)
class PieceInstance:
    """One unit of a piece after quantity expansion."""
    piece: Piece
    source_index: int
    instance_number: int = 0

    def label(self) -> str:
        """Name used in log messages, e.g. ``bracket#2``."""
        return f"{self.piece.tag or self.source_index}#{self.instance_number + 1}"


class FreeRectangle:
    """
    An axis-aligned, piece-free region of a sheet available for placement.
    """

    def __init__(self, x: float, y: float, width: float, height: float):
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    def get_area(self) -> float:
        return self.width * self.height

    def can_fit(self, width: float, height: float) -> bool:
        """True if a width x height footprint fits without rotation."""
        return width <= self.width and height <= self.height

    def contains(self, other: 'FreeRectangle') -> bool:
        """True if ``other`` lies completely inside this rectangle."""
        return (other.x >= self.x and other.y >= self.y and
                other.x + other.width <= self.x + self.width and
                other.y + other.height <= self.y + self.height)

    def overlaps(self, x: float, y: float, width: float, height: float) -> bool:
        """True if the rectangle shares interior area with (x, y, width, height)."""
        return not (self.x >= x + width or
                    self.x + self.width <= x or
                    self.y >= y + height or
                    self.y + self.height <= y)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    def __eq__(self, other) -> bool:
        if not isinstance(other, FreeRectangle):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __hash__(self) -> int:
        return hash(self.as_tuple())

    def __repr__(self) -> str:
        return f"FreeRectangle({self.x}, {self.y}, {self.width}x{self.height})"


class PlacedPiece:
    """
    A piece instance placed on a sheet.

    Width and height are the post-rotation footprint without kerf.
    """

    def __init__(self, x: float, y: float, width: float, height: float, rotation: int,
                 source_index: int, tag: str = "", area: Optional[float] = None,
                 outline: Optional[List[Point]] = None):
        """
        Initialize a PlacedPiece.

        Args:
            x, y: Bottom-left corner of the footprint on the sheet
            width, height: Footprint after rotation, kerf excluded
            rotation: Rotation in degrees (0, 90, 180 or 270)
            source_index: Index of the source piece in the caller's list
            tag: Label of the source piece
            area: Net material area; defaults to width x height
            outline: Placed outline in sheet coordinates for non-rectangular shapes
        """
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.rotation = rotation
        self.source_index = source_index
        self.tag = tag
        self.area = area if area is not None else width * height
        self.outline = outline

    def get_footprint(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height

    def get_kerf_footprint(self, kerf: float) -> Tuple[float, float, float, float]:
        """Footprint grown by kerf/2 on every side."""
        half = kerf / 2
        return self.x - half, self.y - half, self.width + kerf, self.height + kerf

    def to_dict(self) -> Dict[str, Any]:
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'rotation': self.rotation,
            'source_index': self.source_index,
            'tag': self.tag,
            'area': self.area,
            'outline': [[p.x, p.y] for p in self.outline] if self.outline else []
        }

    def __repr__(self) -> str:
        return (f"PlacedPiece({self.tag}, ({self.x}, {self.y}), "
                f"{self.width}x{self.height}, rot={self.rotation})")


class Sheet:
    """
    A sheet with its placed pieces and, in rectangle mode, its free rectangles.
    """

    def __init__(self, sheet_id: str, width: float, height: float,
                 track_free_rectangles: bool = True):
        """
        Initialize a Sheet.

        Args:
            sheet_id: Unique identifier, e.g. ``sheet-1``
            width, height: Sheet dimensions in mm
            track_free_rectangles: Start with one full-sheet free rectangle
                (MaxRects mode); other packers keep the set empty
        """
        self.id = sheet_id
        self.width = width
        self.height = height
        self.placed_pieces: List[PlacedPiece] = []
        self.free_rectangles: List[FreeRectangle] = (
            [FreeRectangle(0.0, 0.0, width, height)] if track_free_rectangles else []
        )

    def get_area(self) -> float:
        return self.width * self.height

    def get_utilized_area(self) -> float:
        return sum(p.area for p in self.placed_pieces)

    def get_waste_area(self) -> float:
        return self.get_area() - self.get_utilized_area()

    def get_efficiency(self) -> float:
        """
        Percentage of the sheet covered by placed pieces.

        Returns:
            Efficiency clamped to 0-100
        """
        area = self.get_area()
        if area <= 0:
            return 0.0
        return min(100.0, max(0.0, self.get_utilized_area() / area * 100))

    def get_weight(self, thickness: float, density: float) -> float:
        """
        Weight of the full sheet.

        Args:
            thickness: Sheet thickness in mm
            density: Material density in kg/dm³

        Returns:
            Weight in kg
        """
        area_dm2 = self.get_area() / 10000
        thickness_dm = thickness / 100
        return area_dm2 * thickness_dm * density

    def to_dict(self, thickness: Optional[float] = None, density: Optional[float] = None) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'width': self.width,
            'height': self.height,
            'placed_pieces': [p.to_dict() for p in self.placed_pieces],
            'free_rectangles': [r.to_dict() for r in self.free_rectangles],
            'utilized_area': self.get_utilized_area(),
            'waste_area': self.get_waste_area(),
            'efficiency': self.get_efficiency()
        }
        if thickness is not None and density is not None:
            data['weight'] = self.get_weight(thickness, density)
        return data

    def __str__(self) -> str:
        return f"Sheet({self.id}, {self.width}x{self.height}, {len(self.placed_pieces)} pieces)"

    def __repr__(self) -> str:
        return self.__str__()


@dataclass(frozen=True)
class SheetConfig:
    """Sheet dimensions, kerf and the material figures used for weight and cost."""
    width: float
    height: float
    kerf: float = DEFAULT_KERF
    thickness: float = DEFAULT_THICKNESS
    density: float = DEFAULT_DENSITY
    cost_per_kg: float = DEFAULT_COST_PER_KG
    material: str = ""

    def validate(self) -> None:
        """
        Reject configurations that make packing meaningless.

        Raises:
            InvalidConfigurationError: On non-positive sheet dimensions, negative
                kerf, kerf exceeding a sheet dimension or negative material figures
        """
        if self.width <= 0 or self.height <= 0:
            raise InvalidConfigurationError(
                f"Sheet dimensions must be positive, got {self.width}x{self.height}")
        if self.kerf < 0:
            raise InvalidConfigurationError(f"Kerf must not be negative, got {self.kerf}")
        if self.kerf > self.width or self.kerf > self.height:
            raise InvalidConfigurationError(
                f"Kerf {self.kerf} exceeds sheet dimensions {self.width}x{self.height}")
        if self.thickness < 0 or self.density < 0 or self.cost_per_kg < 0:
            raise InvalidConfigurationError("Thickness, density and cost per kg must not be negative")

    def get_sheet_area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class NFPResult:
    """
    No-fit polygon of a moving piece around a fixed piece.

    The polygon is relative to the fixed piece's origin; the moving piece's
    reference point may not be placed inside it.
    """
    polygon: List[Point]
    area: float
    bounding_box: Tuple[float, float]


@dataclass(frozen=True)
class UnplacedPiece:
    """A piece instance that fits on no sheet in any allowed orientation."""
    source_index: int
    tag: str
    width: float
    height: float
    reason: str = "does not fit on an empty sheet"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_index': self.source_index,
            'tag': self.tag,
            'width': self.width,
            'height': self.height,
            'reason': self.reason
        }


@dataclass(frozen=True)
class OptimizationResult:
    """Outcome of one optimization run. Built once, never mutated."""
    sheets: List[Sheet]
    total_sheets: int
    average_efficiency: float
    total_waste_area: float
    total_weight: float
    material_cost: float
    unplaced_pieces: List[UnplacedPiece] = field(default_factory=list)
    algorithm: str = ""
    optimization_time: float = 0.0
    thickness: float = DEFAULT_THICKNESS
    density: float = DEFAULT_DENSITY
    material: str = ""

    @property
    def placed_count(self) -> int:
        return sum(len(sheet.placed_pieces) for sheet in self.sheets)

    @property
    def unplaced_count(self) -> int:
        return len(self.unplaced_pieces)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sheets': [sheet.to_dict(self.thickness, self.density) for sheet in self.sheets],
            'total_sheets': self.total_sheets,
            'average_efficiency': self.average_efficiency,
            'total_waste_area': self.total_waste_area,
            'total_weight': self.total_weight,
            'material_cost': self.material_cost,
            'unplaced_pieces': [p.to_dict() for p in self.unplaced_pieces],
            'algorithm': self.algorithm,
            'optimization_time': self.optimization_time,
            'material': self.material
        }
