"""
NFP-driven placement search for arbitrary shapes.

Candidate anchors are sampled on a regular grid over the sheet; an anchor is
valid when it lies outside the kerf-inflated no-fit polygon of every piece
already on that sheet. The valid anchor with the lowest Bottom-Left score
wins. The grid step trades accuracy for speed: the search is
O(sheet area / step²) per orientation and per placed piece.
"""

import dataclasses
import logging
import time
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from config import NFP_CONFIG
from data_models import (GeometryKind, OptimizationResult, Piece, PieceInstance, PlacedPiece, Sheet,
                         SheetConfig, UnplacedPiece)
from geometry_utils import Point, calculate_bounding_box, calculate_overlap_area
from nfp_calculator import NFPCalculator
from optimization_core import (build_optimization_result, create_new_sheet, create_unplaced_piece,
                               expand_pieces, sort_instances_by_area, validate_optimization_input)
from polygon_operations import normalize_polygon, offset_polygon, points_in_polygon, rotate_polygon, translate_polygon

logger = logging.getLogger(__name__)

ALGORITHM_NAME = "NFP Bottom-Left"


class OrientedShape(NamedTuple):
    """A piece turned to one orientation, outline normalized to the origin."""
    piece: Piece
    rotation: int
    polygon: List[Point]
    width: float
    height: float


class PositionCandidate(NamedTuple):
    sheet_index: int
    shape: OrientedShape
    x: float
    y: float
    score: float


# (shape, x, y) of every piece on a sheet
SheetLayout = List[Tuple[OrientedShape, float, float]]


class NFPPlacementOptimizer:
    """Places pieces of any geometry kind using no-fit polygons on a coarse grid."""

    def __init__(self, sheet_config: SheetConfig, grid_step: float = NFP_CONFIG['grid_step'],
                 inflate_polygons: bool = NFP_CONFIG['inflate_polygons'],
                 circle_segments: int = NFP_CONFIG['circle_segments']):
        """
        Initialize the optimizer.

        Args:
            sheet_config: Sheet dimensions, kerf and material figures
            grid_step: Spacing of candidate anchors in mm
            inflate_polygons: Passed to :class:`NFPCalculator`
            circle_segments: Tessellation used for circular pieces
        """
        if grid_step <= 0:
            raise ValueError(f"Grid step must be positive, got {grid_step}")
        self.sheet_config = sheet_config
        self.sheet_width = sheet_config.width
        self.sheet_height = sheet_config.height
        self.kerf = sheet_config.kerf
        self.grid_step = grid_step
        self.nfp_calculator = NFPCalculator(sheet_config.kerf, inflate_polygons, circle_segments)

    def get_possible_orientations(self, piece: Piece) -> List[int]:
        """
        Rotations to try for a piece.

        Rectangles get 0/90, polygon and complex shapes 0/90/180/270, circles
        only 0 (rotating them changes nothing).
        """
        if not piece.can_rotate():
            return [0]

        kind = piece.geometry_kind
        if kind == GeometryKind.RECTANGLE:
            return [0, 90]
        elif kind == GeometryKind.CIRCLE:
            return [0]
        elif kind in (GeometryKind.POLYGON, GeometryKind.COMPLEX):
            return [0, 90, 180, 270]
        raise ValueError(f"Unhandled geometry kind: {kind}")

    def apply_orientation(self, piece: Piece, rotation: int) -> OrientedShape:
        """Turn a piece by ``rotation`` degrees and normalize its outline."""
        polygon = normalize_polygon(rotate_polygon(self.nfp_calculator.piece_to_polygon(piece), rotation))
        width, height = calculate_bounding_box(polygon)

        if piece.is_rectangular():
            oriented = piece if rotation == 0 else dataclasses.replace(piece, width=width, height=height)
        elif piece.geometry_kind == GeometryKind.CIRCLE:
            oriented = piece
        else:
            oriented = dataclasses.replace(piece, width=width, height=height, geometry_points=polygon)

        return OrientedShape(oriented, rotation, polygon, width, height)

    def _candidate_grid(self, shape: OrientedShape) -> Tuple[np.ndarray, np.ndarray]:
        """Row-major anchor grid (bottom row first) keeping the shape on the sheet."""
        max_x = self.sheet_width - shape.width
        max_y = self.sheet_height - shape.height
        if max_x < 0 or max_y < 0:
            return np.empty(0), np.empty(0)

        xs = np.arange(0.0, max_x + 1e-9, self.grid_step)
        ys = np.arange(0.0, max_y + 1e-9, self.grid_step)
        yy, xx = np.meshgrid(ys, xs, indexing='ij')
        return xx.ravel(), yy.ravel()

    def _exclusion_polygon(self, fixed: OrientedShape, fixed_x: float, fixed_y: float,
                           moving: OrientedShape) -> List[Point]:
        nfp = self.nfp_calculator.calculate_advanced_nfp(fixed.piece, moving.piece)
        polygon = nfp.polygon
        if self.kerf > 0:
            polygon = offset_polygon(polygon, self.kerf / 2)
        return translate_polygon(polygon, fixed_x, fixed_y)

    def _valid_mask(self, shape: OrientedShape, layout: SheetLayout,
                    xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        valid = np.ones(xs.shape, dtype=bool)
        for fixed, fixed_x, fixed_y in layout:
            if not valid.any():
                break
            exclusion = self._exclusion_polygon(fixed, fixed_x, fixed_y, shape)
            valid &= ~points_in_polygon(xs, ys, exclusion)
        return valid

    def find_valid_positions(self, shape: OrientedShape, layout: SheetLayout) -> List[Point]:
        """
        All grid anchors where ``shape`` overlaps nothing in ``layout``.

        Args:
            shape: Oriented piece to place
            layout: Pieces already on the sheet as (shape, x, y)

        Returns:
            Valid anchors, bottom row first
        """
        xs, ys = self._candidate_grid(shape)
        if xs.size == 0:
            return []
        valid = self._valid_mask(shape, layout, xs, ys)
        return [Point(float(x), float(y)) for x, y in zip(xs[valid], ys[valid])]

    def _best_position(self, shape: OrientedShape, layout: SheetLayout) -> Optional[Tuple[float, float, float]]:
        xs, ys = self._candidate_grid(shape)
        if xs.size == 0:
            return None
        valid = self._valid_mask(shape, layout, xs, ys)
        if not valid.any():
            return None

        scores = np.where(valid, ys * self.sheet_width + xs, np.inf)
        best = int(np.argmin(scores))
        return float(xs[best]), float(ys[best]), float(scores[best])

    def _search(self, shapes: List[OrientedShape], layouts: List[SheetLayout],
                sheet_offset: int = 0) -> Optional[PositionCandidate]:
        best: Optional[PositionCandidate] = None
        for index, layout in enumerate(layouts):
            for shape in shapes:
                position = self._best_position(shape, layout)
                if position is None:
                    continue
                x, y, score = position
                if best is None or score < best.score:
                    best = PositionCandidate(index + sheet_offset, shape, x, y, score)
        return best

    def optimize(self, pieces: Sequence[Piece]) -> OptimizationResult:
        """
        Place all pieces, opening sheets as needed.

        Args:
            pieces: Pieces of any geometry kind

        Returns:
            OptimizationResult with sheets and unplaced pieces

        Raises:
            InvalidConfigurationError: If the sheet or a piece is invalid
        """
        validate_optimization_input(pieces, self.sheet_config)
        start_time = time.time()

        instances = sort_instances_by_area(expand_pieces(pieces), area_key=Piece.get_bounding_box_area)
        logger.info(f"Starting NFP optimization: {len(instances)} pieces, grid step {self.grid_step}mm, "
                    f"kerf {self.kerf}mm")

        sheets: List[Sheet] = []
        layouts: List[SheetLayout] = []
        unplaced: List[UnplacedPiece] = []

        for instance in instances:
            self._place_instance(instance, sheets, layouts, unplaced)

        elapsed = time.time() - start_time
        logger.info(f"NFP optimization complete in {elapsed:.3f}s: {len(sheets)} sheets, "
                    f"{len(unplaced)} unplaced")
        return build_optimization_result(sheets, unplaced, self.sheet_config, ALGORITHM_NAME, elapsed)

    def _place_instance(self, instance: PieceInstance, sheets: List[Sheet],
                        layouts: List[SheetLayout], unplaced: List[UnplacedPiece]) -> None:
        piece = instance.piece
        shapes = [self.apply_orientation(piece, rotation) for rotation in self.get_possible_orientations(piece)]

        candidate = self._search(shapes, layouts)
        if candidate is None:
            candidate = self._search(shapes, [[]], sheet_offset=len(sheets))
            if candidate is None:
                logger.warning(f"Piece {instance.label()} "
                               f"({piece.width}x{piece.height}) has no valid position on any sheet")
                unplaced.append(create_unplaced_piece(instance, "no valid position on any sheet"))
                return
            sheets.append(create_new_sheet(self.sheet_config, len(sheets) + 1, track_free_rectangles=False))
            layouts.append([])

        shape = candidate.shape
        sheet = sheets[candidate.sheet_index]
        outline = None if piece.is_rectangular() else translate_polygon(shape.polygon, candidate.x, candidate.y)
        sheet.placed_pieces.append(PlacedPiece(
            x=candidate.x,
            y=candidate.y,
            width=shape.width,
            height=shape.height,
            rotation=shape.rotation,
            source_index=instance.source_index,
            tag=piece.tag,
            area=piece.get_net_area(),
            outline=outline
        ))
        layouts[candidate.sheet_index].append((shape, candidate.x, candidate.y))

        logger.debug(f"Placed {instance.label()} on {sheet.id} at "
                     f"({candidate.x}, {candidate.y}) rotation {shape.rotation}")

    def validate_configuration(self, placed_pieces: Sequence[PlacedPiece]) -> bool:
        """
        Check that no two kerf-inflated bounding rectangles overlap.

        This is a sanity check on a finished layout, not part of the search.
        Only the bounding rectangles are compared, so the answer is exact for
        rectangular layouts. Circles and polygons nested into each other's
        bounding boxes are reported as overlapping even when their outlines
        keep the kerf gap.
        """
        footprints = [p.get_kerf_footprint(self.kerf) for p in placed_pieces]
        for i in range(len(footprints)):
            for j in range(i + 1, len(footprints)):
                if calculate_overlap_area(footprints[i], footprints[j]) > 0:
                    return False
        return True


def run_nfp_optimization(pieces: Sequence[Piece], sheet_config: SheetConfig,
                         grid_step: float = NFP_CONFIG['grid_step']) -> OptimizationResult:
    """Convenience wrapper around :class:`NFPPlacementOptimizer`."""
    return NFPPlacementOptimizer(sheet_config, grid_step=grid_step).optimize(pieces)
