"""
Bottom-Left-Fill grid packer.

A simple baseline next to MaxRects: pieces are tried on the current sheet
only, scanning a coarse grid bottom row first, and the first free position
wins. When the current sheet has no room a new one is opened and the older
sheets are never revisited.
"""

import logging
import math
import time
from typing import List, Optional, Sequence, Tuple

from config import BOTTOM_LEFT_CONFIG
from data_models import OptimizationResult, Piece, PieceInstance, PlacedPiece, Sheet, SheetConfig, UnplacedPiece
from geometry_utils import calculate_overlap_area
from optimization_core import (build_optimization_result, create_new_sheet, create_unplaced_piece,
                               expand_pieces, sort_instances_by_area, validate_optimization_input)

logger = logging.getLogger(__name__)

ALGORITHM_NAME = "Bottom-Left-Fill"


def _grid_positions(limit: float, step: float) -> List[float]:
    if limit < 0:
        return []
    count = int(math.floor(limit / step + 1e-9))
    return [i * step for i in range(count + 1)]


class BottomLeftFillOptimizer:
    """First-fit grid scan over the current sheet."""

    def __init__(self, sheet_config: SheetConfig, grid_step: float = BOTTOM_LEFT_CONFIG['grid_step']):
        if grid_step <= 0:
            raise ValueError(f"Grid step must be positive, got {grid_step}")
        self.sheet_config = sheet_config
        self.sheet_width = sheet_config.width
        self.sheet_height = sheet_config.height
        self.kerf = sheet_config.kerf
        self.grid_step = grid_step

    def optimize(self, pieces: Sequence[Piece]) -> OptimizationResult:
        """
        Place all pieces sheet by sheet.

        Args:
            pieces: Pieces to place; non-rectangular pieces use their bounding rectangle

        Returns:
            OptimizationResult with sheets and unplaced pieces

        Raises:
            InvalidConfigurationError: If the sheet or a piece is invalid
        """
        validate_optimization_input(pieces, self.sheet_config)
        start_time = time.time()

        instances = sort_instances_by_area(expand_pieces(pieces))
        logger.info(f"Starting Bottom-Left-Fill optimization: {len(instances)} pieces, "
                    f"grid step {self.grid_step}mm")

        sheets: List[Sheet] = []
        unplaced: List[UnplacedPiece] = []

        for instance in instances:
            self._place_instance(instance, sheets, unplaced)

        elapsed = time.time() - start_time
        logger.info(f"Bottom-Left-Fill optimization complete in {elapsed:.3f}s: {len(sheets)} sheets, "
                    f"{len(unplaced)} unplaced")
        return build_optimization_result(sheets, unplaced, self.sheet_config, ALGORITHM_NAME, elapsed)

    def _place_instance(self, instance: PieceInstance, sheets: List[Sheet],
                        unplaced: List[UnplacedPiece]) -> None:
        piece = instance.piece

        position = self.find_position(piece, sheets[-1].placed_pieces) if sheets else None
        if position is None:
            position = self.find_position(piece, [])
            if position is None:
                logger.warning(f"Piece {instance.label()} "
                               f"({piece.width}x{piece.height}) does not fit on a sheet")
                unplaced.append(create_unplaced_piece(instance, "larger than the sheet in every orientation"))
                return
            sheets.append(create_new_sheet(self.sheet_config, len(sheets) + 1, track_free_rectangles=False))
            logger.debug(f"Opened {sheets[-1].id}")

        x, y, width, height, rotation = position
        sheets[-1].placed_pieces.append(PlacedPiece(
            x=x,
            y=y,
            width=width,
            height=height,
            rotation=rotation,
            source_index=instance.source_index,
            tag=piece.tag,
            area=width * height if piece.is_rectangular() else piece.get_net_area()
        ))

    def find_position(self, piece: Piece,
                      placed_pieces: Sequence[PlacedPiece]) -> Optional[Tuple[float, float, float, float, int]]:
        """
        First free grid position, trying the unrotated orientation over the
        whole sheet before the rotated one.

        Returns:
            (x, y, width, height, rotation) or None
        """
        orientations = [(piece.width, piece.height, 0)]
        if piece.can_rotate():
            orientations.append((piece.height, piece.width, 90))

        for width, height, rotation in orientations:
            for y in _grid_positions(self.sheet_height - height, self.grid_step):
                for x in _grid_positions(self.sheet_width - width, self.grid_step):
                    if self.can_place(x, y, width, height, placed_pieces):
                        return x, y, width, height, rotation
        return None

    def can_place(self, x: float, y: float, width: float, height: float,
                  placed_pieces: Sequence[PlacedPiece]) -> bool:
        """True if the footprint stays on the sheet and its kerf rectangle is clear."""
        if x + width > self.sheet_width or y + height > self.sheet_height:
            return False

        half = self.kerf / 2
        candidate = (x - half, y - half, width + self.kerf, height + self.kerf)
        return all(calculate_overlap_area(candidate, placed.get_kerf_footprint(self.kerf)) == 0
                   for placed in placed_pieces)


def run_bottom_left_optimization(pieces: Sequence[Piece], sheet_config: SheetConfig,
                                 grid_step: float = BOTTOM_LEFT_CONFIG['grid_step']) -> OptimizationResult:
    """Convenience wrapper around :class:`BottomLeftFillOptimizer`."""
    return BottomLeftFillOptimizer(sheet_config, grid_step=grid_step).optimize(pieces)
