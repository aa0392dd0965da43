"""
MaxRects Bottom-Left rectangle packer.

Each sheet keeps a set of maximal free rectangles. Pieces are placed largest
first at the lowest, then left-most, free-rectangle corner across all open
sheets; the free set is split around every placement and pruned of
rectangles contained in others.
"""

import logging
import time
from typing import List, Optional, Sequence, Tuple

from data_models import (FreeRectangle, OptimizationResult, Piece, PieceInstance, PlacedPiece,
                         Sheet, SheetConfig, UnplacedPiece)
from optimization_core import (build_optimization_result, create_new_sheet, create_unplaced_piece,
                               expand_pieces, sort_instances_by_area, validate_optimization_input)

logger = logging.getLogger(__name__)

ALGORITHM_NAME = "MaxRects Bottom-Left"


class PlacementCandidate:
    """Best free-rectangle corner found for a piece instance."""

    def __init__(self, sheet: Sheet, x: float, y: float, width: float, height: float,
                 rotated: bool, score: float):
        self.sheet = sheet
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.rotated = rotated
        self.score = score


def split_free_rectangles(free_rectangles: Sequence[FreeRectangle],
                          used: Tuple[float, float, float, float]) -> List[FreeRectangle]:
    """
    Split every free rectangle overlapping ``used`` around it.

    Each overlapping rectangle is replaced by up to four residuals (left,
    right, below and above the used area, each spanning the original
    rectangle), and the result is pruned.

    Args:
        free_rectangles: Current free set (left untouched)
        used: Occupied area as (x, y, width, height), kerf included

    Returns:
        New pruned free set
    """
    ux, uy, uw, uh = used
    kept = []
    residuals = []

    for rect in free_rectangles:
        if not rect.overlaps(ux, uy, uw, uh):
            kept.append(rect)
            continue

        if ux > rect.x:
            residuals.append(FreeRectangle(rect.x, rect.y, ux - rect.x, rect.height))
        if ux + uw < rect.x + rect.width:
            residuals.append(FreeRectangle(ux + uw, rect.y,
                                           (rect.x + rect.width) - (ux + uw), rect.height))
        if uy > rect.y:
            residuals.append(FreeRectangle(rect.x, rect.y, rect.width, uy - rect.y))
        if uy + uh < rect.y + rect.height:
            residuals.append(FreeRectangle(rect.x, uy + uh, rect.width,
                                           (rect.y + rect.height) - (uy + uh)))

    return prune_free_rectangles(kept + residuals)


def prune_free_rectangles(free_rectangles: Sequence[FreeRectangle]) -> List[FreeRectangle]:
    """
    Drop every rectangle contained in another one.

    Of several identical rectangles only the first is kept.
    """
    pruned = []
    for i, rect in enumerate(free_rectangles):
        dominated = False
        for j, other in enumerate(free_rectangles):
            if i == j or not other.contains(rect):
                continue
            if not rect.contains(other) or j < i:
                dominated = True
                break
        if not dominated:
            pruned.append(rect)
    return pruned


class MaxRectsPacker:
    """Packs rectangular pieces with the MaxRects Bottom-Left heuristic."""

    def __init__(self, sheet_config: SheetConfig):
        self.sheet_config = sheet_config
        self.kerf = sheet_config.kerf
        # Exceeds any x coordinate so y always dominates the score.
        self.y_multiplier = sheet_config.width + 1

    def optimize(self, pieces: Sequence[Piece]) -> OptimizationResult:
        """
        Pack all pieces onto as few sheets as possible.

        Args:
            pieces: Pieces to pack; non-rectangular pieces are packed by
                their bounding rectangle

        Returns:
            OptimizationResult with sheets and unplaced pieces

        Raises:
            InvalidConfigurationError: If the sheet or a piece is invalid
        """
        validate_optimization_input(pieces, self.sheet_config)
        start_time = time.time()

        instances = sort_instances_by_area(expand_pieces(pieces))
        logger.info(f"Starting MaxRects optimization: {len(instances)} rectangles on "
                    f"{self.sheet_config.width}x{self.sheet_config.height}mm sheets, kerf {self.kerf}mm")

        sheets: List[Sheet] = []
        unplaced: List[UnplacedPiece] = []

        for instance in instances:
            self._pack_instance(instance, sheets, unplaced)

        elapsed = time.time() - start_time
        logger.info(f"MaxRects optimization complete in {elapsed:.3f}s: {len(sheets)} sheets, "
                    f"{len(unplaced)} unplaced")
        return build_optimization_result(sheets, unplaced, self.sheet_config, ALGORITHM_NAME, elapsed)

    def _pack_instance(self, instance: PieceInstance, sheets: List[Sheet],
                       unplaced: List[UnplacedPiece]) -> None:
        piece = instance.piece
        width = piece.width + self.kerf
        height = piece.height + self.kerf

        candidate = self.find_best_position(width, height, sheets, piece.can_rotate())
        if candidate is None:
            new_sheet = create_new_sheet(self.sheet_config, len(sheets) + 1)
            candidate = self.find_best_position(width, height, [new_sheet], piece.can_rotate())
            if candidate is None:
                logger.warning(f"Piece {instance.label()} "
                               f"({piece.width}x{piece.height}) does not fit on a sheet")
                unplaced.append(create_unplaced_piece(instance, "larger than the sheet in every orientation"))
                return
            sheets.append(new_sheet)
            logger.debug(f"Opened {new_sheet.id}")

        self.place(candidate, instance)

    def find_best_position(self, width: float, height: float, sheets: Sequence[Sheet],
                           allow_rotation: bool) -> Optional[PlacementCandidate]:
        """
        Find the Bottom-Left free-rectangle corner across all sheets.

        Args:
            width, height: Footprint with kerf
            sheets: Sheets to search, in order
            allow_rotation: Also try the 90 degree orientation

        Returns:
            Lowest-scoring candidate (first sheet wins ties) or None
        """
        best: Optional[PlacementCandidate] = None

        for sheet in sheets:
            for rect in sheet.free_rectangles:
                score = rect.y * self.y_multiplier + rect.x
                if best is not None and score >= best.score:
                    continue
                if rect.can_fit(width, height):
                    best = PlacementCandidate(sheet, rect.x, rect.y, width, height, False, score)
                elif allow_rotation and rect.can_fit(height, width):
                    best = PlacementCandidate(sheet, rect.x, rect.y, height, width, True, score)

        return best

    def place(self, candidate: PlacementCandidate, instance: PieceInstance) -> PlacedPiece:
        """Record the placement and split/prune the sheet's free rectangles."""
        piece = instance.piece
        sheet = candidate.sheet
        placed_width, placed_height = piece.get_dimensions_for_placement(candidate.rotated)

        placed = PlacedPiece(
            x=candidate.x,
            y=candidate.y,
            width=placed_width,
            height=placed_height,
            rotation=90 if candidate.rotated else 0,
            source_index=instance.source_index,
            tag=piece.tag,
            area=placed_width * placed_height if piece.is_rectangular() else piece.get_net_area()
        )
        sheet.placed_pieces.append(placed)
        sheet.free_rectangles = split_free_rectangles(
            sheet.free_rectangles, (candidate.x, candidate.y, candidate.width, candidate.height)
        )

        logger.debug(f"Placed {instance.label()} on {sheet.id} at "
                     f"({candidate.x}, {candidate.y}) rotated={candidate.rotated}; "
                     f"{len(sheet.free_rectangles)} free rectangles")
        return placed


def run_maxrects_optimization(pieces: Sequence[Piece], sheet_config: SheetConfig) -> OptimizationResult:
    """Convenience wrapper around :class:`MaxRectsPacker`."""
    return MaxRectsPacker(sheet_config).optimize(pieces)
