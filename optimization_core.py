"""
Shared optimization helpers: input validation, quantity expansion, sheet
creation and the aggregate weight / cost / efficiency figures every packer
reports.
"""

import logging
from typing import Callable, List, Sequence

from data_models import (InvalidConfigurationError, OptimizationResult, Piece, PieceInstance,
                         Sheet, SheetConfig, UnplacedPiece)

logger = logging.getLogger(__name__)


def validate_optimization_input(pieces: Sequence[Piece], sheet_config: SheetConfig) -> None:
    """
    Reject malformed input before any placement is attempted.

    Args:
        pieces: Pieces requested by the caller
        sheet_config: Sheet dimensions, kerf and material figures

    Raises:
        InvalidConfigurationError: If the sheet or any piece is invalid
    """
    sheet_config.validate()
    for index, piece in enumerate(pieces):
        if not isinstance(piece, Piece):
            raise InvalidConfigurationError(f"Item {index} is not a Piece: {piece!r}")
        piece.validate()


def expand_pieces(pieces: Sequence[Piece]) -> List[PieceInstance]:
    """
    Expand pieces into one instance per unit of quantity.

    Returns:
        Instances in input order, each pointing back to its source index
    """
    instances = []
    for index, piece in enumerate(pieces):
        for number in range(piece.quantity):
            instances.append(PieceInstance(piece=piece, source_index=index, instance_number=number))
    return instances


def sort_instances_by_area(instances: List[PieceInstance],
                           area_key: Callable[[Piece], float] = Piece.get_area) -> List[PieceInstance]:
    """Largest first; equal areas keep input order (the sort is stable)."""
    return sorted(instances, key=lambda inst: area_key(inst.piece), reverse=True)


def create_new_sheet(sheet_config: SheetConfig, sheet_counter: int,
                     track_free_rectangles: bool = True) -> Sheet:
    """Create an empty sheet with the configured dimensions."""
    return Sheet(
        sheet_id=f"sheet-{sheet_counter}",
        width=sheet_config.width,
        height=sheet_config.height,
        track_free_rectangles=track_free_rectangles
    )


def create_unplaced_piece(instance: PieceInstance, reason: str) -> UnplacedPiece:
    piece = instance.piece
    return UnplacedPiece(
        source_index=instance.source_index,
        tag=piece.tag,
        width=piece.width,
        height=piece.height,
        reason=reason
    )


def calculate_sheet_weight(sheet: Sheet, sheet_config: SheetConfig) -> float:
    return sheet.get_weight(sheet_config.thickness, sheet_config.density)


def calculate_material_cost(total_weight: float, sheet_config: SheetConfig) -> float:
    return total_weight * sheet_config.cost_per_kg


def build_optimization_result(sheets: List[Sheet], unplaced_pieces: List[UnplacedPiece],
                              sheet_config: SheetConfig, algorithm: str,
                              optimization_time: float = 0.0) -> OptimizationResult:
    """
    Aggregate per-sheet figures into an OptimizationResult.

    Args:
        sheets: Sheets produced by a packer
        unplaced_pieces: Instances that fit nowhere
        sheet_config: Run configuration (area, thickness, density, cost)
        algorithm: Name of the packer that produced the layout
        optimization_time: Wall time of the run in seconds

    Returns:
        OptimizationResult with totals, averages, weight and cost
    """
    total_sheets = len(sheets)
    sheet_area = sheet_config.get_sheet_area()

    total_utilized_area = sum(sheet.get_utilized_area() for sheet in sheets)
    total_waste_area = total_sheets * sheet_area - total_utilized_area
    average_efficiency = (
        sum(sheet.get_efficiency() for sheet in sheets) / total_sheets if total_sheets > 0 else 0.0
    )
    total_weight = sum(calculate_sheet_weight(sheet, sheet_config) for sheet in sheets)

    for sheet in sheets:
        logger.info(f"{sheet.id}: {len(sheet.placed_pieces)} pieces, "
                    f"efficiency {sheet.get_efficiency():.1f}%")

    return OptimizationResult(
        sheets=sheets,
        total_sheets=total_sheets,
        average_efficiency=average_efficiency,
        total_waste_area=total_waste_area,
        total_weight=total_weight,
        material_cost=calculate_material_cost(total_weight, sheet_config),
        unplaced_pieces=list(unplaced_pieces),
        algorithm=algorithm,
        optimization_time=optimization_time,
        thickness=sheet_config.thickness,
        density=sheet_config.density,
        material=sheet_config.material
    )
