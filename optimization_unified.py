"""
Unified Optimization Engine
Single entry point over the sheet packers with strategy selection.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from data_models import InvalidConfigurationError, OptimizationResult, Piece, SheetConfig
from optimization_bottom_left import BottomLeftFillOptimizer
from optimization_core import validate_optimization_input
from optimization_maxrects import MaxRectsPacker
from optimization_nfp import NFPPlacementOptimizer

logger = logging.getLogger(__name__)


class OptimizationStrategy:
    """Enum-like class for optimization strategies."""
    AUTO = "auto"
    MAXRECTS = "maxrects"
    NFP = "nfp"
    BOTTOM_LEFT_FILL = "bottom_left_fill"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.AUTO, cls.MAXRECTS, cls.NFP, cls.BOTTOM_LEFT_FILL]


_OPTIMIZERS = {
    OptimizationStrategy.MAXRECTS: MaxRectsPacker,
    OptimizationStrategy.NFP: NFPPlacementOptimizer,
    OptimizationStrategy.BOTTOM_LEFT_FILL: BottomLeftFillOptimizer,
}

# Keyword options each optimizer accepts besides the sheet config
_OPTIMIZER_OPTIONS = {
    OptimizationStrategy.MAXRECTS: (),
    OptimizationStrategy.NFP: ('grid_step', 'inflate_polygons', 'circle_segments'),
    OptimizationStrategy.BOTTOM_LEFT_FILL: ('grid_step',),
}


def select_strategy(pieces: Sequence[Piece], strategy: str = OptimizationStrategy.AUTO) -> str:
    """
    Resolve a requested strategy to a concrete optimizer.

    AUTO picks MaxRects when every piece is rectangular and the NFP search
    otherwise.

    Raises:
        InvalidConfigurationError: If the strategy is unknown
    """
    if strategy not in OptimizationStrategy.all():
        raise InvalidConfigurationError(
            f"Unknown strategy '{strategy}', expected one of {', '.join(OptimizationStrategy.all())}")

    if strategy != OptimizationStrategy.AUTO:
        return strategy

    if all(piece.is_rectangular() for piece in pieces):
        return OptimizationStrategy.MAXRECTS
    return OptimizationStrategy.NFP


def create_optimizer(strategy: str, sheet_config: SheetConfig, **options):
    """
    Factory function to create the optimizer for a concrete strategy.

    Options the optimizer does not take are ignored, so the same option set
    can be passed to every strategy.

    Raises:
        InvalidConfigurationError: If the strategy is unknown or AUTO
    """
    if strategy not in _OPTIMIZERS:
        raise InvalidConfigurationError(f"Cannot create an optimizer for strategy '{strategy}'")

    accepted = _OPTIMIZER_OPTIONS[strategy]
    ignored = sorted(name for name in options if name not in accepted)
    if ignored:
        logger.debug(f"Ignoring options {ignored} for strategy {strategy}")

    kwargs = {name: value for name, value in options.items() if name in accepted}
    return _OPTIMIZERS[strategy](sheet_config, **kwargs)


def run_sheet_optimization(pieces: Sequence[Piece], sheet_config: SheetConfig,
                           strategy: str = OptimizationStrategy.AUTO, **options) -> OptimizationResult:
    """
    Main entry point for sheet optimization.

    Args:
        pieces: Pieces to place
        sheet_config: Sheet dimensions, kerf and material figures
        strategy: One of the OptimizationStrategy values
        **options: Optimizer options such as ``grid_step``

    Returns:
        OptimizationResult of the selected optimizer

    Raises:
        InvalidConfigurationError: On an unknown strategy or invalid input
    """
    resolved = select_strategy(pieces, strategy)
    logger.info(f"Starting sheet optimization with strategy: {strategy} (using {resolved}), "
                f"material: {sheet_config.material or 'unspecified'}")

    optimizer = create_optimizer(resolved, sheet_config, **options)
    return optimizer.optimize(pieces)


def compare_strategies(pieces: Sequence[Piece], sheet_config: SheetConfig,
                       strategies: Optional[Sequence[str]] = None,
                       **options) -> Dict[str, OptimizationResult]:
    """
    Run several strategies on the same input.

    Each run builds its own sheets, so the results are independent.

    Args:
        pieces: Pieces to place
        sheet_config: Sheet dimensions, kerf and material figures
        strategies: Concrete strategies to run; defaults to all of them
        **options: Optimizer options, passed to every strategy that takes them

    Returns:
        Results keyed by strategy, in run order
    """
    validate_optimization_input(pieces, sheet_config)
    if strategies is None:
        strategies = list(_OPTIMIZERS)

    start_time = time.time()
    results = {}
    for strategy in strategies:
        resolved = select_strategy(pieces, strategy)
        results[strategy] = create_optimizer(resolved, sheet_config, **options).optimize(pieces)
        logger.info(f"Strategy {strategy}: {results[strategy].total_sheets} sheets, "
                    f"{results[strategy].average_efficiency:.1f}% average efficiency")

    logger.info(f"Compared {len(results)} strategies in {time.time() - start_time:.2f}s")
    return results


def select_best_result(results: Dict[str, OptimizationResult]) -> Tuple[str, OptimizationResult]:
    """
    Pick the best of several results.

    Fewest unplaced pieces first, then fewest sheets, then the highest
    average efficiency. Ties keep the earliest entry.

    Raises:
        ValueError: If ``results`` is empty
    """
    if not results:
        raise ValueError("No results to choose from")

    best_strategy = min(
        results,
        key=lambda name: (results[name].unplaced_count, results[name].total_sheets,
                          -results[name].average_efficiency)
    )
    logger.info(f"Best strategy: {best_strategy}")
    return best_strategy, results[best_strategy]
