"""Tests for strategy selection and the unified entry point."""
import pytest

from data_models import InvalidConfigurationError, OptimizationResult, Piece, SheetConfig
from optimization_bottom_left import BottomLeftFillOptimizer
from optimization_maxrects import MaxRectsPacker
from optimization_nfp import NFPPlacementOptimizer
from optimization_unified import (
    OptimizationStrategy,
    compare_strategies,
    create_optimizer,
    run_sheet_optimization,
    select_best_result,
    select_strategy,
)


class TestStrategySelection:

    def test_auto_picks_maxrects_for_rectangles(self, mixed_rectangles):
        assert select_strategy(mixed_rectangles) == OptimizationStrategy.MAXRECTS

    def test_auto_picks_nfp_for_shapes(self, mixed_rectangles, circle_piece):
        assert select_strategy(mixed_rectangles + [circle_piece]) == OptimizationStrategy.NFP

    def test_explicit_strategy_kept(self, mixed_rectangles):
        assert select_strategy(mixed_rectangles, "bottom_left_fill") == OptimizationStrategy.BOTTOM_LEFT_FILL

    def test_unknown_strategy_rejected(self, mixed_rectangles):
        with pytest.raises(InvalidConfigurationError):
            select_strategy(mixed_rectangles, "genetic")


class TestCreateOptimizer:

    def test_factory_types(self, square_sheet):
        assert isinstance(create_optimizer("maxrects", square_sheet), MaxRectsPacker)
        assert isinstance(create_optimizer("nfp", square_sheet), NFPPlacementOptimizer)
        assert isinstance(create_optimizer("bottom_left_fill", square_sheet), BottomLeftFillOptimizer)

    def test_options_forwarded_where_accepted(self, square_sheet):
        nfp = create_optimizer("nfp", square_sheet, grid_step=20, inflate_polygons=False)
        assert nfp.grid_step == 20
        assert nfp.nfp_calculator.inflate_polygons is False
        # MaxRects takes no grid step; the option is ignored
        assert isinstance(create_optimizer("maxrects", square_sheet, grid_step=20), MaxRectsPacker)

    def test_auto_is_not_a_concrete_optimizer(self, square_sheet):
        with pytest.raises(InvalidConfigurationError):
            create_optimizer("auto", square_sheet)


class TestRunSheetOptimization:

    def test_rectangles_use_maxrects(self, square_sheet, mixed_rectangles):
        result = run_sheet_optimization(mixed_rectangles, square_sheet)
        assert isinstance(result, OptimizationResult)
        assert result.algorithm == "MaxRects Bottom-Left"
        assert result.placed_count == sum(p.quantity for p in mixed_rectangles)

    def test_shapes_use_nfp(self, small_sheet, circle_piece, triangle_piece):
        result = run_sheet_optimization([circle_piece, triangle_piece], small_sheet, grid_step=10)
        assert result.algorithm == "NFP Bottom-Left"
        assert result.placed_count == 2

    def test_invalid_input_raises(self, mixed_rectangles):
        with pytest.raises(InvalidConfigurationError):
            run_sheet_optimization(mixed_rectangles, SheetConfig(width=100, height=100, kerf=-1))


class TestCompareStrategies:

    def test_each_strategy_gets_its_own_sheets(self):
        config = SheetConfig(width=400, height=400, kerf=2)
        pieces = [Piece(width=150, height=100, quantity=4)]
        results = compare_strategies(pieces, config, grid_step=10)
        assert list(results) == ["maxrects", "nfp", "bottom_left_fill"]
        sheet_sets = [set(map(id, r.sheets)) for r in results.values()]
        assert not (sheet_sets[0] & sheet_sets[1]) and not (sheet_sets[1] & sheet_sets[2])
        assert all(r.placed_count == 4 for r in results.values())

    def test_select_best_result_ranking(self):
        def make(sheets, efficiency, unplaced):
            return OptimizationResult(sheets=[], total_sheets=sheets, average_efficiency=efficiency,
                                      total_waste_area=0, total_weight=0, material_cost=0,
                                      unplaced_pieces=[None] * unplaced)

        results = {
            "a": make(1, 90.0, 2),
            "b": make(2, 60.0, 0),
            "c": make(2, 70.0, 0),
            "d": make(2, 70.0, 0),
        }
        name, best = select_best_result(results)
        assert name == "c"
        assert best is results["c"]

    def test_select_best_result_requires_results(self):
        with pytest.raises(ValueError):
            select_best_result({})
