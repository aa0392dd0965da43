"""Tests for the Bottom-Left-Fill grid packer."""
import pytest

from data_models import Piece, SheetConfig
from geometry_utils import calculate_overlap_area
from optimization_bottom_left import BottomLeftFillOptimizer, run_bottom_left_optimization


class TestPlacement:

    def test_first_fit_bottom_row(self):
        config = SheetConfig(width=1000, height=1000, kerf=0)
        result = run_bottom_left_optimization([Piece(width=100, height=100, quantity=2)], config)
        first, second = result.sheets[0].placed_pieces
        assert (first.x, first.y) == (0, 0)
        assert (second.x, second.y) == (100, 0)
        assert result.algorithm == "Bottom-Left-Fill"

    def test_kerf_gap_rounded_up_to_grid(self, square_sheet):
        result = run_bottom_left_optimization([Piece(width=100, height=100, quantity=2)], square_sheet)
        second = result.sheets[0].placed_pieces[1]
        assert (second.x, second.y) == (110, 0)

    def test_unrotated_orientation_scanned_first(self):
        config = SheetConfig(width=1000, height=1000, kerf=0)
        pieces = [Piece(width=900, height=950), Piece(width=300, height=100)]
        result = run_bottom_left_optimization(pieces, config)
        small = result.sheets[0].placed_pieces[1]
        assert (small.x, small.y, small.rotation) == (900, 0, 90)
        assert (small.width, small.height) == (100, 300)

    def test_only_current_sheet_is_searched(self):
        config = SheetConfig(width=1000, height=1000, kerf=0)
        pieces = [Piece(width=600, height=600, quantity=2), Piece(width=300, height=300)]
        result = run_bottom_left_optimization(pieces, config)
        assert [len(s.placed_pieces) for s in result.sheets] == [1, 2]

    def test_no_overlap(self, square_sheet, mixed_rectangles):
        result = run_bottom_left_optimization(mixed_rectangles * 2, square_sheet)
        assert result.unplaced_count == 0
        for sheet in result.sheets:
            footprints = [p.get_kerf_footprint(square_sheet.kerf) for p in sheet.placed_pieces]
            for i in range(len(footprints)):
                for j in range(i + 1, len(footprints)):
                    assert calculate_overlap_area(footprints[i], footprints[j]) == 0
            for p in sheet.placed_pieces:
                assert p.x + p.width <= sheet.width and p.y + p.height <= sheet.height


class TestEdgeCases:

    def test_oversized_piece_unplaced(self):
        result = run_bottom_left_optimization([Piece(width=600, height=600), Piece(width=50, height=50)],
                                              SheetConfig(width=500, height=500))
        assert result.total_sheets == 1
        assert result.unplaced_count == 1
        assert result.placed_count == 1

    def test_can_place_respects_sheet_bounds(self, square_sheet):
        optimizer = BottomLeftFillOptimizer(square_sheet)
        assert optimizer.can_place(900, 0, 100, 100, [])
        assert not optimizer.can_place(910, 0, 100, 100, [])

    def test_grid_step_must_be_positive(self, square_sheet):
        with pytest.raises(ValueError):
            BottomLeftFillOptimizer(square_sheet, grid_step=-1)
