"""Tests for cutting sequence planning and G-code output."""
import pytest

from data_models import InvalidConfigurationError, Piece, PlacedPiece, SheetConfig
from optimization_maxrects import run_maxrects_optimization
from optimization_sequence import CuttingProcess, CuttingSequenceOptimizer, sequence_sheet


@pytest.fixture
def scattered_pieces():
    """Three 100x100 pieces given out of cutting order."""
    return [
        PlacedPiece(300, 0, 100, 100, 0, 0, tag="A"),
        PlacedPiece(0, 0, 100, 100, 0, 1, tag="B"),
        PlacedPiece(0, 200, 100, 100, 0, 2, tag="C"),
    ]


class TestEntryPoints:

    def test_plasma_enters_inside_the_corner(self):
        point = CuttingSequenceOptimizer(CuttingProcess.PLASMA).entry_point(PlacedPiece(10, 20, 30, 40, 0, 0))
        assert (point.x, point.y, point.kind) == (15, 25, 'entry')

    def test_oxyfuel_enters_mid_left_edge(self):
        point = CuttingSequenceOptimizer(CuttingProcess.OXYFUEL).entry_point(PlacedPiece(10, 20, 30, 40, 0, 0))
        assert (point.x, point.y) == (10, 40)

    def test_combined_process_enters_at_the_corner(self):
        point = CuttingSequenceOptimizer(CuttingProcess.BOTH).entry_point(PlacedPiece(10, 20, 30, 40, 0, 0))
        assert (point.x, point.y) == (10, 20)

    def test_unknown_process_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            CuttingSequenceOptimizer("waterjet")


class TestNearestNeighbourSequence:

    def test_order_follows_the_torch(self, scattered_pieces):
        path = CuttingSequenceOptimizer().optimize_cutting_sequence(scattered_pieces)
        entries = [p.piece.tag for p in path.points if p.kind == 'entry']
        # B is nearest the origin; from B's end at (100, 100) C is closer than A
        assert entries == ["B", "C", "A"]
        assert path.pierce_points == 3

    def test_piece_points_stay_together(self, scattered_pieces):
        path = CuttingSequenceOptimizer().optimize_cutting_sequence(scattered_pieces)
        assert [p.kind for p in path.points] == ['entry', 'start', 'end'] * 3
        for i in range(0, len(path.points), 3):
            assert len({id(p.piece) for p in path.points[i:i + 3]}) == 1

    def test_total_distance(self):
        path = CuttingSequenceOptimizer(CuttingProcess.BOTH).optimize_cutting_sequence(
            [PlacedPiece(0, 0, 30, 40, 0, 0)])
        assert path.total_distance == pytest.approx(50)

    def test_empty_sheet(self):
        path = CuttingSequenceOptimizer().optimize_cutting_sequence([])
        assert path.points == []
        assert path.total_distance == 0
        assert path.pierce_points == 0


class TestThermalSequence:

    def test_clusters_by_anchor_distance(self):
        pieces = [PlacedPiece(x, 0, 40, 40, 0, i) for i, x in enumerate([0, 50, 500, 550])]
        clusters = CuttingSequenceOptimizer(cluster_radius=100).cluster_pieces(pieces)
        assert [[p.source_index for p in c] for c in clusters] == [[0, 1], [2, 3]]

    def test_alternates_between_clusters(self):
        pieces = [PlacedPiece(x, 0, 40, 40, 0, i) for i, x in enumerate([0, 50, 500, 550, 1000])]
        path = CuttingSequenceOptimizer(cluster_radius=100).optimize_for_thermal_distortion(pieces)
        order = [p.piece.source_index for p in path.points if p.kind == 'entry']
        assert order == [0, 2, 4, 1, 3]
        assert path.pierce_points == 5


class TestGCode:

    def test_program_structure(self):
        sequencer = CuttingSequenceOptimizer(CuttingProcess.BOTH)
        path = sequencer.optimize_cutting_sequence([PlacedPiece(0, 0, 30, 40, 0, 0, tag="P")])
        gcode = sequencer.generate_gcode(path)
        assert gcode[:3] == ['G21 ; Units in millimetres', 'G90 ; Absolute coordinates', 'M03 ; Torch on']
        assert gcode[-1] == 'M30 ; End of program'
        assert "; Entry for piece P" in gcode
        assert "G00 X0.00 Y0.00 ; Rapid move" in gcode
        assert "G04 P0.5 ; Pierce dwell" in gcode
        assert "G01 X30.00 Y40.00 ; Cut end" in gcode

    def test_one_pierce_per_piece(self, scattered_pieces):
        sequencer = CuttingSequenceOptimizer()
        gcode = sequencer.generate_gcode(sequencer.optimize_cutting_sequence(scattered_pieces))
        assert sum(1 for line in gcode if line.startswith('M07')) == 3
        assert sum(1 for line in gcode if line.startswith('M08')) == 3


def test_sequence_sheet_from_a_layout():
    result = run_maxrects_optimization([Piece(width=100, height=100, quantity=4)],
                                       SheetConfig(width=500, height=500))
    sheet = result.sheets[0]
    path = sequence_sheet(sheet)
    assert path.pierce_points == len(sheet.placed_pieces) == 4
    assert len(sequence_sheet(sheet, process=CuttingProcess.OXYFUEL, thermal=True).points) == 12
