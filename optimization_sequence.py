"""
Cutting sequence planning for a finished layout.

Orders the pieces on a sheet so the torch travels as little as possible
between cuts, offers an alternative order that spreads heat across the
sheet, and renders either order as G-code for a plasma or oxyfuel table.
"""

import logging
from dataclasses import dataclass, field
from typing import List, NamedTuple, Sequence

import numpy as np

from config import SEQUENCE_CONFIG
from data_models import InvalidConfigurationError, PlacedPiece, Sheet

logger = logging.getLogger(__name__)


class CuttingProcess:
    """Enum-like class for cutting processes."""
    PLASMA = "plasma"
    OXYFUEL = "oxyfuel"
    BOTH = "both"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PLASMA, cls.OXYFUEL, cls.BOTH]


class CutPoint(NamedTuple):
    """A torch position; ``kind`` is 'entry', 'start' or 'end'."""
    x: float
    y: float
    piece: PlacedPiece
    kind: str


@dataclass
class CutPath:
    points: List[CutPoint] = field(default_factory=list)
    total_distance: float = 0.0
    pierce_points: int = 0


class CuttingSequenceOptimizer:
    """Plans the order in which placed pieces are cut."""

    def __init__(self, process: str = SEQUENCE_CONFIG['process'],
                 entry_offset: float = SEQUENCE_CONFIG['entry_offset'],
                 cluster_radius: float = SEQUENCE_CONFIG['cluster_radius'],
                 pierce_dwell: float = SEQUENCE_CONFIG['pierce_dwell']):
        """
        Initialize the sequencer.

        Args:
            process: One of the CuttingProcess values; decides the entry point
            entry_offset: Plasma lead-in distance from the piece corner in mm
            cluster_radius: Anchor distance under which pieces share a heat cluster
            pierce_dwell: Dwell after each pierce in seconds

        Raises:
            InvalidConfigurationError: On an unknown process or negative distances
        """
        if process not in CuttingProcess.all():
            raise InvalidConfigurationError(
                f"Unknown cutting process '{process}', expected one of {', '.join(CuttingProcess.all())}")
        if entry_offset < 0 or cluster_radius < 0 or pierce_dwell < 0:
            raise InvalidConfigurationError("Entry offset, cluster radius and pierce dwell must not be negative")

        self.process = process
        self.entry_offset = entry_offset
        self.cluster_radius = cluster_radius
        self.pierce_dwell = pierce_dwell

    def entry_point(self, piece: PlacedPiece) -> CutPoint:
        """
        Where the torch pierces for a piece.

        Plasma enters just inside the bottom-left corner, oxyfuel at the middle
        of the left edge to limit distortion, and the combined process at the
        corner itself.
        """
        if self.process == CuttingProcess.PLASMA:
            x, y = piece.x + self.entry_offset, piece.y + self.entry_offset
        elif self.process == CuttingProcess.OXYFUEL:
            x, y = piece.x, piece.y + piece.height / 2
        else:
            x, y = piece.x, piece.y
        return CutPoint(x, y, piece, 'entry')

    def cut_points(self, piece: PlacedPiece) -> List[CutPoint]:
        """Entry, start and end points of one piece, in cutting order."""
        return [
            self.entry_point(piece),
            CutPoint(piece.x, piece.y, piece, 'start'),
            CutPoint(piece.x + piece.width, piece.y + piece.height, piece, 'end'),
        ]

    def optimize_cutting_sequence(self, pieces: Sequence[PlacedPiece]) -> CutPath:
        """
        Nearest-neighbour order over the pieces' entry points.

        The first piece is the one whose entry is closest to the machine
        origin; each next piece is the one whose entry is closest to where the
        previous cut ended. Ties go to the earlier piece.

        Args:
            pieces: Placed pieces of one sheet

        Returns:
            CutPath with each piece's points kept together
        """
        logger.info(f"Sequencing {len(pieces)} pieces for {self.process} cutting")
        if not pieces:
            return CutPath()

        entries = np.array([self.entry_point(p)[:2] for p in pieces], dtype=float)
        remaining = np.ones(len(pieces), dtype=bool)
        head = np.zeros(2)
        points: List[CutPoint] = []

        for _ in range(len(pieces)):
            distances = np.hypot(entries[:, 0] - head[0], entries[:, 1] - head[1])
            distances[~remaining] = np.inf
            index = int(np.argmin(distances))
            remaining[index] = False

            piece_points = self.cut_points(pieces[index])
            points.extend(piece_points)
            head = np.array(piece_points[-1][:2], dtype=float)

        path = self._build_path(points)
        logger.info(f"Cut path: {path.pierce_points} pierces, {path.total_distance:.1f}mm of travel")
        return path

    def cluster_pieces(self, pieces: Sequence[PlacedPiece]) -> List[List[PlacedPiece]]:
        """
        Group pieces whose anchors lie within ``cluster_radius`` of a seed.

        Seeds are taken in input order; a piece joins the first seed it is
        close enough to.
        """
        clusters = []
        used = [False] * len(pieces)
        for i, seed in enumerate(pieces):
            if used[i]:
                continue
            used[i] = True
            cluster = [seed]
            for j in range(i + 1, len(pieces)):
                if not used[j] and np.hypot(pieces[j].x - seed.x, pieces[j].y - seed.y) < self.cluster_radius:
                    used[j] = True
                    cluster.append(pieces[j])
            clusters.append(cluster)
        return clusters

    def optimize_for_thermal_distortion(self, pieces: Sequence[PlacedPiece]) -> CutPath:
        """
        Alternate between clusters so each area cools before its next cut.

        Args:
            pieces: Placed pieces of one sheet

        Returns:
            CutPath taking one piece from each cluster in turn
        """
        clusters = self.cluster_pieces(pieces)
        logger.info(f"Thermal sequencing: {len(pieces)} pieces in {len(clusters)} clusters")

        points: List[CutPoint] = []
        for round_index in range(max((len(c) for c in clusters), default=0)):
            for cluster in clusters:
                if round_index < len(cluster):
                    points.extend(self.cut_points(cluster[round_index]))

        return self._build_path(points)

    def generate_gcode(self, cut_path: CutPath) -> List[str]:
        """
        Render a cut path as G-code lines.

        Args:
            cut_path: Path from one of the sequencing methods

        Returns:
            Program lines, millimetres and absolute coordinates
        """
        gcode = [
            'G21 ; Units in millimetres',
            'G90 ; Absolute coordinates',
            'M03 ; Torch on',
            '',
        ]

        for point in cut_path.points:
            if point.kind == 'entry':
                gcode.append(f"; Entry for piece {point.piece.tag or point.piece.source_index}")
                gcode.append(f"G00 X{point.x:.2f} Y{point.y:.2f} ; Rapid move")
                gcode.append('M07 ; Start pierce')
                gcode.append(f"G04 P{self.pierce_dwell:g} ; Pierce dwell")
            elif point.kind == 'start':
                gcode.append(f"G01 X{point.x:.2f} Y{point.y:.2f} ; Cut start")
            elif point.kind == 'end':
                gcode.append(f"G01 X{point.x:.2f} Y{point.y:.2f} ; Cut end")
                gcode.append('M08 ; Stop pierce')
                gcode.append('')
            else:
                raise ValueError(f"Unhandled cut point kind: {point.kind}")

        gcode.extend([
            'M05 ; Torch off',
            'G00 X0 Y0 ; Return to origin',
            'M30 ; End of program',
        ])
        return gcode

    @staticmethod
    def _build_path(points: List[CutPoint]) -> CutPath:
        if len(points) > 1:
            coords = np.array([p[:2] for p in points], dtype=float)
            total_distance = float(np.hypot(*np.diff(coords, axis=0).T).sum())
        else:
            total_distance = 0.0
        pierce_points = sum(1 for p in points if p.kind == 'entry')
        return CutPath(points=points, total_distance=total_distance, pierce_points=pierce_points)


def sequence_sheet(sheet: Sheet, process: str = SEQUENCE_CONFIG['process'],
                   thermal: bool = False) -> CutPath:
    """Convenience wrapper: cut path for every piece on one sheet."""
    sequencer = CuttingSequenceOptimizer(process=process)
    if thermal:
        return sequencer.optimize_for_thermal_distortion(sheet.placed_pieces)
    return sequencer.optimize_cutting_sequence(sheet.placed_pieces)
