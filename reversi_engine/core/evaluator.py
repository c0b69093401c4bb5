"""
Static evaluation of Reversi positions.

The score is a heuristic leaf estimate for the negamax search, never a game
result: the winner is decided by disc count in `core.game`.

Components:
    - Tile weights: an octant table expanded over the board by symmetry.
    - Mobility: empty neighbours around each disc, so that frontier discs weigh
      more than buried ones.
    - Line stability: runs hanging off an open end of an edge or main diagonal.
    - Parity (optional): empties lean towards the side that moves last at the
      current search depth.
"""

from typing import List, Optional

from reversi_engine.config import CONFIG, EvalConfig
from .board import CELLS, MAINLINE_CELLS, NEIGHBOURS, Board, Cell
from .point import CANONICAL_CELLS, Point


def disc_difference(board: Board, color: Cell) -> int:
    """Simplest evaluation: own discs minus opponent discs."""
    return board.count(color) - board.count(color.opposite())


def _end_penalty(line: List[Cell], side: Cell, penalty: int) -> int:
    """Penalty for a run of `side` starting next to an empty line end.

    The run is hanging when it stops before the second-to-last cell of the
    line; it costs double when `side` holds the cell right after the break.
    """
    size = len(line)
    if line[0] != Cell.EMPTY or line[1] != side:
        return 0
    i = 2
    while i < size - 2 and line[i] == side:
        i += 1
    if i == size - 2:
        return 0
    if line[i + 1] == side:
        return 2 * penalty
    return penalty


def line_penalty(line: List[Cell], side: Cell, penalty: int) -> int:
    """Hanging-run penalty of `side` on one principal line, both ends."""
    return _end_penalty(line, side, penalty) + _end_penalty(line[::-1], side, penalty)


class Evaluator:
    """Weighted-tile evaluator with mobility and line-stability terms."""

    def __init__(self, cfg: Optional[EvalConfig] = None) -> None:
        self.cfg = cfg or CONFIG.eval
        octant = dict(zip(CANONICAL_CELLS, self.cfg.tile_weights))
        self.tile_table: List[int] = [octant[Point(i).unmirror8().idx] for i in range(CELLS)]

    def tile_weight(self, point: Point) -> int:
        return self.tile_table[point.idx]

    def evaluate(self, board: Board, color: Cell, parity: Optional[bool] = None) -> int:
        """
        Score `board` from the point of view of `color`.

        Args:
            board: Position to score.
            color: Side the score is for (Black or White).
            parity: None disables the parity term; True means an even search
                depth (empties count against `color`), False an odd one.

        Returns:
            int: Positive values favor `color`. Without parity the score is
            antisymmetric: evaluate(b, BLACK) == -evaluate(b, WHITE).
        """
        opponent = color.opposite()
        cells = board.cells
        table = self.tile_table
        mobility = self.cfg.mobility_weight
        surrounded = self.cfg.surrounded_neighbours

        score = 0
        for idx in range(CELLS):
            tile = cells[idx]
            if tile == Cell.BLACK_HOLE:
                continue
            empties = 0
            for n in NEIGHBOURS[idx]:
                if cells[n] == Cell.EMPTY:
                    empties += 1
            if empties == 0:
                empties = surrounded
            heu = table[idx] + mobility * empties

            if tile == color:
                score += heu
            elif tile == opponent:
                score -= heu
            elif parity is not None:
                score += -(heu // 2) if parity else heu // 2

        penalty = self.cfg.line_penalty
        for line_cells in MAINLINE_CELLS.values():
            line = [cells[i] for i in line_cells]
            score += line_penalty(line, opponent, penalty)
            score -= line_penalty(line, color, penalty)
        return score
