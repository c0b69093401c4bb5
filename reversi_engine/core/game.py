"""Match state machine: turn order, passes and the final result."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from .board import AllowedMoves, Board, Cell, EndState, IllegalMoveError, PlayerMove
from .point import Point


def final_result(board: Board, is_anti: bool) -> EndState:
    """Winner by disc count. In anti mode the side with fewer discs wins."""
    nblack = board.count(Cell.BLACK)
    nwhite = board.count(Cell.WHITE)
    if nblack == nwhite:
        return EndState.TIE
    black_ahead = nblack > nwhite
    if black_ahead != is_anti:
        return EndState.BLACK_WON
    return EndState.WHITE_WON


def wincheck(
    board: Board,
    color: Cell,
    is_anti: bool,
    moves: Optional[AllowedMoves] = None,
) -> EndState:
    """UNKNOWN while either side can still move, otherwise the final result.

    `moves` may carry the already computed legal moves of `color`.
    """
    if board.is_full():
        return final_result(board, is_anti)
    if moves is None:
        if board.has_legal_move(color):
            return EndState.UNKNOWN
    elif moves:
        return EndState.UNKNOWN
    if board.has_legal_move(color.opposite()):
        return EndState.UNKNOWN
    return final_result(board, is_anti)


class TurnAction(Enum):
    MOVE = "move"
    PASS = "pass"
    OVER = "over"


class Match:
    """One game from the engine's seat.

    The board is only changed through `play`; passes leave it untouched and
    hand the turn to the other color.
    """

    def __init__(
        self,
        board: Board,
        my_color: Cell,
        is_anti: bool,
        current: Cell = Cell.BLACK,
    ):
        my_color.opposite()  # rejects non-player colors
        current.opposite()
        self.board = board
        self.my_color = my_color
        self.is_anti = is_anti
        self.current = current
        self.passes = 0
        self.history: List[Tuple[Cell, Optional[PlayerMove]]] = []

    @classmethod
    def new(cls, my_color: Cell, is_anti: bool, black_hole: Optional[Point] = None) -> "Match":
        return cls(Board.initial(black_hole), my_color, is_anti)

    def is_my_turn(self) -> bool:
        return self.current == self.my_color

    def legal_moves(self) -> AllowedMoves:
        return self.board.legal_moves(self.current)

    def status(self) -> EndState:
        return wincheck(self.board, self.current, self.is_anti)

    def advance(self) -> TurnAction:
        """Classify the current turn, passing it on when the mover is stuck.

        On PASS the turn has already moved to the other color and nothing is
        recorded on the board.
        """
        if self.board.has_legal_move(self.current):
            return TurnAction.MOVE
        if not self.board.has_legal_move(self.current.opposite()):
            return TurnAction.OVER
        self.history.append((self.current, None))
        self.passes += 1
        self.current = self.current.opposite()
        return TurnAction.PASS

    def play(self, move: PlayerMove) -> None:
        """Apply a legal move for the current color and hand the turn over."""
        if not self.board.is_legal(move, self.current):
            raise IllegalMoveError(f"{move.to_ab()} is not a legal move for {self.current.name}")
        self.board.apply_move(move, self.current)
        self.history.append((self.current, move))
        self.current = self.current.opposite()

    def play_point(self, point: Point) -> PlayerMove:
        move = self.board.move_at(point, self.current)
        self.play(move)
        return move

    def find_move(self, point: Point) -> Optional[PlayerMove]:
        try:
            return self.board.move_at(point, self.current)
        except IllegalMoveError:
            return None

    def result(self) -> EndState:
        return final_result(self.board, self.is_anti)

    def score(self) -> Tuple[int, int]:
        return self.board.count(Cell.BLACK), self.board.count(Cell.WHITE)
