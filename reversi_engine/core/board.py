"""Board model and move generation for 8x8 Reversi with an optional black hole.

The board is a flat list of 64 cells in row-major order. Search code never
undoes moves: it explores positions through `Board.with_move`, which returns a
modified copy and leaves the original untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterable, List, Optional, Tuple

from .point import COLUMNS, SIZE, Point

CELLS = SIZE * SIZE

TRAVERSE_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (0, -1),
    (1, -1),
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
)


class InvalidColorError(ValueError):
    """A color that cannot move (empty, black hole) was used as a mover."""


class IllegalMoveError(ValueError):
    """A move that is not legal for the mover on the given board."""


class BoardFormatError(ValueError):
    """Board text or setup that breaks the board invariants."""


class Cell(IntEnum):
    EMPTY = 0
    BLACK = 1
    WHITE = 2
    BLACK_HOLE = 3

    def opposite(self) -> "Cell":
        if self == Cell.BLACK:
            return Cell.WHITE
        if self == Cell.WHITE:
            return Cell.BLACK
        raise InvalidColorError(f"{self.name} is not a player color")

    def is_disc(self) -> bool:
        return self == Cell.BLACK or self == Cell.WHITE


class EndState(Enum):
    UNKNOWN = "unknown"
    BLACK_WON = "black_won"
    WHITE_WON = "white_won"
    TIE = "tie"

    def is_over(self) -> bool:
        return self is not EndState.UNKNOWN

    def won(self, color: Cell) -> bool:
        """True if this result is a win for `color`."""
        if self is EndState.BLACK_WON:
            return color == Cell.BLACK
        if self is EndState.WHITE_WON:
            return color == Cell.WHITE
        return False


class MainLine(Enum):
    """The six principal lines used by the stability heuristic."""

    TOP = "top"
    LEFT = "left"
    RIGHT = "right"
    BOTTOM = "bottom"
    MAIN_DIAGONAL = "main_diagonal"
    ANTI_DIAGONAL = "anti_diagonal"


MAINLINE_CELLS: Dict[MainLine, Tuple[int, ...]] = {
    MainLine.TOP: tuple(Point.from_xy(i, 0).idx for i in range(SIZE)),
    MainLine.LEFT: tuple(Point.from_xy(0, i).idx for i in range(SIZE)),
    MainLine.RIGHT: tuple(Point.from_xy(SIZE - 1, i).idx for i in range(SIZE)),
    MainLine.BOTTOM: tuple(Point.from_xy(i, SIZE - 1).idx for i in range(SIZE)),
    MainLine.MAIN_DIAGONAL: tuple(Point.from_xy(i, i).idx for i in range(SIZE)),
    MainLine.ANTI_DIAGONAL: tuple(Point.from_xy(SIZE - 1 - i, i).idx for i in range(SIZE)),
}


def _build_rays() -> List[Tuple[Tuple[int, ...], ...]]:
    rays = []
    for idx in range(CELLS):
        x, y = idx % SIZE, idx // SIZE
        per_cell = []
        for dx, dy in TRAVERSE_DIRECTIONS:
            ray = []
            cx, cy = x + dx, y + dy
            while 0 <= cx < SIZE and 0 <= cy < SIZE:
                ray.append(cy * SIZE + cx)
                cx += dx
                cy += dy
            if ray:
                per_cell.append(tuple(ray))
        rays.append(tuple(per_cell))
    return rays


def _build_neighbours() -> List[Tuple[int, ...]]:
    neighbours = []
    for idx in range(CELLS):
        x, y = idx % SIZE, idx // SIZE
        neighbours.append(tuple(
            (y + dy) * SIZE + (x + dx)
            for dx, dy in TRAVERSE_DIRECTIONS
            if 0 <= x + dx < SIZE and 0 <= y + dy < SIZE
        ))
    return neighbours


# Per cell: the cells along each of the 8 directions, nearest first.
RAYS = _build_rays()
NEIGHBOURS = _build_neighbours()

_CHAR_TO_CELL = {"_": Cell.EMPTY, "B": Cell.BLACK, "W": Cell.WHITE, "H": Cell.BLACK_HOLE}
_CELL_TO_CHAR = {cell: ch for ch, cell in _CHAR_TO_CELL.items()}


@dataclass(frozen=True)
class PlayerMove:
    """A target cell and the opponent discs it turns over."""

    target: int
    flips: Tuple[int, ...]

    @property
    def point(self) -> Point:
        return Point(self.target)

    def to_ab(self) -> str:
        return self.point.to_ab()


AllowedMoves = List[PlayerMove]


def legal_moves(board: "Board", color: Cell) -> AllowedMoves:
    """All moves for `color`, in board-scan order.

    Rays start from each disc of `color` and walk over opponent discs; an empty
    landing cell after a non-empty run is a move. Own discs, the black hole and
    the edge stop a ray. Runs reaching the same target from different
    directions are merged into one move.
    """
    opponent = color.opposite()
    cells = board.cells
    found: Dict[int, List[int]] = {}
    for idx in range(CELLS):
        if cells[idx] != color:
            continue
        for ray in RAYS[idx]:
            run: List[int] = []
            for tile_idx in ray:
                tile = cells[tile_idx]
                if tile == opponent:
                    run.append(tile_idx)
                    continue
                if tile == Cell.EMPTY and run:
                    flips = found.get(tile_idx)
                    if flips is None:
                        found[tile_idx] = run
                    else:
                        flips.extend(f for f in run if f not in flips)
                break
    return [PlayerMove(target, tuple(flips)) for target, flips in found.items()]


def has_legal_move(board: "Board", color: Cell) -> bool:
    """Cheaper than `legal_moves` when only existence matters."""
    opponent = color.opposite()
    cells = board.cells
    for idx in range(CELLS):
        if cells[idx] != color:
            continue
        for ray in RAYS[idx]:
            seen_opponent = False
            for tile_idx in ray:
                tile = cells[tile_idx]
                if tile == opponent:
                    seen_opponent = True
                    continue
                if tile == Cell.EMPTY and seen_opponent:
                    return True
                break
    return False


class Board:
    """64 cells, at most one of which is the black hole."""

    __slots__ = ("cells",)

    def __init__(self, cells: Optional[Iterable[Cell]] = None):
        if cells is None:
            self.cells: List[Cell] = [Cell.EMPTY] * CELLS
        else:
            self.cells = [Cell(c) for c in cells]
        if len(self.cells) != CELLS:
            raise BoardFormatError(f"board needs {CELLS} cells, got {len(self.cells)}")
        if self.cells.count(Cell.BLACK_HOLE) > 1:
            raise BoardFormatError("board has more than one black hole")

    @classmethod
    def initial(cls, black_hole: Optional[Point] = None) -> "Board":
        """Standard start: White on D4/E5, Black on E4/D5, optional black hole."""
        board = cls()
        board.place(Point.from_xy(3, 3), Cell.WHITE)
        board.place(Point.from_xy(4, 4), Cell.WHITE)
        board.place(Point.from_xy(3, 4), Cell.BLACK)
        board.place(Point.from_xy(4, 3), Cell.BLACK)
        if black_hole is not None:
            if board.at(black_hole) != Cell.EMPTY:
                raise BoardFormatError(f"black hole cannot sit on {black_hole.to_ab()}")
            board.place(black_hole, Cell.BLACK_HOLE)
        return board

    @classmethod
    def from_string(cls, text: str) -> "Board":
        """Parse 64 cells of B/W/H/_ (whitespace is ignored)."""
        cells = []
        for ch in text:
            if ch.isspace():
                continue
            cell = _CHAR_TO_CELL.get(ch)
            if cell is None:
                raise BoardFormatError(f"unexpected char inside board: {ch!r}")
            cells.append(cell)
        return cls(cells)

    def to_string(self) -> str:
        rows = []
        for y in range(SIZE):
            rows.append("".join(_CELL_TO_CHAR[c] for c in self.cells[y * SIZE:(y + 1) * SIZE]))
        return "\n".join(rows)

    def render(self) -> str:
        """Human readable board with column letters and row numbers."""
        symbols = {Cell.EMPTY: ".", Cell.BLACK: "B", Cell.WHITE: "W", Cell.BLACK_HOLE: "#"}
        lines = ["  " + " ".join(COLUMNS)]
        for y in range(SIZE):
            row = self.cells[y * SIZE:(y + 1) * SIZE]
            lines.append(f"{y + 1} " + " ".join(symbols[c] for c in row))
        return "\n".join(lines)

    def copy(self) -> "Board":
        clone = Board.__new__(Board)
        clone.cells = self.cells[:]
        return clone

    def at(self, point: Point) -> Cell:
        return self.cells[point.idx]

    def place(self, point: Point, cell: Cell) -> "Board":
        self.cells[point.idx] = cell
        return self

    def count(self, cell: Cell) -> int:
        return self.cells.count(cell)

    @property
    def black_hole(self) -> Optional[Point]:
        try:
            return Point(self.cells.index(Cell.BLACK_HOLE))
        except ValueError:
            return None

    def is_full(self) -> bool:
        return Cell.EMPTY not in self.cells

    def legal_moves(self, color: Cell) -> AllowedMoves:
        return legal_moves(self, color)

    def has_legal_move(self, color: Cell) -> bool:
        return has_legal_move(self, color)

    def move_at(self, point: Point, color: Cell) -> PlayerMove:
        """The legal move of `color` landing on `point`."""
        for move in legal_moves(self, color):
            if move.target == point.idx:
                return move
        raise IllegalMoveError(f"{point.to_ab()} is not a legal move for {color.name}")

    def is_legal(self, move: PlayerMove, color: Cell) -> bool:
        """True if `move` is one of the legal moves of `color`, flips included."""
        flips = set(move.flips)
        return any(
            m.target == move.target and set(m.flips) == flips
            for m in legal_moves(self, color)
        )

    def apply_move(self, move: PlayerMove, color: Cell) -> "Board":
        """Place `move` for `color` in place. The only mutating move operation."""
        opponent = color.opposite()
        cells = self.cells
        if cells[move.target] != Cell.EMPTY:
            raise IllegalMoveError(
                f"target {move.to_ab()} holds {cells[move.target].name}"
            )
        if not move.flips:
            raise IllegalMoveError(f"move {move.to_ab()} flips nothing")
        for idx in move.flips:
            if cells[idx] != opponent:
                raise IllegalMoveError(
                    f"move {move.to_ab()} would flip {Point(idx).to_ab()} "
                    f"holding {cells[idx].name}"
                )
        cells[move.target] = color
        for idx in move.flips:
            cells[idx] = color
        return self

    def with_move(self, move: PlayerMove, color: Cell) -> "Board":
        return self.copy().apply_move(move, color)

    def empty_neighbours(self, idx: int) -> int:
        cells = self.cells
        return sum(1 for n in NEIGHBOURS[idx] if cells[n] == Cell.EMPTY)

    def mainline(self, line: MainLine) -> List[Cell]:
        return [self.cells[idx] for idx in MAINLINE_CELLS[line]]

    def __eq__(self, other) -> bool:
        if isinstance(other, Board):
            return self.cells == other.cells
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"Board(\n{self.render()}\n)"
