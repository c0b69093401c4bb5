"""Board coordinates: flat index, (x, y) pair and algebraic notation (A1..H8)."""

from __future__ import annotations

from typing import List, Optional, Tuple

SIZE = 8
COLUMNS = "ABCDEFGH"


class Point:
    """A cell of the 8x8 grid, stored as its row-major index (y * 8 + x)."""

    __slots__ = ("idx",)

    def __init__(self, idx: int):
        if not 0 <= idx < SIZE * SIZE:
            raise ValueError(f"point index out of range: {idx}")
        self.idx = idx

    @classmethod
    def from_xy(cls, x: int, y: int) -> "Point":
        if not (0 <= x < SIZE and 0 <= y < SIZE):
            raise ValueError(f"coordinates off the board: ({x}, {y})")
        return cls(y * SIZE + x)

    @classmethod
    def from_ab(cls, ab: str) -> Optional["Point"]:
        """Parse 'C4'-style text. Returns None when the text is not a cell."""
        if len(ab) != 2:
            return None
        col, row = ab[0].upper(), ab[1]
        if col not in COLUMNS or not row.isdigit():
            return None
        y = int(row) - 1
        if not 0 <= y < SIZE:
            return None
        return cls.from_xy(COLUMNS.index(col), y)

    @property
    def x(self) -> int:
        return self.idx % SIZE

    @property
    def y(self) -> int:
        return self.idx // SIZE

    def to_xy(self) -> Tuple[int, int]:
        return self.x, self.y

    def to_ab(self) -> str:
        return f"{COLUMNS[self.x]}{self.y + 1}"

    def mirror(self) -> List["Point"]:
        """The four images of this point across the two quadrant axes."""
        x, y = self.to_xy()
        return [
            Point.from_xy(x, y),
            Point.from_xy(SIZE - 1 - x, y),
            Point.from_xy(x, SIZE - 1 - y),
            Point.from_xy(SIZE - 1 - x, SIZE - 1 - y),
        ]

    def unmirror4(self) -> "Point":
        """Fold into the top-left quadrant."""
        x, y = self.to_xy()
        half = SIZE // 2
        return Point.from_xy(
            x if x < half else SIZE - 1 - x,
            y if y < half else SIZE - 1 - y,
        )

    def unmirror8(self) -> "Point":
        """Fold into the x >= y octant of the top-left quadrant.

        Every cell lands on one of the 10 canonical cells with indices
        0, 1, 2, 3, 9, 10, 11, 18, 19 and 27.
        """
        x, y = self.unmirror4().to_xy()
        if x >= y:
            return Point.from_xy(x, y)
        return Point.from_xy(y, x)

    def __eq__(self, other) -> bool:
        if isinstance(other, Point):
            return self.idx == other.idx
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.idx)

    def __repr__(self) -> str:
        return f"Point({self.to_ab()})"


CANONICAL_CELLS = (0, 1, 2, 3, 9, 10, 11, 18, 19, 27)
