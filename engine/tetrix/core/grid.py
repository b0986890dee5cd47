"""
Occupancy grid for Tetrix.

Board layout (10 rows x 10 cols = 100 cells, row 0 at the top):

  row 0 |  0  1  2  3  4  5  6  7  8  9
  row 1 | 10 11 12 13 14 15 16 17 18 19
  ...
  row 9 | 90 91 92 93 94 95 96 97 98 99

Cell index = row * 10 + col

Occupancy is a flat numpy boolean array. Row/column views are taken by
reshaping, so full-line detection is a single vectorized reduction.
"""

from __future__ import annotations
from typing import Iterable, Iterator

import numpy as np

# Board dimensions
SIZE = 10
NUM_CELLS = SIZE * SIZE  # 100


def index(row: int, col: int) -> int:
    """Convert (row, col) to cell index."""
    return row * SIZE + col


def row_col(idx: int) -> tuple[int, int]:
    """Convert cell index to (row, col)."""
    return idx // SIZE, idx % SIZE


def is_inside(row: int, col: int) -> bool:
    """Check if (row, col) is on the board."""
    return 0 <= row < SIZE and 0 <= col < SIZE


def line_indices(rows: Iterable[int] = (), columns: Iterable[int] = ()) -> set[int]:
    """Return the set of cell indices covered by the given rows and columns.

    A cell shared by a row and a column appears once.
    """
    cells: set[int] = set()
    for row in rows:
        cells.update(index(row, col) for col in range(SIZE))
    for col in columns:
        cells.update(index(row, col) for row in range(SIZE))
    return cells


class Grid:
    """
    The N x N occupancy board.

    Coordinates passed to the per-cell accessors must already be inside the
    board; the placement engine bounds-checks before touching the grid.
    Out-of-range access raises IndexError.
    """

    size = SIZE

    def __init__(self, cells: np.ndarray | None = None):
        if cells is None:
            self.cells = np.zeros(NUM_CELLS, dtype=bool)
        else:
            cells = np.asarray(cells, dtype=bool).reshape(-1)
            if cells.shape != (NUM_CELLS,):
                raise ValueError(f"Expected {NUM_CELLS} cells, got {cells.size}")
            self.cells = cells.copy()

    @classmethod
    def from_rows(cls, rows: list[str]) -> Grid:
        """
        Build a grid from text rows, '#' or 'x' = occupied, anything else empty.

        Missing rows and short rows are padded with empty cells.
        """
        if len(rows) > SIZE:
            raise ValueError(f"Too many rows: {len(rows)}")
        grid = cls()
        for row, text in enumerate(rows):
            if len(text) > SIZE:
                raise ValueError(f"Row {row} too long: {text!r}")
            for col, ch in enumerate(text):
                if ch in '#xX':
                    grid.set_occupied(row, col, True)
        return grid

    # --- Coordinates ---

    @staticmethod
    def index(row: int, col: int) -> int:
        return index(row, col)

    @staticmethod
    def is_inside(row: int, col: int) -> bool:
        return is_inside(row, col)

    def _checked_index(self, row: int, col: int) -> int:
        if not is_inside(row, col):
            raise IndexError(f"Cell ({row}, {col}) is outside the {SIZE}x{SIZE} grid")
        return index(row, col)

    # --- Cell access ---

    def is_occupied(self, row: int, col: int) -> bool:
        return bool(self.cells[self._checked_index(row, col)])

    def set_occupied(self, row: int, col: int, value: bool) -> None:
        self.cells[self._checked_index(row, col)] = value

    def occupied_indices(self) -> set[int]:
        """Indices of all occupied cells."""
        return {int(i) for i in np.flatnonzero(self.cells)}

    def occupied_count(self) -> int:
        return int(self.cells.sum())

    def iter_occupied(self) -> Iterator[tuple[int, int]]:
        """Iterate over (row, col) of occupied cells in index order."""
        for idx in np.flatnonzero(self.cells):
            yield row_col(int(idx))

    # --- Lines ---

    def full_rows(self) -> list[int]:
        """Rows in which every column is occupied."""
        full = self.cells.reshape(SIZE, SIZE).all(axis=1)
        return [int(r) for r in np.flatnonzero(full)]

    def full_columns(self) -> list[int]:
        """Columns in which every row is occupied."""
        full = self.cells.reshape(SIZE, SIZE).all(axis=0)
        return [int(c) for c in np.flatnonzero(full)]

    def clear(self, rows: Iterable[int] = (), columns: Iterable[int] = ()) -> None:
        """Set every cell in the given rows and columns to unoccupied."""
        board = self.cells.reshape(SIZE, SIZE)  # view, writes go through
        rows = list(rows)
        columns = list(columns)
        if rows:
            board[rows, :] = False
        if columns:
            board[:, columns] = False

    def reset(self) -> None:
        self.cells[:] = False

    def copy(self) -> Grid:
        return Grid(self.cells)

    def as_tuple(self) -> tuple[bool, ...]:
        return tuple(bool(v) for v in self.cells)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return False
        return bool(np.array_equal(self.cells, other.cells))

    def __repr__(self) -> str:
        return f"Grid(occupied={self.occupied_count()})"

    def __str__(self) -> str:
        """Render the board as text, '#' = occupied."""
        lines = []
        for row in range(SIZE):
            start = row * SIZE
            lines.append(" ".join('#' if v else '.' for v in self.cells[start:start + SIZE]))
        return "\n".join(lines)
