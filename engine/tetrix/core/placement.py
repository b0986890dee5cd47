"""
Placement rules for Tetrix.

Checks whether a piece fits at a board origin, applies placements, and
computes the hover preview and the lines a placement would complete.
"""

from __future__ import annotations
from typing import Iterable
import logging

from .grid import SIZE, Grid, index, is_inside, line_indices
from .shapes import Offset, Piece

logger = logging.getLogger(__name__)


class PlacementEngine:
    """
    Placement legality and application against one grid.

    Args:
        grid: The board to check and mutate.
        column_clear_enabled: Whether full columns count as clearable lines.
    """

    def __init__(self, grid: Grid, column_clear_enabled: bool = False):
        self.grid = grid
        self.column_clear_enabled = column_clear_enabled

    @staticmethod
    def absolute_cells(piece: Piece, origin_row: int, origin_col: int) -> list[Offset]:
        """Piece offsets translated by the origin."""
        return [(origin_row + r, origin_col + c) for r, c in piece.cells]

    def can_place(self, piece: Piece, origin_row: int, origin_col: int) -> bool:
        """True iff every cell is on the board and unoccupied."""
        for r, c in self.absolute_cells(piece, origin_row, origin_col):
            if not is_inside(r, c):
                return False
            if self.grid.is_occupied(r, c):
                return False
        return True

    def place(self, piece: Piece, origin_row: int, origin_col: int) -> None:
        """Mark the piece's cells occupied. The placement must be legal."""
        if not self.can_place(piece, origin_row, origin_col):
            raise ValueError(f"Cannot place piece at ({origin_row}, {origin_col})")
        for r, c in self.absolute_cells(piece, origin_row, origin_col):
            self.grid.set_occupied(r, c, True)
        logger.debug("Placed %d cells at (%d, %d)", len(piece), origin_row, origin_col)

    def valid_origins(self, piece: Piece) -> list[Offset]:
        """All origins where the piece fits, in row-major order."""
        origins = []
        for row in range(SIZE - piece.height + 1):
            for col in range(SIZE - piece.width + 1):
                if self.can_place(piece, row, col):
                    origins.append((row, col))
        return origins

    def can_place_anywhere(self, piece: Piece) -> bool:
        """True if the piece fits at any origin on the board."""
        # Origins past SIZE - height / SIZE - width always put a cell off the board
        for row in range(SIZE - piece.height + 1):
            for col in range(SIZE - piece.width + 1):
                if self.can_place(piece, row, col):
                    return True
        return False

    def preview_at(self, piece: Piece, origin_row: int, origin_col: int) -> tuple[set[int], bool]:
        """
        Hover preview for a piece at an origin.

        Returns (covered_indices, is_valid):
          - covered_indices: indices of the on-board cells the piece covers,
            including occupied ones; off-board cells are dropped
          - is_valid: False if any cell is off the board or already occupied
        """
        covered: set[int] = set()
        valid = True
        for r, c in self.absolute_cells(piece, origin_row, origin_col):
            if not is_inside(r, c):
                valid = False
                continue
            covered.add(index(r, c))
            if self.grid.is_occupied(r, c):
                valid = False
        return covered, valid

    def lines_completed_by(self, covered_indices: Iterable[int]) -> tuple[list[int], list[int]]:
        """
        Rows and columns that would be full if `covered_indices` were occupied.

        Columns are only reported when column clearing is enabled.
        """
        after = self.grid.cells.copy()
        for idx in covered_indices:
            after[idx] = True
        board = after.reshape(SIZE, SIZE)
        rows = [int(r) for r in range(SIZE) if board[r, :].all()]
        columns = []
        if self.column_clear_enabled:
            columns = [int(c) for c in range(SIZE) if board[:, c].all()]
        return rows, columns

    def would_clear_lines(self, covered_indices: Iterable[int]) -> set[int]:
        """Cells of every line the covered cells would complete. Never mutates."""
        rows, columns = self.lines_completed_by(covered_indices)
        return line_indices(rows, columns)

    def full_lines(self) -> tuple[list[int], list[int]]:
        """Rows and (if enabled) columns that are full right now."""
        rows = self.grid.full_rows()
        columns = self.grid.full_columns() if self.column_clear_enabled else []
        return rows, columns


# Convenience functions
def can_place(grid: Grid, piece: Piece, origin_row: int, origin_col: int) -> bool:
    """Check if a piece fits at an origin."""
    return PlacementEngine(grid).can_place(piece, origin_row, origin_col)


def can_place_anywhere(grid: Grid, piece: Piece) -> bool:
    """Check if a piece fits anywhere on the grid."""
    return PlacementEngine(grid).can_place_anywhere(piece)


def any_rotation_fits(grid: Grid, rotations: Iterable[Piece]) -> bool:
    """Check if at least one of the given orientations fits somewhere."""
    engine = PlacementEngine(grid)
    return any(engine.can_place_anywhere(p) for p in rotations)
