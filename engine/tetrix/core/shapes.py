"""
Shape catalog and piece geometry for Tetrix.

Pieces are immutable sets of (row, col) offsets normalized so that the
bounding box touches the origin. Rotation is a 90° clockwise step about the
bounding box:

    (r, c) -> (c, max_row - r)

followed by normalization. Every rotation in the package (catalog
orientations, in-game rotation, game-over search) goes through
rotate_cells/normalize_cells.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .grid import is_inside

Offset = tuple[int, int]


class Shape(str, Enum):
    """Base polyomino families."""
    I = "I"
    O = "O"
    T = "T"
    L = "L"
    J = "J"
    S = "S"
    Z = "Z"


# Families that are mirror images of another family; optional in the catalog
MIRRORED_SHAPES = (Shape.J, Shape.Z)

# Canonical (unrotated) cells
CANONICAL_CELLS: dict[Shape, tuple[Offset, ...]] = {
    Shape.I: ((0, 0), (0, 1), (0, 2), (0, 3)),
    Shape.O: ((0, 0), (0, 1), (1, 0), (1, 1)),
    Shape.T: ((0, 1), (1, 0), (1, 1), (1, 2)),
    Shape.L: ((0, 0), (1, 0), (2, 0), (2, 1)),
    Shape.J: ((0, 1), (1, 1), (2, 1), (2, 0)),
    Shape.S: ((0, 1), (0, 2), (1, 0), (1, 1)),
    Shape.Z: ((0, 0), (0, 1), (1, 1), (1, 2)),
}


def normalize_cells(cells: Iterable[Offset]) -> tuple[Offset, ...]:
    """Shift cells so min row and min col are 0. Result is sorted."""
    cells = list(cells)
    if not cells:
        return ()
    min_row = min(r for r, _ in cells)
    min_col = min(c for _, c in cells)
    return tuple(sorted((r - min_row, c - min_col) for r, c in cells))


def rotate_cells(cells: Iterable[Offset], times: int = 1) -> tuple[Offset, ...]:
    """Rotate cells clockwise `times` quarter turns, then normalize."""
    result = list(cells)
    for _ in range(times % 4):
        max_row = max((r for r, _ in result), default=0)
        result = [(c, max_row - r) for r, c in result]
    return normalize_cells(result)


def _compute_distinct_rotations(shape: Shape) -> tuple[int, ...]:
    """Rotation indices whose normalized geometry has not been seen yet."""
    seen: set[tuple[Offset, ...]] = set()
    rotations = []
    for rotation in range(4):
        signature = rotate_cells(CANONICAL_CELLS[shape], rotation)
        if signature not in seen:
            seen.add(signature)
            rotations.append(rotation)
    return tuple(rotations)


# Precomputed at module load: O -> (0,), I/S/Z -> (0, 1), T/L/J -> (0, 1, 2, 3)
DISTINCT_ROTATIONS: dict[Shape, tuple[int, ...]] = {
    shape: _compute_distinct_rotations(shape) for shape in Shape
}


def canonical_cells(shape: Shape | str) -> tuple[Offset, ...]:
    """Canonical offsets for a shape family."""
    return CANONICAL_CELLS[_coerce_shape(shape)]


def distinct_rotations(shape: Shape | str) -> tuple[int, ...]:
    """Rotation indices that produce visually distinct orientations."""
    return DISTINCT_ROTATIONS[_coerce_shape(shape)]


def catalog(include_mirrored: bool = True) -> list[tuple[Shape, int]]:
    """All (shape, rotation) pairs, 19 with J/Z and 13 without."""
    pairs = []
    for shape in Shape:
        if not include_mirrored and shape in MIRRORED_SHAPES:
            continue
        for rotation in DISTINCT_ROTATIONS[shape]:
            pairs.append((shape, rotation))
    return pairs


def _coerce_shape(shape: Shape | str) -> Shape:
    try:
        return Shape(shape)
    except ValueError:
        raise ValueError(f"Unknown shape: {shape!r}") from None


@dataclass(frozen=True)
class Piece:
    """
    A single polyomino orientation.

    Attributes:
        cells: Normalized, sorted offsets. Two pieces are equal iff these match.
    """
    cells: tuple[Offset, ...]

    def __post_init__(self):
        if not self.cells:
            raise ValueError("A piece needs at least one cell")
        # Always store the normalized form, whatever the caller passed
        object.__setattr__(self, 'cells', normalize_cells(self.cells))

    @classmethod
    def from_cells(cls, cells: Iterable[Offset]) -> Piece:
        return cls(tuple(cells))

    @property
    def height(self) -> int:
        return max(r for r, _ in self.cells) + 1

    @property
    def width(self) -> int:
        return max(c for _, c in self.cells) + 1

    @property
    def signature(self) -> tuple[Offset, ...]:
        """Hashable key identifying this orientation."""
        return self.cells

    def rotated(self, clockwise: bool = True) -> Piece:
        """Rotate a quarter turn; counter-clockwise is three clockwise steps."""
        return Piece(rotate_cells(self.cells, 1 if clockwise else 3))

    def anchor(self) -> Offset:
        """The median cell of the bottom row, used to aim the piece at a target cell."""
        bottom = max(r for r, _ in self.cells)
        bottom_cells = sorted(c for r, c in self.cells if r == bottom)
        return bottom, bottom_cells[len(bottom_cells) // 2]

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(self.cells)

    def __str__(self) -> str:
        occupied = set(self.cells)
        lines = []
        for r in range(self.height):
            lines.append("".join('#' if (r, c) in occupied else '.' for c in range(self.width)))
        return "\n".join(lines)


def make_piece(shape: Shape | str, rotation: int = 0) -> Piece:
    """Build the `rotation`-th clockwise orientation of a catalog shape."""
    if not 0 <= rotation <= 3:
        raise ValueError(f"Rotation must be in 0..3, got {rotation}")
    return Piece(rotate_cells(canonical_cells(shape), rotation))


def unique_rotations_clockwise(piece: Piece) -> list[Piece]:
    """
    The piece and each further clockwise orientation, skipping duplicates.

    Returns between 1 and 4 pieces; the first one is always `piece` itself.
    """
    seen: set[tuple[Offset, ...]] = set()
    rotations = []
    current = piece
    for _ in range(4):
        if current.signature not in seen:
            seen.add(current.signature)
            rotations.append(current)
        current = current.rotated(clockwise=True)
    return rotations


def origin_for_target(piece: Piece, row: int, col: int) -> Optional[Offset]:
    """
    Placement origin that puts the piece's anchor cell on (row, col).

    Returns None when that origin would lie outside the board.
    """
    anchor_row, anchor_col = piece.anchor()
    origin = (row - anchor_row, col - anchor_col)
    if not is_inside(*origin):
        return None
    return origin
