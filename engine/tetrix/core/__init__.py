"""Core game logic: grid, shapes, bag, placement and the session state machine."""

from .grid import Grid, SIZE, NUM_CELLS
from .shapes import (
    Shape, Piece, make_piece, canonical_cells, distinct_rotations,
    unique_rotations_clockwise, catalog, origin_for_target,
)
from .bag import BagRandomizer
from .placement import PlacementEngine
from .scheduler import ManualScheduler, ThreadingScheduler, AsyncioScheduler
from .session import GameSession, GameConfig, SessionSnapshot, Phase
