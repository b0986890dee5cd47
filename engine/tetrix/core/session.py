"""
Game session state machine for Tetrix.

Phases:

  NOT_STARTED --start()--> PLAYING
  PLAYING --commit() completing lines--> ANIMATING_CLEAR
  ANIMATING_CLEAR --apply_pending_clear()--> PLAYING or GAME_OVER
  PLAYING --advance with no fitting piece--> GAME_OVER
  any --restart()--> PLAYING

A commit that completes lines does not clear them right away. The session
publishes the cells about to clear, enters ANIMATING_CLEAR and asks its
scheduler for a callback after `clear_delay` seconds. The callback (or the
host, calling apply_pending_clear() itself) applies the clear, scores it and
deals the next piece. Every gameplay call is rejected while the clear is
pending.

All public methods run under one re-entrant lock, so a scheduler firing on
another thread cannot interleave with the caller.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional
import functools
import logging
import os
import threading

from .bag import BagRandomizer
from .grid import Grid, line_indices
from .placement import PlacementEngine
from .scheduler import Scheduler, TimerHandle
from .shapes import Offset, Piece, origin_for_target, unique_rotations_clockwise
from ..storage import MemoryTopScoreStore, TopScoreStore

logger = logging.getLogger(__name__)

# Points per cleared row or column
POINTS_PER_LINE = 10

# Seconds the clearing cells stay on the board before the clear is applied
DEFAULT_CLEAR_DELAY = 0.16


class Phase(str, Enum):
    NOT_STARTED = "not_started"
    PLAYING = "playing"
    ANIMATING_CLEAR = "animating_clear"
    GAME_OVER = "game_over"


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class GameConfig:
    """Gameplay options. Owned by the host; the session only reads them."""
    rotation_enabled: bool = True
    rotate_clockwise: bool = True   # Direction used by rotate_current_piece()
    column_clear_enabled: bool = True
    include_mirrored: bool = True   # Deal J and Z (19 orientations instead of 13)
    clear_delay: float = DEFAULT_CLEAR_DELAY

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> GameConfig:
        """Read options from TETRIX_* environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        delay = env.get("TETRIX_CLEAR_DELAY")
        return cls(
            rotation_enabled=_env_flag(env, "TETRIX_ROTATION", defaults.rotation_enabled),
            rotate_clockwise=_env_flag(env, "TETRIX_ROTATE_CLOCKWISE", defaults.rotate_clockwise),
            column_clear_enabled=_env_flag(env, "TETRIX_CLEAR_COLUMNS", defaults.column_clear_enabled),
            include_mirrored=_env_flag(env, "TETRIX_MIRRORED_SHAPES", defaults.include_mirrored),
            clear_delay=float(delay) if delay else defaults.clear_delay,
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session, handed to renderers after every change."""
    phase: Phase
    board: tuple[bool, ...]
    current: Piece
    next1: Piece
    next2: Piece
    score: int
    top_score: int
    hover_origin: Optional[Offset] = None
    hover_cells: frozenset[int] = frozenset()
    hover_valid: bool = False
    helper_cells: frozenset[int] = frozenset()
    clearing_cells: frozenset[int] = frozenset()
    lines_cleared: int = 0
    pieces_placed: int = 0

    @property
    def is_started(self) -> bool:
        return self.phase != Phase.NOT_STARTED

    @property
    def is_game_over(self) -> bool:
        return self.phase == Phase.GAME_OVER

    @property
    def is_animating_clear(self) -> bool:
        return self.phase == Phase.ANIMATING_CLEAR


Listener = Callable[[SessionSnapshot], None]


@dataclass
class PendingClear:
    """Lines found full by a commit, waiting for the clear delay."""
    rows: list[int]
    columns: list[int]
    cells: frozenset[int]
    token: int
    handle: Optional[TimerHandle] = None

    @property
    def line_count(self) -> int:
        # A row and a column sharing a cell still count as two lines
        return len(self.rows) + len(self.columns)


class GameSession:
    """
    One game of Tetrix.

    Args:
        config: Gameplay options (defaults to GameConfig()).
        scheduler: Runs the delayed clear. None means the host calls
            apply_pending_clear() itself once the delay has passed.
        store: Top score storage (defaults to an in-memory store).
        seed: Bag seed used on every start/restart. None draws a fresh
            seed from entropy each time.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        scheduler: Optional[Scheduler] = None,
        store: Optional[TopScoreStore] = None,
        seed: Optional[int] = None,
    ):
        self.config = config or GameConfig()
        self.scheduler = scheduler
        self.store: TopScoreStore = store if store is not None else MemoryTopScoreStore()
        self.seed = seed

        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

        self.board = Grid()
        self.placement = PlacementEngine(self.board, self.config.column_clear_enabled)
        self.bag = BagRandomizer(seed, include_mirrored=self.config.include_mirrored)

        self.phase = Phase.NOT_STARTED
        self.score = 0
        self.top_score = self._load_top_score()
        self.lines_cleared = 0
        self.pieces_placed = 0
        self.games_started = 0

        self.current: Piece = self.bag.next()
        self.next1: Piece = self.bag.next()
        self.next2: Piece = self.bag.next()

        self.hover_origin: Optional[Offset] = None
        self.hover_cells: set[int] = set()
        self.hover_valid = False
        self.helper_cells: set[int] = set()

        self.pending_clear: Optional[PendingClear] = None
        self._clear_token = 0

    # --- Observation ---

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                phase=self.phase,
                board=self.board.as_tuple(),
                current=self.current,
                next1=self.next1,
                next2=self.next2,
                score=self.score,
                top_score=self.top_score,
                hover_origin=self.hover_origin,
                hover_cells=frozenset(self.hover_cells),
                hover_valid=self.hover_valid,
                helper_cells=frozenset(self.helper_cells),
                clearing_cells=self.clearing_cells,
                lines_cleared=self.lines_cleared,
                pieces_placed=self.pieces_placed,
            )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a fresh snapshot after every state change.

        Returns a function that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    @property
    def clearing_cells(self) -> frozenset[int]:
        return self.pending_clear.cells if self.pending_clear else frozenset()

    @property
    def is_started(self) -> bool:
        return self.phase != Phase.NOT_STARTED

    @property
    def is_game_over(self) -> bool:
        return self.phase == Phase.GAME_OVER

    @property
    def is_animating_clear(self) -> bool:
        return self.phase == Phase.ANIMATING_CLEAR

    # --- Start / restart ---

    def start(self, seed: Optional[int] = None) -> bool:
        """Begin a game. Ignored while a game is running."""
        with self._lock:
            if self.phase in (Phase.PLAYING, Phase.ANIMATING_CLEAR):
                return False
            self._new_game(seed)
            return True

    def restart(self, seed: Optional[int] = None) -> None:
        """Abandon whatever is going on, including a pending clear, and start over."""
        with self._lock:
            self._new_game(seed)

    def _new_game(self, seed: Optional[int]) -> None:
        self._cancel_pending_clear()
        self._sync_config()

        self.board.reset()
        self.score = 0
        self.lines_cleared = 0
        self.pieces_placed = 0

        if self.bag.include_mirrored != self.config.include_mirrored:
            self.bag = BagRandomizer(include_mirrored=self.config.include_mirrored)
        self.bag.reset(seed if seed is not None else self.seed)
        self.current = self.bag.next()
        self.next1 = self.bag.next()
        self.next2 = self.bag.next()

        self._reset_hover()
        self.phase = Phase.PLAYING
        self.games_started += 1
        logger.info("Game %d started (seed=%d)", self.games_started, self.bag.seed)

        self._check_game_over()
        self._publish()

    # --- Hover ---

    def update_hover(self, row: int, col: int) -> bool:
        """Preview the current piece with its origin at (row, col)."""
        with self._lock:
            if self.phase != Phase.PLAYING:
                return False
            self._sync_config()
            self.hover_origin = (row, col)
            self._recalc_hover()
            self._publish()
            return True

    def update_hover_target(self, row: int, col: int) -> bool:
        """Preview the current piece aimed so its anchor cell sits on (row, col).

        Clears the hover when that aim puts the origin off the board.
        """
        with self._lock:
            if self.phase != Phase.PLAYING:
                return False
            origin = origin_for_target(self.current, row, col)
            if origin is None:
                self.clear_hover()
                return False
            return self.update_hover(*origin)

    def clear_hover(self) -> None:
        """Drop any hover preview. Safe to call at any time, any number of times."""
        with self._lock:
            self._reset_hover()
            self._publish()

    def _reset_hover(self) -> None:
        self.hover_origin = None
        self.hover_cells = set()
        self.hover_valid = False
        self.helper_cells = set()

    def _recalc_hover(self) -> None:
        if self.hover_origin is None:
            self._reset_hover()
            return
        covered, valid = self.placement.preview_at(self.current, *self.hover_origin)
        self.hover_cells = covered
        self.hover_valid = valid
        self.helper_cells = self.placement.would_clear_lines(covered) if valid else set()

    # --- Rotation ---

    def rotate_current_piece(self) -> bool:
        """Rotate the current piece in the configured direction."""
        with self._lock:
            if self.phase != Phase.PLAYING or not self.config.rotation_enabled:
                return False
            self._sync_config()
            self.current = self.current.rotated(clockwise=self.config.rotate_clockwise)
            if self.hover_origin is not None:
                self._recalc_hover()
            self._publish()
            return True

    # --- Commit ---

    def commit(self) -> bool:
        """
        Place the current piece at the hover origin.

        Returns False (and clears the hover, leaving the board untouched) if
        there is no hover or the piece does not fit there, and False without
        any change when called outside PLAYING.
        """
        with self._lock:
            if self.phase != Phase.PLAYING:
                return False
            self._sync_config()

            origin = self.hover_origin
            if origin is None or not self.placement.can_place(self.current, *origin):
                self._reset_hover()
                self._publish()
                return False

            self.placement.place(self.current, *origin)
            self.pieces_placed += 1
            rows, columns = self.placement.full_lines()

            if not rows and not columns:
                self._persist_top_score_if_needed()
                self._advance()
                self._check_game_over()
                self._publish()
                return True

            self._clear_token += 1
            pending = PendingClear(
                rows=rows,
                columns=columns,
                cells=frozenset(line_indices(rows, columns)),
                token=self._clear_token,
            )
            self.pending_clear = pending
            self.phase = Phase.ANIMATING_CLEAR
            self._reset_hover()
            logger.debug("Clearing rows=%s columns=%s", rows, columns)

            if self.scheduler is not None:
                callback = functools.partial(self._on_clear_timer, pending.token)
                pending.handle = self.scheduler.call_later(self.config.clear_delay, callback)

            self._publish()
            return True

    def _on_clear_timer(self, token: int) -> None:
        with self._lock:
            # A timer that lost a race with restart() must not touch the new game
            if self.pending_clear is None or self.pending_clear.token != token:
                return
            self.apply_pending_clear()

    def apply_pending_clear(self) -> bool:
        """Apply the clear started by the last commit. No-op if none is pending."""
        with self._lock:
            pending = self.pending_clear
            if self.phase != Phase.ANIMATING_CLEAR or pending is None:
                return False
            if pending.handle is not None:
                pending.handle.cancel()

            self.board.clear(pending.rows, pending.columns)
            self.score += pending.line_count * POINTS_PER_LINE
            self.lines_cleared += pending.line_count
            self._persist_top_score_if_needed()
            logger.debug("Cleared %d lines, score=%d", pending.line_count, self.score)

            self.pending_clear = None
            self.phase = Phase.PLAYING
            self._advance()
            self._check_game_over()
            self._publish()
            return True

    def _cancel_pending_clear(self) -> None:
        if self.pending_clear is not None and self.pending_clear.handle is not None:
            self.pending_clear.handle.cancel()
        self.pending_clear = None

    # --- Turn flow ---

    def _advance(self) -> None:
        self.current = self.next1
        self.next1 = self.next2
        self.next2 = self.bag.next()
        self._reset_hover()

    def _check_game_over(self) -> bool:
        """End the game if the current piece fits nowhere (in any orientation, if rotation is on)."""
        if self.config.rotation_enabled:
            candidates = unique_rotations_clockwise(self.current)
        else:
            candidates = [self.current]
        if any(self.placement.can_place_anywhere(p) for p in candidates):
            return False

        self.phase = Phase.GAME_OVER
        logger.info("Game over: score=%d top=%d pieces=%d", self.score, self.top_score, self.pieces_placed)
        # Final write happens even when the score did not beat the record
        self.top_score = max(self.top_score, self.score)
        self._save_top_score()
        return True

    def _sync_config(self) -> None:
        self.placement.column_clear_enabled = self.config.column_clear_enabled

    # --- Top score ---

    def _load_top_score(self) -> int:
        try:
            return max(0, int(self.store.load()))
        except Exception as e:
            logger.warning("Failed to load top score: %s", e)
            return 0

    def _persist_top_score_if_needed(self) -> None:
        if self.score > self.top_score:
            self.top_score = self.score
            self._save_top_score()

    def _save_top_score(self) -> None:
        # Best effort: storage trouble never interrupts play
        try:
            self.store.save(self.top_score)
        except Exception as e:
            logger.warning("Failed to save top score %d: %s", self.top_score, e)
