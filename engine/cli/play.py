#!/usr/bin/env python3
"""
Terminal-based Tetrix client.

Play the puzzle from the keyboard or watch a simple bot play it.
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tetrix.core.grid import SIZE, index
from tetrix.core.scheduler import ManualScheduler
from tetrix.core.session import GameConfig, GameSession, Phase, SessionSnapshot
from tetrix.core.shapes import Piece, unique_rotations_clockwise
from tetrix.storage import MemoryTopScoreStore, SQLiteTopScoreStore


def print_board(snap: SessionSnapshot) -> None:
    """Print the board with hover, helper and clearing highlights.

    Symbols:
        # = occupied
        o = hover cell (valid placement)
        x = hover cell (invalid placement)
        * = cell in a line being cleared
    Helper cells (lines the hover would complete) are shown in yellow.
    """
    # ANSI color codes
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BOLD = '\033[1m'
    RESET = '\033[0m'

    print()
    print("    " + " ".join(str(c) for c in range(SIZE)))
    print("  +" + "-" * (SIZE * 2 + 1) + "+")
    for row in range(SIZE):
        line = f"{row} |"
        for col in range(SIZE):
            idx = index(row, col)
            sym = '#' if snap.board[idx] else '.'
            if idx in snap.clearing_cells:
                line += f" {BOLD}*{RESET}"
            elif idx in snap.hover_cells:
                color = GREEN if snap.hover_valid else RED
                line += f" {color}{'o' if snap.hover_valid else 'x'}{RESET}"
            elif idx in snap.helper_cells:
                line += f" {YELLOW}{sym}{RESET}"
            else:
                line += f" {sym}"
        line += " |"
        print(line)
    print("  +" + "-" * (SIZE * 2 + 1) + "+")
    print(f"  Score: {snap.score}   Top: {snap.top_score}   Lines: {snap.lines_cleared}")
    print()


def print_queue(snap: SessionSnapshot) -> None:
    """Print the current piece next to the two lookahead pieces."""
    pieces = [snap.current, snap.next1, snap.next2]
    labels = ["current", "next", "after"]
    blocks = [str(p).splitlines() for p in pieces]
    height = max(len(b) for b in blocks)
    widths = [max(len(labels[i]), max(len(line) for line in b)) for i, b in enumerate(blocks)]
    print("  " + "   ".join(labels[i].ljust(widths[i]) for i in range(3)))
    for r in range(height):
        row = []
        for i, b in enumerate(blocks):
            row.append((b[r] if r < len(b) else "").ljust(widths[i]))
        print("  " + "   ".join(row))
    print()


def parse_command(input_str: str) -> tuple[str, tuple[int, ...]] | None:
    """Parse user input into (command, args)."""
    parts = input_str.strip().lower().split()
    if not parts:
        return None
    cmd, rest = parts[0], parts[1:]

    if cmd in ['q', 'quit', 'exit']:
        return 'quit', ()
    if cmd in ['?', 'help']:
        return 'help', ()
    if cmd in ['c', 'commit', 'drop']:
        return 'commit', ()
    if cmd in ['r', 'rotate']:
        return 'rotate', ()
    if cmd in ['x', 'clear']:
        return 'clear', ()
    if cmd in ['n', 'new', 'restart']:
        return 'restart', ()
    if cmd in ['h', 'hover', 'a', 'aim', 'p', 'place']:
        try:
            row, col = (int(v) for v in rest)
        except ValueError:
            print(f"Invalid format: {input_str.strip()}. Use e.g. 'h 3 4'")
            return None
        name = {'h': 'hover', 'a': 'aim', 'p': 'place'}.get(cmd, cmd)
        return name, (row, col)

    print(f"Unknown command: {cmd}")
    return None


def print_help() -> None:
    print("h ROW COL   preview the piece with its top-left at ROW, COL")
    print("a ROW COL   aim the piece's bottom cell at ROW, COL")
    print("p ROW COL   preview and drop in one go")
    print("c           drop the piece at the previewed spot")
    print("r           rotate the current piece")
    print("x           clear the preview")
    print("n           restart, q quit")


def finish_clear(session: GameSession, scheduler: ManualScheduler) -> None:
    """Show the clearing lines, wait out the delay, then let the clear happen."""
    snap = session.snapshot()
    if snap.phase != Phase.ANIMATING_CLEAR:
        return
    print_board(snap)
    time.sleep(session.config.clear_delay)
    scheduler.advance(session.config.clear_delay)


def play_interactive(session: GameSession, scheduler: ManualScheduler) -> None:
    """Play a game from the keyboard."""
    session.start()

    print("\n=== Tetrix ===")
    print("Fill rows (and columns) to clear them. '?' for help.")

    while True:
        snap = session.snapshot()
        print_board(snap)
        if snap.is_game_over:
            print(f"Game over! Final score: {snap.score}")
            print("'n' to play again, 'q' to quit")
        else:
            print_queue(snap)

        try:
            user_input = input("> ")
        except EOFError:
            return

        parsed = parse_command(user_input)
        if parsed is None:
            continue
        cmd, args = parsed

        if cmd == 'quit':
            print("Thanks for playing!")
            return
        elif cmd == 'help':
            print_help()
        elif cmd == 'restart':
            session.restart()
        elif cmd == 'clear':
            session.clear_hover()
        elif cmd == 'rotate':
            if not session.rotate_current_piece():
                print("Rotation is not available.")
        elif cmd == 'hover':
            session.update_hover(*args)
        elif cmd == 'aim':
            if not session.update_hover_target(*args):
                print("That aim puts the piece off the board.")
        elif cmd in ('commit', 'place'):
            if cmd == 'place':
                session.update_hover(*args)
            if session.commit():
                finish_clear(session, scheduler)
            else:
                print("The piece does not fit there.")


def choose_placement(session: GameSession) -> tuple[Piece, tuple[int, int]] | None:
    """Pick the orientation/origin that clears the most cells, else the first fit."""
    rotations = [session.current]
    if session.config.rotation_enabled:
        rotations = unique_rotations_clockwise(session.current)

    best = None
    best_gain = -1
    for turns, piece in enumerate(rotations):
        for origin in session.placement.valid_origins(piece):
            covered, _ = session.placement.preview_at(piece, *origin)
            gain = len(session.placement.would_clear_lines(covered))
            if gain > best_gain:
                best, best_gain = (turns, origin), gain
    if best is None:
        return None
    turns, origin = best
    return rotations[turns], origin


def watch_bot(session: GameSession, scheduler: ManualScheduler, delay: float = 0.5,
              max_pieces: int | None = None) -> None:
    """Watch a greedy bot play until game over."""
    session.start()
    print("\n=== Tetrix bot ===")

    while not session.is_game_over:
        if max_pieces is not None and session.pieces_placed >= max_pieces:
            break
        choice = choose_placement(session)
        if choice is None:
            break
        piece, origin = choice
        # Either direction cycles through every orientation within 3 turns
        while session.current != piece:
            session.rotate_current_piece()
        session.update_hover(*origin)
        print_board(session.snapshot())
        session.commit()
        finish_clear(session, scheduler)
        time.sleep(delay)

    snap = session.snapshot()
    print_board(snap)
    print(f"Game over after {snap.pieces_placed} pieces. Score: {snap.score}")


def main():
    parser = argparse.ArgumentParser(description='Tetrix Terminal Client')
    parser.add_argument('--seed', type=int, default=None, help='Bag seed (default: random)')
    parser.add_argument('--no-rotation', action='store_true', help='Disable piece rotation')
    parser.add_argument('--ccw', action='store_true', help='Rotate counter-clockwise')
    parser.add_argument('--no-columns', action='store_true', help='Only clear rows')
    parser.add_argument('--no-mirrored', action='store_true', help='Leave J and Z out of the bag')
    parser.add_argument('--db', type=str, default=None, help='Top score database path')
    parser.add_argument('--no-save', action='store_true', help='Keep the top score in memory only')
    parser.add_argument('--watch', action='store_true', help='Watch a bot play')
    parser.add_argument('--delay', type=float, default=0.5, help='Seconds between bot moves')
    parser.add_argument('--log-level', type=str, default='WARNING', help='Logging level')

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = GameConfig.from_env()
    if args.no_rotation:
        config.rotation_enabled = False
    if args.ccw:
        config.rotate_clockwise = False
    if args.no_columns:
        config.column_clear_enabled = False
    if args.no_mirrored:
        config.include_mirrored = False

    if args.no_save:
        store = MemoryTopScoreStore()
    else:
        store = SQLiteTopScoreStore(Path(args.db) if args.db else None)

    scheduler = ManualScheduler()
    session = GameSession(config=config, scheduler=scheduler, store=store, seed=args.seed)

    if args.watch:
        watch_bot(session, scheduler, args.delay)
    else:
        play_interactive(session, scheduler)


if __name__ == '__main__':
    main()
