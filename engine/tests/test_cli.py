"""Tests for the terminal client helpers."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.play import parse_command, choose_placement, watch_bot, print_board, print_queue
from tetrix.core.scheduler import ManualScheduler
from tetrix.core.session import GameConfig, GameSession
from tetrix.core.shapes import Shape, make_piece, unique_rotations_clockwise


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def session(scheduler):
    s = GameSession(config=GameConfig(clear_delay=0.0), scheduler=scheduler, seed=21)
    s.start()
    return s


class TestParseCommand:
    def test_simple_commands(self):
        assert parse_command("q") == ('quit', ())
        assert parse_command("c") == ('commit', ())
        assert parse_command("rotate") == ('rotate', ())
        assert parse_command("x") == ('clear', ())
        assert parse_command("n") == ('restart', ())

    def test_coordinates(self):
        assert parse_command("h 3 4") == ('hover', (3, 4))
        assert parse_command("a 9 0") == ('aim', (9, 0))
        assert parse_command("P 1 2") == ('place', (1, 2))

    def test_bad_input(self):
        assert parse_command("") is None
        assert parse_command("h three 4") is None
        assert parse_command("h 1") is None
        assert parse_command("zzz") is None


class TestBot:
    def test_choose_placement_prefers_clears(self, session):
        for c in range(6):
            session.board.set_occupied(0, c, True)
        session.current = make_piece(Shape.I)
        piece, origin = choose_placement(session)
        assert piece == make_piece(Shape.I)
        assert origin == (0, 6)

    def test_choose_placement_uses_rotations(self, session):
        session.board.cells[:] = True
        for r in range(4):
            session.board.set_occupied(r, 0, False)
        session.current = make_piece(Shape.I)
        piece, origin = choose_placement(session)
        assert piece in unique_rotations_clockwise(make_piece(Shape.I))
        assert origin == (0, 0)

    def test_choose_placement_none_when_stuck(self, session):
        session.board.cells[:] = True
        assert choose_placement(session) is None

    def test_watch_bot(self, session, scheduler, capsys):
        watch_bot(session, scheduler, delay=0.0, max_pieces=6)
        assert session.pieces_placed == 6 or session.is_game_over
        out = capsys.readouterr().out
        assert "Score" in out


class TestRendering:
    def test_print_board_and_queue(self, session, capsys):
        session.current = make_piece(Shape.O)
        session.update_hover(0, 0)
        snap = session.snapshot()
        print_board(snap)
        print_queue(snap)
        out = capsys.readouterr().out
        assert "current" in out
        assert "Top:" in out
