"""Tests for placement legality, previews and line completion."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from tetrix.core.grid import SIZE, Grid, index, is_inside
from tetrix.core.placement import (
    PlacementEngine, can_place, can_place_anywhere, any_rotation_fits
)
from tetrix.core.shapes import Shape, catalog, make_piece, unique_rotations_clockwise


@pytest.fixture
def scattered_grid():
    """A grid with a few occupied cells spread around."""
    return Grid.from_rows([
        "#....#....",
        "..........",
        "...##.....",
        "..........",
        ".......#..",
        "..........",
        "#.........",
        "....#.....",
        "..........",
        ".........#",
    ])


class TestCanPlace:
    def test_matches_cell_by_cell_check(self, scattered_grid):
        engine = PlacementEngine(scattered_grid)
        for shape, rot in catalog():
            piece = make_piece(shape, rot)
            for row in range(-2, SIZE + 2):
                for col in range(-2, SIZE + 2):
                    cells = engine.absolute_cells(piece, row, col)
                    expected = all(
                        is_inside(r, c) and not scattered_grid.is_occupied(r, c)
                        for r, c in cells
                    )
                    assert engine.can_place(piece, row, col) == expected

    def test_absolute_cells(self):
        piece = make_piece(Shape.O)
        assert PlacementEngine.absolute_cells(piece, 3, 4) == [(3, 4), (3, 5), (4, 4), (4, 5)]

    def test_off_board(self):
        engine = PlacementEngine(Grid())
        assert not engine.can_place(make_piece(Shape.I), 0, 7)
        assert not engine.can_place(make_piece(Shape.I, 1), 7, 0)
        assert not engine.can_place(make_piece(Shape.O), -1, 0)

    def test_no_side_effects(self, scattered_grid):
        before = scattered_grid.copy()
        engine = PlacementEngine(scattered_grid)
        engine.can_place(make_piece(Shape.T), 0, 0)
        engine.can_place(make_piece(Shape.T), 4, 4)
        assert scattered_grid == before

    def test_convenience_function(self):
        assert can_place(Grid(), make_piece(Shape.O), 8, 8)
        assert not can_place(Grid(), make_piece(Shape.O), 9, 9)


class TestPlace:
    def test_place_marks_cells(self):
        grid = Grid()
        PlacementEngine(grid).place(make_piece(Shape.O), 0, 0)
        assert grid.occupied_indices() == {0, 1, 10, 11}

    def test_no_double_placement(self, scattered_grid):
        engine = PlacementEngine(scattered_grid)
        for shape, rot in catalog():
            piece = make_piece(shape, rot)
            origins = engine.valid_origins(piece)
            if not origins:
                continue
            row, col = origins[0]
            engine.place(piece, row, col)
            assert not engine.can_place(piece, row, col)

    def test_illegal_place_raises_and_leaves_board(self, scattered_grid):
        before = scattered_grid.copy()
        engine = PlacementEngine(scattered_grid)
        with pytest.raises(ValueError):
            engine.place(make_piece(Shape.O), 9, 9)
        with pytest.raises(ValueError):
            engine.place(make_piece(Shape.I), 0, 2)  # hits (0, 5)
        assert scattered_grid == before


class TestAnywhere:
    def test_empty_board(self):
        engine = PlacementEngine(Grid())
        for shape, rot in catalog():
            assert engine.can_place_anywhere(make_piece(shape, rot))

    def test_full_board(self):
        grid = Grid.from_rows(["##########"] * SIZE)
        assert not can_place_anywhere(grid, make_piece(Shape.O))

    def test_single_free_cell_does_not_fit_i(self):
        grid = Grid.from_rows(["##########"] * SIZE)
        grid.set_occupied(4, 4, False)
        assert not can_place_anywhere(grid, make_piece(Shape.I))
        assert not can_place_anywhere(grid, make_piece(Shape.I, 1))

    def test_valid_origins_on_empty_board(self):
        engine = PlacementEngine(Grid())
        assert len(engine.valid_origins(make_piece(Shape.O))) == 81
        assert len(engine.valid_origins(make_piece(Shape.I))) == 70

    def test_any_rotation_fits(self):
        # Only a vertical slot is free in column 0
        grid = Grid.from_rows([".#########"] * 4 + ["##########"] * 6)
        piece = make_piece(Shape.I)
        assert not can_place_anywhere(grid, piece)
        assert any_rotation_fits(grid, unique_rotations_clockwise(piece))


class TestPreview:
    def test_valid_preview(self):
        engine = PlacementEngine(Grid())
        covered, valid = engine.preview_at(make_piece(Shape.O), 0, 0)
        assert covered == {0, 1, 10, 11}
        assert valid

    def test_preview_clips_off_board_cells(self):
        engine = PlacementEngine(Grid())
        covered, valid = engine.preview_at(make_piece(Shape.I), 0, 8)
        assert covered == {8, 9}
        assert not valid

    def test_preview_keeps_occupied_cells(self):
        grid = Grid.from_rows(["#"])
        engine = PlacementEngine(grid)
        covered, valid = engine.preview_at(make_piece(Shape.O), 0, 0)
        assert covered == {0, 1, 10, 11}
        assert not valid

    def test_preview_fully_off_board(self):
        engine = PlacementEngine(Grid())
        covered, valid = engine.preview_at(make_piece(Shape.O), 20, 20)
        assert covered == set()
        assert not valid


class TestWouldClear:
    def test_row_completion(self):
        grid = Grid.from_rows(["######"])
        engine = PlacementEngine(grid)
        covered, _ = engine.preview_at(make_piece(Shape.I), 0, 6)
        assert engine.would_clear_lines(covered) == set(range(10))

    def test_nothing_completed(self):
        engine = PlacementEngine(Grid())
        covered, _ = engine.preview_at(make_piece(Shape.I), 0, 0)
        assert engine.would_clear_lines(covered) == set()

    def test_does_not_mutate(self):
        grid = Grid.from_rows(["######"])
        before = grid.copy()
        engine = PlacementEngine(grid)
        engine.would_clear_lines({6, 7, 8, 9})
        assert grid == before

    def test_columns_only_when_enabled(self):
        grid = Grid()
        for row in range(4, SIZE):
            grid.set_occupied(row, 2, True)
        covered = {index(r, 2) for r in range(4)}

        assert PlacementEngine(grid).would_clear_lines(covered) == set()
        cells = PlacementEngine(grid, column_clear_enabled=True).would_clear_lines(covered)
        assert cells == {index(r, 2) for r in range(SIZE)}

    def test_row_and_column_together(self):
        grid = Grid()
        for i in range(9):
            grid.set_occupied(9, i, True)
        for r in range(6):
            grid.set_occupied(r, 9, True)
        engine = PlacementEngine(grid, column_clear_enabled=True)
        covered, valid = engine.preview_at(make_piece(Shape.I, 1), 6, 9)
        assert valid
        rows, columns = engine.lines_completed_by(covered)
        assert (rows, columns) == ([9], [9])
        assert len(engine.would_clear_lines(covered)) == 19

    def test_full_lines(self):
        grid = Grid.from_rows(["##########"])
        for row in range(SIZE):
            grid.set_occupied(row, 0, True)
        assert PlacementEngine(grid).full_lines() == ([0], [])
        assert PlacementEngine(grid, column_clear_enabled=True).full_lines() == ([0], [0])
