"""
Tests for tetris_engine.py - piece movement, rotation, locking and scoring.
"""

import random

import numpy as np
import pytest

import core_game as cg
from config import ConfigError
from tetris_engine import WALL_KICKS, ActivePiece, TetrisEngine

I, J, L, O, S, T, Z = range(7)


@pytest.fixture()
def engine(storage, audio, rng):
    eng = TetrisEngine("normal", storage=storage, audio=audio, rng=rng)
    eng.board = cg.create_grid()
    return eng


def filled_cells_in_bounds(eng):
    if eng.piece is None:
        return True
    ys, xs = cg.piece_cells(eng.piece.matrix, eng.piece.x, eng.piece.y)
    return bool(np.all((xs >= 0) & (xs < eng.width) & (ys < eng.height)))


class TestConstruction:
    """Engine construction and spawning."""

    def test_difficulty_sets_drop_interval_and_line_score(self):
        assert TetrisEngine("easy").drop_interval == 1200
        hard = TetrisEngine("hard")
        assert hard.drop_interval == 700
        assert hard.line_score == 150

    def test_unknown_difficulty_is_fatal(self):
        with pytest.raises(ConfigError):
            TetrisEngine("impossible")

    def test_reset_spawns_a_piece(self, engine):
        engine.reset()
        assert engine.piece is not None
        assert engine.piece.y == 0
        assert not engine.game_over
        assert not engine.board.any()

    def test_i_piece_spawns_centered_on_row_zero(self, engine):
        assert engine.spawn(I)
        assert (engine.piece.x, engine.piece.y, engine.piece.rotation) == (3, 0, 0)

    def test_o_piece_spawn_column(self, engine):
        engine.spawn(O)
        assert engine.piece.x == 4

    def test_spawn_uses_and_refreshes_preview(self, engine):
        engine.next_shape_index = S
        engine.spawn()
        assert engine.piece.shape_index == S
        assert 0 <= engine.next_shape_index < 7

    def test_blocked_spawn_ends_game(self, engine):
        engine.board[0, 3:7] = 2
        assert not engine.spawn(I)
        assert engine.game_over
        assert engine.piece is None
        assert not engine.move(0, 1)
        assert not engine.rotate()


class TestMovement:
    """move, soft drop and the forced-drop timer."""

    def test_move_mutates_only_on_success(self, engine):
        engine.spawn(I)
        assert engine.move(-3, 0)
        assert engine.piece.x == 0
        assert not engine.move(-1, 0)
        assert engine.piece.x == 0

    def test_move_into_filled_cell_is_rejected(self, engine):
        engine.spawn(O)
        engine.board[2, 4] = 1
        assert not engine.move(0, 1)
        assert engine.piece.y == 0

    def test_soft_drop_awards_a_point(self, engine):
        engine.spawn(T)
        assert engine.soft_drop()
        assert engine.piece.y == 1
        assert engine.score == 1

    def test_left_right_play_move_sound(self, engine, audio):
        engine.spawn(T)
        engine.move_left()
        engine.move_right()
        assert audio.played == ["move", "move"]

    def test_update_waits_for_drop_interval(self, engine):
        engine.spawn(T)
        engine.update(500)
        assert engine.piece.y == 0
        engine.update(500)
        assert engine.piece.y == 1
        engine.update(999)
        assert engine.piece.y == 1
        engine.update(1)
        assert engine.piece.y == 2

    def test_handle_maps_actions(self, engine):
        engine.spawn(T)
        assert engine.handle("left")
        assert engine.piece.x == 2
        assert engine.handle("up")
        assert engine.piece.rotation == 1
        assert not engine.handle("jump")


class TestRotation:
    """rotate with wall kicks."""

    def test_kick_order(self):
        assert WALL_KICKS == (-1, 1, -2, 2)

    def test_rotate_in_open_space(self, engine):
        engine.spawn(T)
        engine.move(0, 5)
        assert engine.rotate()
        assert engine.piece.rotation == 1
        assert engine.piece.matrix.tolist() == [[1, 0], [1, 1], [1, 0]]

    def test_o_piece_never_rotates(self, engine):
        engine.spawn(O)
        matrix = engine.piece.matrix.copy()
        position = (engine.piece.x, engine.piece.y)
        assert not engine.rotate()
        assert np.array_equal(engine.piece.matrix, matrix)
        assert (engine.piece.x, engine.piece.y) == position
        assert engine.piece.rotation == 0

    def test_wall_kick_against_right_wall(self, engine):
        engine.piece = ActivePiece(I, 1, 8, 5)
        assert engine.rotate()
        assert engine.piece.rotation == 2
        assert engine.piece.x == 6

    def test_wall_kick_against_left_wall(self, engine):
        engine.piece = ActivePiece(I, 1, 0, 5)
        assert engine.rotate()
        assert engine.piece.x == 0
        engine.piece = ActivePiece(J, 3, 0, 5)
        assert engine.rotate()
        assert engine.piece.x == 0

    def test_rotation_discarded_when_no_kick_fits(self, engine):
        engine.board[0:4, 1:] = 3
        engine.piece = ActivePiece(I, 1, 0, 0)
        assert not engine.rotate()
        assert (engine.piece.rotation, engine.piece.x, engine.piece.y) == (1, 0, 0)

    def test_rotation_does_not_alter_future_spawns(self, engine):
        engine.spawn(T)
        engine.move(0, 5)
        for _ in range(3):
            engine.rotate()
        engine.spawn(T)
        assert np.array_equal(engine.piece.matrix, cg.tetrominoes[T])
        assert engine.piece.rotation == 0


class TestLocking:
    """Locking, line clears, scoring and game over."""

    def test_i_piece_falls_to_bottom_without_clearing(self, engine):
        engine.spawn(I)
        moves = 0
        while engine.move(0, 1):
            moves += 1
        assert moves == 19
        engine.update(engine.drop_interval)
        assert engine.board[19].tolist() == [0, 0, 0, 1, 1, 1, 1, 0, 0, 0]
        assert engine.lines_cleared == 0
        assert engine.score == 0
        assert engine.piece is not None and engine.piece.y == 0

    def test_single_line_clear(self, engine, audio, storage):
        engine.board[19, :] = 2
        engine.board[19, 3:7] = 0
        engine.board[18, 0] = 5
        engine.spawn(I)
        while engine.move(0, 1):
            pass
        assert engine.lock() == 1
        assert engine.lines_cleared == 1
        assert engine.score == 100
        assert engine.drop_interval == 990
        assert engine.board[19].tolist() == [5, 0, 0, 0, 0, 0, 0, 0, 0, 0]
        assert not engine.board[:19].any()
        assert "lineClear" in audio.played
        assert "first_line" in storage.get_achievements("tetris")

    @pytest.mark.parametrize("rows, expected", [(1, 100), (2, 250), (3, 400), (4, 800)])
    def test_multi_line_multiplier(self, engine, rows, expected):
        engine.board[20 - rows:, 1:] = 4
        engine.piece = ActivePiece(I, 1, 0, 16)
        assert engine.lock() == rows
        assert engine.score == expected

    def test_hard_difficulty_line_score(self, storage, rng):
        eng = TetrisEngine("hard", storage=storage, rng=rng)
        eng.board = cg.create_grid()
        eng.board[18:, 1:] = 4
        eng.piece = ActivePiece(I, 1, 0, 16)
        eng.lock()
        assert eng.score == 375

    def test_drop_interval_decreases_per_event_and_is_floored(self, engine):
        engine.drop_interval = 105
        for _ in range(2):
            engine.board = cg.create_grid()
            engine.board[16:, 1:] = 4
            engine.piece = ActivePiece(I, 1, 0, 16)
            engine.lock()
        assert engine.drop_interval == 100

    def test_lock_then_blocked_spawn_is_game_over(self, engine):
        engine.board[1, 4] = 1
        engine.next_shape_index = O
        engine.piece = ActivePiece(I, 0, 0, 19)
        assert engine.lock() == 0
        assert engine.game_over
        assert engine.piece is None
        engine.update(10_000)
        assert engine.game_over

    def test_destroyed_engine_rejects_input(self, engine, storage):
        engine.spawn(T)
        engine.destroy()
        assert [engine.soft_drop(), engine.move_left(), engine.rotate()] == [False, False, False]
        assert (engine.piece.x, engine.piece.y, engine.piece.rotation) == (3, 0, 0)
        assert engine.score == 0
        assert storage.get_achievements("tetris") == []

    def test_update_after_game_over_is_ignored(self, engine):
        engine.board[0, :] = 1
        engine.spawn(I)
        board = engine.board.copy()
        engine.update(5000)
        assert np.array_equal(engine.board, board)


class TestInvariants:
    """Properties that must hold over arbitrary play."""

    def test_random_play_keeps_cells_in_bounds(self, storage):
        eng = TetrisEngine("hard", storage=storage, rng=random.Random(7))
        actions = random.Random(99)
        for _ in range(3000):
            if eng.game_over:
                eng.reset()
            locked = eng.board.copy()
            action = actions.choice(["left", "right", "down", "up", "tick"])
            if action == "tick":
                eng.update(eng.drop_interval)
            else:
                eng.handle(action)
                # movement alone never touches committed cells
                assert np.array_equal(eng.board, locked)
            assert filled_cells_in_bounds(eng)
            assert eng.board.shape == (20, 10)
            assert eng.board.min() >= 0 and eng.board.max() <= 7

    def test_snapshot_is_a_copy(self, engine):
        engine.spawn(T)
        snap = engine.snapshot()
        snap.board[0, 0] = 9
        assert engine.board[0, 0] == 0
        assert snap.piece_color == T + 1
        assert snap.ghost_y == 18
