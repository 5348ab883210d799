# tetris_engine.py
import logging
import math
import random
from typing import NamedTuple, Optional

import numpy as np

import core_game as cg
from achievements import AchievementEvaluator
from audio import NullAudio
from config import LINE_MULTIPLIER, TETRIS, get_difficulty
from storage import MemoryStorage

logger = logging.getLogger(__name__)

# horizontal offsets tried, in order, when a rotation does not fit in place
WALL_KICKS = (-1, 1, -2, 2)


class ActivePiece:
    __slots__ = ("shape_index", "rotation", "x", "y")

    def __init__(self, shape_index: int, rotation: int = 0, x: int = 0, y: int = 0):
        self.shape_index = shape_index
        self.rotation = rotation
        self.x = x
        self.y = y

    @property
    def matrix(self) -> np.ndarray:
        return cg.shape_matrix(self.shape_index, self.rotation)

    @property
    def color(self) -> int:
        return self.shape_index + 1

    def __repr__(self):
        return (f"<ActivePiece {cg.SHAPE_NAMES[self.shape_index]} "
                f"rot={self.rotation} at=({self.x}, {self.y})>")


class TetrisSnapshot(NamedTuple):
    board: np.ndarray
    piece: Optional[np.ndarray]
    piece_x: int
    piece_y: int
    piece_color: int
    ghost_y: int
    next_piece: np.ndarray
    next_color: int
    score: int
    lines_cleared: int
    drop_interval: float
    game_over: bool


class TetrisEngine:
    """
    Falling-block game driven by update(dt). Every `drop_interval` ms the
    active piece is pushed down one row; when it cannot move it is locked,
    full rows are cleared and the next piece spawns. A spawn that does not
    fit ends the game.
    """

    game = "tetris"

    def __init__(self, difficulty: str = "normal", storage=None, audio=None,
                 notifier=None, rng: Optional[random.Random] = None, mechanics: Optional[dict] = None):
        self.settings = get_difficulty(difficulty, self.game)
        self.mechanics = dict(TETRIS, **(mechanics or {}))
        self.width = self.mechanics["board_width"]
        self.height = self.mechanics["board_height"]
        self.line_score = self.settings["line_score"]
        self.storage = storage if storage is not None else MemoryStorage()
        self.audio = audio if audio is not None else NullAudio()
        self.rng = rng if rng is not None else random.Random()
        self.achievements = AchievementEvaluator(self.game, self.storage, self.audio, notifier)
        self.destroyed = False
        self.reset()

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def reset(self):
        self.board = cg.create_grid(self.height, self.width)
        self.piece: Optional[ActivePiece] = None
        self.score = 0
        self.lines_cleared = 0
        self.drop_interval = self.settings["drop_interval"]
        self._elapsed = 0.0
        self.game_over = False
        self.destroyed = False
        self.next_shape_index = self._random_shape()
        self.spawn()

    def destroy(self):
        self.destroyed = True

    def is_game_over(self) -> bool:
        return self.game_over

    def _end_game(self):
        self.game_over = True
        self.piece = None
        logger.info("Tetris game over: score=%d lines=%d", self.score, self.lines_cleared)

    def _random_shape(self) -> int:
        return self.rng.randrange(len(cg.tetrominoes))

    def spawn(self, shape_index: Optional[int] = None) -> bool:
        """
        Put a new piece at the top centre. Without an explicit shape the
        previewed next piece is used and a new preview is drawn.
        """
        if shape_index is None:
            shape_index = self.next_shape_index
            self.next_shape_index = self._random_shape()
        width = cg.tetrominoes[shape_index].shape[1]
        piece = ActivePiece(shape_index, 0, (self.width - width) // 2, 0)
        if cg.check_collision(self.board, piece.matrix, piece.x, piece.y):
            self._end_game()
            return False
        self.piece = piece
        logger.debug("spawned %r", piece)
        return True

    # ----------------------------
    # Movement
    # ----------------------------
    def _fits(self, matrix, x, y) -> bool:
        return not cg.check_collision(self.board, matrix, x, y)

    def move(self, dx: int, dy: int) -> bool:
        if self.piece is None or self.game_over or self.destroyed:
            return False
        piece = self.piece
        if not self._fits(piece.matrix, piece.x + dx, piece.y + dy):
            return False
        piece.x += dx
        piece.y += dy
        return True

    def move_left(self) -> bool:
        moved = self.move(-1, 0)
        if moved:
            self.audio.play("move")
        return moved

    def move_right(self) -> bool:
        moved = self.move(1, 0)
        if moved:
            self.audio.play("move")
        return moved

    def soft_drop(self) -> bool:
        if self.move(0, 1):
            self._award(1)
            return True
        return False

    def rotate(self) -> bool:
        if self.piece is None or self.game_over or self.destroyed:
            return False
        piece = self.piece
        if piece.shape_index == cg.O_PIECE:
            return False
        rotation = (piece.rotation + 1) % 4
        matrix = cg.shape_matrix(piece.shape_index, rotation)
        for kick in (0,) + WALL_KICKS:
            if self._fits(matrix, piece.x + kick, piece.y):
                piece.rotation = rotation
                piece.x += kick
                self.audio.play("rotate")
                return True
        return False

    def handle(self, action: str) -> bool:
        handlers = {
            "left": self.move_left,
            "right": self.move_right,
            "down": self.soft_drop,
            "up": self.rotate,
            "rotate": self.rotate,
        }
        handler = handlers.get(action)
        return handler() if handler is not None else False

    def ghost_y(self) -> int:
        if self.piece is None:
            return -1
        return cg.get_drop_y(self.board, self.piece.matrix, self.piece.x, self.piece.y)

    # ----------------------------
    # Simulation
    # ----------------------------
    def update(self, dt: float):
        if self.game_over or self.destroyed:
            return
        self._elapsed += dt
        if self._elapsed >= self.drop_interval:
            self._elapsed = 0.0
            if not self.move(0, 1):
                self.lock()

    def lock(self) -> int:
        """Commit the active piece to the board, clear rows and spawn the next piece."""
        piece = self.piece
        if piece is None:
            return 0
        cg.lock_piece(self.board, piece.matrix, piece.x, piece.y, piece.color)
        self.piece = None
        self.board, cleared = cg.clear_lines(self.board)
        if cleared:
            self._lines_cleared(cleared)
        self.spawn()
        return cleared

    def _lines_cleared(self, count: int):
        self.audio.play("lineClear")
        self.lines_cleared += count
        self._award(math.floor(self.line_score * LINE_MULTIPLIER.get(count, 1)))
        self.drop_interval = max(self.mechanics["min_drop_interval"],
                                 self.drop_interval - self.mechanics["speed_increase_per_line"])
        self.achievements.check("first", self.lines_cleared)
        self.achievements.check("lines", self.lines_cleared)
        logger.debug("cleared %d rows, drop interval now %s", count, self.drop_interval)

    def _award(self, points: int):
        self.score += points
        self.achievements.check("score", self.score)

    # ----------------------------
    # Read-only view
    # ----------------------------
    def snapshot(self) -> TetrisSnapshot:
        piece = self.piece
        return TetrisSnapshot(
            board=self.board.copy(),
            piece=piece.matrix.copy() if piece is not None else None,
            piece_x=piece.x if piece is not None else 0,
            piece_y=piece.y if piece is not None else 0,
            piece_color=piece.color if piece is not None else 0,
            ghost_y=self.ghost_y(),
            next_piece=cg.shape_matrix(self.next_shape_index).copy(),
            next_color=self.next_shape_index + 1,
            score=self.score,
            lines_cleared=self.lines_cleared,
            drop_interval=self.drop_interval,
            game_over=self.game_over,
        )
