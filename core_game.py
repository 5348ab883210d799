# core_game.py (headless, vectorized board primitives)
import numpy as np

from config import TETRIS

cols, rows = TETRIS['board_width'], TETRIS['board_height']

SHAPE_NAMES = ('I', 'J', 'L', 'O', 'S', 'T', 'Z')


def _frozen(matrix):
    arr = np.array(matrix, dtype=np.int8)
    arr.setflags(write=False)
    return arr


# canonical spawn orientation of each tetromino; never written to
tetrominoes = (
    _frozen([[1, 1, 1, 1]]),
    _frozen([[1, 0, 0],
             [1, 1, 1]]),
    _frozen([[0, 0, 1],
             [1, 1, 1]]),
    _frozen([[1, 1],
             [1, 1]]),
    _frozen([[0, 1, 1],
             [1, 1, 0]]),
    _frozen([[0, 1, 0],
             [1, 1, 1]]),
    _frozen([[1, 1, 0],
             [0, 1, 1]]),
)

O_PIECE = SHAPE_NAMES.index('O')


def create_grid(height=rows, width=cols):
    return np.zeros((height, width), dtype=np.int8)


def rotate_shape(shape: np.ndarray) -> np.ndarray:
    """Quarter turn clockwise (transpose, then reverse each row)."""
    return np.rot90(shape, -1)


def shape_matrix(shape_index: int, rotation: int = 0) -> np.ndarray:
    """
    Matrix of a tetromino after `rotation` clockwise quarter turns,
    derived from the canonical table on every call.
    """
    matrix = tetrominoes[shape_index]
    for _ in range(rotation % 4):
        matrix = rotate_shape(matrix)
    return matrix


def piece_cells(shape, x, y):
    """Board (row, col) arrays of every filled cell of shape placed at (x, y)."""
    ys, xs = np.nonzero(shape)
    return ys + y, xs + x


def check_collision(grid, shape, x, y):
    """
    True if shape at (x, y) leaves the board sideways or through the floor,
    or overlaps a filled cell. Cells above the top row (y < 0) are allowed.
    """
    h, w = grid.shape
    ys, xs = piece_cells(shape, x, y)
    if np.any((xs < 0) | (xs >= w) | (ys >= h)):
        return True
    visible = ys >= 0
    return bool(np.any(grid[ys[visible], xs[visible]] != 0))


def lock_piece(grid, shape, x, y, color=1):
    ys, xs = piece_cells(shape, x, y)
    visible = ys >= 0
    grid[ys[visible], xs[visible]] = color
    return grid


def clear_lines(grid):
    full_rows = np.where(np.all(grid != 0, axis=1))[0]
    lines_cleared = len(full_rows)
    if lines_cleared > 0:
        grid = np.delete(grid, full_rows, axis=0)
        new_rows = np.zeros((lines_cleared, grid.shape[1]), dtype=grid.dtype)
        grid = np.vstack((new_rows, grid))
    return grid, lines_cleared


def get_drop_y(grid: np.ndarray, shape: np.ndarray, x: int, y: int = 0) -> int:
    """
    Compute the lowest valid y-position for shape at column x, starting from y.
    Returns -1 if the starting placement is already invalid.
    """
    if check_collision(grid, shape, x, y):
        return -1
    while not check_collision(grid, shape, x, y + 1):
        y += 1
    return y
