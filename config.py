# config.py (static game tables)
from typing import Dict, List, NamedTuple

GAMES = ("snake", "tetris")


class ConfigError(ValueError):
    """Unknown game type or difficulty; fatal for the session being built."""


class Achievement(NamedTuple):
    id: str
    name: str
    description: str
    requirement: int
    category: str  # one of: score, first, length, powerup, lines


DIFFICULTY = {
    'easy': {
        'snake': {'speed': 200},
        'tetris': {'drop_interval': 1200, 'line_score': 100},
    },
    'normal': {
        'snake': {'speed': 150},
        'tetris': {'drop_interval': 1000, 'line_score': 100},
    },
    'hard': {
        'snake': {'speed': 100},
        'tetris': {'drop_interval': 700, 'line_score': 150},
    },
}

SNAKE = {
    'board_width': 30,
    'board_height': 30,
    'initial_length': 3,
    'score_per_food': 10,
    'power_up_spawn_delay': 10000,
    'power_up_lifetime': 5000,
    'power_up_duration': 5000,
    'min_speed': 50,
    'max_speed': 300,
    'speed_step': 30,
}

POWER_UP_KINDS = ('speed', 'points', 'slow')
POWER_UP_POINTS = {'speed': 15, 'points': 30, 'slow': 20}

TETRIS = {
    'board_width': 10,
    'board_height': 20,
    'speed_increase_per_line': 10,
    'min_drop_interval': 100,
}

# multiplier per number of rows removed by a single lock; anything else counts as 1
LINE_MULTIPLIER = {1: 1, 2: 2.5, 3: 4, 4: 8}

VISUAL = {
    'grid_size': 20,
    'block_size': 30,
    'info_height': 40,
    'panel_width': 120,
    'fps': 60,
}

colors = {
    'background': (26, 26, 26),
    'grid': (42, 42, 42),
    'snake': (80, 227, 194),
    'snake_head': (74, 144, 226),
    'food': (245, 166, 35),
    'power_up': (255, 64, 129),
    # indexed by cell value - 1: I, J, L, O, S, T, Z
    'tetris_pieces': [
        (74, 144, 226),
        (80, 227, 194),
        (245, 166, 35),
        (255, 64, 129),
        (144, 19, 254),
        (189, 16, 224),
        (126, 211, 33),
    ],
}

# event name -> (frequency Hz, duration s)
SOUNDS = {
    'food': (440, 0.1),
    'collision': (200, 0.3),
    'lineClear': (550, 0.2),
    'powerUp': (660, 0.15),
    'achievement': (880, 0.2),
    'move': (330, 0.05),
    'rotate': (370, 0.05),
}

DEFAULT_SETTINGS = {
    'difficulty': 'normal',
    'sound_enabled': True,
    'music_volume': 0.3,
    'sfx_volume': 0.5,
}

ACHIEVEMENTS: Dict[str, List[Achievement]] = {
    'snake': [
        Achievement('first_food', 'First Bite', 'Eat your first food', 1, 'first'),
        Achievement('score_100', 'Getting Started', 'Score 100 points', 100, 'score'),
        Achievement('score_500', 'Snake Master', 'Score 500 points', 500, 'score'),
        Achievement('score_1000', 'Legend', 'Score 1000 points', 1000, 'score'),
        Achievement('length_20', 'Long Snake', 'Grow to 20 segments', 20, 'length'),
        Achievement('powerup_10', 'Power Hungry', 'Collect 10 power-ups', 10, 'powerup'),
    ],
    'tetris': [
        Achievement('first_line', 'Line Cleared', 'Clear your first line', 1, 'first'),
        Achievement('score_500', 'Getting Started', 'Score 500 points', 500, 'score'),
        Achievement('score_2000', 'Tetris Master', 'Score 2000 points', 2000, 'score'),
        Achievement('score_5000', 'Legend', 'Score 5000 points', 5000, 'score'),
        Achievement('lines_10', '10 Lines', 'Clear 10 lines', 10, 'lines'),
        Achievement('lines_50', '50 Lines', 'Clear 50 lines', 50, 'lines'),
    ],
}


def get_difficulty(difficulty: str, game: str) -> dict:
    """
    Look up the per-game settings for a difficulty level.
    Raises ConfigError for an unknown difficulty or game.
    """
    if game not in GAMES:
        raise ConfigError(f"unknown game type: {game!r}")
    if difficulty not in DIFFICULTY:
        raise ConfigError(f"unknown difficulty: {difficulty!r}")
    return dict(DIFFICULTY[difficulty][game])
