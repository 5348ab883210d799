# snake_engine.py
import logging
import random
from collections import deque
from typing import NamedTuple, Optional, Tuple

from achievements import AchievementEvaluator
from audio import NullAudio
from config import POWER_UP_KINDS, POWER_UP_POINTS, SNAKE, get_difficulty
from scheduler import Scheduler
from storage import MemoryStorage

logger = logging.getLogger(__name__)

UP, DOWN, LEFT, RIGHT = "up", "down", "left", "right"

DIRECTIONS = {
    UP: (0, -1),
    DOWN: (0, 1),
    LEFT: (-1, 0),
    RIGHT: (1, 0),
}

OPPOSITES = {UP: DOWN, DOWN: UP, LEFT: RIGHT, RIGHT: LEFT}

Cell = Tuple[int, int]


class PowerUp(NamedTuple):
    position: Cell
    kind: str
    expires_at: float


class SnakeSnapshot(NamedTuple):
    snake: Tuple[Cell, ...]
    direction: str
    food: Optional[Cell]
    power_up: Optional[PowerUp]
    score: int
    speed: float
    width: int
    height: int
    game_over: bool


class SpeedEffect:
    """A running speed/slow power-up and the interval it replaced."""

    __slots__ = ("previous_speed", "timer")

    def __init__(self, previous_speed):
        self.previous_speed = previous_speed
        self.timer = None


class SnakeEngine:
    """
    Grid snake driven by update(dt). One step happens each time the
    accumulated time reaches `speed` ms; leftover time is dropped.
    Power-up spawns, expiries and effect restores run on the engine's own
    tick clock, so they only advance while the engine is being updated.
    """

    game = "snake"

    def __init__(self, difficulty: str = "normal", storage=None, audio=None,
                 notifier=None, rng: Optional[random.Random] = None, mechanics: Optional[dict] = None):
        self.settings = get_difficulty(difficulty, self.game)
        self.mechanics = dict(SNAKE, **(mechanics or {}))
        self.width = self.mechanics["board_width"]
        self.height = self.mechanics["board_height"]
        self.base_speed = self.settings["speed"]
        self.storage = storage if storage is not None else MemoryStorage()
        self.audio = audio if audio is not None else NullAudio()
        self.rng = rng if rng is not None else random.Random()
        self.achievements = AchievementEvaluator(self.game, self.storage, self.audio, notifier)
        self.scheduler = Scheduler()
        self.destroyed = False
        self.reset()

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def reset(self):
        self.scheduler.cancel_all()
        cx, cy = self.width // 2, self.height // 2
        self.snake = deque((cx - i, cy) for i in range(self.mechanics["initial_length"]))
        self.direction = RIGHT
        self.next_direction = RIGHT
        self.speed = self.base_speed
        self._effects = []
        self._elapsed = 0.0
        self.score = 0
        self.food_eaten = 0
        self.power_ups_collected = 0
        self.power_up: Optional[PowerUp] = None
        self.food: Optional[Cell] = None
        self.game_over = False
        self.destroyed = False
        self.spawn_food()
        self.schedule_power_up(self.mechanics["power_up_spawn_delay"])
        logger.debug("snake reset: head=%s speed=%s", self.snake[0], self.speed)

    def destroy(self):
        self.scheduler.cancel_all()
        self.destroyed = True

    def is_game_over(self) -> bool:
        return self.game_over

    def _end_game(self):
        self.game_over = True
        self.scheduler.cancel_all()
        logger.info("Snake game over: score=%d length=%d", self.score, len(self.snake))

    # ----------------------------
    # Input
    # ----------------------------
    def set_direction(self, direction: str) -> bool:
        if self.game_over or self.destroyed:
            return False
        if direction not in DIRECTIONS or direction == OPPOSITES[self.direction]:
            return False
        self.next_direction = direction
        return True

    def handle(self, action: str) -> bool:
        return self.set_direction(action)

    # ----------------------------
    # Simulation
    # ----------------------------
    def update(self, dt: float):
        if self.game_over or self.destroyed:
            return
        self.scheduler.advance(dt)
        self._elapsed += dt
        if self._elapsed >= self.speed:
            self._elapsed = 0.0
            self.step()

    def collides(self, cell: Cell) -> bool:
        x, y = cell
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return True
        return cell in self.snake

    def step(self) -> bool:
        """Advance the snake one cell. Returns False if the move ended the game."""
        self.direction = self.next_direction
        dx, dy = DIRECTIONS[self.direction]
        hx, hy = self.snake[0]
        head = (hx + dx, hy + dy)

        if self.collides(head):
            self._end_game()
            return False

        self.snake.appendleft(head)

        if head == self.food:
            self.food_eaten += 1
            self.audio.play("food")
            self.achievements.check("first", self.food_eaten)
            self._award(self.mechanics["score_per_food"])
            self.achievements.check("length", len(self.snake))
            self.spawn_food()
        else:
            self.snake.pop()

        if self.power_up is not None and head == self.power_up.position:
            self.collect_power_up()
        return True

    def _award(self, points: int):
        self.score += points
        self.achievements.check("score", self.score)

    # ----------------------------
    # Food & power-ups
    # ----------------------------
    def _free_cell(self, *blocked) -> Optional[Cell]:
        occupied = set(self.snake)
        occupied.update(b for b in blocked if b is not None)
        if len(occupied) >= self.width * self.height:
            return None
        while True:
            cell = (self.rng.randrange(self.width), self.rng.randrange(self.height))
            if cell not in occupied:
                return cell

    def spawn_food(self):
        blocked = self.power_up.position if self.power_up is not None else None
        self.food = self._free_cell(blocked)
        if self.food is None:
            logger.warning("No free cell left for food")

    def schedule_power_up(self, delay: float):
        self.scheduler.schedule(delay, self.spawn_power_up)

    def spawn_power_up(self):
        if self.game_over:
            return
        position = self._free_cell(self.food)
        if position is not None:
            lifetime = self.mechanics["power_up_lifetime"]
            power_up = PowerUp(position, self.rng.choice(POWER_UP_KINDS), self.scheduler.now + lifetime)
            self.power_up = power_up
            self.scheduler.schedule(lifetime, lambda: self._expire_power_up(power_up))
            logger.debug("power-up %s at %s", power_up.kind, position)
        delay = self.mechanics["power_up_spawn_delay"]
        self.schedule_power_up(self.rng.uniform(delay, 2 * delay))

    def _expire_power_up(self, power_up: PowerUp):
        if self.power_up is power_up:
            self.power_up = None

    def collect_power_up(self):
        power_up = self.power_up
        self.power_up = None
        self.power_ups_collected += 1
        self.apply_power_up(power_up.kind)
        self.audio.play("powerUp")
        self.achievements.check("powerup", self.power_ups_collected)

    def apply_power_up(self, kind: str):
        step = self.mechanics["speed_step"]
        if kind == "speed":
            self._start_effect(max(self.mechanics["min_speed"], self.speed - step))
        elif kind == "slow":
            self._start_effect(min(self.mechanics["max_speed"], self.speed + step))
        self._award(POWER_UP_POINTS[kind])

    def _start_effect(self, new_speed: float):
        effect = SpeedEffect(self.speed)
        self._effects.append(effect)
        self.speed = new_speed
        effect.timer = self.scheduler.schedule(self.mechanics["power_up_duration"],
                                               lambda: self._end_effect(effect))

    def _end_effect(self, effect: SpeedEffect):
        # effects stack; an older one ending hands its saved speed to the next
        index = next(i for i, e in enumerate(self._effects) if e is effect)
        if index == len(self._effects) - 1:
            self.speed = effect.previous_speed
        else:
            self._effects[index + 1].previous_speed = effect.previous_speed
        del self._effects[index]

    # ----------------------------
    # Read-only view
    # ----------------------------
    def snapshot(self) -> SnakeSnapshot:
        return SnakeSnapshot(
            snake=tuple(self.snake),
            direction=self.direction,
            food=self.food,
            power_up=self.power_up,
            score=self.score,
            speed=self.speed,
            width=self.width,
            height=self.height,
            game_over=self.game_over,
        )
