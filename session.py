# session.py (tick-driven wrapper around one game engine)
import logging
from typing import Callable, Dict, Optional, Protocol

from audio import NullAudio
from config import ConfigError, get_difficulty
from snake_engine import SnakeEngine
from tetris_engine import TetrisEngine

logger = logging.getLogger(__name__)


class Engine(Protocol):
    game: str
    score: int

    def update(self, dt: float) -> None: ...
    def snapshot(self): ...
    def is_game_over(self) -> bool: ...
    def reset(self) -> None: ...
    def destroy(self) -> None: ...
    def handle(self, action: str) -> bool: ...


ENGINES: Dict[str, Callable[..., Engine]] = {
    "snake": SnakeEngine,
    "tetris": TetrisEngine,
}


class GameSession:
    """
    Drives one engine from an external frame clock: update(dt) then render()
    each frame. Handles pause, restart and teardown, and records the result
    with storage once the engine reaches game over.
    """

    def __init__(self, game_type: str, storage, audio=None, notifier=None,
                 renderer=None, rng=None):
        if game_type not in ENGINES:
            raise ConfigError(f"unknown game type: {game_type!r}")
        settings = storage.get_settings()
        self.difficulty = settings.get("difficulty", "normal")
        get_difficulty(self.difficulty, game_type)

        self.game_type = game_type
        self.storage = storage
        self.audio = audio if audio is not None else NullAudio()
        self.renderer = renderer
        self.engine: Engine = ENGINES[game_type](
            difficulty=self.difficulty,
            storage=storage,
            audio=self.audio,
            notifier=notifier,
            rng=rng,
        )
        self.paused = False
        self.play_time = 0.0
        self.recorded = False
        self.new_high_score = False
        self.destroyed = False
        logger.info("Started %s session (difficulty=%s)", game_type, self.difficulty)

    @property
    def score(self) -> int:
        return self.engine.score

    @property
    def high_score(self) -> int:
        return self.storage.get_high_score(self.game_type)

    def is_game_over(self) -> bool:
        return self.engine.is_game_over()

    def update(self, dt: float):
        if self.destroyed or self.paused or self.recorded:
            return
        self.play_time += dt
        self.engine.update(dt)
        if self.engine.is_game_over():
            self._record()

    def _record(self):
        self.recorded = True
        score = self.engine.score
        self.storage.update_stats(self.game_type, score, int(self.play_time // 1000))
        self.new_high_score = self.storage.set_high_score(self.game_type, score)
        self.audio.play("collision")
        logger.info("%s finished with %d points%s", self.game_type, score,
                    " (new high score)" if self.new_high_score else "")

    def render(self):
        if self.renderer is not None and not self.destroyed:
            self.renderer.render(self.snapshot())

    def snapshot(self):
        return self.engine.snapshot()

    def handle(self, action: str) -> bool:
        if self.destroyed or self.paused or self.is_game_over():
            return False
        return self.engine.handle(action)

    def pause(self):
        if not self.is_game_over():
            self.paused = True

    def resume(self):
        if not self.is_game_over():
            self.paused = False

    def toggle_pause(self) -> bool:
        if self.paused:
            self.resume()
        else:
            self.pause()
        return self.paused

    def restart(self):
        self.engine.reset()
        self.paused = False
        self.play_time = 0.0
        self.recorded = False
        self.new_high_score = False
        logger.info("Restarted %s session", self.game_type)

    def destroy(self):
        self.engine.destroy()
        self.destroyed = True


def start_session(game_type: str, storage, **kwargs) -> Optional[GameSession]:
    """Build a session, or log the failure and return None so the caller can fall back to its menu."""
    try:
        return GameSession(game_type, storage, **kwargs)
    except ConfigError as e:
        logger.error("Could not start %s: %s", game_type, e)
        return None
