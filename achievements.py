# achievements.py
import logging
from typing import Callable, List, Optional

from config import ACHIEVEMENTS, Achievement

logger = logging.getLogger(__name__)


class AchievementEvaluator:
    """
    Unlocks a game's achievements as stats come in.

    The unlocked set is read from storage at construction and storage stays
    authoritative: an id that storage already holds is never reported again,
    even if this evaluator has not seen it yet.
    """

    def __init__(self, game: str, storage, audio=None,
                 notifier: Optional[Callable[[Achievement], None]] = None,
                 achievements: Optional[List[Achievement]] = None):
        self.game = game
        self.storage = storage
        self.audio = audio
        self.notifier = notifier
        self.achievements = list(ACHIEVEMENTS.get(game, []) if achievements is None else achievements)
        self.unlocked = set(storage.get_achievements(game))

    @staticmethod
    def requirement_met(achievement: Achievement, stat: str, value: int) -> bool:
        if achievement.category != stat:
            return False
        if achievement.category == "first":
            return value >= 1
        return value >= achievement.requirement

    def check(self, stat: str, value: int) -> List[Achievement]:
        newly_unlocked = []
        for achievement in self.achievements:
            if achievement.id in self.unlocked:
                continue
            if not self.requirement_met(achievement, stat, value):
                continue
            added = self.storage.add_achievement(self.game, achievement.id)
            self.unlocked.add(achievement.id)
            if not added:
                continue
            logger.info("Achievement unlocked (%s): %s", self.game, achievement.name)
            newly_unlocked.append(achievement)
            if self.audio is not None:
                self.audio.play("achievement")
            if self.notifier is not None:
                self.notifier(achievement)
        return newly_unlocked

    def progress(self) -> dict:
        total = len(self.achievements)
        unlocked = sum(1 for a in self.achievements if a.id in self.unlocked)
        return {
            "unlocked": unlocked,
            "total": total,
            "percentage": round(unlocked / total * 100) if total else 0,
        }
