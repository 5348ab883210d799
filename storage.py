# storage.py (high scores, settings, achievements, play statistics)
import json
import logging
import os
from typing import Dict, List

from config import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

DATA_FILE = os.path.join(os.path.expanduser("~"), ".arcade", "save.json")


def _empty_stats():
    return {"games_played": 0, "total_score": 0, "best_game": 0, "total_time": 0}


class Storage:
    """
    Key/value persistence for both games. Subclasses decide where the
    document lives by overriding _load and _save.
    """

    def __init__(self):
        self._data: Dict[str, object] = self._load()

    def _load(self) -> Dict[str, object]:
        return {}

    def _save(self):
        pass

    # High scores
    def get_high_score(self, game: str) -> int:
        return int(self._data.get(f"high_score_{game}", 0))

    def set_high_score(self, game: str, score: int) -> bool:
        if score > self.get_high_score(game):
            self._data[f"high_score_{game}"] = int(score)
            self._save()
            return True
        return False

    # Settings
    def get_settings(self) -> dict:
        settings = dict(DEFAULT_SETTINGS)
        settings.update(self._data.get("settings", {}))
        return settings

    def set_settings(self, settings: dict):
        self._data["settings"] = dict(settings)
        self._save()

    # Achievements
    def get_achievements(self, game: str) -> List[str]:
        return list(self._data.get(f"achievements_{game}", []))

    def add_achievement(self, game: str, achievement_id: str) -> bool:
        achievements = self.get_achievements(game)
        if achievement_id in achievements:
            return False
        achievements.append(achievement_id)
        self._data[f"achievements_{game}"] = achievements
        self._save()
        return True

    # Game statistics
    def get_stats(self, game: str) -> dict:
        stats = _empty_stats()
        stats.update(self._data.get(f"stats_{game}", {}))
        return stats

    def update_stats(self, game: str, score: int, seconds: int):
        stats = self.get_stats(game)
        stats["games_played"] += 1
        stats["total_score"] += score
        stats["best_game"] = max(stats["best_game"], score)
        stats["total_time"] += seconds
        self._data[f"stats_{game}"] = stats
        self._save()

    def clear_all(self):
        self._data.clear()
        self._save()


class MemoryStorage(Storage):
    """Storage that lives only as long as the object."""

    def __init__(self, data=None):
        self._initial = dict(data or {})
        super().__init__()

    def _load(self):
        return dict(self._initial)


class JsonStorage(Storage):
    """Storage backed by a single JSON document on disk."""

    def __init__(self, path: str = DATA_FILE):
        self.path = path
        super().__init__()

    def _load(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read save file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed save file %s", self.path)
            return {}
        return data

    def _save(self):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2)
