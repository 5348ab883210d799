import os
import random

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest

from storage import MemoryStorage


class RecordingAudio:
    """Audio collaborator that remembers every event it was asked to play."""

    def __init__(self):
        self.played = []

    def play(self, name):
        self.played.append(name)


@pytest.fixture()
def storage():
    return MemoryStorage()


@pytest.fixture()
def audio():
    return RecordingAudio()


@pytest.fixture()
def rng():
    return random.Random(1234)
