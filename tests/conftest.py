import random

import matplotlib
import pytest

matplotlib.use("Agg")


class ScriptedRandom(random.Random):
    """Random source whose ``random()`` replays a fixed list of values."""

    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


@pytest.fixture
def rng():
    """Returns a freshly seeded random source for each test."""
    return random.Random(1234)


@pytest.fixture
def scripted_rng():
    return ScriptedRandom
