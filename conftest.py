import random

import pytest

from story_weaver.lexicon import Lexicon

SEED = 1234


@pytest.fixture
def rng() -> random.Random:
    """Fresh seeded generator per test."""
    return random.Random(SEED)


@pytest.fixture(scope="session")
def lexicon() -> Lexicon:
    """The packaged presets, loaded once for the whole run."""
    return Lexicon.load()
