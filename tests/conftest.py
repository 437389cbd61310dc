"""Shared fixtures for Combomon tests."""
import itertools
import random

import pytest

from Combomon.catalog import Catalog
from Combomon.type import GenerationPolicy, Token, TrainerCharacter
from Combomon.unlocks import MemoryUnlockStore, UnlockSet


def make_token(number, type="Fire", personality="Bold", region="North", evolution="Base"):
    return Token(
        number=number,
        name=f"Mon{number}",
        type=type,
        personality=personality,
        region=region,
        evolution=evolution,
    )


@pytest.fixture
def product_catalog():
    """81 tokens: every combination of 3 values on each of the 4 attributes."""
    values = itertools.product(
        ["Fire", "Water", "Grass"],
        ["Bold", "Shy", "Calm"],
        ["North", "South", "East"],
        ["Base", "1", "2"],
    )
    return Catalog(make_token(i + 1, *v) for i, v in enumerate(values))


@pytest.fixture
def flat_catalog():
    """15 tokens identical except for evolution, so capacity-4 triples are common."""
    stages = ["Base", "1", "2"]
    return Catalog(make_token(i + 1, evolution=stages[i % 3]) for i in range(15))


@pytest.fixture
def binary_catalog():
    """16 tokens over two values per attribute, all distinct: no triple has capacity >= 3."""
    values = itertools.product(["Fire", "Water"], ["Bold", "Shy"], ["North", "South"], ["Base", "1"])
    return Catalog(make_token(i + 1, *v) for i, v in enumerate(values))


@pytest.fixture
def fast_policy():
    return GenerationPolicy(combo_attempts=5, slot_attempts=5, max_board_attempts=3)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def characters():
    return [TrainerCharacter("Ace Trainer Mira"), TrainerCharacter("Hiker Brann")]


@pytest.fixture
def unlocks():
    return UnlockSet(MemoryUnlockStore())


@pytest.fixture
def token_factory():
    return make_token
