"""
type.py
========
Core type objects and lightweight value classes for the Combomon matching
puzzle engine.

Design goals
------------
- Deterministic & test-friendly: the random source is always injectable.
- Safety: frozen dataclasses / Enums for catalog data; explicit error types.
- Minimal but complete: just the primitives, no game loop, no I/O.

Key invariants
--------------
- A Constraint is always evaluated over exactly 3 tokens.
- A freshly generated Round holds 12 distinct tokens on its board and at least
  one assignment of 9 of them to the 3 trainers that satisfies every trainer.
- Tokens are compared by their immutable `number`, never by object identity.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Dict, Generic, List, NamedTuple, Optional, Protocol, Sequence,
    Tuple, TypedDict, TypeVar, Union, runtime_checkable
)


class TypesError(Exception):
    """Base error for type and invariant violations."""


class MalformedCatalogError(TypesError):
    """Raised when the catalog is too small, has duplicate ids or bad records."""


class GenerationExhausted(TypesError):
    """Raised when round generation exceeds its retry cap."""


class InvariantViolation(TypesError):
    """
    Raised (in strict mode only) when a triple supports fewer constraints than
    the difficulty asks for. Outside strict mode the condition is logged.
    """


class InvalidDifficultyError(TypesError, ValueError):
    """Raised when a difficulty outside 1..4 is requested."""


class InvalidMoveError(TypesError):
    """Raised when a player intent refers to an unknown token or slot."""


__all__ = [
    # IDs & aliases
    "TokenId", "Triple", "TokenJSON", "CharacterJSON",
    # Enums
    "Attribute", "MatchType", "TeamStatus",
    # Core values
    "Token", "TrainerCharacter", "Constraint", "RequirementSet",
    "BoardSlot", "TrainerSlot", "Destination", "Trainer", "Round",
    # Search outcomes
    "Found", "Exhausted",
    # Policies & settings
    "GenerationPolicy", "EngineConfig",
    # Protocols
    "RandomLike",
    # Errors
    "TypesError", "MalformedCatalogError", "GenerationExhausted",
    "InvariantViolation", "InvalidDifficultyError", "InvalidMoveError",
    # Constants
    "BOARD_SIZE", "TEAM_SIZE", "TRAINER_COUNT", "MIN_DIFFICULTY",
    "MAX_DIFFICULTY", "ALL_ATTRIBUTES", "evolution_text",
]

# ---------- Constants ----------

BOARD_SIZE: int = 12
TEAM_SIZE: int = 3
TRAINER_COUNT: int = 3
MIN_DIFFICULTY: int = 1
MAX_DIFFICULTY: int = 4

TokenId = int


class Attribute(Enum):
    TYPE = "type"
    PERSONALITY = "personality"
    REGION = "region"
    EVOLUTION = "evolution"

    @property
    def plural(self) -> str:
        return _ATTRIBUTE_PLURALS[self]


_ATTRIBUTE_PLURALS: Dict[Attribute, str] = {
    Attribute.TYPE: "types",
    Attribute.PERSONALITY: "personalities",
    Attribute.REGION: "regions",
    Attribute.EVOLUTION: "evolution stages",
}

ALL_ATTRIBUTES: Tuple[Attribute, ...] = (
    Attribute.TYPE, Attribute.PERSONALITY, Attribute.REGION, Attribute.EVOLUTION,
)


class MatchType(Enum):
    SAME = "same"
    DIFFERENT = "different"


class TeamStatus(Enum):
    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    INCOMPLETE = "incomplete"


def evolution_text(evolution: str) -> str:
    return "Base" if evolution == "Base" else f"Stage {evolution}"


# ---------- Catalog values ----------

@dataclass(frozen=True, slots=True)
class Token:
    """
    Immutable catalog entry. `number` is the unique identifier; the four
    categorical attributes are compared by value. `name` and `sprite_file`
    are display metadata only.
    """
    number: TokenId
    name: str
    type: str
    personality: str
    region: str
    evolution: str
    sprite_file: Optional[str] = None

    def value(self, attribute: Attribute) -> str:
        return getattr(self, attribute.value)

    def as_tuple(self) -> Tuple[str, str, str, str]:
        return (self.type, self.personality, self.region, self.evolution)

    def shares_value_with(self, other: "Token") -> bool:
        return any(a == b for a, b in zip(self.as_tuple(), other.as_tuple()))


@dataclass(frozen=True, slots=True)
class TrainerCharacter:
    """Cosmetic persona shown next to a trainer's request."""
    name: str
    sprite_file: Optional[str] = None


# A group of exactly three tokens, in selection order.
Triple = Tuple[Token, Token, Token]


@dataclass(frozen=True, slots=True)
class Constraint:
    """
    `Same(attribute, value)` when match_type is SAME, `AllDifferent(attribute)`
    when match_type is DIFFERENT (value is None).
    """
    attribute: Attribute
    match_type: MatchType
    value: Optional[str] = None

    @classmethod
    def same(cls, attribute: Attribute, value: str) -> "Constraint":
        return cls(attribute, MatchType.SAME, value)

    @classmethod
    def all_different(cls, attribute: Attribute) -> "Constraint":
        return cls(attribute, MatchType.DIFFERENT, None)

    def holds(self, tokens: Sequence[Token]) -> bool:
        values = [t.value(self.attribute) for t in tokens]
        if self.match_type is MatchType.SAME:
            return all(v == self.value for v in values)
        return len(set(values)) == len(values)


# Display order only; evaluation is a conjunction.
RequirementSet = Tuple[Constraint, ...]


# ---------- Board & trainers ----------

class BoardSlot(NamedTuple):
    index: int


class TrainerSlot(NamedTuple):
    trainer: int
    slot: int


Destination = Union[BoardSlot, TrainerSlot]


@dataclass
class Trainer:
    """
    A request unit. `requirements` and `request` are fixed for the round;
    `team` is the mutable 3-slot assignment.
    """
    requirements: RequirementSet
    request: str
    character: Optional[TrainerCharacter] = None
    team: List[Optional[Token]] = field(default_factory=lambda: [None] * TEAM_SIZE)

    def filled(self) -> List[Token]:
        return [t for t in self.team if t is not None]

    def is_full(self) -> bool:
        return len(self.filled()) == TEAM_SIZE


@dataclass
class Round:
    """
    One board plus three trainers. `solution` holds the token ids of the
    triples the generator built the requirements from, in trainer order.
    """
    board: List[Optional[Token]]
    trainers: List[Trainer]
    difficulty: int
    solution: Tuple[Tuple[TokenId, ...], ...] = ()

    def board_tokens(self) -> List[Token]:
        return [t for t in self.board if t is not None]

    def tokens_in_play(self) -> List[Token]:
        out = self.board_tokens()
        for trainer in self.trainers:
            out.extend(trainer.filled())
        return out

    def locate(self, token_id: TokenId) -> Optional[Destination]:
        for i, token in enumerate(self.board):
            if token is not None and token.number == token_id:
                return BoardSlot(i)
        for t, trainer in enumerate(self.trainers):
            for s, token in enumerate(trainer.team):
                if token is not None and token.number == token_id:
                    return TrainerSlot(t, s)
        return None

    def token_at(self, where: Destination) -> Optional[Token]:
        if isinstance(where, BoardSlot):
            return self.board[where.index]
        return self.trainers[where.trainer].team[where.slot]

    def put(self, where: Destination, token: Optional[Token]) -> None:
        if isinstance(where, BoardSlot):
            self.board[where.index] = token
        else:
            self.trainers[where.trainer].team[where.slot] = token


# ---------- Search outcomes ----------

T = TypeVar("T")


class Found(NamedTuple, Generic[T]):
    value: T


class Exhausted(NamedTuple):
    attempts: int
    reason: str


# ---------- Policies ----------

class GenerationPolicy(NamedTuple):
    """
    Sampling and retry limits for round generation.

    seed_count / related_count:
        Board bias: `seed_count` random pool tokens plus up to
        `related_count` pool tokens sharing an attribute value with a seed.

    combo_attempts / slot_attempts:
        Combo Selector limits: outer attempts per board, and triple samples per
        trainer within one attempt.

    max_board_attempts:
        Whole-board regenerations before GenerationExhausted is raised.
    """
    board_size: int = BOARD_SIZE
    seed_count: int = 2
    related_count: int = 10
    combo_attempts: int = 100
    slot_attempts: int = 20
    max_board_attempts: int = 200


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """
    Static configuration for a game session.
    """
    difficulty: int = MIN_DIFFICULTY
    seed: Optional[int] = None
    policy: GenerationPolicy = GenerationPolicy()


class TokenJSON(TypedDict, total=False):
    number: int
    name: str
    type: str
    personality: str
    region: str
    evolution: Union[str, int]
    spriteFile: str


class CharacterJSON(TypedDict, total=False):
    name: str
    spriteFile: str


@runtime_checkable
class RandomLike(Protocol):
    """
    Minimal interface expected from RNG providers, e.g. `random.Random`.
    """
    def shuffle(self, x: list) -> None: ...
    def sample(self, population: Sequence, k: int) -> list: ...
    def choice(self, seq: Sequence): ...
