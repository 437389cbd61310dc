"""
generator.py
============
Board generation and combo selection.

Overview:
---------
- draw_board_tokens(): biased 12-token draw. Two random "seed" tokens from the
  still-locked pool, up to 10 pool tokens sharing an attribute value with a
  seed, then uniform top-up from the whole catalog, shuffled into slot order.
- select_combos(): randomized bounded search for 3 disjoint triples on the
  board, each supporting >= difficulty constraints. Returns Found or Exhausted.
- generate_round(): capped loop of draw + select, then requirement synthesis.
  Raises GenerationExhausted when the cap is hit.

Solvability is constructive: the requirements are derived from the triples
the selector found, so those triples always satisfy their trainers.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, List, Optional, Sequence, Tuple, Union

from .rules import capacity, render_request_text, synthesize
from .type import (
    BOARD_SIZE, Exhausted, Found, GenerationExhausted, GenerationPolicy,
    InvalidDifficultyError, MAX_DIFFICULTY, MIN_DIFFICULTY,
    MalformedCatalogError, RandomLike, Round, TEAM_SIZE, TRAINER_COUNT, Token,
    Trainer, TrainerCharacter, Triple,
)

logger = logging.getLogger(__name__)

DEFAULT_POLICY = GenerationPolicy()

ComboResult = Union[Found[Tuple[Triple, ...]], Exhausted]


def check_difficulty(difficulty: int) -> int:
    if isinstance(difficulty, bool) or not isinstance(difficulty, int) \
            or not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise InvalidDifficultyError(
            f"Difficulty must be an integer in {MIN_DIFFICULTY}..{MAX_DIFFICULTY}, got {difficulty!r}."
        )
    return difficulty


# ---------------
# Board drawing
# ---------------

def draw_board_tokens(
    catalog: Sequence[Token],
    unlocked: AbstractSet[int],
    rng: RandomLike,
    policy: GenerationPolicy = DEFAULT_POLICY,
) -> List[Token]:
    """Draw up to `policy.board_size` distinct tokens, biased toward locked, related ones."""
    locked = [t for t in catalog if t.number not in unlocked]
    pool = locked if len(locked) >= policy.seed_count else list(catalog)
    logger.debug(f"Drawing board: {len(locked)} locked of {len(catalog)}, pool size {len(pool)}")

    seeds = rng.sample(pool, min(policy.seed_count, len(pool)))
    seed_ids = {t.number for t in seeds}
    related = [
        t for t in pool
        if t.number not in seed_ids and any(t.shares_value_with(s) for s in seeds)
    ]
    picked = rng.sample(related, min(policy.related_count, len(related)))
    board = seeds + picked
    logger.debug(f"Seeds {sorted(seed_ids)}, {len(related)} related, picked {len(picked)}")

    chosen = {t.number for t in board}
    while len(board) < policy.board_size:
        available = [t for t in catalog if t.number not in chosen]
        if not available:
            break
        extra = rng.choice(available)
        board.append(extra)
        chosen.add(extra.number)

    rng.shuffle(board)
    return board


# ---------------
# Combo selection
# ---------------

def select_combos(
    board: Sequence[Optional[Token]],
    difficulty: int,
    rng: RandomLike,
    policy: GenerationPolicy = DEFAULT_POLICY,
) -> ComboResult:
    """Find TRAINER_COUNT disjoint triples, each with capacity >= difficulty.

    Greedy: the first attempt in which every trainer gets a qualifying triple
    wins. Positions holding None are never used.
    """
    positions = [i for i, t in enumerate(board) if t is not None]
    for attempt in range(1, policy.combo_attempts + 1):
        used: set = set()
        combos: List[Triple] = []
        for trainer in range(TRAINER_COUNT):
            available = [i for i in positions if i not in used]
            if len(available) < TEAM_SIZE:
                break
            found: Optional[List[int]] = None
            for _ in range(policy.slot_attempts):
                indices = rng.sample(available, TEAM_SIZE)
                if capacity([board[i] for i in indices]) >= difficulty:
                    found = indices
                    break
            if found is None:
                break
            used.update(found)
            combos.append(tuple(board[i] for i in found))
        if len(combos) == TRAINER_COUNT:
            logger.debug(f"Found {TRAINER_COUNT} combos on attempt {attempt}")
            return Found(tuple(combos))
    logger.warning(
        f"No {TRAINER_COUNT} disjoint combos at difficulty {difficulty} after {policy.combo_attempts} attempts"
    )
    return Exhausted(policy.combo_attempts, "no disjoint qualifying triples on this board")


# ---------------
# Round generation
# ---------------

def build_trainers(
    combos: Sequence[Triple],
    difficulty: int,
    rng: RandomLike,
    characters: Sequence[TrainerCharacter] = (),
    *,
    strict: bool = False,
) -> List[Trainer]:
    trainers: List[Trainer] = []
    for combo in combos:
        requirements = synthesize(combo, difficulty, rng, strict=strict)
        character = rng.choice(characters) if characters else None
        trainers.append(Trainer(
            requirements=requirements,
            request=render_request_text(requirements),
            character=character,
        ))
    return trainers


def generate_round(
    catalog: Sequence[Token],
    unlocked: AbstractSet[int],
    difficulty: int,
    rng: RandomLike,
    characters: Sequence[TrainerCharacter] = (),
    policy: GenerationPolicy = DEFAULT_POLICY,
    *,
    strict: bool = False,
) -> Round:
    """Generate a solvable Round, retrying whole boards up to `policy.max_board_attempts`."""
    check_difficulty(difficulty)
    if len(catalog) < BOARD_SIZE:
        raise MalformedCatalogError(
            f"Catalog has {len(catalog)} tokens; at least {BOARD_SIZE} are required."
        )

    last: Optional[Exhausted] = None
    for attempt in range(1, policy.max_board_attempts + 1):
        tokens = draw_board_tokens(catalog, unlocked, rng, policy)
        board: List[Optional[Token]] = list(tokens)
        board.extend([None] * (policy.board_size - len(board)))
        result = select_combos(board, difficulty, rng, policy)
        if isinstance(result, Exhausted):
            last = result
            logger.debug(f"Board attempt {attempt} exhausted: {result.reason}")
            continue
        combos = result.value
        trainers = build_trainers(combos, difficulty, rng, characters, strict=strict)
        solution = tuple(tuple(t.number for t in combo) for combo in combos)
        logger.info(
            f"Generated round at difficulty {difficulty} after {attempt} board attempt(s): "
            f"{[t.request for t in trainers]}"
        )
        return Round(board=board, trainers=trainers, difficulty=difficulty, solution=solution)

    raise GenerationExhausted(
        f"No solvable round at difficulty {difficulty} after {policy.max_board_attempts} boards"
        f" ({last.reason if last else 'no attempts'}). The catalog may be too small or too homogeneous."
    )
