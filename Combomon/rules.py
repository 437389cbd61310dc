"""
rules.py
========
Requirement synthesis and team validation.

A triple "supports" a constraint on an attribute when its three values are
either all identical (a Same constraint on the shared value) or pairwise
distinct (an AllDifferent constraint). Two-equal-one-different supports
neither. This mirrors the classic SET rule, applied per attribute.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .type import (
    ALL_ATTRIBUTES, Attribute, Constraint, InvariantViolation, MatchType, RandomLike,
    RequirementSet, TeamStatus, Token, Trainer, evolution_text,
)

logger = logging.getLogger(__name__)

FALLBACK_REQUEST = "I want 3 Combomon!"


# -----------------
# Capacity & synthesis
# -----------------

def satisfiable_constraints(triple: Sequence[Token]) -> List[Constraint]:
    """Every constraint the triple satisfies, one per qualifying attribute, in attribute order."""
    out: List[Constraint] = []
    for attr in ALL_ATTRIBUTES:
        values = [t.value(attr) for t in triple]
        distinct = len(set(values))
        if distinct == 1:
            out.append(Constraint.same(attr, values[0]))
        elif distinct == len(values):
            out.append(Constraint.all_different(attr))
    return out


def capacity(triple: Sequence[Token]) -> int:
    """Number of attributes (0..4) on which the triple is all-same or all-different."""
    return len(satisfiable_constraints(triple))


def synthesize(
    triple: Sequence[Token],
    difficulty: int,
    rng: RandomLike,
    *,
    strict: bool = False,
) -> RequirementSet:
    """Pick `difficulty` random constraints the triple satisfies.

    If the triple supports fewer than `difficulty` constraints the Combo
    Selector accepted a triple it should not have. That is logged and the
    maximal available set is returned, or InvariantViolation is raised when
    `strict` is set.
    """
    possible = satisfiable_constraints(triple)
    rng.shuffle(possible)
    if len(possible) < difficulty:
        ids = [t.number for t in triple]
        logger.error(
            f"Triple {ids} supports {len(possible)} constraints but difficulty is {difficulty}"
        )
        if strict:
            raise InvariantViolation(
                f"Triple {ids} cannot satisfy {difficulty} constraints (capacity {len(possible)})."
            )
        return tuple(possible)
    chosen = tuple(possible[:difficulty])
    logger.debug(f"Synthesized {len(chosen)} constraints for triple {[t.number for t in triple]}")
    return chosen


# -----------------
# Text rendering
# -----------------

def describe_constraint(constraint: Constraint) -> str:
    if constraint.match_type is MatchType.SAME:
        value = constraint.value or ""
        if constraint.attribute is Attribute.EVOLUTION:
            value = evolution_text(value)
        return f"all {value} Combomon"
    return f"all different {constraint.attribute.plural}"


def join_parts(parts: Sequence[str]) -> str:
    if len(parts) == 1:
        return parts[0]
    if len(parts) == 2:
        return f"{parts[0]} and {parts[1]}"
    return ", ".join(parts[:-1]) + ", and " + parts[-1]


def render_request_text(requirements: RequirementSet) -> str:
    """e.g. "I want all Fire Combomon and all different regions!"."""
    if not requirements:
        return FALLBACK_REQUEST
    return "I want " + join_parts([describe_constraint(c) for c in requirements]) + "!"


# -----------------
# Validation
# -----------------

def check_team(trainer: Trainer) -> TeamStatus:
    """Pure check of a trainer's current team against its requirements."""
    if not trainer.is_full():
        return TeamStatus.INCOMPLETE
    if first_failing(trainer) is not None:
        return TeamStatus.UNSATISFIED
    return TeamStatus.SATISFIED


def first_failing(trainer: Trainer) -> Optional[Constraint]:
    """The first requirement a full team breaks, or None."""
    if not trainer.is_full():
        return None
    team = trainer.filled()
    for constraint in trainer.requirements:
        if not constraint.holds(team):
            return constraint
    return None
