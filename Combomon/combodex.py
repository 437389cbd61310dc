"""
combodex.py
===========
Text views for the terminal front end: the Combodex (collection) listing and
the current board with the three trainers. Both are Jinja2 templates under
`Combomon/templates/`; this module only builds the view models.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .rules import check_team
from .type import Round, TeamStatus, Token, evolution_text

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")

TYPE_ICONS = {
    "Bug": "\U0001F41B",
    "Fire": "\U0001F525",
    "Grass": "\U0001F33F",
    "Electric": "⚡",
    "Water": "\U0001F4A7",
}
UNKNOWN_ICON = "❓"


def type_icon(token: Token) -> str:
    return TYPE_ICONS.get(token.type, UNKNOWN_ICON)


def dex_number(number: int) -> str:
    return f"#{number:03d}"


def card_label(token: Optional[Token]) -> str:
    """One-line card face: name, type, evolution, personality, region."""
    if token is None:
        return "(empty)"
    return (
        f"{dex_number(token.number)} {token.name} "
        f"[{type_icon(token)} {token.type} | {evolution_text(token.evolution)} | "
        f"{token.personality} | {token.region}]"
    )


@dataclass(frozen=True)
class DexEntry:
    number: str
    unlocked: bool
    name: str
    icon: str
    type: str = ""
    evolution: str = ""
    personality: str = ""
    region: str = ""


def dex_entries(catalog: Sequence[Token], unlocked) -> List[DexEntry]:
    entries: List[DexEntry] = []
    for token in catalog:
        if token.number in unlocked:
            entries.append(DexEntry(
                number=dex_number(token.number),
                unlocked=True,
                name=token.name,
                icon=type_icon(token),
                type=token.type,
                evolution=evolution_text(token.evolution),
                personality=token.personality,
                region=token.region,
            ))
        else:
            entries.append(DexEntry(
                number=dex_number(token.number),
                unlocked=False,
                name=f"Combomon {token.number:03d}",
                icon="?",
            ))
    return entries


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_combodex(catalog: Sequence[Token], unlocked) -> str:
    entries = dex_entries(catalog, unlocked)
    count = sum(1 for e in entries if e.unlocked)
    logger.debug(f"Rendering Combodex: {count}/{len(entries)} unlocked")
    tmpl = _environment().get_template("combodex.txt.j2")
    return tmpl.render(entries=entries, unlocked_count=count, total_count=len(entries))


_STATUS_MARK = {
    TeamStatus.SATISFIED: "OK",
    TeamStatus.UNSATISFIED: "X",
    TeamStatus.INCOMPLETE: "...",
}


def render_board_text(round_: Round) -> str:
    """Board slots and trainer teams, numbered 1-based."""
    slots = [card_label(t) for t in round_.board]
    trainers = []
    for trainer in round_.trainers:
        status = check_team(trainer)
        trainers.append({
            "character": trainer.character.name if trainer.character else None,
            "request": trainer.request,
            "team": [card_label(t) for t in trainer.team],
            "status": _STATUS_MARK[status],
        })
    tmpl = _environment().get_template("board.txt.j2")
    return tmpl.render(difficulty=round_.difficulty, slots=slots, trainers=trainers)
