"""
catalog.py
==========
Loading and validating the token catalog and the trainer characters.

File formats follow the game's data files:
    MonsterArray.json       {"monsters": [{"number": 1, "name": ..., "type": ...,
                             "personality": ..., "region": ..., "evolution": "Base",
                             "spriteFile": ...}, ...]}
    TrainerCharacters.json  {"characters": [{"name": ..., "spriteFile": ...}, ...]}
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .type import (
    BOARD_SIZE, CharacterJSON, MalformedCatalogError, Token, TokenJSON,
    TrainerCharacter,
)

logger = logging.getLogger(__name__)

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
DEFAULT_CATALOG_PATH = os.path.join(DATA_DIR, "MonsterArray.json")
DEFAULT_CHARACTERS_PATH = os.path.join(DATA_DIR, "TrainerCharacters.json")

_REQUIRED_FIELDS = ("number", "name", "type", "personality", "region", "evolution")


def token_from_json(record: TokenJSON) -> Token:
    if not isinstance(record, Mapping):
        raise MalformedCatalogError(f"Catalog record must be an object, got {record!r}.")
    missing = [f for f in _REQUIRED_FIELDS if f not in record]
    if missing:
        raise MalformedCatalogError(f"Catalog record {record!r} is missing {missing}.")
    number = record["number"]
    if not isinstance(number, int) or isinstance(number, bool):
        raise MalformedCatalogError(f"Catalog number must be an integer, got {number!r}.")
    return Token(
        number=number,
        name=str(record["name"]),
        type=str(record["type"]),
        personality=str(record["personality"]),
        region=str(record["region"]),
        evolution=str(record["evolution"]),
        sprite_file=record.get("spriteFile"),
    )


class Catalog(Sequence[Token]):
    """
    Ordered, read-only catalog of tokens with id lookup.

    Raises MalformedCatalogError for duplicate ids or fewer than
    `min_size` tokens.
    """

    def __init__(self, tokens: Iterable[Token], min_size: int = BOARD_SIZE):
        self._tokens: Tuple[Token, ...] = tuple(tokens)
        self._by_id: Dict[int, Token] = {}
        for token in self._tokens:
            if token.number in self._by_id:
                raise MalformedCatalogError(f"Duplicate catalog number {token.number}.")
            self._by_id[token.number] = token
        if len(self._tokens) < min_size:
            raise MalformedCatalogError(
                f"Catalog has {len(self._tokens)} tokens; at least {min_size} are required."
            )
        logger.debug(f"Catalog ready with {len(self._tokens)} tokens")

    def __getitem__(self, index):
        return self._tokens[index]

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Token):
            return self._by_id.get(item.number) == item
        return item in self._by_id

    def get(self, number: int) -> Token:
        try:
            return self._by_id[number]
        except KeyError:
            raise KeyError(f"No catalog entry with number {number}.") from None

    def ids(self) -> List[int]:
        return [t.number for t in self._tokens]


def _read_json(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except OSError as e:
        raise MalformedCatalogError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedCatalogError(f"Invalid JSON in {path}: {e}") from e


def catalog_from_data(data: Mapping[str, Any], min_size: int = BOARD_SIZE) -> Catalog:
    records = data.get("monsters") if isinstance(data, Mapping) else None
    if not isinstance(records, list):
        raise MalformedCatalogError("Catalog data must contain a 'monsters' list.")
    return Catalog((token_from_json(r) for r in records), min_size=min_size)


def load_catalog(path: Optional[str] = None, min_size: int = BOARD_SIZE) -> Catalog:
    path = path or DEFAULT_CATALOG_PATH
    logger.info(f"Loading catalog from {path}")
    catalog = catalog_from_data(_read_json(path), min_size=min_size)
    logger.info(f"Loaded {len(catalog)} Combomon")
    return catalog


def characters_from_data(data: Mapping[str, Any]) -> List[TrainerCharacter]:
    records = data.get("characters") if isinstance(data, Mapping) else None
    if not isinstance(records, list):
        raise MalformedCatalogError("Character data must contain a 'characters' list.")
    out: List[TrainerCharacter] = []
    for record in records:
        rec: CharacterJSON = record
        if "name" not in rec:
            raise MalformedCatalogError(f"Character record {record!r} has no name.")
        out.append(TrainerCharacter(name=str(rec["name"]), sprite_file=rec.get("spriteFile")))
    return out


def load_characters(path: Optional[str] = None) -> List[TrainerCharacter]:
    path = path or DEFAULT_CHARACTERS_PATH
    logger.info(f"Loading trainer characters from {path}")
    return characters_from_data(_read_json(path))
