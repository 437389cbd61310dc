"""
config.py
=========
Settings from the environment (and a `.env` file via python-dotenv), plus the
logging setup used by the command-line front end.

Variables
---------
COMBOMON_CATALOG         path to MonsterArray.json (default: bundled data)
COMBOMON_CHARACTERS      path to TrainerCharacters.json (default: bundled data)
COMBOMON_SAVE_FILE       unlock file (default: combomon_unlocks.json)
COMBOMON_DIFFICULTY      1..4 (default: 1)
COMBOMON_SEED            optional RNG seed
COMBOMON_ENABLE_LOGGING  true/false (default: true)
COMBOMON_LOG_LEVEL       logging level name (default: INFO)
COMBOMON_LOG_FILE        optional log file
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .type import MAX_DIFFICULTY, MIN_DIFFICULTY

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_SAVE_FILE = "combomon_unlocks.json"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    catalog_path: Optional[str] = None
    characters_path: Optional[str] = None
    save_file: str = DEFAULT_SAVE_FILE
    difficulty: int = MIN_DIFFICULTY
    seed: Optional[int] = None
    log_enabled: bool = True
    log_level: str = "INFO"
    log_file: Optional[str] = None


def _int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> Settings:
    """Build Settings from `env` (default: os.environ after loading `.env`)."""
    if env is None:
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    difficulty = _int(env, "COMBOMON_DIFFICULTY")
    if difficulty is None:
        difficulty = MIN_DIFFICULTY
    if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise ValueError(
            f"COMBOMON_DIFFICULTY must be in {MIN_DIFFICULTY}..{MAX_DIFFICULTY}, got {difficulty}"
        )

    return Settings(
        catalog_path=env.get("COMBOMON_CATALOG") or None,
        characters_path=env.get("COMBOMON_CHARACTERS") or None,
        save_file=env.get("COMBOMON_SAVE_FILE") or DEFAULT_SAVE_FILE,
        difficulty=difficulty,
        seed=_int(env, "COMBOMON_SEED"),
        log_enabled=_bool(env, "COMBOMON_ENABLE_LOGGING", True),
        log_level=(env.get("COMBOMON_LOG_LEVEL") or "INFO").upper(),
        log_file=env.get("COMBOMON_LOG_FILE") or None,
    )


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging for the game. Disabled entirely when log_enabled is False."""
    settings = settings or Settings()
    if settings.log_enabled:
        handlers: list = [logging.StreamHandler()]
        if settings.log_file:
            handlers.append(logging.FileHandler(settings.log_file))
        logging.basicConfig(
            level=getattr(logging, settings.log_level, logging.INFO),
            format=LOG_FORMAT,
            handlers=handlers,
        )
    else:
        logging.disable(logging.CRITICAL)
