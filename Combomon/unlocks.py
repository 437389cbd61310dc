"""
unlocks.py
==========
The Unlock Set (permanently collected Combomon) and where it is saved.

The set only grows during play; `reset_all()` is the one way to shrink it.
Every mutation is written through to the store.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Iterable, Iterator, Protocol, Set, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class UnlockStore(Protocol):
    def load(self) -> Set[int]: ...
    def save(self, ids: Iterable[int]) -> None: ...
    def clear(self) -> None: ...


class MemoryUnlockStore:
    """Keeps a copy in memory only."""

    def __init__(self, initial: Iterable[int] = ()):
        self.saved: Set[int] = set(initial)

    def load(self) -> Set[int]:
        return set(self.saved)

    def save(self, ids: Iterable[int]) -> None:
        self.saved = set(ids)

    def clear(self) -> None:
        self.saved = set()


class JsonUnlockStore:
    """
    JSON array of ids in a file. A missing file is an empty set; a corrupt one
    is logged and treated as empty.
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Set[int]:
        if not os.path.exists(self.path):
            logger.debug(f"No unlock file at {self.path}")
            return set()
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, list) or not all(isinstance(v, int) for v in data):
                raise ValueError("expected a JSON array of integers")
        except (OSError, ValueError) as e:
            logger.error(f"Error loading unlocked Combomon from {self.path}: {e}")
            return set()
        logger.info(f"Loaded {len(data)} unlocked Combomon from save")
        return set(data)

    def save(self, ids: Iterable[int]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(sorted(ids), fh)
        os.replace(tmp, self.path)
        logger.debug(f"Saved unlocks to {self.path}")

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
            logger.debug(f"Removed unlock file {self.path}")


class UnlockSet:
    """Monotonic set of unlocked token ids, written through to an UnlockStore."""

    def __init__(self, store: UnlockStore | None = None):
        self.store: UnlockStore = store if store is not None else MemoryUnlockStore()
        self._ids: Set[int] = self.store.load()

    def __contains__(self, token_id: object) -> bool:
        return token_id in self._ids

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def ids(self) -> frozenset:
        return frozenset(self._ids)

    def unlock(self, token_id: int) -> bool:
        """Add an id; returns False when it was already unlocked."""
        if token_id in self._ids:
            return False
        self._ids.add(token_id)
        self.store.save(self._ids)
        logger.info(f"Unlocked Combomon #{token_id:03d}")
        return True

    def unlock_many(self, token_ids: Iterable[int]) -> list:
        added = [i for i in dict.fromkeys(token_ids) if i not in self._ids]
        if added:
            self._ids.update(added)
            self.store.save(self._ids)
            logger.info(f"Unlocked Combomon {['#%03d' % i for i in added]}")
        return added

    def reset_all(self) -> None:
        self._ids.clear()
        self.store.clear()
        logger.info("Combodex progress has been reset")
