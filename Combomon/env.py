"""
env.py
======
The Combomon game session.

Overview:
---------
A `ComboEnv` owns everything one player's game needs: the catalog, the Unlock
Set, the current difficulty, the random source, the current Round and the
selection state. Nothing is module-global, so independent sessions (and tests)
never share state.

Core Gameplay:
--------------
- select_slot_or_token(target): click-to-move. Selecting a token then a slot
  (or a slot then a token) moves the token there.
- move_token(token_id, destination): drag-and-drop move. An occupied
  destination swaps its token back to where the moved token came from.
- return_team_tokens(): put every assigned token back onto empty board slots.
- submit_round(): validate all trainers, unlock the tokens of satisfied
  teams, fire perfect-round listeners when all three are satisfied, then
  start a new round.
- set_difficulty(d): store d (1..4) and start a new round.
- reset_progress(): clear the Unlock Set and its saved copy.

Public API:
-----------
class ComboEnv:
    __init__(catalog, characters=(), unlocks=None, config=EngineConfig())
    round -> Round
    new_round() -> Round
    team_status(i) -> TeamStatus
    submit_round() -> SubmitResult
"""

from __future__ import annotations

import logging
import random
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple, Union

from .catalog import Catalog
from .generator import check_difficulty, generate_round
from .rules import check_team, describe_constraint, first_failing
from .type import (
    BoardSlot, Destination, EngineConfig, InvalidMoveError, Round, TEAM_SIZE,
    TRAINER_COUNT, TeamStatus, TokenId, TrainerCharacter, TrainerSlot,
)
from .unlocks import UnlockSet

logger = logging.getLogger(__name__)

Target = Union[TokenId, BoardSlot, TrainerSlot]
Selection = Union[None, TokenId, BoardSlot, TrainerSlot]
PerfectRoundListener = Callable[[Round], None]


class EnvReturn(NamedTuple):
    message: Optional[str]
    round: Round


class SubmitResult(NamedTuple):
    statuses: Tuple[TeamStatus, ...]
    unlocked: Tuple[TokenId, ...]
    perfect: bool


class ComboEnv:
    """Single-player Combomon session.

    Board positions and trainer/slot numbers are 0-based; text and image
    renderings label them 1-based.
    """

    def __init__(
        self,
        catalog: Catalog,
        characters: Sequence[TrainerCharacter] = (),
        unlocks: Optional[UnlockSet] = None,
        config: EngineConfig = EngineConfig(),
    ):
        logger.info(f"Initializing ComboEnv with seed={config.seed}, difficulty={config.difficulty}")
        self.catalog = catalog
        self.characters: Tuple[TrainerCharacter, ...] = tuple(characters)
        self.unlocks = unlocks if unlocks is not None else UnlockSet()
        self.policy = config.policy
        self.difficulty = check_difficulty(config.difficulty)
        self.rng = random.Random(config.seed)
        self.selection: Selection = None
        self._listeners: List[PerfectRoundListener] = []
        self.round: Round = self.new_round()

    # --------
    # Lifecycle
    # --------
    def new_round(self, difficulty: Optional[int] = None) -> Round:
        """Replace the current round with a freshly generated one.

        Session state is only touched once generation succeeds, so a
        GenerationExhausted leaves the previous round and difficulty in place.
        """
        difficulty = self.difficulty if difficulty is None else difficulty
        round_ = generate_round(
            self.catalog,
            self.unlocks.ids(),
            difficulty,
            self.rng,
            self.characters,
            self.policy,
        )
        self.difficulty = difficulty
        self.selection = None
        self.round = round_
        return round_

    def set_difficulty(self, difficulty: int) -> Round:
        round_ = self.new_round(check_difficulty(difficulty))
        logger.info(f"Difficulty set to {difficulty}")
        return round_

    def on_perfect_round(self, listener: PerfectRoundListener) -> None:
        self._listeners.append(listener)

    # --------
    # Unlocks
    # --------
    def unlock(self, token_id: TokenId) -> bool:
        if token_id not in self.catalog:
            raise KeyError(f"No catalog entry with number {token_id}.")
        return self.unlocks.unlock(token_id)

    def reset_progress(self) -> None:
        self.unlocks.reset_all()

    # -------
    # Validation
    # -------
    def team_status(self, trainer: int) -> TeamStatus:
        return check_team(self.round.trainers[trainer])

    def team_statuses(self) -> Tuple[TeamStatus, ...]:
        return tuple(check_team(t) for t in self.round.trainers)

    def can_submit(self) -> bool:
        return any(s is TeamStatus.SATISFIED for s in self.team_statuses())

    def submit_round(self) -> SubmitResult:
        """Score the round, unlock satisfied teams, then start a new round."""
        finished = self.round
        statuses = self.team_statuses()
        logger.info(f"Submitting round: {[s.value for s in statuses]}")

        unlocked: List[TokenId] = []
        for trainer, status in zip(finished.trainers, statuses):
            if status is TeamStatus.SATISFIED:
                unlocked.extend(self.unlocks.unlock_many(t.number for t in trainer.filled()))

        perfect = all(s is TeamStatus.SATISFIED for s in statuses)
        try:
            if perfect:
                logger.info("Perfect round!")
                for listener in list(self._listeners):
                    listener(finished)
        finally:
            self.new_round()
        return SubmitResult(statuses=statuses, unlocked=tuple(unlocked), perfect=perfect)

    # -------
    # Actions
    # -------
    def _check_destination(self, where: Destination) -> None:
        if isinstance(where, BoardSlot):
            if not 0 <= where.index < len(self.round.board):
                raise InvalidMoveError(f"Board slot {where.index} is out of range.")
        elif isinstance(where, TrainerSlot):
            if not 0 <= where.trainer < TRAINER_COUNT or not 0 <= where.slot < TEAM_SIZE:
                raise InvalidMoveError(f"Trainer slot {tuple(where)} is out of range.")
        else:
            raise InvalidMoveError(f"Unknown destination {where!r}.")

    def move_token(self, token_id: TokenId, destination: Destination) -> EnvReturn:
        """Move a token in play to `destination`, swapping with any occupant."""
        self._check_destination(destination)
        source = self.round.locate(token_id)
        if source is None:
            raise InvalidMoveError(f"Combomon #{token_id} is not on the board or in a team.")
        if source == destination:
            return EnvReturn(None, self.round)

        token = self.round.token_at(source)
        occupant = self.round.token_at(destination)
        self.round.put(source, occupant)
        self.round.put(destination, token)
        logger.debug(
            f"Moved #{token_id} from {source} to {destination}"
            + (f", swapped #{occupant.number}" if occupant is not None else "")
        )
        return EnvReturn(self._status_message(destination), self.round)

    def _status_message(self, where: Destination) -> Optional[str]:
        if not isinstance(where, TrainerSlot):
            return None
        trainer = self.round.trainers[where.trainer]
        status = check_team(trainer)
        if status is TeamStatus.INCOMPLETE:
            return None
        if status is TeamStatus.UNSATISFIED:
            return f"Trainer {where.trainer + 1}: unsatisfied, wanted {describe_constraint(first_failing(trainer))}."
        return f"Trainer {where.trainer + 1}: {status.value}."

    def select_slot_or_token(self, target: Target) -> EnvReturn:
        """Click semantics: complete a pending move, or make `target` the selection."""
        if isinstance(target, int):
            if self.round.locate(target) is None:
                raise InvalidMoveError(f"Combomon #{target} is not on the board or in a team.")
            if isinstance(self.selection, (BoardSlot, TrainerSlot)):
                slot, self.selection = self.selection, None
                return self.move_token(target, slot)
        else:
            self._check_destination(target)
            if isinstance(self.selection, int):
                token_id, self.selection = self.selection, None
                return self.move_token(token_id, target)
        self.selection = target
        logger.debug(f"Selected {target!r}")
        return EnvReturn(None, self.round)

    def clear_selection(self) -> None:
        self.selection = None

    def return_team_tokens(self) -> EnvReturn:
        """Move every trainer-slot token back to an empty board slot."""
        moved = 0
        for t, trainer in enumerate(self.round.trainers):
            for s, token in enumerate(trainer.team):
                if token is None:
                    continue
                try:
                    empty = self.round.board.index(None)
                except ValueError:
                    break
                self.round.board[empty] = token
                trainer.team[s] = None
                moved += 1
        self.selection = None
        logger.debug(f"Returned {moved} Combomon to the board")
        return EnvReturn(f"Returned {moved} Combomon to the board.", self.round)

    # -------
    # Imaging
    # -------
    def get_board_image(self):
        """Render the current round with Cairo (requires the `render` extra)."""
        try:
            from .Utils.generate_board import generate_board_image
        except ImportError as e:  # pragma: no cover - dependency guidance
            raise RuntimeError(
                "Board images need pycairo and Pillow. Install with `pip install combomon[render]`."
            ) from e
        return generate_board_image(self.round)
