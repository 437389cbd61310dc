"""Tests for the ComboEnv game session."""
import pytest

from Combomon.env import ComboEnv
from Combomon.type import (
    BoardSlot, EngineConfig, GenerationExhausted, GenerationPolicy, InvalidDifficultyError,
    InvalidMoveError, TeamStatus, TrainerSlot,
)
from Combomon.unlocks import MemoryUnlockStore, UnlockSet


@pytest.fixture
def env(product_catalog, characters, unlocks):
    return ComboEnv(product_catalog, characters, unlocks, EngineConfig(difficulty=2, seed=42))


def place_solution(env, trainers=(0, 1, 2)):
    for t in trainers:
        for s, token_id in enumerate(env.round.solution[t]):
            env.move_token(token_id, TrainerSlot(t, s))


def spoil_team(env, trainer):
    """Swap one witness token of `trainer` for a board token that breaks a requirement."""
    team = env.round.trainers[trainer]
    for candidate in env.round.board_tokens():
        swapped = [candidate] + team.team[1:]
        if not all(c.holds(swapped) for c in team.requirements):
            env.move_token(candidate.number, TrainerSlot(trainer, 0))
            return
    pytest.skip("no spoiling token on this board")


class TestLifecycle:
    """Test cases for round lifecycle and difficulty."""

    def test_initial_round(self, env):
        assert env.round.difficulty == 2
        assert len(env.round.board_tokens()) == 12
        assert env.team_statuses() == (TeamStatus.INCOMPLETE,) * 3
        assert not env.can_submit()

    def test_set_difficulty_regenerates(self, env):
        before = env.round
        after = env.set_difficulty(3)
        assert after is env.round
        assert after is not before
        assert all(len(t.requirements) == 3 for t in after.trainers)

    def test_bad_difficulty_keeps_round(self, env):
        before = env.round
        with pytest.raises(InvalidDifficultyError):
            env.set_difficulty(7)
        assert env.round is before
        assert env.difficulty == 2

    @pytest.mark.parametrize("difficulty", [True, "2", 2.0])
    def test_non_integer_difficulty_rejected(self, env, difficulty):
        with pytest.raises(InvalidDifficultyError):
            env.set_difficulty(difficulty)
        assert env.difficulty == 2

    def test_exhausted_difficulty_change_keeps_session(self, binary_catalog):
        """A difficulty no board can satisfy leaves the previous round and difficulty live."""
        policy = GenerationPolicy(combo_attempts=5, slot_attempts=5, max_board_attempts=3)
        env = ComboEnv(binary_catalog, config=EngineConfig(difficulty=1, seed=7, policy=policy))
        before = env.round
        env.select_slot_or_token(BoardSlot(0))

        with pytest.raises(GenerationExhausted):
            env.set_difficulty(3)

        assert env.difficulty == 1
        assert env.round is before
        assert env.round.difficulty == 1
        assert env.selection == BoardSlot(0)
        assert env.new_round().difficulty == 1

    def test_sessions_are_independent(self, product_catalog):
        a = ComboEnv(product_catalog, config=EngineConfig(seed=1))
        b = ComboEnv(product_catalog, config=EngineConfig(seed=1))
        a.unlock(product_catalog[0].number)
        assert product_catalog[0].number not in b.unlocks
        place_solution(a)
        assert b.team_statuses() == (TeamStatus.INCOMPLETE,) * 3


class TestMoves:
    """Test cases for move_token, select_slot_or_token and return_team_tokens."""

    def test_move_board_token_into_team(self, env):
        token = env.round.board[0]
        msg, round_ = env.move_token(token.number, TrainerSlot(1, 2))
        assert round_.board[0] is None
        assert round_.trainers[1].team[2] == token
        assert msg is None

    def test_move_onto_occupied_slot_swaps(self, env):
        a, b = env.round.board[0], env.round.board[5]
        env.move_token(a.number, BoardSlot(5))
        assert env.round.board[5] == a
        assert env.round.board[0] == b

    def test_swap_between_team_and_board(self, env):
        a, b = env.round.board[0], env.round.board[1]
        env.move_token(a.number, TrainerSlot(0, 0))
        env.move_token(b.number, TrainerSlot(0, 0))
        assert env.round.trainers[0].team[0] == b
        assert env.round.board[1] == a

    def test_move_to_own_slot_is_noop(self, env):
        board = list(env.round.board)
        env.move_token(board[3].number, BoardSlot(3))
        assert env.round.board == board

    def test_full_team_reports_status(self, env):
        place_solution(env, trainers=(0,))
        assert env.team_status(0) is TeamStatus.SATISFIED
        assert env.can_submit()

    def test_move_reports_team_result(self, env):
        ids = env.round.solution[0]
        env.move_token(ids[0], TrainerSlot(0, 0))
        env.move_token(ids[1], TrainerSlot(0, 1))
        msg, _ = env.move_token(ids[2], TrainerSlot(0, 2))
        assert msg == "Trainer 1: satisfied."

    def test_move_reports_broken_requirement(self, env):
        place_solution(env, trainers=(0,))
        team = env.round.trainers[0]
        for candidate in env.round.board_tokens():
            swapped = [candidate] + team.team[1:]
            if not all(c.holds(swapped) for c in team.requirements):
                break
        else:
            pytest.skip("no spoiling token on this board")
        msg, _ = env.move_token(candidate.number, TrainerSlot(0, 0))
        assert msg.startswith("Trainer 1: unsatisfied, wanted all ")

    def test_unknown_token(self, env):
        with pytest.raises(InvalidMoveError):
            env.move_token(10_000, BoardSlot(0))

    def test_token_not_in_play(self, env, product_catalog):
        in_play = {t.number for t in env.round.tokens_in_play()}
        outside = next(t for t in product_catalog if t.number not in in_play)
        with pytest.raises(InvalidMoveError):
            env.move_token(outside.number, BoardSlot(0))

    @pytest.mark.parametrize("where", [BoardSlot(12), BoardSlot(-1), TrainerSlot(3, 0), TrainerSlot(0, 3)])
    def test_out_of_range_destination(self, env, where):
        with pytest.raises(InvalidMoveError):
            env.move_token(env.round.board[0].number, where)

    def test_select_token_then_slot_moves(self, env):
        token = env.round.board[2]
        env.select_slot_or_token(token.number)
        assert env.selection == token.number
        env.select_slot_or_token(TrainerSlot(2, 1))
        assert env.round.trainers[2].team[1] == token
        assert env.selection is None

    def test_select_slot_then_token_moves(self, env):
        token = env.round.board[4]
        env.select_slot_or_token(TrainerSlot(0, 0))
        assert env.selection == TrainerSlot(0, 0)
        env.select_slot_or_token(token.number)
        assert env.round.trainers[0].team[0] == token
        assert env.selection is None

    def test_reselect_replaces_selection(self, env):
        env.select_slot_or_token(BoardSlot(1))
        env.select_slot_or_token(TrainerSlot(1, 1))
        assert env.selection == TrainerSlot(1, 1)
        env.clear_selection()
        assert env.selection is None

    def test_return_team_tokens(self, env):
        place_solution(env)
        assert len(env.round.board_tokens()) == 3
        msg, round_ = env.return_team_tokens()
        assert msg == "Returned 9 Combomon to the board."
        assert len(round_.board_tokens()) == 12
        assert all(not t.filled() for t in round_.trainers)


class TestSubmit:
    """Test cases for submit_round and unlocking."""

    def test_perfect_round_unlocks_all_and_signals(self, env):
        finished = env.round
        seen = []
        env.on_perfect_round(seen.append)
        place_solution(env)
        team_ids = {t.number for trainer in finished.trainers for t in trainer.filled()}

        result = env.submit_round()

        assert result.perfect
        assert result.statuses == (TeamStatus.SATISFIED,) * 3
        assert set(result.unlocked) == team_ids
        assert all(i in env.unlocks for i in team_ids)
        assert seen == [finished]
        assert env.round is not finished

    def test_partial_round_unlocks_only_satisfied(self, env):
        seen = []
        env.on_perfect_round(seen.append)
        place_solution(env, trainers=(0, 1))
        kept = set(env.round.solution[1])
        spoil_team(env, 0)

        result = env.submit_round()

        assert not result.perfect
        assert result.statuses == (
            TeamStatus.UNSATISFIED, TeamStatus.SATISFIED, TeamStatus.INCOMPLETE,
        )
        assert set(result.unlocked) == kept
        assert seen == []

    def test_failing_listener_still_starts_new_round(self, env):
        """A perfect-round listener that raises does not leave the scored round live."""
        def broken(round_):
            raise RuntimeError("celebration failed")

        env.on_perfect_round(broken)
        before = env.round
        place_solution(env)
        team_ids = {i for triple in before.solution for i in triple}

        with pytest.raises(RuntimeError, match="celebration failed"):
            env.submit_round()

        assert env.round is not before
        assert all(i in env.unlocks for i in team_ids)
        assert env.team_statuses() == (TeamStatus.INCOMPLETE,) * 3

    def test_unsatisfied_team_unlocks_nothing(self, env):
        place_solution(env, trainers=(0,))
        spoil_team(env, 0)
        assert env.team_status(0) is TeamStatus.UNSATISFIED
        result = env.submit_round()
        assert result.unlocked == ()
        assert len(env.unlocks) == 0

    def test_empty_submit_regenerates(self, env):
        before = env.round
        result = env.submit_round()
        assert result.statuses == (TeamStatus.INCOMPLETE,) * 3
        assert env.round is not before

    def test_already_unlocked_not_reported_again(self, env):
        place_solution(env)
        first = env.round.solution[0][0]
        env.unlock(first)
        result = env.submit_round()
        assert first not in result.unlocked
        assert len(result.unlocked) == 8

    def test_unlock_unknown_id(self, env):
        with pytest.raises(KeyError):
            env.unlock(999)

    def test_reset_progress(self, product_catalog):
        store = MemoryUnlockStore([1, 2, 3])
        env = ComboEnv(product_catalog, unlocks=UnlockSet(store), config=EngineConfig(seed=3))
        assert len(env.unlocks) == 3
        env.reset_progress()
        assert len(env.unlocks) == 0
        assert store.load() == set()

    def test_reset_makes_unlocked_tokens_eligible_again(self, product_catalog):
        """After a reset, rounds draw their seeds from the whole catalog again."""
        locked = {t.number for t in product_catalog[:5]}
        previously_unlocked = {t.number for t in product_catalog} - locked
        env = ComboEnv(
            product_catalog,
            unlocks=UnlockSet(MemoryUnlockStore(previously_unlocked)),
            config=EngineConfig(seed=11),
        )

        def locked_on_board(round_):
            return len(locked & {t.number for t in round_.board_tokens()})

        # both seeds come from the five locked tokens while they are the only ones left
        assert all(locked_on_board(env.new_round()) >= 2 for _ in range(5))

        env.reset_progress()
        assert len(env.unlocks) == 0

        seen = set()
        counts = []
        for _ in range(10):
            round_ = env.new_round()
            seen.update(t.number for t in round_.board_tokens())
            counts.append(locked_on_board(round_))
        assert min(counts) < 2
        assert len(seen & previously_unlocked) > 12
        assert env.unlocks.ids() == frozenset()
