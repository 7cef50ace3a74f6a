"""Unit tests for src/services/turn_coordinator.py"""

from collections.abc import Callable
from typing import Any
from unittest.mock import Mock
from uuid import UUID

import pytest

from src.core.exceptions import (
    GameAlreadyFinishedError,
    IllegalMoveError,
    NotYourTurnError,
)
from src.core.models import CandidateModel, GameModel
from src.core.shared_types import CandidateStatus, PlayedBy, Side, Status, Winner
from src.db.sql_repository import SQLGameRepository
from src.othello.board import Board
from src.othello.game import Game, TurnPhase
from src.othello.moves import apply_move
from src.othello.position import Position
from src.services.candidate_store import CandidateStore
from src.services.turn_coordinator import TurnCoordinator

D3 = Position.from_algebraic("d3")
C4 = Position.from_algebraic("c4")
# black on a1, white on b1: black can take b1 from c1, white has no move at all
CORNER_BOARD = Board.from_notation("/".join(["BW......"] + ["........"] * 7))


class VotesAroundCloseRepository:
    """
    Wraps a repository and runs `before` / `after` right around closing the vote:
    behaves like voters whose requests land just before / just after the resolver closes the turn.
    """

    def __init__(
        self,
        repository: SQLGameRepository,
        before: Callable[[], None] = lambda: None,
        after: Callable[[], None] = lambda: None,
    ) -> None:
        self._repository = repository
        self._before = before
        self._after = after

    def close_voting(self, game_id: UUID, turn_number: int) -> list[CandidateModel]:
        self._before()
        closed = self._repository.close_voting(game_id, turn_number)
        self._after()
        return closed

    def __getattr__(self, name: str) -> Any:
        return getattr(self._repository, name)


class StaleReadRepository:
    """
    Wraps a repository, but serves a snapshot of the game on the first read:
    behaves like a worker that read the game right before another worker resolved the turn.
    """

    def __init__(self, repository: SQLGameRepository, snapshot: GameModel) -> None:
        self._repository = repository
        self._snapshot: GameModel | None = snapshot

    def get_game(self, game_id: UUID) -> GameModel | None:
        if self._snapshot is not None and self._snapshot.game_id == game_id:
            snapshot, self._snapshot = self._snapshot, None
            return snapshot
        return self._repository.get_game(game_id)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._repository, name)


@pytest.fixture
def store(repository: SQLGameRepository) -> CandidateStore:
    return CandidateStore(repository)


@pytest.fixture
def coordinator(repository: SQLGameRepository, store: CandidateStore) -> TurnCoordinator:
    return TurnCoordinator(repository, store)


# -- RESOLVING THE COLLECTIVE'S TURN ---
def test_resolve_applies_leading_candidate(
    repository: SQLGameRepository, store: CandidateStore, coordinator: TurnCoordinator, stored_game
) -> None:
    game_id = stored_game(ai_side=Side.WHITE)
    d3 = store.propose(game_id, 0, "alice", D3)
    c4 = store.propose(game_id, 0, "bob", C4)
    store.vote(game_id, 0, "v1", c4.candidate_id)
    store.vote(game_id, 0, "v2", c4.candidate_id)
    store.vote(game_id, 0, "v3", d3.candidate_id)

    outcome = coordinator.resolve_turn(game_id, 0)

    assert outcome.applied
    assert outcome.played_by == PlayedBy.COLLECTIVE
    assert outcome.side == Side.BLACK
    assert outcome.position == C4
    assert outcome.flipped_count == 1
    assert outcome.candidate is not None and outcome.candidate.candidate_id == c4.candidate_id

    stored = repository.get_game(game_id)
    assert stored.turn_number == 1
    assert Board.from_grid(stored.board) == c4.resulting_board
    assert coordinator.phase(game_id) == TurnPhase.AWAITING_AI_MOVE

    statuses = {c.candidate_id: c.status for c in store.candidates(game_id, 0)}
    assert statuses == {
        c4.candidate_id: CandidateStatus.ADOPTED,
        d3.candidate_id: CandidateStatus.CLOSED,
    }
    moves = repository.list_moves(game_id)
    assert [(m.turn_number, m.position, m.played_by) for m in moves] == [(0, "c4", "COLLECTIVE")]
    assert moves[0].candidate_id == c4.candidate_id


def test_resolve_without_candidates_forfeits(
    repository: SQLGameRepository, coordinator: TurnCoordinator, stored_game
) -> None:
    game_id = stored_game(ai_side=Side.WHITE)
    outcome = coordinator.resolve_turn(game_id, 0)

    assert outcome.applied
    assert outcome.forfeited
    stored = repository.get_game(game_id)
    assert stored.turn_number == 1
    assert Board.from_grid(stored.board) == Board.initial()
    assert repository.list_moves(game_id)[0].position is None


def test_resolve_during_ai_turn(coordinator: TurnCoordinator, stored_game) -> None:
    game_id = stored_game(ai_side=Side.BLACK)
    with pytest.raises(NotYourTurnError):
        coordinator.resolve_turn(game_id, 0)


def test_resolve_future_turn(coordinator: TurnCoordinator, stored_game) -> None:
    game_id = stored_game(ai_side=Side.WHITE)
    with pytest.raises(NotYourTurnError):
        coordinator.resolve_turn(game_id, 2)


def test_votes_after_resolution_are_rejected(
    store: CandidateStore, coordinator: TurnCoordinator, stored_game
) -> None:
    game_id = stored_game(ai_side=Side.WHITE)
    d3 = store.propose(game_id, 0, "alice", D3)
    coordinator.resolve_turn(game_id, 0)
    with pytest.raises(NotYourTurnError):
        store.vote(game_id, 0, "late", d3.candidate_id)


# -- IDEMPOTENT RESOLUTION ---
def test_resolving_twice_is_a_no_op(
    repository: SQLGameRepository, store: CandidateStore, coordinator: TurnCoordinator, stored_game
) -> None:
    game_id = stored_game(ai_side=Side.WHITE)
    store.propose(game_id, 0, "alice", D3)

    first = coordinator.resolve_turn(game_id, 0)
    second = coordinator.resolve_turn(game_id, 0)

    assert first.applied
    assert not second.applied
    assert second.game.turn_number == 1
    assert repository.get_game(game_id).turn_number == 1
    assert len(repository.list_moves(game_id)) == 1


def test_concurrent_resolution_only_applies_once(
    repository: SQLGameRepository, store: CandidateStore, stored_game
) -> None:
    """
    Two workers read the game at turn 0. Worker A resolves first; worker B still acts on its stale read.
    B's conditional write must not apply: one turn increment, one board change, one move record.
    """
    game_id = stored_game(ai_side=Side.WHITE)
    d3 = store.propose(game_id, 0, "alice", D3)
    snapshot = repository.get_game(game_id)

    worker_a = TurnCoordinator(repository, store)
    stale = StaleReadRepository(repository, snapshot)
    worker_b = TurnCoordinator(stale, CandidateStore(stale))

    outcome_a = worker_a.resolve_turn(game_id, 0)
    outcome_b = worker_b.resolve_turn(game_id, 0)

    assert outcome_a.applied
    assert not outcome_b.applied
    stored = repository.get_game(game_id)
    assert stored.turn_number == 1
    assert Board.from_grid(stored.board) == d3.resulting_board
    assert len(repository.list_moves(game_id)) == 1


def test_stale_write_is_rejected_by_the_repository(
    repository: SQLGameRepository, stored_game
) -> None:
    """Same race, one level down: the second write for the same expected turn does nothing."""
    game_id = stored_game(ai_side=Side.WHITE)
    game = Game.from_model(repository.get_game(game_id))
    _, write_a = game.advance(apply_move(game.board, Side.BLACK, D3))
    _, write_b = game.advance(apply_move(game.board, Side.BLACK, C4))

    assert repository.advance_turn(write_a)
    assert not repository.advance_turn(write_b)
    stored = repository.get_game(game_id)
    assert stored.turn_number == 1
    assert stored.board == write_a.board


def test_votes_landing_before_close_decide_the_turn(
    repository: SQLGameRepository, store: CandidateStore, stored_game
) -> None:
    """d3 leads 1-0 when the resolver starts; two votes for c4 still get in before voting closes, so c4 is played."""
    game_id = stored_game(ai_side=Side.WHITE)
    d3 = store.propose(game_id, 0, "alice", D3)
    c4 = store.propose(game_id, 0, "bob", C4)
    store.vote(game_id, 0, "v1", d3.candidate_id)

    def late_votes() -> None:
        store.vote(game_id, 0, "v2", c4.candidate_id)
        store.vote(game_id, 0, "v3", c4.candidate_id)

    racing = VotesAroundCloseRepository(repository, before=late_votes)
    outcome = TurnCoordinator(racing, CandidateStore(racing)).resolve_turn(game_id, 0)

    assert outcome.position == C4
    final = {c.position: (c.vote_count, c.status) for c in repository.list_candidates(game_id, 0)}
    assert final == {
        "d3": (1, CandidateStatus.CLOSED),
        "c4": (2, CandidateStatus.ADOPTED),
    }


def test_votes_landing_after_close_are_refused(
    repository: SQLGameRepository, store: CandidateStore, stored_game
) -> None:
    """Once voting is closed no count changes: the adopted candidate always has the most recorded votes."""
    game_id = stored_game(ai_side=Side.WHITE)
    d3 = store.propose(game_id, 0, "alice", D3)
    c4 = store.propose(game_id, 0, "bob", C4)
    store.vote(game_id, 0, "v1", d3.candidate_id)
    refused = []

    def late_votes() -> None:
        for voter in ("v2", "v3"):
            with pytest.raises(NotYourTurnError):
                store.vote(game_id, 0, voter, c4.candidate_id)
            refused.append(voter)

    racing = VotesAroundCloseRepository(repository, after=late_votes)
    outcome = TurnCoordinator(racing, CandidateStore(racing)).resolve_turn(game_id, 0)

    assert refused == ["v2", "v3"]
    assert outcome.position == D3
    final = {c.position: (c.vote_count, c.status) for c in repository.list_candidates(game_id, 0)}
    assert final == {
        "d3": (1, CandidateStatus.ADOPTED),
        "c4": (0, CandidateStatus.CLOSED),
    }
    assert repository.get_vote(game_id, 0, "v2") is None


# -- AI TURN ---
def test_ai_plays_selected_move(repository: SQLGameRepository, store: CandidateStore, stored_game) -> None:
    game_id = stored_game(ai_side=Side.BLACK)
    selector = Mock(return_value=C4)
    coordinator = TurnCoordinator(repository, store, ai_select_move=selector)

    outcome = coordinator.play_ai_turn(game_id)

    selector.assert_called_once()
    board, side, legal = selector.call_args.args
    assert board == Board.initial()
    assert side == Side.BLACK
    assert C4 in legal
    assert outcome.applied
    assert outcome.played_by == PlayedBy.AI
    assert outcome.position == C4
    assert repository.get_game(game_id).turn_number == 1
    assert coordinator.phase(game_id) == TurnPhase.AWAITING_VOTES


def test_ai_selecting_an_illegal_move(repository: SQLGameRepository, store: CandidateStore, stored_game) -> None:
    game_id = stored_game(ai_side=Side.BLACK)
    coordinator = TurnCoordinator(
        repository, store, ai_select_move=Mock(return_value=Position(0, 0))
    )
    with pytest.raises(IllegalMoveError):
        coordinator.play_ai_turn(game_id)
    assert repository.get_game(game_id).turn_number == 0


def test_ai_without_moves_forfeits(
    repository: SQLGameRepository, coordinator: TurnCoordinator, stored_game
) -> None:
    """White AI to move on the corner board: no legal move, the turn passes to the collective."""
    game_id = stored_game(ai_side=Side.WHITE, turn_number=1, board=CORNER_BOARD)
    outcome = coordinator.play_ai_turn(game_id, 1)

    assert outcome.applied
    assert outcome.forfeited
    stored = repository.get_game(game_id)
    assert stored.turn_number == 2
    assert stored.status == Status.ACTIVE
    assert Board.from_grid(stored.board) == CORNER_BOARD
    assert coordinator.phase(game_id) == TurnPhase.AWAITING_VOTES


def test_ai_turn_during_collective_turn(coordinator: TurnCoordinator, stored_game) -> None:
    game_id = stored_game(ai_side=Side.WHITE)
    with pytest.raises(NotYourTurnError):
        coordinator.play_ai_turn(game_id)


# -- END OF GAME ---
def test_resolution_finishes_the_game(
    repository: SQLGameRepository, store: CandidateStore, coordinator: TurnCoordinator, stored_game
) -> None:
    """Collective (black) takes white's only disc: nobody can move, black wins -> COLLECTIVE."""
    game_id = stored_game(ai_side=Side.WHITE, board=CORNER_BOARD)
    store.propose(game_id, 0, "alice", Position(0, 2))
    outcome = coordinator.resolve_turn(game_id, 0)

    assert outcome.game.status == Status.FINISHED
    stored = repository.get_game(game_id)
    assert stored.status == Status.FINISHED
    assert stored.winner == Winner.COLLECTIVE
    assert coordinator.phase(game_id) == TurnPhase.FINISHED

    with pytest.raises(GameAlreadyFinishedError):
        coordinator.resolve_turn(game_id, 1)
    with pytest.raises(GameAlreadyFinishedError):
        coordinator.play_ai_turn(game_id)
    with pytest.raises(GameAlreadyFinishedError):
        store.propose(game_id, 1, "alice", Position(0, 3))


# -- SETTLE ---
def test_settle_plays_ai_turn_and_stops_at_votes(
    repository: SQLGameRepository, coordinator: TurnCoordinator, stored_game
) -> None:
    """AI is black and opens; first legal move in row-major order is d3."""
    game_id = stored_game(ai_side=Side.BLACK)
    outcomes = coordinator.settle(game_id)

    assert [o.played_by for o in outcomes] == [PlayedBy.AI]
    assert outcomes[0].position == D3
    assert repository.get_game(game_id).turn_number == 1
    assert coordinator.phase(game_id) == TurnPhase.AWAITING_VOTES
    # waiting for votes on a playable turn: nothing more to do
    assert coordinator.settle(game_id) == []


def test_settle_forfeits_blocked_collective(
    repository: SQLGameRepository, coordinator: TurnCoordinator, stored_game
) -> None:
    """Collective plays white on the corner board and cannot move; the AI (black) then takes the last white disc."""
    game_id = stored_game(ai_side=Side.BLACK, turn_number=1, board=CORNER_BOARD)
    outcomes = coordinator.settle(game_id)

    assert [(o.played_by, o.position) for o in outcomes] == [
        (PlayedBy.COLLECTIVE, None),
        (PlayedBy.AI, Position(0, 2)),
    ]
    stored = repository.get_game(game_id)
    assert stored.status == Status.FINISHED
    assert stored.winner == Winner.AI
