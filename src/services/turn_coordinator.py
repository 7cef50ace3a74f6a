"""
Turn alternation between the AI and the collective.

    AWAITING_AI_MOVE --(AI move applied / AI forfeits)--> AWAITING_VOTES
    AWAITING_VOTES   --(resolve_turn: close voting, play the leader)--> AWAITING_AI_MOVE | FINISHED

The phase is never stored: it follows from the stored turn number, the AI side and the status (see Game.phase).
Every transition ends in one conditional write (`GameRepository.advance_turn`) keyed on the turn number it started
from. When two workers race on the same turn, exactly one write succeeds; the other observes the advanced game and
returns without changing anything.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from src.core.exceptions import IllegalMoveError
from src.core.shared_types import PlayedBy, Side, Status
from src.db.repository import GameRepository
from src.othello.ai import AIMoveSelector, first_legal_move
from src.othello.game import Game, TurnPhase
from src.othello.moves import MoveResult, apply_move
from src.othello.position import Position
from src.services.candidate_store import CandidateStore
from src.services.loading import fetch_game
from src.voting.candidate import Candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnOutcome:
    """What a single transition did. `applied` is False when another worker had already resolved the turn."""

    game: Game
    applied: bool
    turn_number: int
    side: Optional[Side] = None
    played_by: Optional[PlayedBy] = None
    position: Optional[Position] = None
    candidate: Optional[Candidate] = None
    flipped_count: int = 0

    @property
    def forfeited(self) -> bool:
        return self.applied and self.position is None


class TurnCoordinator:
    """Orchestrates whose turn it is, and applies moves to the board."""

    def __init__(
        self,
        repository: GameRepository,
        candidate_store: CandidateStore,
        ai_select_move: AIMoveSelector = first_legal_move,
    ) -> None:
        self.repo = repository
        self.candidates = candidate_store
        self.ai_select_move = ai_select_move

    def phase(self, game_id: UUID) -> TurnPhase:
        return fetch_game(self.repo, game_id).phase

    def play_ai_turn(
        self, game_id: UUID, turn_number: Optional[int] = None
    ) -> TurnOutcome:
        """
        Let the AI play the current turn.
        ----

        Without a turn number the current one is played. When the AI has no legal move, it forfeits the turn.
        """
        game = fetch_game(self.repo, game_id)
        if turn_number is None:
            turn_number = game.turn_number
        if turn_number < game.turn_number:
            return self._already_resolved(game, turn_number)
        game.assert_turn(turn_number, PlayedBy.AI)

        legal = game.legal_moves()
        result: Optional[MoveResult] = None
        if legal:
            position = self.ai_select_move(game.board, game.side_to_move, list(legal))
            if position not in legal:
                raise IllegalMoveError(
                    f"AI selected {position.to_algebraic()}, which is not a legal move."
                )
            result = apply_move(game.board, game.side_to_move, position)

        return self._commit(game, result, candidate=None)

    def resolve_turn(self, game_id: UUID, turn_number: int) -> TurnOutcome:
        """
        Close the collective's vote and play the leading candidate.
        ----

        The candidate's board was computed when it was proposed, it is applied as-is.
        A turn without any candidate is a forfeit.
        Calling this for a turn that has already been resolved is a no-op.
        """
        game = fetch_game(self.repo, game_id)
        if turn_number < game.turn_number:
            return self._already_resolved(game, turn_number)
        game.assert_turn(turn_number, PlayedBy.COLLECTIVE)

        # no vote can land after this point, the leader is picked from final counts
        leader = self.candidates.close_voting(game_id, turn_number)
        result: Optional[MoveResult] = None
        if leader is not None:
            result = MoveResult.from_boards(
                game.board,
                leader.resulting_board,
                game.collective_side,
                leader.position,
            )
        return self._commit(game, result, candidate=leader)

    def settle(self, game_id: UUID) -> list[TurnOutcome]:
        """
        Play every turn that does not need the collective's input:
        AI turns, and collective turns without a single legal move (forfeits).

        Stops when the game waits for votes on a turn the collective can actually play, or when it is finished.
        Terminates as each step consumes a turn, and two consecutive blocked sides finish the game.
        """
        outcomes: list[TurnOutcome] = []
        while True:
            game = fetch_game(self.repo, game_id)
            if game.phase == TurnPhase.AWAITING_AI_MOVE:
                outcomes.append(self.play_ai_turn(game_id, game.turn_number))
            elif game.phase == TurnPhase.AWAITING_VOTES and not game.legal_moves():
                outcomes.append(self.resolve_turn(game_id, game.turn_number))
            else:
                return outcomes

    # -- Internal helpers --
    def _commit(
        self, game: Game, result: Optional[MoveResult], candidate: Optional[Candidate]
    ) -> TurnOutcome:
        """Single conditional write of the turn. A lost race leaves the store untouched and reports a no-op."""
        played_by = game.player_to_move
        after, write = game.advance(
            result, candidate_id=candidate.candidate_id if candidate else None
        )
        if not self.repo.advance_turn(write):
            return self._already_resolved(fetch_game(self.repo, game.game_id), game.turn_number)

        if result is None:
            logger.info(
                "Game %s turn %d: %s (%s) has no move and forfeits",
                game.game_id,
                game.turn_number,
                played_by,
                game.side_to_move,
            )
        else:
            logger.info(
                "Game %s turn %d: %s (%s) played %s, flipping %d",
                game.game_id,
                game.turn_number,
                played_by,
                game.side_to_move,
                result.position.to_algebraic(),
                result.flipped_count,
            )
        if after.status == Status.FINISHED:
            logger.info(
                "Game %s finished after turn %d, winner: %s",
                game.game_id,
                game.turn_number,
                after.winner,
            )

        return TurnOutcome(
            game=after,
            applied=True,
            turn_number=game.turn_number,
            side=game.side_to_move,
            played_by=played_by,
            position=result.position if result else None,
            candidate=candidate,
            flipped_count=result.flipped_count if result else 0,
        )

    def _already_resolved(self, current: Game, turn_number: int) -> TurnOutcome:
        logger.info(
            "Game %s turn %d was already resolved (now at turn %d), nothing to do",
            current.game_id,
            turn_number,
            current.turn_number,
        )
        return TurnOutcome(game=current, applied=False, turn_number=turn_number)
