"""
Candidate moves and votes for the collective's turn.

Nothing in here keeps counts in memory: every vote is a single atomic write in the repository
(vote record + count increment together), so any number of request handlers can use a CandidateStore concurrently.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

from src.core.exceptions import DuplicateVoteError, InvalidRequestError
from src.core.models import VoteModel, utc_now
from src.core.shared_types import CandidateStatus, PlayedBy
from src.db.repository import GameRepository
from src.othello.moves import apply_move
from src.othello.position import Position
from src.services.loading import fetch_game
from src.voting.candidate import Candidate
from src.voting.tally import leading_candidate, rank_candidates

logger = logging.getLogger(__name__)

DEFAULT_MAX_DESCRIPTION_LENGTH = 200


class CandidateStore:
    def __init__(
        self,
        repository: GameRepository,
        max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
    ) -> None:
        self.repo = repository
        self.max_description_length = max_description_length

    def propose(
        self,
        game_id: UUID,
        turn_number: int,
        proposer_id: str,
        position: Position,
        description: str = "",
    ) -> Candidate:
        """
        Propose a move for the collective's current turn.
        ----

        The resulting board is computed here, once, so resolving the turn later is a pure lookup.
        Proposing a position somebody already proposed for this turn returns that existing candidate.
        """
        if len(description) > self.max_description_length:
            raise InvalidRequestError(
                f"Description is longer than {self.max_description_length} characters."
            )

        game = fetch_game(self.repo, game_id)
        game.assert_turn(turn_number, PlayedBy.COLLECTIVE)

        # raises IllegalMoveError for anything not in the collective's legal moves
        result = apply_move(game.board, game.collective_side, position)

        candidate = Candidate(
            candidate_id=uuid4(),
            game_id=game_id,
            turn_number=turn_number,
            position=position,
            proposer_id=proposer_id,
            description=description,
            vote_count=0,
            resulting_board=result.board,
            status=CandidateStatus.VOTING,
            created_at=utc_now(),
        )
        stored = Candidate.from_model(self.repo.add_candidate(candidate.to_model()))
        if stored.candidate_id == candidate.candidate_id:
            logger.info(
                "Candidate %s proposed for game %s turn %d at %s by %s",
                stored.candidate_id,
                game_id,
                turn_number,
                position.to_algebraic(),
                proposer_id,
            )
        return stored

    def vote(
        self, game_id: UUID, turn_number: int, voter_id: str, candidate_id: UUID
    ) -> Candidate:
        """Cast a vote. A voter gets one vote per turn: a second one raises DuplicateVoteError and changes nothing."""
        game = fetch_game(self.repo, game_id)
        game.assert_turn(turn_number, PlayedBy.COLLECTIVE)

        vote = VoteModel(
            game_id=game_id,
            turn_number=turn_number,
            voter_id=voter_id,
            candidate_id=candidate_id,
        )
        try:
            candidate = Candidate.from_model(self.repo.record_vote(vote))
        except DuplicateVoteError:
            logger.info(
                "Rejected second vote by %s in game %s turn %d", voter_id, game_id, turn_number
            )
            raise
        logger.debug(
            "Vote by %s for candidate %s (game %s, turn %d, now %d votes)",
            voter_id,
            candidate_id,
            game_id,
            turn_number,
            candidate.vote_count,
        )
        return candidate

    def candidates(self, game_id: UUID, turn_number: int) -> list[Candidate]:
        """All candidates of a turn, leading candidate first."""
        return rank_candidates(
            [
                Candidate.from_model(model)
                for model in self.repo.list_candidates(game_id, turn_number)
            ]
        )

    def close_voting(self, game_id: UUID, turn_number: int) -> Optional[Candidate]:
        """Close the turn for votes and return the winner among the final counts (None without candidates)."""
        closed = [
            Candidate.from_model(model)
            for model in self.repo.close_voting(game_id, turn_number)
        ]
        leader = leading_candidate(closed)
        logger.info(
            "Voting closed for game %s turn %d: %d candidates, leader %s",
            game_id,
            turn_number,
            len(closed),
            leader.position.to_algebraic() if leader else None,
        )
        return leader

    def vote_of(
        self, game_id: UUID, turn_number: int, voter_id: str
    ) -> Optional[VoteModel]:
        return self.repo.get_vote(game_id, turn_number, voter_id)
