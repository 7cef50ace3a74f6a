"""Protocol repository (SQLAlchemy implementation in sql_repository.py; any store with conditional writes will do)"""

from typing import Optional, Protocol
from uuid import UUID

from src.core.models import (
    CandidateModel,
    GameModel,
    GamePage,
    MoveModel,
    TurnAdvance,
    VoteModel,
)


class GameRepository(Protocol):
    """Persistence layer orchestration"""

    # --- GAMES ---
    def create_game(self, game: GameModel) -> GameModel:
        """Store new game and return the stored data."""
        ...

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        ...

    def list_games(
        self, status: str, limit: int, cursor: Optional[str] = None
    ) -> GamePage:
        """Games with the given status, newest first. `cursor` is the opaque token returned with the previous page."""
        ...

    def advance_turn(self, advance: TurnAdvance) -> bool:
        """
        Apply a resolved turn in a single atomic write, conditional on the game still being ACTIVE at
        `advance.expected_turn`. Returns False (and changes nothing) when another resolution got there first.
        """
        ...

    def list_moves(self, game_id: UUID) -> list[MoveModel]:
        """Turn history, in turn order."""
        ...

    # --- CANDIDATES ---
    def add_candidate(self, candidate: CandidateModel) -> CandidateModel:
        """Store a candidate. If the position was already proposed for that turn, return the existing candidate instead."""
        ...

    def get_candidate(
        self, game_id: UUID, turn_number: int, candidate_id: UUID
    ) -> CandidateModel | None:
        ...

    def list_candidates(self, game_id: UUID, turn_number: int) -> list[CandidateModel]:
        ...

    def close_voting(self, game_id: UUID, turn_number: int) -> list[CandidateModel]:
        """
        Stop accepting votes for the turn (every VOTING candidate becomes CLOSED) and return all of its candidates.
        A vote either committed before the close and is in the returned counts, or it is refused.
        """
        ...

    # --- VOTES ---
    def record_vote(self, vote: VoteModel) -> CandidateModel:
        """
        Record the vote AND increment the candidate's vote count atomically.
        Raises DuplicateVoteError if the voter already voted this turn, CandidateNotFoundError for an unknown candidate.
        Returns the candidate with its updated count.
        """
        ...

    def get_vote(
        self, game_id: UUID, turn_number: int, voter_id: str
    ) -> VoteModel | None:
        ...
