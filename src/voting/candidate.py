"""A proposed collective move, as the domain layer sees it."""

from dataclasses import dataclass
from datetime import datetime
from typing import Self
from uuid import UUID

from src.core.models import CandidateModel
from src.core.shared_types import CandidateStatus
from src.othello.board import Board
from src.othello.position import Position


@dataclass(frozen=True)
class Candidate:
    candidate_id: UUID
    game_id: UUID
    turn_number: int
    position: Position
    proposer_id: str
    description: str
    vote_count: int
    resulting_board: Board
    status: CandidateStatus
    created_at: datetime

    @classmethod
    def from_model(cls, model: CandidateModel) -> Self:
        return cls(
            candidate_id=model.candidate_id,
            game_id=model.game_id,
            turn_number=model.turn_number,
            position=Position.from_algebraic(model.position),
            proposer_id=model.proposer_id,
            description=model.description,
            vote_count=model.vote_count,
            resulting_board=Board.from_grid(model.resulting_board),
            status=CandidateStatus(model.status),
            created_at=model.created_at,
        )

    def to_model(self) -> CandidateModel:
        return CandidateModel(
            candidate_id=self.candidate_id,
            game_id=self.game_id,
            turn_number=self.turn_number,
            position=self.position.to_algebraic(),
            proposer_id=self.proposer_id,
            resulting_board=self.resulting_board.to_grid(),
            description=self.description,
            vote_count=self.vote_count,
            status=str(self.status),
            created_at=self.created_at,
        )
