"""Requests and Response models"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import (
    CandidateStatus,
    GameType,
    PlayedBy,
    Side,
    Status,
    Winner,
)

BoardGrid = list[list[int]]


def _validate_algebraic(value: str) -> str:
    """'a1' - 'h8': column letter followed by row number."""
    if len(value) != 2:
        raise InvalidRequestError(f"Cannot interpret {value!r} as a board position.")
    column, row = value[0].lower(), value[1]
    if not ("a" <= column <= "h" and "1" <= row <= "8"):
        raise InvalidRequestError(f"Cannot interpret {value!r} as a board position.")
    return f"{column}{row}"


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    ai_side: Side
    game_type: GameType = GameType.OTHELLO


class GetGameRequest(BaseModel):
    game_id: UUID


class ListGamesRequest(BaseModel):
    status: Status = Status.ACTIVE
    limit: Optional[int] = None
    cursor: Optional[str] = None


class ProposeCandidateRequest(BaseModel):
    game_id: UUID
    turn_number: int
    proposer_id: str
    position: str
    description: str = ""

    @field_validator("position")
    @classmethod
    def validate_position(cls, value: str) -> str:
        return _validate_algebraic(value)

    @field_validator("proposer_id")
    @classmethod
    def validate_proposer(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("proposer_id must not be empty.")
        return value


class CastVoteRequest(BaseModel):
    game_id: UUID
    turn_number: int
    voter_id: str
    candidate_id: UUID

    @field_validator("voter_id")
    @classmethod
    def validate_voter(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("voter_id must not be empty.")
        return value


class MyVoteRequest(BaseModel):
    game_id: UUID
    voter_id: str


class ResolveTurnRequest(BaseModel):
    game_id: UUID
    turn_number: int


class PlayAITurnRequest(BaseModel):
    game_id: UUID
    turn_number: Optional[int] = None


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game_id: UUID
    game_type: GameType
    status: Status
    ai_side: Side
    turn_number: int
    side_to_move: Side
    phase: str
    board: BoardGrid
    black_count: int
    white_count: int
    winner: Optional[Winner]
    created_at: datetime
    updated_at: datetime


class GameSummary(BaseModel):
    game_id: UUID
    game_type: GameType
    status: Status
    ai_side: Side
    turn_number: int
    winner: Optional[Winner]
    created_at: datetime
    updated_at: datetime


class GameListResponse(BaseModel):
    games: list[GameSummary]
    next_cursor: Optional[str] = None


class LegalMovesResponse(BaseModel):
    game_id: UUID
    turn_number: int
    side: Side
    played_by: PlayedBy
    legal_moves: list[str]


class CandidateResponse(BaseModel):
    candidate_id: UUID
    game_id: UUID
    turn_number: int
    position: str
    proposer_id: str
    description: str
    vote_count: int
    status: CandidateStatus
    resulting_board: BoardGrid
    created_at: datetime


class CandidateListResponse(BaseModel):
    game_id: UUID
    turn_number: int
    candidates: list[CandidateResponse]


class VoteResponse(BaseModel):
    game_id: UUID
    turn_number: int
    voter_id: str
    candidate_id: UUID
    # only filled in right after casting the vote
    candidate_vote_count: Optional[int] = None


class MoveResponse(BaseModel):
    turn_number: int
    side: Side
    played_by: PlayedBy
    position: Optional[str]
    candidate_id: Optional[UUID]
    flipped_count: int


class MoveHistoryResponse(BaseModel):
    game_id: UUID
    moves: list[MoveResponse]


class TurnResponse(BaseModel):
    """`resolved` is False when the requested turn had already been resolved by another request."""

    resolved: bool
    turns_played: list[MoveResponse]
    game: GameResponse
