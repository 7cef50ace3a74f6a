"""
Boundary layer data model(s).

These objects can be used to communicate with the Service and the Repository.
Both the domain layer (higher) and the db layer (lower) will use model(s) defined here to send to/receive from each other.
(Decouples the data model specific to the DB layer or domain layer from the information needed to send across boundaries)

Everything in here is transport-safe: plain strings, ints, UUIDs, datetimes and lists of ints for the board grid.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

# Type aliases to make the models easier to read
BoardGrid = list[list[int]]
AlgebraicPosition = str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class GameModel:
    """Transport-safe representation of a game used between Service, DB, and Game layers."""

    game_id: UUID
    game_type: str
    status: str
    ai_side: str
    turn_number: int
    board: BoardGrid
    winner: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class CandidateModel:
    """A proposed collective move, including the board it would produce."""

    candidate_id: UUID
    game_id: UUID
    turn_number: int
    position: AlgebraicPosition
    proposer_id: str
    resulting_board: BoardGrid
    description: str = ""
    vote_count: int = 0
    status: str = "VOTING"
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class VoteModel:
    game_id: UUID
    turn_number: int
    voter_id: str
    candidate_id: UUID
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class MoveModel:
    """One entry in the turn history. A position of None means the side forfeited the turn."""

    game_id: UUID
    turn_number: int
    side: str
    played_by: str
    position: Optional[AlgebraicPosition]
    candidate_id: Optional[UUID] = None
    flipped_count: int = 0
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class TurnAdvance:
    """
    Everything that changes when a turn gets resolved, written by the repository as ONE conditional write:
    only applied when the stored game is still ACTIVE at `expected_turn`.
    """

    game_id: UUID
    expected_turn: int
    board: BoardGrid
    status: str
    winner: Optional[str]
    move: MoveModel
    adopted_candidate_id: Optional[UUID] = None
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class GamePage:
    items: list[GameModel]
    next_cursor: Optional[str] = None
