"""Database tables / schema"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.models import utc_now


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    __tablename__ = "games"
    __table_args__ = (Index("ix_games_status_created", "status", "created_at", "id"),)

    id: Mapped[UUID] = mapped_column(primary_key=True)
    game_type: Mapped[str]
    status: Mapped[str]
    ai_side: Mapped[str]
    turn_number: Mapped[int] = mapped_column(default=0)
    # 8x8 list of cell codes (0 empty, 1 black, 2 white)
    board: Mapped[list[list[int]]] = mapped_column(JSON)
    winner: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


class DBCandidate(Base):
    __tablename__ = "candidates"
    # one candidate per cell per turn: proposing the same cell again joins the existing candidate
    __table_args__ = (UniqueConstraint("game_id", "turn_number", "position"),)

    id: Mapped[UUID] = mapped_column(primary_key=True)
    game_id: Mapped[UUID] = mapped_column(ForeignKey("games.id"), index=True)
    turn_number: Mapped[int]
    position: Mapped[str]
    proposer_id: Mapped[str]
    description: Mapped[str] = mapped_column(default="")
    vote_count: Mapped[int] = mapped_column(default=0)
    resulting_board: Mapped[list[list[int]]] = mapped_column(JSON)
    status: Mapped[str]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


class DBVote(Base):
    """Primary key doubles as the 'one vote per voter per turn' guard."""

    __tablename__ = "votes"

    game_id: Mapped[UUID] = mapped_column(ForeignKey("games.id"), primary_key=True)
    turn_number: Mapped[int] = mapped_column(primary_key=True)
    voter_id: Mapped[str] = mapped_column(primary_key=True)
    candidate_id: Mapped[UUID] = mapped_column(ForeignKey("candidates.id"))
    created_at: Mapped[datetime] = mapped_column(default=utc_now)


class DBMove(Base):
    """Turn history. Primary key: a turn can only be played once."""

    __tablename__ = "moves"

    game_id: Mapped[UUID] = mapped_column(ForeignKey("games.id"), primary_key=True)
    turn_number: Mapped[int] = mapped_column(primary_key=True)
    side: Mapped[str]
    played_by: Mapped[str]
    position: Mapped[Optional[str]]
    candidate_id: Mapped[Optional[UUID]]
    flipped_count: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
