"""Implementation of (Game)Repository using SQLAlchemy"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Optional, TypeVar
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from src.core.exceptions import (
    CandidateNotFoundError,
    DuplicateVoteError,
    NotYourTurnError,
    TransientPersistenceError,
)
from src.core.models import (
    CandidateModel,
    GameModel,
    GamePage,
    MoveModel,
    TurnAdvance,
    VoteModel,
    utc_now,
)
from src.core.shared_types import CandidateStatus, Status
from src.db.pagination import decode_cursor, encode_cursor
from src.db.schema import DBCandidate, DBGame, DBMove, DBVote

logger = logging.getLogger(__name__)

T = TypeVar("T")


def as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back without tzinfo. Everything we store is UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    # --- GAMES ---
    def create_game(self, game: GameModel) -> GameModel:
        """Store new game and return the stored data."""
        game_db = DBGame(
            id=game.game_id,
            game_type=game.game_type,
            status=game.status,
            ai_side=game.ai_side,
            turn_number=game.turn_number,
            board=game.board,
            winner=game.winner,
            created_at=game.created_at,
            updated_at=game.updated_at,
        )
        self._write(lambda: self.db.add(game_db))
        self.db.refresh(game_db)
        return self._to_game_model(game_db)

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self.db.get(DBGame, game_id, populate_existing=True)
        if game_db:
            return self._to_game_model(game_db)
        return None

    def list_games(
        self, status: str, limit: int, cursor: Optional[str] = None
    ) -> GamePage:
        """Newest first. Fetch one extra row to find out whether there is a next page."""
        query = select(DBGame).where(DBGame.status == status)
        if cursor is not None:
            created_at, game_id = decode_cursor(cursor)
            query = query.where(
                or_(
                    DBGame.created_at < created_at,
                    and_(DBGame.created_at == created_at, DBGame.id < game_id),
                )
            )
        query = query.order_by(DBGame.created_at.desc(), DBGame.id.desc()).limit(
            limit + 1
        )
        rows = list(self.db.scalars(query))

        items = [self._to_game_model(row) for row in rows[:limit]]
        next_cursor = None
        if len(rows) > limit:
            last = items[-1]
            next_cursor = encode_cursor(last.created_at, last.game_id)
        return GamePage(items=items, next_cursor=next_cursor)

    def advance_turn(self, advance: TurnAdvance) -> bool:
        """
        Conditional update of the game (only if still ACTIVE at the expected turn), the move record, and the candidates'
        statuses, in ONE transaction. Returns False when the condition does not hold: somebody else resolved the turn.
        """

        def _apply() -> bool:
            result = self.db.execute(
                update(DBGame)
                .where(
                    DBGame.id == advance.game_id,
                    DBGame.turn_number == advance.expected_turn,
                    DBGame.status == Status.ACTIVE,
                )
                .values(
                    turn_number=advance.expected_turn + 1,
                    board=advance.board,
                    status=advance.status,
                    winner=advance.winner,
                    updated_at=advance.updated_at,
                )
            )
            if result.rowcount != 1:
                return False

            move = advance.move
            self.db.add(
                DBMove(
                    game_id=move.game_id,
                    turn_number=move.turn_number,
                    side=move.side,
                    played_by=move.played_by,
                    position=move.position,
                    candidate_id=move.candidate_id,
                    flipped_count=move.flipped_count,
                    created_at=move.created_at,
                )
            )
            self.db.execute(
                update(DBCandidate)
                .where(
                    DBCandidate.game_id == advance.game_id,
                    DBCandidate.turn_number == advance.expected_turn,
                )
                .values(status=CandidateStatus.CLOSED, updated_at=advance.updated_at)
            )
            if advance.adopted_candidate_id is not None:
                self.db.execute(
                    update(DBCandidate)
                    .where(DBCandidate.id == advance.adopted_candidate_id)
                    .values(status=CandidateStatus.ADOPTED)
                )
            return True

        try:
            applied = self._write(_apply)
        except IntegrityError:
            # the move record for this turn already exists: same outcome as a failed condition
            applied = False
        if not applied:
            logger.info(
                "Conditional advance of game %s from turn %d did not apply",
                advance.game_id,
                advance.expected_turn,
            )
        return applied

    def list_moves(self, game_id: UUID) -> list[MoveModel]:
        query = (
            select(DBMove)
            .where(DBMove.game_id == game_id)
            .order_by(DBMove.turn_number)
        )
        return [self._to_move_model(row) for row in self.db.scalars(query)]

    # --- CANDIDATES ---
    def add_candidate(self, candidate: CandidateModel) -> CandidateModel:
        """Store a candidate. If the position was already proposed for that turn, return the existing candidate instead."""
        candidate_db = DBCandidate(
            id=candidate.candidate_id,
            game_id=candidate.game_id,
            turn_number=candidate.turn_number,
            position=candidate.position,
            proposer_id=candidate.proposer_id,
            description=candidate.description,
            vote_count=candidate.vote_count,
            resulting_board=candidate.resulting_board,
            status=candidate.status,
            created_at=candidate.created_at,
            updated_at=candidate.created_at,
        )
        try:
            self._write(lambda: self.db.add(candidate_db))
        except IntegrityError:
            existing = self.db.scalar(
                select(DBCandidate).where(
                    DBCandidate.game_id == candidate.game_id,
                    DBCandidate.turn_number == candidate.turn_number,
                    DBCandidate.position == candidate.position,
                )
            )
            if existing is None:
                raise
            return self._to_candidate_model(existing)
        self.db.refresh(candidate_db)
        return self._to_candidate_model(candidate_db)

    def get_candidate(
        self, game_id: UUID, turn_number: int, candidate_id: UUID
    ) -> CandidateModel | None:
        candidate_db = self._fetch_candidate(game_id, turn_number, candidate_id)
        if candidate_db:
            return self._to_candidate_model(candidate_db)
        return None

    def list_candidates(self, game_id: UUID, turn_number: int) -> list[CandidateModel]:
        query = (
            select(DBCandidate)
            .where(
                DBCandidate.game_id == game_id,
                DBCandidate.turn_number == turn_number,
            )
            .order_by(DBCandidate.created_at)
            .execution_options(populate_existing=True)
        )
        return [self._to_candidate_model(row) for row in self.db.scalars(query)]

    def close_voting(self, game_id: UUID, turn_number: int) -> list[CandidateModel]:
        """
        Flip the turn's candidates from VOTING to CLOSED. `record_vote` increments only while a candidate is VOTING,
        so the counts read afterwards are final.
        """

        def _apply() -> None:
            self.db.execute(
                update(DBCandidate)
                .where(
                    DBCandidate.game_id == game_id,
                    DBCandidate.turn_number == turn_number,
                    DBCandidate.status == CandidateStatus.VOTING,
                )
                .values(status=CandidateStatus.CLOSED, updated_at=utc_now())
            )

        self._write(_apply)
        return self.list_candidates(game_id, turn_number)

    # --- VOTES ---
    def record_vote(self, vote: VoteModel) -> CandidateModel:
        """
        Insert the vote and increment the count in the same transaction:
        * the vote's primary key (game, turn, voter) rejects a second vote
        * the increment is a single `vote_count = vote_count + 1` statement (no read-modify-write),
          conditional on the candidate still being open for voting
        Either both happen or neither does.
        """
        if self._fetch_candidate(vote.game_id, vote.turn_number, vote.candidate_id) is None:
            raise CandidateNotFoundError(
                f"No candidate {vote.candidate_id} in game {vote.game_id} turn {vote.turn_number}."
            )

        def _apply() -> None:
            self.db.add(
                DBVote(
                    game_id=vote.game_id,
                    turn_number=vote.turn_number,
                    voter_id=vote.voter_id,
                    candidate_id=vote.candidate_id,
                    created_at=vote.created_at,
                )
            )
            self.db.flush()
            result = self.db.execute(
                update(DBCandidate)
                .where(
                    DBCandidate.id == vote.candidate_id,
                    DBCandidate.status == CandidateStatus.VOTING,
                )
                .values(
                    vote_count=DBCandidate.vote_count + 1,
                    updated_at=vote.created_at,
                )
            )
            if result.rowcount != 1:
                # the turn got resolved in the meantime: do not keep the vote either
                raise NotYourTurnError(
                    f"Voting for turn {vote.turn_number} of game {vote.game_id} is closed."
                )

        try:
            self._write(_apply)
        except IntegrityError as err:
            raise DuplicateVoteError(
                f"{vote.voter_id} already voted in turn {vote.turn_number} of game {vote.game_id}."
            ) from err

        candidate_db = self._fetch_candidate(
            vote.game_id, vote.turn_number, vote.candidate_id
        )
        if candidate_db is None:
            raise CandidateNotFoundError(f"Candidate {vote.candidate_id} disappeared.")
        return self._to_candidate_model(candidate_db)

    def get_vote(
        self, game_id: UUID, turn_number: int, voter_id: str
    ) -> VoteModel | None:
        vote_db = self.db.get(DBVote, (game_id, turn_number, voter_id))
        if vote_db:
            return VoteModel(
                game_id=vote_db.game_id,
                turn_number=vote_db.turn_number,
                voter_id=vote_db.voter_id,
                candidate_id=vote_db.candidate_id,
                created_at=as_utc(vote_db.created_at),
            )
        return None

    # -- Internal helpers --
    def _write(self, operation: Callable[[], T]) -> T:
        """
        Run `operation` and commit. On any failure the transaction is rolled back, so nothing is partially applied.
        Driver level failures (lost connection, locked database, ...) are reported as retryable.
        """
        try:
            outcome = operation()
            if outcome is False:
                self.db.rollback()
                return outcome
            self.db.commit()
            return outcome
        except IntegrityError:
            self.db.rollback()
            raise
        except DBAPIError as err:
            self.db.rollback()
            logger.warning("Write failed and was rolled back: %s", err)
            raise TransientPersistenceError(
                "Persistence layer failed, nothing was applied. Please retry."
            ) from err
        except Exception:
            self.db.rollback()
            raise

    def _fetch_candidate(
        self, game_id: UUID, turn_number: int, candidate_id: UUID
    ) -> DBCandidate | None:
        query = (
            select(DBCandidate)
            .where(
                DBCandidate.id == candidate_id,
                DBCandidate.game_id == game_id,
                DBCandidate.turn_number == turn_number,
            )
            .execution_options(populate_existing=True)
        )
        return self.db.scalar(query)

    def _to_game_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            game_id=game_db.id,
            game_type=game_db.game_type,
            status=game_db.status,
            ai_side=game_db.ai_side,
            turn_number=game_db.turn_number,
            board=[list(row) for row in game_db.board],
            winner=game_db.winner,
            created_at=as_utc(game_db.created_at),
            updated_at=as_utc(game_db.updated_at),
        )

    def _to_candidate_model(self, candidate_db: DBCandidate) -> CandidateModel:
        return CandidateModel(
            candidate_id=candidate_db.id,
            game_id=candidate_db.game_id,
            turn_number=candidate_db.turn_number,
            position=candidate_db.position,
            proposer_id=candidate_db.proposer_id,
            resulting_board=[list(row) for row in candidate_db.resulting_board],
            description=candidate_db.description,
            vote_count=candidate_db.vote_count,
            status=candidate_db.status,
            created_at=as_utc(candidate_db.created_at),
        )

    def _to_move_model(self, move_db: DBMove) -> MoveModel:
        return MoveModel(
            game_id=move_db.game_id,
            turn_number=move_db.turn_number,
            side=move_db.side,
            played_by=move_db.played_by,
            position=move_db.position,
            candidate_id=move_db.candidate_id,
            flipped_count=move_db.flipped_count,
            created_at=as_utc(move_db.created_at),
        )

