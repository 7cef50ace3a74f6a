"""
The Game class is the entrypoint into the domain layer for the service layer.
It knows whose turn it is, which moves that side may play, and what the game looks like after a turn is played -->
the service layer takes the resulting state and hands it to the repository.

Turn bookkeeping
----
* Black moves on even turn numbers, White on odd ones. A forfeit (pass) also consumes a turn number,
  so the parity of the turn number always identifies the side to move.
* The side to move is the AI when it equals `ai_side`, otherwise it is the collective.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, auto
from typing import Optional, Self
from uuid import UUID, uuid4

from src.core.exceptions import (
    GameAlreadyFinishedError,
    GameStateError,
    NotYourTurnError,
)
from src.core.models import GameModel, MoveModel, TurnAdvance, utc_now
from src.core.shared_types import GameType, PlayedBy, Side, Status, Winner
from src.othello.board import Board
from src.othello.lifecycle import determine_winner, disc_counts, is_game_over
from src.othello.moves import MoveResult, legal_moves
from src.othello.position import Position


class TurnPhase(Enum):
    """States of the turn cycle, derived from the stored game (never stored themselves)."""

    AWAITING_AI_MOVE = auto()
    AWAITING_VOTES = auto()
    FINISHED = auto()


@dataclass(frozen=True)
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    game_id: UUID
    ai_side: Side
    turn_number: int
    board: Board
    status: Status
    winner: Optional[Winner]
    game_type: GameType
    created_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:
        # winner is set exactly when the game is over
        if (self.winner is None) != (self.status == Status.ACTIVE):
            raise GameStateError(
                f"Inconsistent game state: status={self.status}, winner={self.winner}"
            )

    @classmethod
    def new_game(
        cls,
        ai_side: Side,
        game_type: GameType = GameType.OTHELLO,
        game_id: Optional[UUID] = None,
    ) -> Self:
        """Fresh game in the standard starting position, nobody has moved yet."""
        now = utc_now()
        return cls(
            game_id=game_id or uuid4(),
            ai_side=ai_side,
            turn_number=0,
            board=Board.initial(),
            status=Status.ACTIVE,
            winner=None,
            game_type=game_type,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""
        try:
            status = Status(model.status)
            ai_side = Side(model.ai_side)
            winner = Winner(model.winner) if model.winner is not None else None
            game_type = GameType(model.game_type)
        except ValueError as err:
            raise GameStateError(f"Invalid stored game data: {err}") from err

        return cls(
            game_id=model.game_id,
            ai_side=ai_side,
            turn_number=model.turn_number,
            board=Board.from_grid(model.board),
            status=status,
            winner=winner,
            game_type=game_type,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            game_id=self.game_id,
            game_type=str(self.game_type),
            status=str(self.status),
            ai_side=str(self.ai_side),
            turn_number=self.turn_number,
            board=self.board.to_grid(),
            winner=str(self.winner) if self.winner is not None else None,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    # -- TURN STATE --
    @property
    def side_to_move(self) -> Side:
        return Side.BLACK if self.turn_number % 2 == 0 else Side.WHITE

    @property
    def collective_side(self) -> Side:
        return self.ai_side.opponent

    @property
    def is_ai_turn(self) -> bool:
        return self.side_to_move == self.ai_side

    @property
    def player_to_move(self) -> PlayedBy:
        return PlayedBy.AI if self.is_ai_turn else PlayedBy.COLLECTIVE

    @property
    def phase(self) -> TurnPhase:
        if self.status == Status.FINISHED:
            return TurnPhase.FINISHED
        return TurnPhase.AWAITING_AI_MOVE if self.is_ai_turn else TurnPhase.AWAITING_VOTES

    @property
    def disc_counts(self) -> dict[Side, int]:
        return disc_counts(self.board)

    def legal_moves(self) -> list[Position]:
        """Legal moves for the side to move (empty list: that side has to forfeit)."""
        if self.status == Status.FINISHED:
            return []
        return legal_moves(self.board, self.side_to_move)

    # -- GUARDS --
    def assert_active(self) -> None:
        if self.status == Status.FINISHED:
            raise GameAlreadyFinishedError(
                f"Game {self.game_id} is finished (winner: {self.winner})."
            )

    def assert_turn(self, turn_number: int, player: PlayedBy) -> None:
        """The request must target the current turn, and it must be the requesting party's turn."""
        self.assert_active()
        if turn_number != self.turn_number:
            raise NotYourTurnError(
                f"Turn {turn_number} is not the current turn of game {self.game_id} (current: {self.turn_number})."
            )
        if player != self.player_to_move:
            raise NotYourTurnError(
                f"It is not the {player.lower()}'s turn. Waiting for the {self.player_to_move.lower()} to move."
            )

    # -- ADVANCING --
    def advance(
        self, result: Optional[MoveResult], candidate_id: Optional[UUID] = None
    ) -> tuple[Self, TurnAdvance]:
        """
        Play the current turn.
        ----

        `result` is the accepted move of the side to move, or None when that side forfeits.
        Returns the game after the turn + the write the repository has to perform (conditional on the current turn number).
        """
        self.assert_active()
        if result is not None and result.side != self.side_to_move:
            raise NotYourTurnError(
                f"Move played by {result.side}, but {self.side_to_move} is to move."
            )

        new_board = result.board if result is not None else self.board
        finished = is_game_over(new_board)
        now = utc_now()
        after = replace(
            self,
            turn_number=self.turn_number + 1,
            board=new_board,
            status=Status.FINISHED if finished else Status.ACTIVE,
            winner=determine_winner(new_board, self.ai_side) if finished else None,
            updated_at=now,
        )

        move = MoveModel(
            game_id=self.game_id,
            turn_number=self.turn_number,
            side=str(self.side_to_move),
            played_by=str(self.player_to_move),
            position=result.position.to_algebraic() if result is not None else None,
            candidate_id=candidate_id,
            flipped_count=result.flipped_count if result is not None else 0,
            created_at=now,
        )
        write = TurnAdvance(
            game_id=self.game_id,
            expected_turn=self.turn_number,
            board=after.board.to_grid(),
            status=str(after.status),
            winner=str(after.winner) if after.winner is not None else None,
            move=move,
            adopted_candidate_id=candidate_id,
            updated_at=now,
        )
        return after, write
