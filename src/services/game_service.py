"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Optional
from uuid import UUID

from src.api.models import (
    CandidateListResponse,
    CandidateResponse,
    CastVoteRequest,
    CreateGameRequest,
    GameListResponse,
    GameResponse,
    GameSummary,
    GetGameRequest,
    LegalMovesResponse,
    ListGamesRequest,
    MoveHistoryResponse,
    MoveResponse,
    MyVoteRequest,
    PlayAITurnRequest,
    ProposeCandidateRequest,
    ResolveTurnRequest,
    TurnResponse,
    VoteResponse,
)
from src.core.config import Settings, get_settings
from src.core.models import GameModel, MoveModel, VoteModel
from src.core.shared_types import Side
from src.db.pagination import clamp_limit
from src.db.repository import GameRepository
from src.othello.ai import AIMoveSelector, selector_for
from src.othello.game import Game
from src.othello.position import Position
from src.services.candidate_store import CandidateStore
from src.services.loading import fetch_game
from src.services.turn_coordinator import TurnCoordinator, TurnOutcome
from src.voting.candidate import Candidate

logger = logging.getLogger(__name__)


class CollectiveGameService:
    """Orchestration of layers for collective-vs-AI Othello."""

    def __init__(
        self,
        repository: GameRepository,
        settings: Optional[Settings] = None,
        ai_select_move: Optional[AIMoveSelector] = None,
    ) -> None:
        self.repo = repository
        self.settings = settings or get_settings()
        self.candidates = CandidateStore(
            repository, max_description_length=self.settings.max_description_length
        )
        self.coordinator = TurnCoordinator(
            repository,
            self.candidates,
            ai_select_move=ai_select_move or selector_for(self.settings.ai_strategy),
        )

    # -- API routes logic ---
    def create_game(self, request: CreateGameRequest) -> GameResponse:
        """Start a new game. If the AI has the first move (it plays black), it is played straight away when autoplay is on."""

        # Create a new Game, and store it in the repository
        new_game = Game.new_game(ai_side=request.ai_side, game_type=request.game_type)
        stored = self.repo.create_game(new_game.to_model())
        logger.info(
            "Created game %s (AI plays %s)", stored.game_id, stored.ai_side
        )

        # Let the AI open if it has to
        if self.settings.autoplay_ai:
            self.coordinator.settle(stored.game_id)

        return self._create_game_response(fetch_game(self.repo, stored.game_id))

    def get_game(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check whether the collective's turn is open for proposals / votes.
        """
        return self._create_game_response(fetch_game(self.repo, request.game_id))

    def list_games(self, request: ListGamesRequest) -> GameListResponse:
        """Newest games first, one page at a time."""
        limit = clamp_limit(
            request.limit if request.limit is not None else self.settings.default_page_size,
            self.settings.max_page_size,
        )
        page = self.repo.list_games(str(request.status), limit, request.cursor)
        return GameListResponse(
            games=[self._create_game_summary(model) for model in page.items],
            next_cursor=page.next_cursor,
        )

    def legal_moves(self, request: GetGameRequest) -> LegalMovesResponse:
        """Legal moves for whoever is to move."""
        game = fetch_game(self.repo, request.game_id)
        return LegalMovesResponse(
            game_id=game.game_id,
            turn_number=game.turn_number,
            side=game.side_to_move,
            played_by=game.player_to_move,
            legal_moves=[position.to_algebraic() for position in game.legal_moves()],
        )

    def propose_candidate(self, request: ProposeCandidateRequest) -> CandidateResponse:
        candidate = self.candidates.propose(
            game_id=request.game_id,
            turn_number=request.turn_number,
            proposer_id=request.proposer_id,
            position=Position.from_algebraic(request.position),
            description=request.description,
        )
        return self._create_candidate_response(candidate)

    def list_candidates(self, request: GetGameRequest) -> CandidateListResponse:
        """Candidates of the current turn, leading candidate first."""
        game = fetch_game(self.repo, request.game_id)
        candidates = self.candidates.candidates(game.game_id, game.turn_number)
        return CandidateListResponse(
            game_id=game.game_id,
            turn_number=game.turn_number,
            candidates=[self._create_candidate_response(c) for c in candidates],
        )

    def cast_vote(self, request: CastVoteRequest) -> VoteResponse:
        candidate = self.candidates.vote(
            game_id=request.game_id,
            turn_number=request.turn_number,
            voter_id=request.voter_id,
            candidate_id=request.candidate_id,
        )
        return VoteResponse(
            game_id=request.game_id,
            turn_number=request.turn_number,
            voter_id=request.voter_id,
            candidate_id=candidate.candidate_id,
            candidate_vote_count=candidate.vote_count,
        )

    def my_vote(self, request: MyVoteRequest) -> Optional[VoteResponse]:
        """The voter's vote in the current turn, if any."""
        game = fetch_game(self.repo, request.game_id)
        vote = self.candidates.vote_of(game.game_id, game.turn_number, request.voter_id)
        return self._create_vote_response(vote) if vote is not None else None

    def resolve_turn(self, request: ResolveTurnRequest) -> TurnResponse:
        """
        Close the collective's vote (triggered externally, e.g. when the voting window elapsed).
        ----

        1. apply the leading candidate (or forfeit when there is none)
        2. with autoplay on: let the AI answer, until it is the collective's turn again or the game is over
        """
        outcome = self.coordinator.resolve_turn(request.game_id, request.turn_number)
        outcomes = [outcome]
        if outcome.applied and self.settings.autoplay_ai:
            outcomes.extend(self.coordinator.settle(request.game_id))
        return self._create_turn_response(request.game_id, outcomes)

    def play_ai_turn(self, request: PlayAITurnRequest) -> TurnResponse:
        """For deployments that drive the AI separately (autoplay off)."""
        outcome = self.coordinator.play_ai_turn(request.game_id, request.turn_number)
        return self._create_turn_response(request.game_id, [outcome])

    def move_history(self, request: GetGameRequest) -> MoveHistoryResponse:
        game = fetch_game(self.repo, request.game_id)
        return MoveHistoryResponse(
            game_id=game.game_id,
            moves=[
                self._create_move_response(move)
                for move in self.repo.list_moves(game.game_id)
            ],
        )

    # -- Internal helpers --
    def _create_game_response(self, game: Game) -> GameResponse:
        counts = game.disc_counts
        return GameResponse(
            game_id=game.game_id,
            game_type=game.game_type,
            status=game.status,
            ai_side=game.ai_side,
            turn_number=game.turn_number,
            side_to_move=game.side_to_move,
            phase=game.phase.name,
            board=game.board.to_grid(),
            black_count=counts[Side.BLACK],
            white_count=counts[Side.WHITE],
            winner=game.winner,
            created_at=game.created_at,
            updated_at=game.updated_at,
        )

    def _create_game_summary(self, model: GameModel) -> GameSummary:
        return GameSummary(
            game_id=model.game_id,
            game_type=model.game_type,
            status=model.status,
            ai_side=model.ai_side,
            turn_number=model.turn_number,
            winner=model.winner,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _create_candidate_response(self, candidate: Candidate) -> CandidateResponse:
        return CandidateResponse(
            candidate_id=candidate.candidate_id,
            game_id=candidate.game_id,
            turn_number=candidate.turn_number,
            position=candidate.position.to_algebraic(),
            proposer_id=candidate.proposer_id,
            description=candidate.description,
            vote_count=candidate.vote_count,
            status=candidate.status,
            resulting_board=candidate.resulting_board.to_grid(),
            created_at=candidate.created_at,
        )

    def _create_vote_response(self, vote: VoteModel) -> VoteResponse:
        return VoteResponse(
            game_id=vote.game_id,
            turn_number=vote.turn_number,
            voter_id=vote.voter_id,
            candidate_id=vote.candidate_id,
        )

    def _create_move_response(self, move: MoveModel) -> MoveResponse:
        return MoveResponse(
            turn_number=move.turn_number,
            side=move.side,
            played_by=move.played_by,
            position=move.position,
            candidate_id=move.candidate_id,
            flipped_count=move.flipped_count,
        )

    def _create_turn_response(
        self, game_id: UUID, outcomes: list[TurnOutcome]
    ) -> TurnResponse:
        played = [outcome for outcome in outcomes if outcome.applied]
        return TurnResponse(
            resolved=outcomes[0].applied,
            turns_played=[
                MoveResponse(
                    turn_number=outcome.turn_number,
                    side=outcome.side,
                    played_by=outcome.played_by,
                    position=outcome.position.to_algebraic() if outcome.position else None,
                    candidate_id=outcome.candidate.candidate_id if outcome.candidate else None,
                    flipped_count=outcome.flipped_count,
                )
                for outcome in played
            ],
            game=self._create_game_response(fetch_game(self.repo, game_id)),
        )
