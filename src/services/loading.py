"""Helpers shared by the services: turning repository records into domain objects."""

from uuid import UUID

from src.core.exceptions import GameNotFoundError
from src.db.repository import GameRepository
from src.othello.game import Game


def fetch_game(repository: GameRepository, game_id: UUID) -> Game:
    """Attempt to find the game in the repository and raise error if it fails."""
    model = repository.get_game(game_id)
    if model is None:
        raise GameNotFoundError(f"Game with {game_id=} not found.")
    return Game.from_model(model)
