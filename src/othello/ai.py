"""
Interface to the AI opponent.

Move selection strategy is not part of this project: any callable matching `AIMoveSelector` can be plugged into the
TurnCoordinator. It receives the legal moves for its side and must return one of them.
"""

import random
from typing import Optional, Protocol

from src.core.exceptions import ConfigurationError
from src.core.shared_types import Side
from src.othello.board import Board
from src.othello.moves import flips_for
from src.othello.position import Position


class AIMoveSelector(Protocol):
    def __call__(
        self, board: Board, side: Side, legal_moves: list[Position]
    ) -> Position: ...


def first_legal_move(board: Board, side: Side, legal_moves: list[Position]) -> Position:
    """Deterministic default: first legal move in row-major order."""
    return legal_moves[0]


def greedy_move(board: Board, side: Side, legal_moves: list[Position]) -> Position:
    """Pick the move flipping the most discs (first one in row-major order on ties)."""
    return max(legal_moves, key=lambda position: len(flips_for(board, side, position)))


class RandomMoveSelector:
    """Uniformly random legal move. Seedable so games can be replayed."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def __call__(
        self, board: Board, side: Side, legal_moves: list[Position]
    ) -> Position:
        return self._rng.choice(legal_moves)


AI_SELECTORS: dict[str, AIMoveSelector] = {
    "first": first_legal_move,
    "greedy": greedy_move,
    "random": RandomMoveSelector(),
}


def selector_for(strategy: str) -> AIMoveSelector:
    try:
        return AI_SELECTORS[strategy]
    except KeyError:
        raise ConfigurationError(
            f"Unknown AI strategy {strategy!r}, expected one of {', '.join(AI_SELECTORS)}."
        ) from None
