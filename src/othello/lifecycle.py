"""End of game detection and winner determination. Pure functions of the board."""

from src.core.shared_types import Side, Winner
from src.othello.board import Board
from src.othello.moves import has_any_legal_move


def disc_counts(board: Board) -> dict[Side, int]:
    return {side: board.count_side(side) for side in Side}


def is_game_over(board: Board) -> bool:
    """Full board, or neither side can move. A single blocked side just forfeits its turn."""
    if board.is_full():
        return True
    return not has_any_legal_move(board, Side.BLACK) and not has_any_legal_move(
        board, Side.WHITE
    )


def determine_winner(board: Board, ai_side: Side) -> Winner:
    counts = disc_counts(board)
    ai_count = counts[ai_side]
    collective_count = counts[ai_side.opponent]
    if ai_count > collective_count:
        return Winner.AI
    if ai_count < collective_count:
        return Winner.COLLECTIVE
    return Winner.DRAW
