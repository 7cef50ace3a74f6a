"""
Move legality and disc flipping

Key idea: a move is a raycast in each of the 8 directions from the target cell. A ray produces flips when it runs over
one or more opponent discs and then hits a disc of the moving side. Running off the board or into an empty cell
produces nothing.

All functions are pure: boards are never mutated, a new Board is returned instead.
"""

from dataclasses import dataclass

from src.core.exceptions import IllegalMoveError
from src.core.shared_types import Side
from src.othello.board import Board, CellState
from src.othello.position import DIRECTIONS, Position, Vector, all_positions


@dataclass(frozen=True)
class MoveResult:
    """Outcome of an accepted move"""

    board: Board
    position: Position
    side: Side
    flipped: tuple[Position, ...]

    @classmethod
    def from_boards(
        cls, before: Board, after: Board, side: Side, position: Position
    ) -> "MoveResult":
        """Rebuild the result of a move that was computed earlier, from the boards before and after it."""
        flipped = tuple(
            square
            for square in all_positions()
            if square != position and before.cell(square) != after.cell(square)
        )
        return cls(board=after, position=position, side=side, flipped=flipped)

    @property
    def flipped_count(self) -> int:
        return len(self.flipped)


def flips_in_direction(
    board: Board, side: Side, position: Position, direction: Vector
) -> list[Position]:
    """Raycast from `position` along `direction`. Returns the opponent run that gets flipped (possibly empty)."""
    own = CellState.of(side)
    opponent = CellState.of(side.opponent)

    run: list[Position] = []
    current = position.step(direction)
    while current.is_within_bounds() and board.cell(current) == opponent:
        run.append(current)
        current = current.step(direction)

    # the run only counts when it is closed off by one of our own discs
    if run and current.is_within_bounds() and board.cell(current) == own:
        return run
    return []


def flips_for(board: Board, side: Side, position: Position) -> tuple[Position, ...]:
    """All discs flipped by placing a disc of `side` at `position` (empty if the move is not legal)."""
    if not position.is_within_bounds() or board.cell(position) != CellState.EMPTY:
        return ()
    flipped: list[Position] = []
    for direction in DIRECTIONS:
        flipped.extend(flips_in_direction(board, side, position, direction))
    return tuple(flipped)


def validate_move(board: Board, side: Side, position: Position) -> tuple[Position, ...]:
    """Return the flip set, or raise IllegalMoveError stating why the move is not allowed."""
    if not position.is_within_bounds():
        raise IllegalMoveError(f"Position {position} is out of bounds.")
    if board.cell(position) != CellState.EMPTY:
        raise IllegalMoveError(
            f"Cell {position.to_algebraic()} is already occupied."
        )
    flipped = flips_for(board, side, position)
    if not flipped:
        raise IllegalMoveError(
            f"Move {position.to_algebraic()} by {side} would not flip any discs."
        )
    return flipped


def legal_moves(board: Board, side: Side) -> list[Position]:
    """Every empty cell that flips at least one disc. Returned in row-major order."""
    return [
        position
        for position in all_positions()
        if board.cell(position) == CellState.EMPTY and flips_for(board, side, position)
    ]


def has_any_legal_move(board: Board, side: Side) -> bool:
    return any(
        flips_for(board, side, position) for position in board.empty_positions()
    )


def apply_move(board: Board, side: Side, position: Position) -> MoveResult:
    """Place the disc and flip every closed-off opponent run. Raises IllegalMoveError for an illegal move."""
    flipped = validate_move(board, side, position)
    own = CellState.of(side)
    changes = {square: own for square in flipped}
    changes[position] = own
    return MoveResult(
        board=board.with_cells(changes),
        position=position,
        side=side,
        flipped=flipped,
    )
