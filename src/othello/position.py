"""
A cell on the board

(placed in its own module as the board, the move rules, and the persistence layer all need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.exceptions import IllegalMoveError

# Othello is always played on 8x8
BOARD_SIZE = 8

Vector = tuple[int, int]

# (row delta, col delta). Row 0 is the top of the board.
DIRECTIONS: tuple[Vector, ...] = (
    (-1, 0),  # N
    (-1, 1),  # NE
    (0, 1),  # E
    (1, 1),  # SE
    (1, 0),  # S
    (1, -1),  # SW
    (0, -1),  # W
    (-1, -1),  # NW
)


@dataclass(frozen=True, order=True)
class Position:
    row: int
    col: int

    @classmethod
    def from_algebraic(cls, text: str) -> Position:
        """Algebraic notation: 'a1' - 'h8' get converted to (0,0) - (7,7). The letter picks the column, the number the row."""
        if len(text) != 2 or not ("a" <= text[0].lower() <= "h" and "1" <= text[1] <= "8"):
            raise IllegalMoveError(f"Cannot interpret {text!r} as a board position.")
        return cls(row=int(text[1]) - 1, col=ord(text[0].lower()) - ord("a"))

    def to_algebraic(self) -> str:
        return f"{chr(self.col + ord('a'))}{self.row + 1}"

    def is_within_bounds(self) -> bool:
        return 0 <= self.row < BOARD_SIZE and 0 <= self.col < BOARD_SIZE

    def step(self, direction: Vector) -> Position:
        return Position(self.row + direction[0], self.col + direction[1])


def all_positions() -> list[Position]:
    """Row-major scan order. Everything that iterates the board uses this so results come out in a stable order."""
    return [Position(row, col) for row in range(BOARD_SIZE) for col in range(BOARD_SIZE)]
