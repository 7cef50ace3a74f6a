"""The Othello board: an immutable 8x8 grid of cell states."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from typing import Self

from src.core.exceptions import InvalidBoardError
from src.core.shared_types import Side
from src.othello.position import BOARD_SIZE, Position, all_positions


class CellState(IntEnum):
    """Integer values are the codes used when the board gets persisted."""

    EMPTY = 0
    BLACK = 1
    WHITE = 2

    @classmethod
    def of(cls, side: Side) -> CellState:
        return cls.BLACK if side == Side.BLACK else cls.WHITE


NOTATION_TO_CELL: dict[str, CellState] = {
    ".": CellState.EMPTY,
    "B": CellState.BLACK,
    "W": CellState.WHITE,
}

CELL_TO_NOTATION: dict[CellState, str] = {
    value: key for key, value in NOTATION_TO_CELL.items()
}

Grid = tuple[tuple[CellState, ...], ...]


@dataclass(frozen=True)
class Board:
    cells: Grid

    def __post_init__(self) -> None:
        if len(self.cells) != BOARD_SIZE or any(
            len(row) != BOARD_SIZE for row in self.cells
        ):
            raise InvalidBoardError(f"Board must be {BOARD_SIZE}x{BOARD_SIZE}.")

    @classmethod
    def empty(cls) -> Self:
        return cls(tuple((CellState.EMPTY,) * BOARD_SIZE for _ in range(BOARD_SIZE)))

    @classmethod
    def initial(cls) -> Self:
        """Standard starting position: the four centre cells, white on the main diagonal."""
        return cls.empty().with_cells(
            {
                Position(3, 3): CellState.WHITE,
                Position(3, 4): CellState.BLACK,
                Position(4, 3): CellState.BLACK,
                Position(4, 4): CellState.WHITE,
            }
        )

    @classmethod
    def from_grid(cls, grid: Iterable[Iterable[int]]) -> Self:
        """Persistence boundary: list of rows of integer cell codes."""
        try:
            cells = tuple(tuple(CellState(value) for value in row) for row in grid)
        except (TypeError, ValueError) as err:
            raise InvalidBoardError(f"Cannot interpret board grid: {err}") from err
        return cls(cells)

    def to_grid(self) -> list[list[int]]:
        return [[int(cell) for cell in row] for row in self.cells]

    @classmethod
    def from_notation(cls, notation: str) -> Self:
        """Construct a board from its text notation.

        Rows are separated by slashes, top row (row 0) first. Each row has exactly 8 characters:
        '.' for an empty cell, 'B' for a black disc, 'W' for a white disc.

        ex. the starting position:
        ......../......../......../...WB.../...BW.../......../......../........
        """
        rows = notation.strip().split("/")
        try:
            cells = tuple(tuple(NOTATION_TO_CELL[char] for char in row) for row in rows)
        except KeyError as err:
            raise InvalidBoardError(
                f"Unknown cell character {err.args[0]!r} in board notation."
            ) from err
        return cls(cells)

    def to_notation(self) -> str:
        return "/".join(
            "".join(CELL_TO_NOTATION[cell] for cell in row) for row in self.cells
        )

    def __str__(self) -> str:
        return self.to_notation()

    def cell(self, position: Position) -> CellState:
        return self.cells[position.row][position.col]

    def with_cells(self, changes: dict[Position, CellState]) -> Board:
        """Return a new board with the given cells replaced. The original is left untouched."""
        rows = [list(row) for row in self.cells]
        for position, state in changes.items():
            rows[position.row][position.col] = state
        return Board(tuple(tuple(row) for row in rows))

    def count(self, state: CellState) -> int:
        return sum(row.count(state) for row in self.cells)

    def count_side(self, side: Side) -> int:
        return self.count(CellState.of(side))

    def empty_positions(self) -> list[Position]:
        return [
            position for position in all_positions() if self.cell(position) == CellState.EMPTY
        ]

    def is_full(self) -> bool:
        return self.count(CellState.EMPTY) == 0
