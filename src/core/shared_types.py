"""
Type definitions used across layers
"""

from enum import StrEnum


class Side(StrEnum):
    BLACK = "BLACK"
    WHITE = "WHITE"

    @property
    def opponent(self) -> "Side":
        return Side.WHITE if self == Side.BLACK else Side.BLACK


class Status(StrEnum):
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


class Winner(StrEnum):
    AI = "AI"
    COLLECTIVE = "COLLECTIVE"
    DRAW = "DRAW"


class PlayedBy(StrEnum):
    """Who played a turn. Same names as the non-draw winners, but a separate type as a turn can never be a 'draw'."""

    AI = "AI"
    COLLECTIVE = "COLLECTIVE"


class CandidateStatus(StrEnum):
    VOTING = "VOTING"
    CLOSED = "CLOSED"
    ADOPTED = "ADOPTED"


class GameType(StrEnum):
    OTHELLO = "OTHELLO"
