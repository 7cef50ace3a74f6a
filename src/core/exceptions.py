"""
Custom exceptions shared by all layers.

Every error the domain or the service raises is a GameError, so callers (the API layer) can catch a single base class
and map the specific subclasses onto their own error format.
"""


class GameError(Exception):
    """Top-level error for anything that went wrong while playing a game."""


# --- GAME STATE ---
class GameStateError(GameError):
    """The game is not in a state that allows the requested operation."""


class GameAlreadyFinishedError(GameStateError):
    """Any mutating call against a finished game."""


class NotYourTurnError(GameStateError):
    """Stale client state: the request targets a turn / side that is not the one to move."""


# --- MOVES / BOARD ---
class IllegalMoveError(GameError):
    """Position is out of bounds, occupied, or does not flip a single disc."""


class InvalidBoardError(GameError):
    """Board data (grid or notation) could not be interpreted."""


# --- VOTING ---
class CandidateNotFoundError(GameError):
    """No candidate with the given id exists for the current turn."""


class DuplicateVoteError(GameError):
    """The voter already cast a vote in this turn."""


# --- PERSISTENCE ---
class RepositoryError(GameError):
    """Something went wrong reading from / writing to the persistence layer."""


class GameNotFoundError(RepositoryError):
    """No record for the requested game id."""


class InvalidCursorError(RepositoryError):
    """Pagination cursor could not be decoded."""


class TransientPersistenceError(RepositoryError):
    """The store failed during a write. Nothing was applied, the caller may retry."""


# --- REQUESTS ---
class InvalidRequestError(GameError):
    """Request data failed validation at the boundary."""


# --- CONFIGURATION ---
class ConfigurationError(GameError):
    """An OTHELLO_* environment variable holds a value that cannot be used."""
