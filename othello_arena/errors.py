"""Exception hierarchy shared by the board, search and arena layers"""

from __future__ import annotations


class ArenaError(Exception):
    """Base class for every error raised by othello_arena."""


class InvalidMove(ArenaError, ValueError):
    """Square is not in the current legal-move set (or an invalid pass)."""

    def __init__(self, square: int, reason: str = "illegal move") -> None:
        super().__init__(f"{reason}: {square}")
        self.square = square
        self.reason = reason


class ProtocolViolation(ArenaError):
    """A player broke the move protocol: bad message, timeout, illegal answer."""


class ArenaConnectionError(ArenaError, ConnectionError):
    """Transport level failure on a socket or pipe."""


class ConfigurationError(ArenaError, ValueError):
    """Invalid construction parameter or configuration value."""


class GameNotOverError(ArenaError):
    """Result queried before the game finished."""


class NoLegalMoveError(ArenaError):
    """A move was requested for a position where the side to move cannot play."""
