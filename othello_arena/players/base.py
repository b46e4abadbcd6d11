"""
Abstract Player interface and the per-game result handed back to each player.

A Player is anything that proposes a move for a board: an in-process search,
a scripted rule, a subprocess agent or a peer on the other end of a socket.
The arena validates every answer; players may return illegal squares and the
arena turns that into a forfeiture.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from othello_arena.engine.board import Board, Turn


@dataclass
class GameResult:
    """Outcome of one game seen from one player's side."""
    outcome: str    # "WIN", "LOSS" or "DRAW"
    own_discs: int
    opp_discs: int
    reason: str = "normal"


class Player(ABC):
    """Abstract base class for all move producers."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.color: Optional[Turn] = None

    def start_game(self, color: Turn) -> None:
        """Called before the first move of every game with the color to play."""
        self.color = color

    @abstractmethod
    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        """
        Return a square for `board`, where it is this player's turn.

        `time_ms` is the budget granted by the arena. Remote players that
        overrun it raise ProtocolViolation; in-process players treat it as a
        cap on their own deadline.
        """
        ...

    def end_game(self, result: Optional[GameResult]) -> None:
        """Called once per started game; `result` is None if the game was aborted."""

    def close(self) -> None:
        """Release anything held across games."""

    def __enter__(self) -> "Player":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
