"""In-process players: search engines, seeded random, first legal move."""

from __future__ import annotations

import random
from typing import Optional, Union

from othello_arena.engine.board import Board
from othello_arena.engine.eval import Evaluator
from othello_arena.engine.search import AlphaBetaSearch, Search, SearchLimits, SearchResult
from othello_arena.errors import ConfigurationError
from othello_arena.players.base import Player


class SearchPlayer(Player):
    """
    Wraps a Search: alpha-beta when built from a depth and an evaluator, or
    any ready-made Search such as MctsSearch or ThunderSearch.

    The search's own `time_ms` is its deadline; the arena budget only caps it.
    A search without a deadline always runs to completion (`max_depth` or
    `n_playouts`), which keeps seeded games reproducible.
    """

    def __init__(self, search: Union[int, Search], evaluator: Optional[Evaluator] = None,
                 time_ms: Optional[int] = None, name: Optional[str] = None) -> None:
        if isinstance(search, Search):
            if evaluator is not None or time_ms is not None:
                raise ConfigurationError("evaluator and time_ms only apply to a search depth")
            default_name = type(search).__name__
        else:
            if evaluator is None:
                raise ConfigurationError("a search depth needs an evaluator")
            search = AlphaBetaSearch(search, evaluator, time_ms)
            default_name = f"{evaluator.name}:{search.max_depth}"
        super().__init__(name or default_name)
        self.search = search
        self.last_result: Optional[SearchResult] = None

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        deadline = self.search.time_ms
        if deadline is not None and time_ms is not None:
            deadline = min(deadline, time_ms)
        if isinstance(self.search, AlphaBetaSearch):
            self.last_result = self.search.search(board, SearchLimits(self.search.max_depth, deadline))
            return self.last_result.best_move
        return self.search.get_move(board, deadline)


class RandomPlayer(Player):
    """Uniform choice among legal moves from its own random.Random."""

    def __init__(self, seed: Optional[int] = None, name: Optional[str] = None) -> None:
        super().__init__(name or "random")
        self.rng = random.Random(seed)

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        return board.random_move(self.rng)


class FirstMovePlayer(Player):
    """Scripted rule: always the lowest legal square."""

    def __init__(self, name: Optional[str] = None) -> None:
        super().__init__(name or "first")

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        moves = board.legal_moves()
        # The arena never asks in a pass position; -1 is rejected as illegal if it does
        return moves[0] if moves else -1
