from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import ConfigurationError, NoLegalMoveError
from .board import Board
from .eval import Evaluator

logger = logging.getLogger(__name__)

INF = 1 << 30


@dataclass
class SearchLimits:
    max_depth: int = 4
    time_ms: Optional[int] = None


@dataclass
class SearchResult:
    best_move: int
    score: int
    depth: int
    nodes: int
    time_ms: int


class _SearchTimeout(Exception):
    pass


class Search(ABC):
    """Picks a move for the side to move.

    `time_ms` is the search's own deadline, None for no clock; a `time_ms` passed
    to `get_move` replaces it for that call. Raises NoLegalMoveError when the
    side to move has nothing to play.
    """

    time_ms: Optional[int] = None

    @abstractmethod
    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        ...


class AlphaBetaSearch(Search):
    """Negamax with alpha-beta pruning and optional iterative deepening.

    Without a deadline the position is searched once at `max_depth`. With a
    deadline, depths 1..max_depth are searched in turn and the move of the last
    depth that finished is returned. The clock is polled on entry to every node
    below the root; depth 1 ignores it, so a legal move is always produced.

    Children are visited in square order and only a strictly better score
    replaces the current best, so equal scores keep the lowest square.
    """

    def __init__(self, max_depth: int, evaluator: Evaluator, time_ms: Optional[int] = None) -> None:
        if max_depth < 1:
            raise ConfigurationError(f"max_depth must be >= 1, got {max_depth}")
        if time_ms is not None and time_ms < 0:
            raise ConfigurationError(f"time_ms must be >= 0, got {time_ms}")
        self.max_depth = max_depth
        self.evaluator = evaluator
        self.time_ms = time_ms
        self.nodes = 0

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        limits = SearchLimits(self.max_depth, self.time_ms if time_ms is None else time_ms)
        return self.search(board, limits).best_move

    def search(self, board: Board, limits: Optional[SearchLimits] = None) -> SearchResult:
        limits = limits or SearchLimits(self.max_depth, self.time_ms)
        if limits.max_depth < 1:
            raise ConfigurationError(f"max_depth must be >= 1, got {limits.max_depth}")
        root = board.copy()
        if not root.legal_moves_mask():
            raise NoLegalMoveError("side to move has no legal move")

        start = time.perf_counter()
        self.nodes = 0
        if limits.time_ms is None:
            best_move, best_score = self._search_root(root, limits.max_depth, None)
            completed = limits.max_depth
        else:
            deadline = start + limits.time_ms / 1000.0
            best_move, best_score, completed = -1, -INF, 0
            for depth in range(1, limits.max_depth + 1):
                try:
                    move, score = self._search_root(root, depth, deadline if depth > 1 else None)
                except _SearchTimeout:
                    break
                best_move, best_score, completed = move, score, depth
                if time.perf_counter() >= deadline:
                    break
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.debug("search depth=%d move=%d score=%d nodes=%d time=%dms",
                     completed, best_move, best_score, self.nodes, elapsed_ms)
        return SearchResult(best_move, best_score, completed, self.nodes, elapsed_ms)

    def _search_root(self, board: Board, depth: int, deadline: Optional[float]) -> Tuple[int, int]:
        alpha, beta = -INF, INF
        best_move, best_score = -1, -INF
        for sq in board.legal_moves():
            frame = board.push(sq)
            try:
                if board.turn == frame.prev_turn:
                    score = self._negamax(board, depth - 1, alpha, beta, deadline)
                else:
                    score = -self._negamax(board, depth - 1, -beta, -alpha, deadline)
            finally:
                board.undo(frame)
            if score > best_score:
                best_move, best_score = sq, score
                alpha = max(alpha, score)
        return best_move, best_score

    def _negamax(self, board: Board, depth: int, alpha: int, beta: int, deadline: Optional[float]) -> int:
        if deadline is not None and time.perf_counter() >= deadline:
            raise _SearchTimeout()
        self.nodes += 1
        if depth == 0 or board.is_game_over():
            return self.evaluator.score(board, board.turn)

        best_score = -INF
        for sq in board.legal_moves():
            frame = board.push(sq)
            try:
                # After an automatic pass the same side moves again: no negation
                if board.turn == frame.prev_turn:
                    score = self._negamax(board, depth - 1, alpha, beta, deadline)
                else:
                    score = -self._negamax(board, depth - 1, -beta, -alpha, deadline)
            finally:
                board.undo(frame)
            if score > best_score:
                best_score = score
                if score > alpha:
                    alpha = score
                if alpha >= beta:
                    break
        return best_score
