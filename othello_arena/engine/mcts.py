"""
Playout-based searches: UCB1 Monte Carlo tree search and Thunder search.

Both grow a tree of positions below the root and return the root move whose
subtree was visited most. Node values are win rates in [0, 1] for the side to
move at that node (a draw counts 0.5). A child reached through an automatic
pass has the same side to move as its parent, so its value is not inverted.

MctsSearch scores a fresh leaf with a random playout to the end of the game
and expands a node once it has been visited `expansion_threshold` times.
ThunderSearch scores a fresh leaf with a WinrateEvaluator instead, expands it
at once, and picks children greedily with an epsilon share of random picks.
"""

from __future__ import annotations

import logging
import math
import random
import time
from abc import abstractmethod
from typing import List, Optional

from ..errors import ConfigurationError, NoLegalMoveError
from .board import Board
from .eval import LogisticWinrateEvaluator, WinrateEvaluator
from .search import Search

logger = logging.getLogger(__name__)

# Clock polls happen once per this many playouts
DEFAULT_CHECK_INTERVAL = 16


def outcome(board: Board) -> float:
    """Final result for the side to move of a finished game."""
    winner = board.winner()
    if winner is None:
        return 0.5
    return 1.0 if winner == board.turn else 0.0


class _Node:
    __slots__ = ("board", "w", "n", "children")

    def __init__(self, board: Board) -> None:
        self.board = board
        self.w = 0.0
        self.n = 0
        self.children: Optional[List[_Node]] = None

    def expand(self) -> None:
        children = []
        for sq in self.board.legal_moves():
            child = self.board.copy()
            child.do_move(sq)
            children.append(_Node(child))
        self.children = children

    def value_of(self, child: "_Node", value: float) -> float:
        """`value` of `child` as seen by the side to move here."""
        return value if child.board.turn == self.board.turn else 1.0 - value

    def mean_of(self, child: "_Node") -> float:
        return self.value_of(child, child.w / child.n)

    def first_unvisited(self) -> Optional[int]:
        for i, child in enumerate(self.children):
            if child.n == 0:
                return i
        return None

    def update(self, value: float) -> float:
        self.w += value
        self.n += 1
        return value


def _most_visited(root: _Node) -> int:
    best_index, best_visits = 0, -1
    for i, child in enumerate(root.children):
        if child.n > best_visits:
            best_index, best_visits = i, child.n
    return best_index


class _PlayoutSearch(Search):
    """Shared root handling: expand, run playouts until the count or the clock runs out."""

    def __init__(self, n_playouts: int, time_ms: Optional[int], seed: Optional[int],
                 check_interval: int) -> None:
        if n_playouts < 1:
            raise ConfigurationError(f"n_playouts must be >= 1, got {n_playouts}")
        if time_ms is not None and time_ms < 0:
            raise ConfigurationError(f"time_ms must be >= 0, got {time_ms}")
        if check_interval < 1:
            raise ConfigurationError(f"check_interval must be >= 1, got {check_interval}")
        self.n_playouts = n_playouts
        self.time_ms = time_ms
        self.check_interval = check_interval
        self.rng = random.Random(seed)
        self.playouts = 0

    def _grow(self, board: Board, time_ms: Optional[int]) -> _Node:
        if not board.legal_moves_mask():
            raise NoLegalMoveError("side to move has no legal move")
        if time_ms is None:
            time_ms = self.time_ms
        start = time.perf_counter()
        deadline = None if time_ms is None else start + time_ms / 1000.0
        root = _Node(board.copy())
        root.expand()
        self.playouts = 0
        for i in range(self.n_playouts):
            self._evaluate(root)
            self.playouts += 1
            if deadline is not None and i % self.check_interval == 0 and time.perf_counter() >= deadline:
                break
        logger.debug("%s playouts=%d root_visits=%d time=%dms", type(self).__name__,
                     self.playouts, root.n, int((time.perf_counter() - start) * 1000))
        return root

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        root = self._grow(board, time_ms)
        return board.legal_moves()[_most_visited(root)]

    @abstractmethod
    def _evaluate(self, node: _Node) -> float:
        """Run one playout below `node`; return its value for the side to move there."""


class MctsSearch(_PlayoutSearch):
    """UCB1 tree search with random playouts.

    `c` weighs exploration in the UCB1 bound; a leaf becomes an inner node after
    `expansion_threshold` visits.
    """

    def __init__(self, n_playouts: int, c: float = 1.0, expansion_threshold: int = 10,
                 time_ms: Optional[int] = None, seed: Optional[int] = None,
                 check_interval: int = DEFAULT_CHECK_INTERVAL) -> None:
        super().__init__(n_playouts, time_ms, seed, check_interval)
        if expansion_threshold < 1:
            raise ConfigurationError(f"expansion_threshold must be >= 1, got {expansion_threshold}")
        self.c = c
        self.expansion_threshold = expansion_threshold

    def play_out(self, board: Board) -> float:
        b = board.copy()
        while not b.is_game_over():
            b.do_move(self.rng.choice(b.legal_moves()))
        winner = b.winner()
        if winner is None:
            return 0.5
        return 1.0 if winner == board.turn else 0.0

    def _select(self, node: _Node) -> int:
        i = node.first_unvisited()
        if i is not None:
            return i
        log_total = math.log(sum(child.n for child in node.children))
        best_index, best_ucb = 0, -math.inf
        for i, child in enumerate(node.children):
            ucb = node.mean_of(child) + self.c * math.sqrt(2.0 * log_total / child.n)
            if ucb > best_ucb:
                best_index, best_ucb = i, ucb
        return best_index

    def _evaluate(self, node: _Node) -> float:
        if node.board.is_game_over():
            return node.update(outcome(node.board))
        if node.children is None:
            value = node.update(self.play_out(node.board))
            if node.n >= self.expansion_threshold:
                node.expand()
            return value
        child = node.children[self._select(node)]
        return node.update(node.value_of(child, self._evaluate(child)))


class ThunderSearch(_PlayoutSearch):
    """Greedy tree search driven by a win-rate evaluator.

    With probability `epsilon` a random child is explored instead of the one
    with the best mean.
    """

    def __init__(self, n_playouts: int, epsilon: float = 0.1,
                 evaluator: Optional[WinrateEvaluator] = None, time_ms: Optional[int] = None,
                 seed: Optional[int] = None, check_interval: int = DEFAULT_CHECK_INTERVAL) -> None:
        super().__init__(n_playouts, time_ms, seed, check_interval)
        if not 0.0 <= epsilon <= 1.0:
            raise ConfigurationError(f"epsilon must be within [0, 1], got {epsilon}")
        self.epsilon = epsilon
        self.evaluator = evaluator or LogisticWinrateEvaluator()

    def search_score(self, board: Board) -> float:
        """Root win rate of `board` for its side to move once the playouts are done."""
        if board.is_game_over():
            return outcome(board)
        root = self._grow(board, None)
        return root.w / root.n

    def _select(self, node: _Node) -> int:
        i = node.first_unvisited()
        if i is not None:
            return i
        if self.rng.random() < self.epsilon:
            return self.rng.randrange(len(node.children))
        best_index, best_mean = 0, -math.inf
        for i, child in enumerate(node.children):
            mean = node.mean_of(child)
            if mean > best_mean:
                best_index, best_mean = i, mean
        return best_index

    def _evaluate(self, node: _Node) -> float:
        if node.board.is_game_over():
            return node.update(outcome(node.board))
        if node.children is None:
            value = node.update(self.evaluator.winrate(node.board))
            node.expand()
            return value
        child = node.children[self._select(node)]
        return node.update(node.value_of(child, self._evaluate(child)))
