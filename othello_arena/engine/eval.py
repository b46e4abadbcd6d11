from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from ..errors import ConfigurationError
from .bitboard import legal_moves_mask
from .board import Board, Turn

# Position evaluators. Every evaluator is a pure function of the board: no
# state is kept between calls, so one instance can serve many searches.

DEFAULT_MATRIX: Tuple[Tuple[int, ...], ...] = (
    (100, -20, 10, 5, 5, 10, -20, 100),
    (-20, -50, -2, -2, -2, -2, -50, -20),
    (10, -2, -1, -1, -1, -1, -2, 10),
    (5, -2, -1, -1, -1, -1, -2, 5),
    (5, -2, -1, -1, -1, -1, -2, 5),
    (10, -2, -1, -1, -1, -1, -2, 10),
    (-20, -50, -2, -2, -2, -2, -50, -20),
    (100, -20, 10, 5, 5, 10, -20, 100),
)

# The same table expressed as symmetric square groups for BitMatrixEvaluator
DEFAULT_GROUP_MASKS: Tuple[int, ...] = (
    0x0000001818000000,
    0x0000182424180000,
    0x0000240000240000,
    0x0018004242001800,
    0x0024420000422400,
    0x0042000000004200,
    0x1800008181000018,
    0x2400810000810024,
    0x4281000000008142,
    0x8100000000000081,
)
DEFAULT_GROUP_WEIGHTS: Tuple[int, ...] = (-1, -1, -1, -2, -2, -50, 5, 10, -20, 100)


def split(board: Board, perspective: Turn) -> Tuple[int, int]:
    """Return (discs of `perspective`, discs of its opponent)."""
    if board.turn == perspective:
        return board.own, board.opp
    return board.opp, board.own


class Evaluator(ABC):
    """Scores a position; higher is better for `perspective`."""

    name = "evaluator"

    @abstractmethod
    def score(self, board: Board, perspective: Turn) -> int:
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class PieceEvaluator(Evaluator):
    name = "piece"

    def score(self, board: Board, perspective: Turn) -> int:
        me, opp = split(board, perspective)
        return me.bit_count() - opp.bit_count()


class LegalNumEvaluator(Evaluator):
    """Mobility: own legal move count minus the opponent's."""

    name = "legal"

    def score(self, board: Board, perspective: Turn) -> int:
        me, opp = split(board, perspective)
        return legal_moves_mask(me, opp).bit_count() - legal_moves_mask(opp, me).bit_count()


class MatrixEvaluator(Evaluator):
    """Per-square weight table; own discs add their weight, opponent discs subtract it."""

    name = "matrix"

    def __init__(self, matrix: Sequence[Sequence[int]] = DEFAULT_MATRIX) -> None:
        if len(matrix) != 8 or any(len(row) != 8 for row in matrix):
            raise ConfigurationError("matrix must be 8x8")
        self.weights = tuple(int(w) for row in matrix for w in row)

    def score(self, board: Board, perspective: Turn) -> int:
        me, opp = split(board, perspective)
        weights = self.weights
        total = 0
        m = me
        while m:
            lsb = m & -m
            total += weights[lsb.bit_length() - 1]
            m ^= lsb
        m = opp
        while m:
            lsb = m & -m
            total -= weights[lsb.bit_length() - 1]
            m ^= lsb
        return total


class BitMatrixEvaluator(Evaluator):
    """Weighted square groups: sum of weight * (own - opp) discs inside each mask."""

    name = "bitmatrix"

    def __init__(self, weights: Sequence[int] = DEFAULT_GROUP_WEIGHTS,
                 masks: Sequence[int] = DEFAULT_GROUP_MASKS) -> None:
        if len(weights) != len(masks):
            raise ConfigurationError("weights and masks must have the same length")
        self.groups = tuple(zip((int(w) for w in weights), (int(m) for m in masks)))

    def score(self, board: Board, perspective: Turn) -> int:
        me, opp = split(board, perspective)
        return sum(w * ((me & m).bit_count() - (opp & m).bit_count()) for w, m in self.groups)


EVALUATORS = {
    PieceEvaluator.name: PieceEvaluator,
    LegalNumEvaluator.name: LegalNumEvaluator,
    MatrixEvaluator.name: MatrixEvaluator,
    BitMatrixEvaluator.name: BitMatrixEvaluator,
}


def create_evaluator(name: str) -> Evaluator:
    try:
        return EVALUATORS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"unknown evaluator {name!r}; expected one of {sorted(EVALUATORS)}"
        ) from None


class WinrateEvaluator(ABC):
    """Estimates the chance that the side to move wins: 1.0 won, 0.0 lost, 0.5 even."""

    @abstractmethod
    def winrate(self, board: Board) -> float:
        ...


class LogisticWinrateEvaluator(WinrateEvaluator):
    """Squashes a heuristic score through P(win) = 1 / (1 + exp(-score / scale))."""

    def __init__(self, evaluator: Optional[Evaluator] = None, scale: float = 50.0) -> None:
        if scale <= 0:
            raise ConfigurationError(f"scale must be > 0, got {scale}")
        self.evaluator = evaluator or MatrixEvaluator()
        self.scale = scale

    def winrate(self, board: Board) -> float:
        x = self.evaluator.score(board, board.turn) / self.scale
        # exp overflows past ~709; the curve is flat long before that
        x = max(-60.0, min(60.0, x))
        return 1.0 / (1.0 + math.exp(-x))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.evaluator!r}, scale={self.scale})"
