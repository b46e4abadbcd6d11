"""Rules engine, evaluators, alpha-beta and playout searches"""

from .board import PASS, Board, StackFrame, Turn, start_board
from .eval import (
    BitMatrixEvaluator,
    Evaluator,
    LegalNumEvaluator,
    LogisticWinrateEvaluator,
    MatrixEvaluator,
    PieceEvaluator,
    WinrateEvaluator,
    create_evaluator,
)
from .mcts import MctsSearch, ThunderSearch
from .search import AlphaBetaSearch, Search, SearchLimits, SearchResult

__all__ = [
    'PASS',
    'Board',
    'StackFrame',
    'Turn',
    'start_board',
    'Evaluator',
    'PieceEvaluator',
    'LegalNumEvaluator',
    'MatrixEvaluator',
    'BitMatrixEvaluator',
    'create_evaluator',
    'WinrateEvaluator',
    'LogisticWinrateEvaluator',
    'Search',
    'AlphaBetaSearch',
    'SearchLimits',
    'SearchResult',
    'MctsSearch',
    'ThunderSearch',
]
