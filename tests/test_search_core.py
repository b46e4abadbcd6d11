from __future__ import annotations

import random

import pytest

from othello_arena.engine.board import Board, Turn, start_board
from othello_arena.engine.eval import LegalNumEvaluator, MatrixEvaluator, PieceEvaluator
from othello_arena.engine.search import AlphaBetaSearch, SearchLimits
from othello_arena.errors import ConfigurationError, NoLegalMoveError


def brute_negamax(board: Board, depth: int, ev) -> int:
    if depth == 0 or board.is_game_over():
        return ev.score(board, board.turn)
    best = None
    for sq in board.legal_moves():
        frame = board.push(sq)
        child = brute_negamax(board, depth - 1, ev)
        score = child if board.turn == frame.prev_turn else -child
        board.undo(frame)
        if best is None or score > best:
            best = score
    return best


def brute_root(board: Board, depth: int, ev):
    best_move, best_score = -1, None
    for sq in board.legal_moves():
        frame = board.push(sq)
        child = brute_negamax(board, depth - 1, ev)
        score = child if board.turn == frame.prev_turn else -child
        board.undo(frame)
        if best_score is None or score > best_score:
            best_move, best_score = sq, score
    return best_move, best_score


def midgame_positions(count: int, plies: int = 14, seed: int = 3):
    rng = random.Random(seed)
    out = []
    while len(out) < count:
        b = start_board()
        for _ in range(plies):
            if b.is_game_over():
                break
            if b.is_pass_pending():
                b.do_pass()
            b.do_move(rng.choice(b.legal_moves()))
        if b.legal_moves():
            out.append(b)
    return out


def test_search_basic_runs():
    b = start_board()
    s = AlphaBetaSearch(3, MatrixEvaluator())
    res = s.search(b, SearchLimits(max_depth=3, time_ms=500))
    assert res.best_move in b.legal_moves()
    assert isinstance(res.score, int)
    assert res.depth >= 1
    assert res.nodes > 0
    assert b == start_board()


@pytest.mark.parametrize("depth", [1, 2, 3])
@pytest.mark.parametrize("ev", [PieceEvaluator(), MatrixEvaluator(), LegalNumEvaluator()])
def test_alpha_beta_matches_plain_negamax(depth, ev):
    for b in midgame_positions(6):
        res = AlphaBetaSearch(depth, ev).search(b)
        assert (res.best_move, res.score) == brute_root(b, depth, ev)
        assert res.depth == depth


def test_fixed_depth_is_reproducible():
    s = AlphaBetaSearch(4, MatrixEvaluator())
    b = midgame_positions(1, seed=9)[0]
    assert s.get_move(b) == s.get_move(b)


def test_generous_deadline_reaches_max_depth():
    b = midgame_positions(1, seed=5)[0]
    ev = MatrixEvaluator()
    timed = AlphaBetaSearch(3, ev, time_ms=60_000).search(b)
    fixed = AlphaBetaSearch(3, ev).search(b)
    assert timed.depth == 3
    assert (timed.best_move, timed.score) == (fixed.best_move, fixed.score)


def test_zero_deadline_still_returns_legal_move():
    b = start_board()
    s = AlphaBetaSearch(8, MatrixEvaluator(), time_ms=0)
    res = s.search(b)
    assert res.depth == 1
    assert res.best_move in b.legal_moves()
    assert s.get_move(b, time_ms=0) in b.legal_moves()


def test_ties_keep_first_move():
    # All four opening moves are equivalent for the disc count
    assert AlphaBetaSearch(1, PieceEvaluator()).get_move(start_board()) == 19


def test_invalid_depth():
    with pytest.raises(ConfigurationError):
        AlphaBetaSearch(0, MatrixEvaluator())
    with pytest.raises(ConfigurationError):
        AlphaBetaSearch(2, MatrixEvaluator(), time_ms=-1)


def test_no_legal_move():
    line = "XO" + "-" * 14 + "XO" + "-" * 46
    b = Board.from_line(line, Turn.WHITE)
    with pytest.raises(NoLegalMoveError):
        AlphaBetaSearch(2, PieceEvaluator()).get_move(b)


def move_score(board: Board, sq: int, depth: int, ev) -> int:
    frame = board.push(sq)
    child = brute_negamax(board, depth - 1, ev)
    score = child if board.turn == frame.prev_turn else -child
    board.undo(frame)
    return score


@pytest.mark.parametrize("ev", [PieceEvaluator(), MatrixEvaluator()])
def test_deeper_search_never_picks_a_worse_move(ev):
    for b in midgame_positions(5, seed=11):
        for depth in (1, 2, 3):
            shallow = AlphaBetaSearch(depth, ev).get_move(b)
            deep = AlphaBetaSearch(depth + 1, ev).search(b)
            assert deep.score == brute_root(b, depth + 1, ev)[1]
            assert deep.score >= move_score(b, shallow, depth + 1, ev)
