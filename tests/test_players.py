from __future__ import annotations

import io
import sys

import pytest

from othello_arena import agents
from othello_arena.engine.board import Board, Turn, start_board
from othello_arena.engine.eval import MatrixEvaluator
from othello_arena.errors import ConfigurationError, ProtocolViolation
from othello_arena.players import (
    FirstMovePlayer,
    RandomPlayer,
    SearchPlayer,
    SubprocessPlayer,
    create_player,
)

AGENT = [sys.executable, "-m", "othello_arena.agents"]


def test_create_player_tags():
    p = create_player("matrix:3")
    assert isinstance(p, SearchPlayer)
    assert p.search.max_depth == 3
    assert p.search.time_ms is None
    timed = create_player("piece:5:200")
    assert timed.search.time_ms == 200
    assert isinstance(create_player("random"), RandomPlayer)
    assert isinstance(create_player("random:4"), RandomPlayer)
    assert isinstance(create_player("first"), FirstMovePlayer)
    existing = FirstMovePlayer()
    assert create_player(existing) is existing
    assert isinstance(create_player(AGENT + ["random"]), SubprocessPlayer)


@pytest.mark.parametrize("spec", ["", "matrix", "matrix:x", "matrix:0", "random:a", "first:1", "alien:3", 42])
def test_create_player_rejects(spec):
    with pytest.raises(ConfigurationError):
        create_player(spec)


def test_random_player_is_seeded_and_independent():
    a, b = RandomPlayer(5), RandomPlayer(5)
    board = start_board()
    picks_a = [a.get_move(board) for _ in range(20)]
    picks_b = [b.get_move(board) for _ in range(20)]
    assert picks_a == picks_b
    assert set(picks_a) <= set(board.legal_moves())


def test_first_move_player():
    assert FirstMovePlayer().get_move(start_board()) == 19


def test_search_player_budget_caps_own_deadline():
    p = SearchPlayer(6, MatrixEvaluator(), time_ms=10_000)
    move = p.get_move(start_board(), time_ms=0)
    assert move in start_board().legal_moves()
    assert p.last_result.depth == 1


def test_search_player_without_deadline_ignores_budget():
    p = create_player("piece:2")
    p.get_move(start_board(), time_ms=0)
    assert p.last_result.depth == 2


def test_subprocess_player_missing_executable():
    with pytest.raises(ConfigurationError):
        SubprocessPlayer(["definitely-not-an-othello-agent"])
    with pytest.raises(ConfigurationError):
        SubprocessPlayer([])


def test_subprocess_player_plays_and_is_reaped():
    p = SubprocessPlayer(AGENT + ["random", "--seed", "1"], start_timeout=20.0, move_timeout=10.0)
    board = start_board()
    p.start_game(Turn.BLACK)
    proc = p._proc
    assert proc is not None
    assert p.get_move(board) in board.legal_moves()
    p.end_game(None)
    assert p._proc is None
    assert proc.poll() is not None
    assert proc.stdin.closed
    p.close()


def test_subprocess_player_times_out():
    p = SubprocessPlayer(AGENT + ["slow", "--delay", "5"], start_timeout=20.0)
    p.start_game(Turn.BLACK)
    try:
        with pytest.raises(ProtocolViolation):
            p.get_move(start_board(), time_ms=200)
    finally:
        p.close()


def test_subprocess_player_bad_handshake():
    # `cat` echoes ping back instead of answering pong
    cat = SubprocessPlayer(["cat"], start_timeout=5.0)
    with pytest.raises(ProtocolViolation):
        cat.start_game(Turn.WHITE)
    assert cat._proc is None


def test_agent_loop_answers_ping_and_boards():
    board = start_board()
    stdin = io.StringIO(f"ping\n{board.to_line()}\n\n")
    stdout = io.StringIO()
    agents.serve(agents.search_chooser("matrix", 2), Turn.BLACK, stdin, stdout)
    lines = stdout.getvalue().splitlines()
    assert lines[0] == "pong"
    assert int(lines[1]) in board.legal_moves()


def test_agent_reads_board_for_its_color():
    b = Board.new()
    b.do_move(19)
    stdout = io.StringIO()
    agents.serve(agents.random_chooser(3), Turn.WHITE, io.StringIO(b.to_line() + "\n"), stdout)
    assert int(stdout.getvalue()) in b.legal_moves()
