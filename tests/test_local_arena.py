"""Tests for the local arena and the shared match core"""

from __future__ import annotations

import sys
from typing import Optional

import pytest

from othello_arena.arena import ArenaStats, LocalArena, MatchRecord, check_game_count
from othello_arena.config import Config
from othello_arena.engine.board import Board, Turn
from othello_arena.errors import ConfigurationError, ProtocolViolation
from othello_arena.players import FirstMovePlayer, Player, RandomPlayer
from othello_arena.players.base import GameResult

AGENT = [sys.executable, "-m", "othello_arena.agents"]


class CornerGrabber(Player):
    """Always answers a1, which is never legal early on."""

    def __init__(self) -> None:
        super().__init__("corner")

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        return 0


class BrokenStart(Player):
    def __init__(self) -> None:
        super().__init__("broken")
        self.ended = []

    def start_game(self, color: Turn) -> None:
        raise ProtocolViolation("cannot start")

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        raise AssertionError("never asked")

    def end_game(self, result: Optional[GameResult]) -> None:
        self.ended.append(result)


def test_deterministic_players_are_reproducible():
    runs = []
    for _ in range(2):
        arena = LocalArena("matrix:2", "piece:1", keep_history=True)
        arena.play_n(10)
        wins1, wins2, draws = arena.get_stats()
        assert wins1 + wins2 + draws == 10
        assert arena.get_stats() == arena.get_stats()
        runs.append((arena.get_stats(), arena.get_pieces(), [r.moves for r in arena.history]))
    assert runs[0] == runs[1]


def test_seeded_random_players_are_reproducible():
    results = []
    for _ in range(2):
        arena = LocalArena("random:1", "random:2")
        arena.play_n(6)
        results.append((arena.get_stats(), arena.get_pieces()))
    assert results[0] == results[1]
    assert sum(results[0][0]) == 6


def test_colors_alternate_and_records_are_consistent():
    arena = LocalArena("first", "random:9", keep_history=True)
    arena.play_n(4)
    assert [r.first_player for r in arena.history] == [1, 2, 1, 2]
    assert [r.game_index for r in arena.history] == [0, 1, 2, 3]
    for r in arena.history:
        assert r.forfeit is None
        assert 0 < r.discs1 + r.discs2 <= 64
        if r.winner == 1:
            assert r.discs1 > r.discs2
        elif r.winner == 2:
            assert r.discs2 > r.discs1
        else:
            assert r.discs1 == r.discs2


def test_recorded_moves_replay_to_the_final_discs():
    arena = LocalArena("random:4", "random:8", keep_history=True)
    arena.play_n(6)
    for r in arena.history:
        board = Board.new()
        for sq in r.moves:
            assert 0 <= sq < 64
            board.do_move(sq)
        assert board.is_game_over()
        black, white = board.black_count(), board.white_count()
        assert (r.discs1, r.discs2) == ((black, white) if r.first_player == 1 else (white, black))


def test_stats_accumulate_across_runs():
    arena = LocalArena("random:3", "first", keep_history=True)
    arena.play_n(2)
    arena.play_n(2)
    assert sum(arena.get_stats()) == 4
    assert arena.games_played == 4
    assert arena.history[-1].game_index == 3
    assert arena.get_pieces() == (
        sum(r.discs1 for r in arena.history),
        sum(r.discs2 for r in arena.history),
    )


@pytest.mark.parametrize("n", [0, -2, 3, 2.0, True])
def test_game_count_must_be_positive_and_even(n):
    arena = LocalArena("random", "first")
    with pytest.raises(ConfigurationError):
        arena.play_n(n)
    assert arena.get_stats() == (0, 0, 0)


def test_check_game_count():
    assert check_game_count(2) == 2


def test_same_instance_twice_is_rejected():
    p = FirstMovePlayer()
    with pytest.raises(ConfigurationError):
        LocalArena(p, p)


def test_illegal_moves_forfeit_each_game():
    arena = LocalArena(CornerGrabber(), RandomPlayer(4), keep_history=True)
    arena.play_n(4)
    assert arena.get_stats() == (0, 4, 0)
    assert arena.stats.forfeits1 == 4
    assert arena.stats.forfeits2 == 0
    for r in arena.history:
        assert r.forfeit is not None and r.forfeit.offender == 1
        assert "InvalidMove" in r.forfeit.reason


def test_start_failure_forfeits_and_ends_game():
    broken = BrokenStart()
    arena = LocalArena("first", broken)
    arena.play_n(2)
    assert arena.get_stats() == (2, 0, 0)
    assert arena.stats.forfeits2 == 2
    # end_game is only called for players whose start was attempted
    assert len(broken.ended) == 2
    assert all(r.outcome == "LOSS" and r.reason == "forfeit" for r in broken.ended)


def test_arena_stats_record():
    stats = ArenaStats()
    stats.record(MatchRecord(0, 1, 40, 24, 1))
    stats.record(MatchRecord(1, 2, 32, 32, None))
    assert stats.as_tuple() == (1, 0, 1)
    assert (stats.pieces1, stats.pieces2) == (72, 56)
    assert stats.games == 2


def test_subprocess_agents():
    agent = AGENT + ["random", "--seed", "11"]
    with LocalArena(agent, "matrix:1", start_timeout=20.0, move_timeout=10.0) as arena:
        arena.play_n(2)
        assert sum(arena.get_stats()) == 2
        assert arena.stats.forfeits1 == 0


def test_slow_agent_forfeits_on_timeout():
    slow = AGENT + ["slow", "--delay", "3"]
    with LocalArena(slow, "random:2", start_timeout=20.0, move_timeout=0.3) as arena:
        arena.play_n(2)
        assert arena.get_stats() == (0, 2, 0)
        assert arena.stats.forfeits1 == 2


def test_config_supplies_defaults():
    cfg = Config()
    cfg.arena.keep_history = True
    arena = LocalArena("first", "random:1", config=cfg)
    arena.play_n(2)
    assert len(arena.history) == 2
