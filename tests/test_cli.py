from __future__ import annotations

import shlex
import sys

from othello_arena.config import Config
from othello_arena.tools.cli import build_parser, default_player, player_arg, run_local, run_perft


def test_player_arg():
    assert player_arg("matrix:3") == "matrix:3"
    assert player_arg("cmd:python -m othello_arena.agents random") == [
        "python", "-m", "othello_arena.agents", "random",
    ]


def test_default_player_follows_search_config():
    cfg = Config()
    assert default_player(cfg) == "matrix:4"
    cfg.search.time_ms = 250
    cfg.search.evaluator = "piece"
    assert default_player(cfg) == "piece:4:250"


def test_perft_command(capsys):
    args = build_parser().parse_args(["perft", "--depth", "3", "--position", "f5"])
    assert run_perft(args, Config()) == 0
    assert "perft(d=3)=" in capsys.readouterr().out


def test_perft_rejects_bad_position():
    args = build_parser().parse_args(["perft", "--depth", "1", "--position", "a1"])
    assert run_perft(args, Config()) == 2


def test_local_command(capsys):
    agent = f"cmd:{shlex.quote(sys.executable)} -m othello_arena.agents random --seed 2"
    args = build_parser().parse_args(["local", "first", agent, "--games", "2"])
    assert run_local(args, Config()) == 0
    out = capsys.readouterr().out
    assert "wins" in out and "forfeits 0-0" in out
