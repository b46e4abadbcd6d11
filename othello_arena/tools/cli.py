"""othello-arena command line: local matches, network server/client, perft"""

from __future__ import annotations

import argparse
import logging
import pathlib
import shlex
import sys
from time import perf_counter
from typing import List, Optional

from othello_arena.arena import LocalArena, NetworkArenaClient, NetworkArenaServer
from othello_arena.config import Config, load_config
from othello_arena.engine.board import start_board
from othello_arena.engine.perft import perft, play_moves
from othello_arena.errors import ArenaError
from othello_arena.logging_setup import setup_logging
from othello_arena.players import PlayerSpec

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "cmd:"


def player_arg(text: str) -> PlayerSpec:
    """`cmd:<command line>` starts a subprocess agent, anything else is a player tag."""
    if text.startswith(COMMAND_PREFIX):
        return shlex.split(text[len(COMMAND_PREFIX):])
    return text


def default_player(cfg: Config) -> str:
    spec = f"{cfg.search.evaluator}:{cfg.search.max_depth}"
    if cfg.search.time_ms is not None:
        spec += f":{cfg.search.time_ms}"
    return spec


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="othello-arena", description="Reversi engine and match arena")
    p.add_argument('--config', default=None, help='Configuration file path')
    p.add_argument('--log-level', default=None, help='Override [logging].level')
    sub = p.add_subparsers(dest='command', required=True)

    local = sub.add_parser('local', help='Play a match between two local players')
    local.add_argument('player1', nargs='?', help="e.g. matrix:4, mcts:2000, random:7, first, or 'cmd:<agent command>'")
    local.add_argument('player2', nargs='?', help='same forms as player1 (default: [search] config)')
    local.add_argument('--games', type=int, default=10, help='Number of games, even (default: 10)')
    local.add_argument('--progress', action='store_true', help='Show a progress bar')

    serve = sub.add_parser('serve', help='Host a match between two network clients')
    serve.add_argument('--host', default=None)
    serve.add_argument('--port', type=int, default=None)
    serve.add_argument('--games', type=int, default=10, help='Number of games, even (default: 10)')
    serve.add_argument('--progress', action='store_true', help='Show a progress bar')

    connect = sub.add_parser('connect', help='Join a network match with one player')
    connect.add_argument('player', nargs='?', help='player tag or cmd:<agent command>')
    connect.add_argument('--host', default=None)
    connect.add_argument('--port', type=int, default=None)

    pf = sub.add_parser('perft', help='Count leaf nodes of the move tree')
    pf.add_argument('--depth', type=int, required=True)
    pf.add_argument('--position', type=str, default=None, help='move sequence like f5d6c3')
    return p


def run_local(args: argparse.Namespace, cfg: Config) -> int:
    p1 = player_arg(args.player1) if args.player1 else default_player(cfg)
    p2 = player_arg(args.player2) if args.player2 else "random"
    with LocalArena(p1, p2, args.progress, config=cfg) as arena:
        arena.play_n(args.games)
        wins1, wins2, draws = arena.get_stats()
        pieces1, pieces2 = arena.get_pieces()
    print(f"{arena.players[0].name}: {wins1} wins, {arena.players[1].name}: {wins2} wins, {draws} draws")
    print(f"discs {pieces1}-{pieces2}, forfeits {arena.stats.forfeits1}-{arena.stats.forfeits2}")
    return 0


def run_serve(args: argparse.Namespace, cfg: Config) -> int:
    server = NetworkArenaServer(args.games, args.progress, config=cfg)
    server.start(args.host or cfg.network.host, cfg.network.port if args.port is None else args.port)
    wins1, wins2, draws = server.get_stats()
    print(f"seat1: {wins1} wins, seat2: {wins2} wins, {draws} draws")
    return 0


def run_connect(args: argparse.Namespace, cfg: Config) -> int:
    player = player_arg(args.player) if args.player else default_player(cfg)
    client = NetworkArenaClient(player)
    client.connect(args.host or cfg.network.host, cfg.network.port if args.port is None else args.port)
    wins, losses, draws = client.get_stats()
    print(f"{wins} wins, {losses} losses, {draws} draws")
    return 0


def run_perft(args: argparse.Namespace, cfg: Config) -> int:
    b = start_board()
    if args.position:
        moves = [args.position[i : i + 2] for i in range(0, len(args.position), 2)]
        try:
            b = play_moves(b, moves)
        except ValueError as e:
            logger.error("Bad --position %r: %s", args.position, e)
            return 2
    t0 = perf_counter()
    n = perft(b, args.depth)
    dt = perf_counter() - t0
    print(f"perft(d={args.depth})={n} in {dt:.3f}s")
    return 0


COMMANDS = {
    'local': run_local,
    'serve': run_serve,
    'connect': run_connect,
    'perft': run_perft,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config(args.config)
    except ArenaError as e:
        setup_logging(overwrite=False)
        logger.error("Bad configuration: %s", e)
        return 2

    level_name = (args.log_level or cfg.logging.level).upper()
    level = logging.getLevelName(level_name)
    setup_logging(
        overwrite=True,
        level=level if isinstance(level, int) else logging.INFO,
        log_path=pathlib.Path(cfg.logging.file).expanduser() if cfg.logging.file else None,
    )
    try:
        return COMMANDS[args.command](args, cfg)
    except ArenaError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
