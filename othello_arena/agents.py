"""
Reference subprocess agents.

    python -m othello_arena.agents random [--seed N] BLACK
    python -m othello_arena.agents slow [--delay S] WHITE
    python -m othello_arena.agents piece [--depth D] BLACK
    python -m othello_arena.agents matrix [--depth D] WHITE

Each one answers ``ping`` with ``pong`` and every 64-char board line with a
square index, one line per reply, until stdin closes. Stdout carries the
protocol only; diagnostics go to stderr.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from typing import Callable, List, Optional, TextIO

from .engine.board import PASS, Board, Turn
from .engine.eval import create_evaluator
from .engine.search import AlphaBetaSearch
from .protocol import PING, PONG

logger = logging.getLogger("othello_arena.agents")

Chooser = Callable[[Board], int]


def random_chooser(seed: Optional[int]) -> Chooser:
    rng = random.Random(seed)
    return lambda board: board.random_move(rng)


def slow_chooser(delay: float, seed: Optional[int]) -> Chooser:
    """Random mover that sleeps first; used to exercise arena timeouts."""
    pick = random_chooser(seed)

    def choose(board: Board) -> int:
        time.sleep(delay)
        return pick(board)

    return choose


def search_chooser(evaluator: str, depth: int) -> Chooser:
    search = AlphaBetaSearch(depth, create_evaluator(evaluator))
    return search.get_move


def serve(choose: Chooser, color: Turn, stdin: TextIO, stdout: TextIO) -> None:
    for line in stdin:
        line = line.strip()
        if not line:
            continue
        if line == PING:
            reply = PONG
        else:
            try:
                board = Board.from_line(line, color)
            except ValueError as e:
                logger.error("bad board line %r: %s", line, e)
                return
            reply = str(choose(board) if board.legal_moves_mask() else PASS)
        stdout.write(reply + "\n")
        stdout.flush()


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="othello_arena.agents")
    p.add_argument('kind', choices=['random', 'slow', 'piece', 'matrix'])
    p.add_argument('color', type=str.upper, choices=['BLACK', 'WHITE'])
    p.add_argument('--seed', type=int, default=None)
    p.add_argument('--delay', type=float, default=1.0, help='seconds the slow agent waits (default: 1.0)')
    p.add_argument('--depth', type=int, default=3, help='search depth for piece/matrix (default: 3)')
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s [agent:%(process)d] %(message)s",
    )

    if args.kind == 'random':
        choose = random_chooser(args.seed)
    elif args.kind == 'slow':
        choose = slow_chooser(args.delay, args.seed)
    else:
        choose = search_chooser(args.kind, args.depth)

    try:
        serve(choose, Turn[args.color], sys.stdin, sys.stdout)
    except (BrokenPipeError, KeyboardInterrupt):
        # Arena went away or killed us mid-game
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
