from __future__ import annotations

from typing import Iterable, Optional

from .board import PASS, Board, start_board
from .notation import notation_to_coord


def perft(board: Board, depth: int) -> int:
    """Count leaf positions `depth` plies ahead; an automatic pass is not a ply."""
    if depth == 0:
        return 1
    if board.is_pass_pending():
        frame = board.push(PASS)
        try:
            return perft(board, depth)
        finally:
            board.undo(frame)
    total = 0
    for sq in board.legal_moves():
        frame = board.push(sq)
        total += perft(board, depth - 1)
        board.undo(frame)
    return total


def play_moves(board: Optional[Board], moves: Iterable[str]) -> Board:
    b = start_board() if board is None else board.copy()
    for mv in moves:
        b.do_move(notation_to_coord(mv))
    return b
