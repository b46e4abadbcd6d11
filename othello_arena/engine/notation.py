"""
Coordinate notation for Othello moves.

Square 0 is 'a1' and square 63 is 'h8'; files run a-h along a rank. Used for
move lists on the command line and in log lines.
"""

from typing import List

from .board import PASS

# Special string for pass moves (no available moves)
PASS_NOTATION = '--'

FILES = 'abcdefgh'
RANKS = '12345678'


def coord_to_notation(coord: int) -> str:
    """Square index (0-63, or PASS) to notation such as 'e4'."""
    if coord == PASS:
        return PASS_NOTATION
    if not 0 <= coord < 64:
        raise ValueError(f"Invalid coordinate: {coord}")
    rank, file = divmod(coord, 8)
    return FILES[file] + RANKS[rank]


def notation_to_coord(notation: str) -> int:
    """Notation such as 'e4' (or '--') to a square index."""
    if notation == PASS_NOTATION:
        return PASS
    if len(notation) != 2:
        raise ValueError(f"Invalid notation format: {notation!r}")
    file = FILES.find(notation[0].lower())
    rank = RANKS.find(notation[1])
    if file < 0 or rank < 0:
        raise ValueError(f"Invalid notation: {notation!r}")
    return rank * 8 + file


def moves_to_string(moves: List[int]) -> str:
    """Squares to a compact string such as 'f5d6--c3'."""
    return ''.join(coord_to_notation(move) for move in moves)


def string_to_moves(moves_str: str) -> List[int]:
    """Inverse of moves_to_string; raises ValueError on malformed input."""
    if len(moves_str) % 2:
        raise ValueError(f"Incomplete notation: {moves_str!r}")
    return [notation_to_coord(moves_str[i:i + 2]) for i in range(0, len(moves_str), 2)]
