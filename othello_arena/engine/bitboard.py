from __future__ import annotations

from typing import Iterator, List

# Board is 8x8, squares numbered 0..63 row-major: a1=0 (LSB), h1=7, a8=56, h8=63 (MSB).
# A square index i is the bit (1 << i).

FULL = 0xFFFFFFFFFFFFFFFF

# File masks to prevent horizontal wrap
NOT_A = 0xFEFEFEFEFEFEFEFE
NOT_H = 0x7F7F7F7F7F7F7F7F

# Directions in deltas: N, S, E, W, NE, NW, SE, SW
DIRS = (8, -8, 1, -1, 9, 7, -7, -9)


def shift(bb: int, d: int) -> int:
    """Shift every disc of `bb` one step in direction `d`, dropping wrapped bits."""
    if d == 8:
        return (bb << 8) & FULL
    if d == -8:
        return bb >> 8
    if d == 1:
        return (bb << 1) & NOT_A & FULL
    if d == -1:
        return (bb >> 1) & NOT_H
    if d == 9:
        return (bb << 9) & NOT_A & FULL
    if d == 7:
        return (bb << 7) & NOT_H & FULL
    if d == -7:
        return (bb >> 7) & NOT_A
    if d == -9:
        return (bb >> 9) & NOT_H
    raise ValueError(f"bad direction: {d}")


def legal_moves_mask(own: int, opp: int) -> int:
    """Return bitmask of legal moves for side with discs `own` against `opp`."""
    empty = ~(own | opp) & FULL
    moves = 0
    # For each direction, expand captures using shift-and-mask trick
    for d in DIRS:
        t = shift(own, d) & opp
        # Up to 5 additional expansions are sufficient on an 8x8 board
        t |= shift(t, d) & opp
        t |= shift(t, d) & opp
        t |= shift(t, d) & opp
        t |= shift(t, d) & opp
        t |= shift(t, d) & opp
        moves |= shift(t, d) & empty
    return moves


def flip_mask(own: int, opp: int, sq: int) -> int:
    """Return bitboard of discs flipped if `own` plays `sq`; 0 if nothing flips."""
    m = 1 << sq
    flips = 0
    for d in DIRS:
        run = 0
        cur = shift(m, d)
        while cur and (cur & opp):
            run |= cur
            cur = shift(cur, d)
        if run and (cur & own):
            flips |= run
    return flips


def iter_squares(mask: int) -> Iterator[int]:
    """Yield the set squares of `mask` in ascending order."""
    m = mask
    while m:
        lsb = m & -m
        yield lsb.bit_length() - 1
        m ^= lsb


def mask_to_list(mask: int) -> List[int]:
    return list(iter_squares(mask))
