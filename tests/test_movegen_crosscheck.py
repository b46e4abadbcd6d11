from __future__ import annotations

import random

from othello_arena.engine.bitboard import flip_mask, legal_moves_mask
from othello_arena.engine.board import start_board

STEPS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)]


def ref_flips(own: int, opp: int, sq: int) -> int:
    """Square-by-square walk used as the reference for the shift-based code."""
    if (own | opp) >> sq & 1:
        return 0
    r0, c0 = divmod(sq, 8)
    flips = 0
    for dr, dc in STEPS:
        run = 0
        r, c = r0 + dr, c0 + dc
        while 0 <= r < 8 and 0 <= c < 8 and opp >> (r * 8 + c) & 1:
            run |= 1 << (r * 8 + c)
            r, c = r + dr, c + dc
        if run and 0 <= r < 8 and 0 <= c < 8 and own >> (r * 8 + c) & 1:
            flips |= run
    return flips


def ref_legal(own: int, opp: int) -> int:
    mask = 0
    for sq in range(64):
        if ref_flips(own, opp, sq):
            mask |= 1 << sq
    return mask


def test_movegen_matches_reference_on_random_games():
    rng = random.Random(0xC0FFEE)
    for _ in range(8):
        b = start_board()
        while not b.is_game_over():
            assert legal_moves_mask(b.own, b.opp) == ref_legal(b.own, b.opp)
            if b.is_pass_pending():
                b.do_pass()
                continue
            for sq in b.legal_moves():
                assert flip_mask(b.own, b.opp, sq) == ref_flips(b.own, b.opp, sq)
            b.do_move(rng.choice(b.legal_moves()))


def test_edges_do_not_wrap():
    # h1 white between g1 black and a2 empty would wrap if shifts leaked
    own = 1 << 6
    opp = 1 << 7
    assert legal_moves_mask(own, opp) == 0
    own = 1 << 8
    opp = 1 << 15
    assert legal_moves_mask(own, opp) == ref_legal(own, opp) == 0
