from __future__ import annotations

import random
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple

from ..errors import GameNotOverError, InvalidMove, NoLegalMoveError
from .bitboard import FULL, flip_mask, legal_moves_mask, mask_to_list

PASS = 64

LINE_CHAR_BLACK = "X"
LINE_CHAR_WHITE = "O"
LINE_CHAR_EMPTY = "-"

# Standard start: black on e4/d5, white on d4/e5
START_BLACK = (1 << 28) | (1 << 35)
START_WHITE = (1 << 27) | (1 << 36)


class Turn(IntEnum):
    BLACK = 0
    WHITE = 1

    def opposite(self) -> "Turn":
        return Turn.WHITE if self is Turn.BLACK else Turn.BLACK

    @classmethod
    def parse(cls, text: str) -> "Turn":
        try:
            return cls[text.strip().upper()]
        except KeyError:
            raise ValueError(f"bad turn: {text!r}") from None


@dataclass
class StackFrame:
    move_sq: int
    flipped: int
    prev_turn: Turn
    auto_passed: bool = False


@dataclass
class Board:
    """Bitboard position seen from the side to move.

    `own` holds the discs of the side to move, `opp` those of its opponent.
    All mutation goes through `push`/`undo`; `do_move` is the public,
    validated entry point and applies at most one automatic pass.
    """

    own: int = START_BLACK
    opp: int = START_WHITE
    turn: Turn = Turn.BLACK

    @classmethod
    def new(cls) -> "Board":
        return cls(START_BLACK, START_WHITE, Turn.BLACK)

    @classmethod
    def from_line(cls, line: str, turn: Turn) -> "Board":
        """Parse the 64-char `X`/`O`/`-` line format (X is black) with `turn` to move."""
        line = line.strip()
        if len(line) != 64:
            raise ValueError(f"board line must have 64 cells, got {len(line)}")
        black = white = 0
        for i, c in enumerate(line):
            if c == LINE_CHAR_BLACK:
                black |= 1 << i
            elif c == LINE_CHAR_WHITE:
                white |= 1 << i
            elif c != LINE_CHAR_EMPTY:
                raise ValueError(f"bad board character {c!r} at {i}")
        if turn == Turn.BLACK:
            return cls(black, white, Turn.BLACK)
        return cls(white, black, Turn.WHITE)

    def to_line(self) -> str:
        black, white = self.black, self.white
        cells = []
        for i in range(64):
            bit = 1 << i
            if black & bit:
                cells.append(LINE_CHAR_BLACK)
            elif white & bit:
                cells.append(LINE_CHAR_WHITE)
            else:
                cells.append(LINE_CHAR_EMPTY)
        return "".join(cells)

    def copy(self) -> "Board":
        return Board(self.own, self.opp, self.turn)

    @property
    def black(self) -> int:
        return self.own if self.turn == Turn.BLACK else self.opp

    @property
    def white(self) -> int:
        return self.opp if self.turn == Turn.BLACK else self.own

    # -- rules -------------------------------------------------------------

    def legal_moves_mask(self) -> int:
        return legal_moves_mask(self.own, self.opp)

    def legal_moves(self) -> List[int]:
        return mask_to_list(legal_moves_mask(self.own, self.opp))

    def is_legal_move(self, sq: int) -> bool:
        if not 0 <= sq < 64:
            return False
        return bool(legal_moves_mask(self.own, self.opp) & (1 << sq))

    def is_pass_pending(self) -> bool:
        return legal_moves_mask(self.own, self.opp) == 0 and legal_moves_mask(self.opp, self.own) != 0

    def is_game_over(self) -> bool:
        return legal_moves_mask(self.own, self.opp) == 0 and legal_moves_mask(self.opp, self.own) == 0

    def push(self, sq: int) -> StackFrame:
        """Apply `sq` (or PASS) and return the frame needed by `undo`."""
        prev_turn = self.turn
        if sq == PASS:
            if not self.is_pass_pending():
                raise InvalidMove(sq, "pass not allowed")
            self.own, self.opp, self.turn = self.opp, self.own, prev_turn.opposite()
            return StackFrame(PASS, 0, prev_turn)
        if not isinstance(sq, int) or not 0 <= sq < 64:
            raise InvalidMove(sq, "square out of range")
        mask = 1 << sq
        if not legal_moves_mask(self.own, self.opp) & mask:
            raise InvalidMove(sq)
        flips = flip_mask(self.own, self.opp, sq)
        own = self.own | mask | flips
        opp = self.opp & ~flips & FULL
        # Opponent to move, unless it has nothing to play while we still do
        auto_passed = legal_moves_mask(opp, own) == 0 and legal_moves_mask(own, opp) != 0
        if auto_passed:
            self.own, self.opp = own, opp
        else:
            self.own, self.opp, self.turn = opp, own, prev_turn.opposite()
        return StackFrame(sq, flips, prev_turn, auto_passed)

    def undo(self, frame: StackFrame) -> None:
        # 'mover' refers to the side that made the move (prev_turn)
        if self.turn == frame.prev_turn:
            mover, other = self.own, self.opp
        else:
            mover, other = self.opp, self.own
        if frame.move_sq != PASS:
            mover &= ~((1 << frame.move_sq) | frame.flipped) & FULL
            other |= frame.flipped
        self.own, self.opp, self.turn = mover, other, frame.prev_turn

    def do_move(self, sq: int) -> None:
        self.push(sq)

    def do_pass(self) -> None:
        self.push(PASS)

    # -- scoring -----------------------------------------------------------

    def disc_counts(self) -> Tuple[int, int]:
        return self.own.bit_count(), self.opp.bit_count()

    def black_count(self) -> int:
        return self.black.bit_count()

    def white_count(self) -> int:
        return self.white.bit_count()

    def empty_count(self) -> int:
        return 64 - (self.own | self.opp).bit_count()

    def winner(self) -> Optional[Turn]:
        """Side with more discs, None on a draw. Only valid once the game is over."""
        if not self.is_game_over():
            raise GameNotOverError("game is not over yet")
        b, w = self.black_count(), self.white_count()
        if b > w:
            return Turn.BLACK
        if w > b:
            return Turn.WHITE
        return None

    def random_move(self, rng: random.Random) -> int:
        moves = self.legal_moves()
        if not moves:
            raise NoLegalMoveError("no legal move")
        return rng.choice(moves)

    def __str__(self) -> str:
        black, white = self.black, self.white
        rows = [" |abcdefgh", "-+--------"]
        for r in range(8):
            cells = []
            for c in range(8):
                bit = 1 << (r * 8 + c)
                if black & bit:
                    cells.append(LINE_CHAR_BLACK)
                elif white & bit:
                    cells.append(LINE_CHAR_WHITE)
                else:
                    cells.append(LINE_CHAR_EMPTY)
            rows.append(f"{r + 1}|{''.join(cells)}")
        return "\n".join(rows) + "\n"


def start_board() -> Board:
    return Board.new()
