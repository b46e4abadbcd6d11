"""Match core shared by the local and network arenas"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

from ..engine.board import Board, Turn
from ..errors import ArenaError, ConfigurationError
from ..logging_setup import log_event
from ..players.base import GameResult, Player

logger = logging.getLogger(__name__)

# Anything a player may raise that costs it the current game
PLAYER_ERRORS = (ArenaError, OSError)


def check_game_count(n: int) -> int:
    """Games are played in colour-swapped pairs, so n must be positive and even."""
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0 or n % 2:
        raise ConfigurationError(f"number of games must be a positive even number, got {n!r}")
    return n


@dataclass
class Forfeit:
    offender: int  # 1 or 2
    reason: str


@dataclass
class MatchRecord:
    """One finished game as seen by the arena"""
    game_index: int
    first_player: int  # player number that had black
    discs1: int
    discs2: int
    winner: Optional[int]  # 1, 2 or None for a draw
    moves: List[int] = field(default_factory=list)
    forfeit: Optional[Forfeit] = None


@dataclass
class ArenaStats:
    wins1: int = 0
    wins2: int = 0
    draws: int = 0
    pieces1: int = 0
    pieces2: int = 0
    forfeits1: int = 0
    forfeits2: int = 0

    @property
    def games(self) -> int:
        return self.wins1 + self.wins2 + self.draws

    def record(self, match: MatchRecord) -> None:
        if match.winner == 1:
            self.wins1 += 1
        elif match.winner == 2:
            self.wins2 += 1
        else:
            self.draws += 1
        self.pieces1 += match.discs1
        self.pieces2 += match.discs2
        if match.forfeit is not None:
            if match.forfeit.offender == 1:
                self.forfeits1 += 1
            else:
                self.forfeits2 += 1

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.wins1, self.wins2, self.draws


class Arena:
    """Plays games between two players and keeps the score.

    Player 1 has black in even-numbered games and white in odd ones. Game
    numbers and statistics carry over between `play_n` calls.
    """

    def __init__(self, player1: Player, player2: Player, show_progress: bool = False, *,
                 move_timeout: Optional[float] = 5.0, keep_history: bool = False) -> None:
        if player1 is player2:
            raise ConfigurationError("the two players must be distinct instances")
        if move_timeout is not None and move_timeout <= 0:
            raise ConfigurationError(f"move_timeout must be positive, got {move_timeout}")
        self.players: Tuple[Player, Player] = (player1, player2)
        self.show_progress = show_progress
        self.move_timeout = move_timeout
        self.keep_history = keep_history
        self.stats = ArenaStats()
        self.history: List[MatchRecord] = []
        self.games_played = 0

    @property
    def move_time_ms(self) -> Optional[int]:
        return None if self.move_timeout is None else int(self.move_timeout * 1000)

    # -- public surface ----------------------------------------------------

    def play_n(self, n: int) -> None:
        """Play `n` more games; only setup problems raise, player failures are forfeits."""
        check_game_count(n)
        names = " vs ".join(p.name for p in self.players)
        with tqdm(total=n, desc=names, unit="game", disable=not self.show_progress) as bar:
            for _ in range(n):
                index = self.games_played
                if not self._before_game(index):
                    logger.info("Stopping after %d games", index)
                    break
                self.play_game(index)
                self.games_played += 1
                bar.update(1)
                bar.set_postfix(w1=self.stats.wins1, w2=self.stats.wins2, d=self.stats.draws)

    def get_stats(self) -> Tuple[int, int, int]:
        return self.stats.as_tuple()

    def get_pieces(self) -> Tuple[int, int]:
        return self.stats.pieces1, self.stats.pieces2

    def close(self) -> None:
        for player in self.players:
            player.close()

    def __enter__(self) -> "Arena":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -- one game ----------------------------------------------------------

    def _before_game(self, index: int) -> bool:
        """Hook run before every game; returning False ends the run early."""
        return True

    def play_game(self, index: int) -> MatchRecord:
        first = 1 if index % 2 == 0 else 2
        seats: Dict[Turn, int] = {Turn.BLACK: first, Turn.WHITE: 3 - first}
        started: List[int] = []
        record: Optional[MatchRecord] = None
        try:
            record = self._run_game(index, seats, started)
        finally:
            self._end_game(started, record)

        self.stats.record(record)
        if self.keep_history:
            self.history.append(record)
        log_event("arena", "game_over", game=index, first=first, winner=record.winner,
                  discs1=record.discs1, discs2=record.discs2, plies=len(record.moves),
                  forfeit=record.forfeit.offender if record.forfeit else None)
        return record

    def _run_game(self, index: int, seats: Dict[Turn, int], started: List[int]) -> MatchRecord:
        board = Board.new()
        moves: List[int] = []
        forfeit: Optional[Forfeit] = None

        for color in (Turn.BLACK, Turn.WHITE):
            num = seats[color]
            started.append(num)
            try:
                self.players[num - 1].start_game(color)
            except PLAYER_ERRORS as e:
                forfeit = Forfeit(num, f"failed to start: {e}")
                break

        # do_move applies the automatic pass, so the side to move always has a move here
        while forfeit is None and not board.is_game_over():
            num = seats[board.turn]
            try:
                sq = self.players[num - 1].get_move(board.copy(), self.move_time_ms)
                board.do_move(sq)
            except PLAYER_ERRORS as e:
                forfeit = Forfeit(num, f"{e.__class__.__name__}: {e}")
                break
            moves.append(sq)

        discs = {seats[Turn.BLACK]: board.black_count(), seats[Turn.WHITE]: board.white_count()}
        if forfeit is not None:
            winner: Optional[int] = 3 - forfeit.offender
            logger.warning("Game %d: player %d (%s) forfeits: %s", index, forfeit.offender,
                           self.players[forfeit.offender - 1].name, forfeit.reason)
            log_event("arena", "forfeit", game=index, offender=forfeit.offender, reason=forfeit.reason)
        else:
            w = board.winner()
            winner = None if w is None else seats[w]
        return MatchRecord(index, seats[Turn.BLACK], discs[1], discs[2], winner, moves, forfeit)

    def _end_game(self, started: List[int], record: Optional[MatchRecord]) -> None:
        for num in started:
            result = None if record is None else _result_for(record, num)
            try:
                self.players[num - 1].end_game(result)
            except PLAYER_ERRORS as e:
                logger.warning("end_game failed for player %d: %s", num, e)


def _result_for(record: MatchRecord, num: int) -> GameResult:
    own, opp = (record.discs1, record.discs2) if num == 1 else (record.discs2, record.discs1)
    if record.winner is None:
        outcome = "DRAW"
    else:
        outcome = "WIN" if record.winner == num else "LOSS"
    if record.forfeit is None:
        reason = "normal"
    else:
        reason = "forfeit" if record.forfeit.offender == num else "opponent_forfeit"
    return GameResult(outcome, own, opp, reason)
