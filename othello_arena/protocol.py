"""Line protocols spoken by remote players.

Agent protocol (subprocess players, legacy compatible):
    the agent is started with BLACK or WHITE appended to its command line,
    answers ``ping`` with ``pong``, then reads a 64-char board line
    (X black, O white, - empty) and writes back one square index per line.

Network protocol, version 2:
    UTF-8 lines terminated by ``\\n``, fields separated by one space, the first
    field is the verb. Every BOARD carries a sequence number, counted per
    connection from 1; the MOVE or FORFEIT answering it must echo that number.
    A client only ever speaks after HELLO and in answer to a BOARD.

        server -> client   HELLO <version>
        client -> server   HELLO <version>
        server -> client   GAME <index> <BLACK|WHITE>
        server -> client   BOARD <seq> <64-char line> <BLACK|WHITE> <time_ms>
        client -> server   MOVE <seq> <square>
        client -> server   FORFEIT <seq> <reason...>
        server -> client   RESULT <WIN|LOSS|DRAW> <own discs> <opp discs> <reason>
        server -> client   BYE
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .engine.board import Board, Turn
from .errors import ProtocolViolation

PROTOCOL_VERSION = 2
MAX_LINE = 1024

PING = "ping"
PONG = "pong"

HELLO = "HELLO"
GAME = "GAME"
BOARD = "BOARD"
MOVE = "MOVE"
FORFEIT = "FORFEIT"
RESULT = "RESULT"
BYE = "BYE"

# verb -> (min args, max args); the free-text FORFEIT reason stays one field
_ARITY = {
    HELLO: (1, 1),
    GAME: (2, 2),
    BOARD: (4, 4),
    MOVE: (2, 2),
    FORFEIT: (1, 2),
    RESULT: (4, 4),
    BYE: (0, 0),
}

OUTCOMES = ("WIN", "LOSS", "DRAW")


@dataclass(frozen=True)
class Message:
    verb: str
    args: Tuple[str, ...] = ()

    def encode(self) -> bytes:
        return (" ".join((self.verb,) + self.args) + "\n").encode("utf-8")


def decode(raw: bytes) -> Message:
    """Parse one framed line; raises ProtocolViolation on anything malformed."""
    if len(raw) > MAX_LINE:
        raise ProtocolViolation(f"line longer than {MAX_LINE} bytes")
    if not raw.endswith(b"\n"):
        raise ProtocolViolation("unterminated line")
    try:
        text = raw.decode("utf-8").rstrip("\r\n")
    except UnicodeDecodeError as e:
        raise ProtocolViolation(f"line is not UTF-8: {e}") from e
    verb, _, rest = text.partition(" ")
    if verb not in _ARITY:
        raise ProtocolViolation(f"unknown verb {verb!r}")
    lo, hi = _ARITY[verb]
    if verb == FORFEIT:
        seq, _, reason = rest.partition(" ")
        args: Tuple[str, ...] = tuple(f for f in (seq, reason) if f)
    else:
        args = tuple(rest.split(" ")) if rest else ()
    if not lo <= len(args) <= hi:
        raise ProtocolViolation(f"{verb} expects {lo}..{hi} fields, got {len(args)}")
    return Message(verb, args)


def _int(field: str, what: str) -> int:
    try:
        return int(field)
    except ValueError:
        raise ProtocolViolation(f"bad {what}: {field!r}") from None


def _turn(field: str) -> Turn:
    try:
        return Turn.parse(field)
    except ValueError:
        raise ProtocolViolation(f"bad color: {field!r}") from None


# -- builders --------------------------------------------------------------

def hello() -> Message:
    return Message(HELLO, (str(PROTOCOL_VERSION),))


def game(index: int, color: Turn) -> Message:
    return Message(GAME, (str(index), color.name))


def board(seq: int, position: Board, time_ms: int) -> Message:
    return Message(BOARD, (str(seq), position.to_line(), position.turn.name, str(int(time_ms))))


def move(seq: int, square: int) -> Message:
    return Message(MOVE, (str(seq), str(square)))


def forfeit(seq: int, reason: str) -> Message:
    # Reason must stay on one line
    reason = " ".join(reason.split())
    return Message(FORFEIT, (str(seq), reason) if reason else (str(seq),))


def result(outcome: str, own: int, opp: int, reason: str) -> Message:
    return Message(RESULT, (outcome, str(own), str(opp), reason.replace(" ", "_") or "normal"))


def bye() -> Message:
    return Message(BYE)


# -- readers ---------------------------------------------------------------

def parse_hello(msg: Message) -> int:
    if msg.verb != HELLO:
        raise ProtocolViolation(f"expected {HELLO}, got {msg.verb}")
    version = _int(msg.args[0], "protocol version")
    if version != PROTOCOL_VERSION:
        raise ProtocolViolation(f"unsupported protocol version {version}")
    return version


def parse_game(msg: Message) -> Tuple[int, Turn]:
    return _int(msg.args[0], "game index"), _turn(msg.args[1])


def parse_board(msg: Message) -> Tuple[int, Board, int]:
    """(sequence number, position, move budget in ms)"""
    seq = _int(msg.args[0], "sequence number")
    turn = _turn(msg.args[2])
    try:
        position = Board.from_line(msg.args[1], turn)
    except ValueError as e:
        raise ProtocolViolation(str(e)) from e
    return seq, position, _int(msg.args[3], "time budget")


def parse_move(msg: Message) -> Tuple[int, int]:
    """(sequence number, square)"""
    return _int(msg.args[0], "sequence number"), _int(msg.args[1], "square")


def parse_forfeit(msg: Message) -> Tuple[int, str]:
    """(sequence number, reason)"""
    reason = msg.args[1] if len(msg.args) > 1 else "no reason"
    return _int(msg.args[0], "sequence number"), reason


def parse_result(msg: Message) -> Tuple[str, int, int, str]:
    outcome = msg.args[0]
    if outcome not in OUTCOMES:
        raise ProtocolViolation(f"bad outcome: {outcome!r}")
    return outcome, _int(msg.args[1], "disc count"), _int(msg.args[2], "disc count"), msg.args[3]


def parse_agent_move(line: str) -> int:
    """Square index written by a subprocess agent."""
    text = line.strip()
    try:
        return int(text)
    except ValueError:
        raise ProtocolViolation(f"agent sent unparsable move {text!r}") from None
