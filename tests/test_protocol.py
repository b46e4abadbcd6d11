from __future__ import annotations

import pytest

from othello_arena import protocol
from othello_arena.engine.board import Board, Turn
from othello_arena.errors import ProtocolViolation


def test_board_message_carries_sequence_position_turn_and_budget():
    b = Board.new()
    b.do_move(19)
    raw = protocol.board(7, b, 1500).encode()
    assert raw.endswith(b"\n")
    msg = protocol.decode(raw)
    assert msg.verb == protocol.BOARD
    seq, position, time_ms = protocol.parse_board(msg)
    assert seq == 7
    assert position == b
    assert position.turn == Turn.WHITE
    assert time_ms == 1500


def test_hello_version_check():
    assert protocol.parse_hello(protocol.decode(protocol.hello().encode())) == protocol.PROTOCOL_VERSION
    with pytest.raises(ProtocolViolation):
        protocol.parse_hello(protocol.decode(b"HELLO 99\n"))
    with pytest.raises(ProtocolViolation):
        protocol.parse_hello(protocol.decode(b"BYE\n"))


def test_game_move_and_result():
    assert protocol.parse_game(protocol.decode(b"GAME 3 WHITE\n")) == (3, Turn.WHITE)
    assert protocol.parse_move(protocol.decode(protocol.move(3, 44).encode())) == (3, 44)
    msg = protocol.decode(protocol.result("WIN", 40, 24, "opponent forfeit").encode())
    assert protocol.parse_result(msg) == ("WIN", 40, 24, "opponent_forfeit")


def test_forfeit_reason_stays_on_one_line():
    raw = protocol.forfeit(5, "engine\ncrashed  badly").encode()
    assert raw.count(b"\n") == 1
    msg = protocol.decode(raw)
    assert msg.args == ("5", "engine crashed badly")
    assert protocol.parse_forfeit(msg) == (5, "engine crashed badly")
    assert protocol.parse_forfeit(protocol.decode(protocol.forfeit(6, " ").encode())) == (6, "no reason")


def test_crlf_is_accepted():
    assert protocol.decode(b"MOVE 1 19\r\n").args == ("1", "19")


@pytest.mark.parametrize("raw", [
    b"",
    b"MOVE 1 19",
    b"JUMP 1\n",
    b"MOVE\n",
    b"MOVE 19\n",
    b"MOVE 1 2 3\n",
    b"FORFEIT\n",
    b"BOARD X BLACK 100\n",
    b"BYE now\n",
    b"\xff\xfe\n",
    b"MOVE " + b"1" * protocol.MAX_LINE + b"\n",
])
def test_malformed_lines(raw):
    with pytest.raises(ProtocolViolation):
        protocol.decode(raw)


@pytest.mark.parametrize("raw", [
    b"MOVE 1 e4\n",
    b"MOVE one 19\n",
    b"FORFEIT x gave up\n",
    b"GAME x BLACK\n",
    b"GAME 1 GREEN\n",
    b"RESULT MAYBE 1 2 normal\n",
    b"BOARD 1 xyz BLACK 100\n",
    b"BOARD x " + b"-" * 64 + b" BLACK 100\n",
])
def test_bad_fields(raw):
    msg = protocol.decode(raw)
    parse = {
        protocol.MOVE: protocol.parse_move,
        protocol.GAME: protocol.parse_game,
        protocol.RESULT: protocol.parse_result,
        protocol.BOARD: protocol.parse_board,
        protocol.FORFEIT: protocol.parse_forfeit,
    }[msg.verb]
    with pytest.raises(ProtocolViolation):
        parse(msg)


def test_version_one_framing_is_rejected():
    with pytest.raises(ProtocolViolation):
        protocol.parse_hello(protocol.decode(b"HELLO 1\n"))
    with pytest.raises(ProtocolViolation):
        protocol.decode(b"MOVE 19\n")


def test_agent_move():
    assert protocol.parse_agent_move(" 37\n") == 37
    with pytest.raises(ProtocolViolation):
        protocol.parse_agent_move("f5")
