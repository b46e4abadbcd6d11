"""
Network arena: an authoritative TCP server and the matching client.

The server owns the board and seats two clients; each seat is a RemotePlayer
fed through the same match core as the local arena. The wire format is the
line framing documented in `othello_arena.protocol`.

Failure handling per game:
    illegal move          forfeit, connection kept
    FORFEIT from client   forfeit, connection kept
    malformed message,
    out-of-turn message,
    read timeout,
    dropped connection    forfeit, connection closed; the seat is refilled
                          before the next game
"""

from __future__ import annotations

import logging
import select
import socket
import threading
import time
from typing import Any, Optional, Tuple

from .. import protocol
from ..config import Config
from ..engine.board import Board, Turn
from ..errors import ArenaConnectionError, ConfigurationError, ProtocolViolation
from ..logging_setup import log_event
from ..players import PlayerSpec, create_player
from ..players.base import GameResult, Player
from .core import PLAYER_ERRORS, Arena, check_game_count

logger = logging.getLogger(__name__)

# accept_timeout not given: use the config value (None means wait forever)
_FROM_CONFIG = object()


class LineConnection:
    """One framed, bidirectional line stream over a connected socket."""

    def __init__(self, sock: socket.socket, peer: Optional[Tuple] = None) -> None:
        self.sock = sock
        self.peer = peer
        self._buf = bytearray()
        self.closed = False

    def send(self, msg: protocol.Message) -> None:
        try:
            self.sock.sendall(msg.encode())
        except OSError as e:
            raise ArenaConnectionError(f"send to {self.peer} failed: {e}") from e

    def pending(self) -> bool:
        """True if the peer has sent bytes nobody has read yet."""
        if self._buf:
            return True
        try:
            readable, _, _ = select.select([self.sock], [], [], 0)
            # EOF also polls readable; it is reported by the next recv instead
            return bool(readable) and bool(self.sock.recv(1, socket.MSG_PEEK))
        except (OSError, ValueError) as e:
            raise ArenaConnectionError(f"poll of {self.peer} failed: {e}") from e

    def recv(self, timeout: Optional[float]) -> protocol.Message:
        """Read one message; a timeout is the peer's fault, a closed socket is transport."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            end = self._buf.find(b"\n")
            if end >= 0:
                raw = bytes(self._buf[:end + 1])
                del self._buf[:end + 1]
                return protocol.decode(raw)
            if len(self._buf) > protocol.MAX_LINE:
                raise ProtocolViolation(f"line from {self.peer} longer than {protocol.MAX_LINE} bytes")
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ProtocolViolation(f"no message from {self.peer} within {timeout}s")
                self.sock.settimeout(remaining)
            else:
                self.sock.settimeout(None)
            try:
                chunk = self.sock.recv(4096)
            except socket.timeout:
                raise ProtocolViolation(f"no message from {self.peer} within {timeout}s") from None
            except OSError as e:
                raise ArenaConnectionError(f"receive from {self.peer} failed: {e}") from e
            if not chunk:
                if self._buf:
                    raise ProtocolViolation(f"unterminated line from {self.peer}")
                raise ArenaConnectionError(f"connection closed by {self.peer}")
            self._buf += chunk

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.sock.close()
        except OSError as e:
            logger.debug("Error closing connection to %s: %s", self.peer, e)


class RemotePlayer(Player):
    """Server-side stand-in for the client sitting in one seat."""

    def __init__(self, seat: int, read_timeout: float = 5.0) -> None:
        super().__init__(f"seat{seat}")
        self.seat = seat
        self.read_timeout = read_timeout
        self.conn: Optional[LineConnection] = None
        self.game_index = 0
        self.seq = 0

    @property
    def connected(self) -> bool:
        return self.conn is not None

    def attach(self, conn: LineConnection) -> None:
        self.conn = conn
        self.seq = 0
        self.name = f"seat{self.seat}@{conn.peer[0]}:{conn.peer[1]}" if conn.peer else f"seat{self.seat}"

    def drop(self, reason: str) -> None:
        if self.conn is None:
            return
        conn, self.conn = self.conn, None
        logger.warning("Closing %s: %s", self.name, reason)
        log_event("network", "connection_closed", seat=self.seat, peer=conn.peer, reason=reason)
        conn.close()

    def _require(self) -> LineConnection:
        if self.conn is None:
            raise ArenaConnectionError(f"seat {self.seat} is vacant")
        return self.conn

    def start_game(self, color: Turn) -> None:
        super().start_game(color)
        conn = self._require()
        try:
            conn.send(protocol.game(self.game_index, color))
        except ArenaConnectionError as e:
            self.drop(str(e))
            raise

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        conn = self._require()
        if time_ms is None:
            time_ms = int(self.read_timeout * 1000)
        try:
            if conn.pending():
                raise ProtocolViolation("client sent a message before it was asked to move")
            self.seq += 1
            conn.send(protocol.board(self.seq, board, time_ms))
            msg = conn.recv(time_ms / 1000.0)
            if msg.verb == protocol.MOVE:
                seq, sq = protocol.parse_move(msg)
            elif msg.verb == protocol.FORFEIT:
                seq, reason = protocol.parse_forfeit(msg)
            else:
                raise ProtocolViolation(f"expected {protocol.MOVE}, got {msg.verb}")
            if seq != self.seq:
                raise ProtocolViolation(f"{msg.verb} answers board {seq}, expected {self.seq}")
        except (ProtocolViolation, ArenaConnectionError) as e:
            self.drop(str(e))
            raise
        if msg.verb == protocol.MOVE:
            return sq
        # A client that gives up politely keeps its seat
        raise ProtocolViolation(f"client forfeited: {reason}")

    def end_game(self, result: Optional[GameResult]) -> None:
        if self.conn is None or result is None:
            return
        try:
            self.conn.send(protocol.result(result.outcome, result.own_discs, result.opp_discs, result.reason))
        except ArenaConnectionError as e:
            self.drop(str(e))

    def close(self) -> None:
        if self.conn is None:
            return
        try:
            self.conn.send(protocol.bye())
        except ArenaConnectionError as e:
            logger.debug("BYE to %s failed: %s", self.name, e)
        self.conn.close()
        self.conn = None


class NetworkArenaServer(Arena):
    """
    Args:
        num_games: games to play, a positive even number.
        read_timeout: seconds a client gets for each move (and for HELLO).
        accept_timeout: seconds to wait for a replacement client when a seat
            fell vacant; None waits forever.
    """

    def __init__(
        self,
        num_games: int,
        show_progress: bool = False,
        *,
        read_timeout: Optional[float] = None,
        accept_timeout: Any = _FROM_CONFIG,
        keep_history: Optional[bool] = None,
        config: Optional[Config] = None,
    ) -> None:
        cfg = config or Config()
        self.num_games = check_game_count(num_games)
        self.read_timeout = cfg.network.read_timeout if read_timeout is None else read_timeout
        self.accept_timeout: Optional[float] = (
            cfg.network.accept_timeout if accept_timeout is _FROM_CONFIG else accept_timeout)
        if self.read_timeout <= 0:
            raise ConfigurationError(f"read_timeout must be positive, got {self.read_timeout}")
        keep_history = cfg.arena.keep_history if keep_history is None else keep_history
        super().__init__(RemotePlayer(1, self.read_timeout), RemotePlayer(2, self.read_timeout),
                         show_progress, move_timeout=self.read_timeout, keep_history=keep_history)
        self.ready = threading.Event()
        self.server_address: Optional[Tuple[str, int]] = None
        self._sock: Optional[socket.socket] = None

    @property
    def seats(self) -> Tuple[RemotePlayer, RemotePlayer]:
        return self.players  # type: ignore[return-value]

    def start(self, host: str, port: int) -> None:
        """Bind, seat two clients, play every game and say BYE. Blocks until done."""
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
            raise ConfigurationError(f"invalid port: {port!r}")
        try:
            self._sock = socket.create_server((host, port))
        except socket.gaierror as e:
            raise ConfigurationError(f"invalid listen address {host!r}: {e}") from e
        except OSError as e:
            raise ArenaConnectionError(f"cannot listen on {host}:{port}: {e}") from e
        self.server_address = self._sock.getsockname()[:2]
        logger.info("Listening on %s:%d for %d games", self.server_address[0],
                    self.server_address[1], self.num_games)
        self.ready.set()
        try:
            for seat in self.seats:
                self._fill_seat(seat, None)
            self.play_n(self.num_games)
            logger.info("Match finished: %s", self.get_stats())
        finally:
            self.close()

    def close(self) -> None:
        super().close()
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def _before_game(self, index: int) -> bool:
        for seat in self.seats:
            seat.game_index = index
        vacant = [seat for seat in self.seats if not seat.connected]
        if len(vacant) == len(self.seats):
            logger.warning("Both seats are vacant, stopping before game %d", index)
            return False
        for seat in vacant:
            logger.info("Seat %d is vacant, waiting for a client", seat.seat)
            if not self._fill_seat(seat, self.accept_timeout):
                logger.warning("No client for seat %d, it forfeits game %d", seat.seat, index)
        return True

    def _fill_seat(self, seat: RemotePlayer, timeout: Optional[float]) -> bool:
        assert self._sock is not None
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if deadline is None:
                self._sock.settimeout(None)
            else:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._sock.settimeout(remaining)
            try:
                client, addr = self._sock.accept()
            except socket.timeout:
                return False
            except OSError as e:
                raise ArenaConnectionError(f"accept failed: {e}") from e
            conn = LineConnection(client, addr)
            try:
                conn.send(protocol.hello())
                protocol.parse_hello(conn.recv(self.read_timeout))
            except (ProtocolViolation, ArenaConnectionError) as e:
                logger.warning("Rejected client %s: %s", addr, e)
                conn.close()
                continue
            seat.attach(conn)
            logger.info("Client %s took seat %d", addr, seat.seat)
            log_event("network", "seated", seat=seat.seat, peer=addr)
            return True


class NetworkArenaClient:
    """
    Connects one player to a NetworkArenaServer and plays until BYE.

    Args:
        player_spec: anything `create_player` accepts.
        connect_timeout: seconds for the TCP connect and the HELLO exchange.
        idle_timeout: seconds to wait for the next server message; None
            waits forever (the opponent may think for a long time).
    """

    def __init__(self, player_spec: PlayerSpec, *, connect_timeout: float = 10.0,
                 idle_timeout: Optional[float] = None) -> None:
        self.player = create_player(player_spec)
        self.connect_timeout = connect_timeout
        self.idle_timeout = idle_timeout
        self.wins = 0
        self.losses = 0
        self.draws = 0
        self.own_pieces = 0
        self.opp_pieces = 0

    def get_stats(self) -> Tuple[int, int, int]:
        return self.wins, self.losses, self.draws

    def get_pieces(self) -> Tuple[int, int]:
        return self.own_pieces, self.opp_pieces

    def connect(self, host: str, port: int) -> None:
        try:
            sock = socket.create_connection((host, port), timeout=self.connect_timeout)
        except OSError as e:
            raise ArenaConnectionError(f"cannot connect to {host}:{port}: {e}") from e
        conn = LineConnection(sock, (host, port))
        try:
            protocol.parse_hello(conn.recv(self.connect_timeout))
            conn.send(protocol.hello())
            logger.info("Connected to %s:%d as %s", host, port, self.player.name)
            self._serve(conn)
        finally:
            conn.close()
            self.player.close()

    def _serve(self, conn: LineConnection) -> None:
        start_error: Optional[str] = None
        while True:
            msg = conn.recv(self.idle_timeout)
            if msg.verb == protocol.GAME:
                index, color = protocol.parse_game(msg)
                logger.debug("Game %d as %s", index, color.name)
                start_error = None
                try:
                    self.player.start_game(color)
                except PLAYER_ERRORS as e:
                    start_error = str(e)
                    logger.warning("Player failed to start game %d: %s", index, e)
            elif msg.verb == protocol.BOARD:
                seq, board, time_ms = protocol.parse_board(msg)
                if start_error is not None:
                    conn.send(protocol.forfeit(seq, f"player failed to start: {start_error}"))
                    continue
                try:
                    sq = self.player.get_move(board, time_ms)
                except PLAYER_ERRORS as e:
                    logger.warning("Player failed to move: %s", e)
                    conn.send(protocol.forfeit(seq, str(e) or e.__class__.__name__))
                    continue
                conn.send(protocol.move(seq, sq))
            elif msg.verb == protocol.RESULT:
                outcome, own, opp, reason = protocol.parse_result(msg)
                self._record(outcome, own, opp)
                try:
                    self.player.end_game(GameResult(outcome, own, opp, reason))
                except PLAYER_ERRORS as e:
                    logger.warning("end_game failed: %s", e)
            elif msg.verb == protocol.BYE:
                logger.info("Server said BYE; record %d-%d-%d", self.wins, self.losses, self.draws)
                return
            else:
                raise ProtocolViolation(f"unexpected {msg.verb} from server")

    def _record(self, outcome: str, own: int, opp: int) -> None:
        if outcome == "WIN":
            self.wins += 1
        elif outcome == "LOSS":
            self.losses += 1
        else:
            self.draws += 1
        self.own_pieces += own
        self.opp_pieces += opp
