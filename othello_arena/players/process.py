"""
Subprocess agents speaking the line protocol over pipes.

One agent process is spawned per game and killed when the game ends, so a
misbehaving agent cannot leak into the next game. Reads go through a reader
thread and a queue so every wait is bounded.
"""

from __future__ import annotations

import logging
import os
import queue
import shutil
import subprocess
import threading
from typing import List, Optional, Sequence

from othello_arena import protocol
from othello_arena.engine.board import Board, Turn
from othello_arena.errors import ConfigurationError, ProtocolViolation
from othello_arena.players.base import GameResult, Player

logger = logging.getLogger(__name__)

_EOF = None


def _resolve_executable(program: str) -> Optional[str]:
    if os.path.sep in program or (os.path.altsep and os.path.altsep in program):
        return program if os.path.isfile(program) else None
    return shutil.which(program)


class SubprocessPlayer(Player):
    """
    Args:
        command: argv of the agent; BLACK or WHITE is appended per game.
        start_timeout: seconds the agent gets to answer ``ping``.
        move_timeout: seconds per move when the arena grants no budget.
    """

    def __init__(self, command: Sequence[str], name: Optional[str] = None,
                 start_timeout: float = 5.0, move_timeout: float = 5.0) -> None:
        if not command or not all(isinstance(part, str) for part in command):
            raise ConfigurationError(f"agent command must be a non-empty list of strings: {command!r}")
        if _resolve_executable(command[0]) is None:
            raise ConfigurationError(f"agent executable not found: {command[0]}")
        super().__init__(name or os.path.basename(command[-1] if len(command) > 1 else command[0]))
        self.command: List[str] = list(command)
        self.start_timeout = start_timeout
        self.move_timeout = move_timeout
        self._proc: Optional[subprocess.Popen] = None
        self._lines: "queue.Queue[Optional[str]]" = queue.Queue()
        self._reader: Optional[threading.Thread] = None

    # -- lifecycle ---------------------------------------------------------

    def start_game(self, color: Turn) -> None:
        super().start_game(color)
        self._stop()
        argv = self.command + [color.name]
        try:
            self._proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as e:
            raise ProtocolViolation(f"cannot start agent {argv!r}: {e}") from e
        self._lines = queue.Queue()
        self._reader = threading.Thread(
            target=self._read_lines, args=(self._proc.stdout, self._lines),
            name=f"agent-reader-{self._proc.pid}", daemon=True,
        )
        self._reader.start()
        logger.debug("Started agent pid=%s: %s", self._proc.pid, argv)
        try:
            self._send(protocol.PING)
            reply = self._receive(self.start_timeout)
            if reply != protocol.PONG:
                raise ProtocolViolation(f"agent answered {reply!r} to ping")
        except ProtocolViolation:
            self._stop()
            raise

    def end_game(self, result: Optional[GameResult]) -> None:
        self._stop()

    def close(self) -> None:
        self._stop()

    # -- moves -------------------------------------------------------------

    def get_move(self, board: Board, time_ms: Optional[int] = None) -> int:
        if self._proc is None:
            raise ProtocolViolation("agent is not running")
        timeout = self.move_timeout if time_ms is None else time_ms / 1000.0
        self._send(board.to_line())
        return protocol.parse_agent_move(self._receive(timeout))

    # -- plumbing ----------------------------------------------------------

    @staticmethod
    def _read_lines(stream, lines: "queue.Queue[Optional[str]]") -> None:  # type: ignore[no-untyped-def]
        try:
            for line in stream:
                lines.put(line.rstrip("\r\n"))
        except (OSError, ValueError):
            # Pipe closed underneath us while stopping
            pass
        finally:
            lines.put(_EOF)

    def _send(self, line: str) -> None:
        assert self._proc is not None and self._proc.stdin is not None
        try:
            self._proc.stdin.write(line + "\n")
            self._proc.stdin.flush()
        except (BrokenPipeError, OSError, ValueError) as e:
            raise ProtocolViolation(f"agent pipe closed: {e}") from e

    def _receive(self, timeout: float) -> str:
        try:
            line = self._lines.get(timeout=max(timeout, 0.0))
        except queue.Empty:
            raise ProtocolViolation(f"agent did not answer within {timeout:.3f}s") from None
        if line is _EOF:
            raise ProtocolViolation("agent exited")
        return line

    def _stop(self) -> None:
        proc, self._proc = self._proc, None
        if proc is None:
            return
        if proc.stdin is not None:
            try:
                proc.stdin.close()
            except OSError as e:
                logger.debug("Agent pid=%s stdin close failed: %s", proc.pid, e)
        if proc.poll() is None:
            proc.kill()
        try:
            proc.wait(timeout=5.0)
        except subprocess.TimeoutExpired:
            logger.warning("Agent pid=%s did not exit after kill", proc.pid)
        if proc.stdout is not None:
            proc.stdout.close()
        if self._reader is not None:
            self._reader.join(timeout=1.0)
            self._reader = None
        logger.debug("Stopped agent pid=%s rc=%s", proc.pid, proc.returncode)
