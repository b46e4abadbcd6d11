from __future__ import annotations

import logging
import pathlib
import sys
import threading
import time
import traceback
from typing import Any, Optional, Union

import orjson


LOG_FILE_NAME = "othello-arena.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(process)d:%(threadName)s] %(name)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED_FLAG = "_oa_logging_configured"


def get_log_path() -> pathlib.Path:
    return pathlib.Path.cwd() / LOG_FILE_NAME


def setup_logging(
    overwrite: bool = True,
    level: Union[int, str] = logging.INFO,
    log_path: Optional[pathlib.Path] = None,
) -> None:
    """Send all records to one log file and to STDERR.

    Only the first call in a process has an effect. It truncates the file when
    `overwrite` is set, captures warnings and routes uncaught exceptions (main
    thread and worker threads) into the log. Stdout is left alone: agents and
    the CLI print results there.
    """
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG, False):
        return
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    to_file = logging.FileHandler(log_path or get_log_path(), mode="w" if overwrite else "a", encoding="utf-8")
    to_stderr = logging.StreamHandler(stream=sys.stderr)
    for handler in (to_file, to_stderr):
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[to_file, to_stderr], force=True)
    setattr(root, _CONFIGURED_FLAG, True)

    logging.captureWarnings(True)
    sys.excepthook = _log_unhandled_exception  # type: ignore[assignment]
    threading.excepthook = _log_thread_exception  # type: ignore[assignment]


def log_event(module: str, event: str, **kwargs: Any) -> None:
    """Structured event logging through the central logger.

    One JSON object per record on logger ``event.<module>``, so events land in
    the same file as everything else and can be grepped out by name.
    """
    logger = logging.getLogger(f"event.{module}")
    if not logger.isEnabledFor(logging.INFO):
        return
    payload = {"ts": time.time(), "module": module, "event": event, **kwargs}
    try:
        line = orjson.dumps(payload, default=str).decode("utf-8")
    except TypeError:
        logging.getLogger("event").exception("unserialisable event %s.%s", module, event)
        return
    logger.info(line)


def _log_unhandled_exception(exc_type, exc_value, exc_tb) -> None:  # type: ignore[no-untyped-def]
    tb_str = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    logging.getLogger("unhandled").critical("Unhandled exception:\n%s", tb_str)


def _log_thread_exception(args) -> None:  # type: ignore[no-untyped-def]
    tb_str = "".join(traceback.format_exception(args.exc_type, args.exc_value, args.exc_traceback))
    logging.getLogger("thread").critical("Unhandled exception in thread %s:\n%s", getattr(args, "thread", None), tb_str)
