"""LocalArena: both players driven from the calling thread"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import Config
from ..players import PlayerSpec, create_player
from .core import Arena

logger = logging.getLogger(__name__)


class LocalArena(Arena):
    """
    Runs games between two player specs in-process.

    Specs are anything `create_player` accepts, e.g. ``"matrix:4"``,
    ``"random:7"`` or a subprocess command such as
    ``[sys.executable, "-m", "othello_arena.agents", "random"]``.
    Keyword options default to the `[arena]` section of `config`.
    """

    def __init__(
        self,
        player1_spec: PlayerSpec,
        player2_spec: PlayerSpec,
        show_progress: bool = False,
        *,
        move_timeout: Optional[float] = None,
        start_timeout: Optional[float] = None,
        keep_history: Optional[bool] = None,
        config: Optional[Config] = None,
    ) -> None:
        arena_cfg = (config or Config()).arena
        move_timeout = arena_cfg.move_timeout if move_timeout is None else move_timeout
        start_timeout = arena_cfg.start_timeout if start_timeout is None else start_timeout
        keep_history = arena_cfg.keep_history if keep_history is None else keep_history

        player1 = create_player(player1_spec, start_timeout=start_timeout, move_timeout=move_timeout)
        player2 = create_player(player2_spec, start_timeout=start_timeout, move_timeout=move_timeout)
        super().__init__(player1, player2, show_progress,
                         move_timeout=move_timeout, keep_history=keep_history)
        logger.debug("LocalArena %r vs %r", player1, player2)
