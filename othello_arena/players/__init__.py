"""Player implementations and the `create_player` factory"""

from __future__ import annotations

from typing import Optional, Sequence, Union

from ..engine.eval import EVALUATORS, create_evaluator
from ..engine.mcts import MctsSearch, ThunderSearch
from ..errors import ConfigurationError
from .base import GameResult, Player
from .local import FirstMovePlayer, RandomPlayer, SearchPlayer
from .process import SubprocessPlayer

PlayerSpec = Union[Player, str, Sequence[str]]

PLAYOUT_SEARCHES = {
    "mcts": MctsSearch,
    "thunder": ThunderSearch,
}


def _int_field(value: str, what: str, spec: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"bad {what} in player spec {spec!r}") from None


def create_player(
    spec: PlayerSpec,
    name: Optional[str] = None,
    *,
    start_timeout: float = 5.0,
    move_timeout: float = 5.0,
) -> Player:
    """Build a Player from a spec.

    Accepted specs:
        a Player instance       returned as is
        a list/tuple of str     subprocess agent command
        "random[:seed]"         RandomPlayer
        "first"                 FirstMovePlayer
        "<evaluator>:<depth>[:time_ms]"
                                SearchPlayer, evaluator one of piece, legal,
                                matrix, bitmatrix
        "mcts:<playouts>[:time_ms]"
                                SearchPlayer over MctsSearch
        "thunder:<playouts>[:time_ms]"
                                SearchPlayer over ThunderSearch
    """
    if isinstance(spec, Player):
        return spec
    if isinstance(spec, (list, tuple)):
        return SubprocessPlayer(spec, name=name, start_timeout=start_timeout, move_timeout=move_timeout)
    if not isinstance(spec, str) or not spec.strip():
        raise ConfigurationError(f"unsupported player spec: {spec!r}")

    parts = spec.strip().split(":")
    kind = parts[0].lower()
    if kind == "random":
        if len(parts) > 2:
            raise ConfigurationError(f"bad player spec {spec!r}")
        seed = _int_field(parts[1], "seed", spec) if len(parts) == 2 else None
        return RandomPlayer(seed, name=name)
    if kind == "first":
        if len(parts) != 1:
            raise ConfigurationError(f"bad player spec {spec!r}")
        return FirstMovePlayer(name=name)
    if kind in EVALUATORS:
        if not 2 <= len(parts) <= 3:
            raise ConfigurationError(f"search player spec needs a depth: {spec!r}")
        depth = _int_field(parts[1], "depth", spec)
        time_ms = _int_field(parts[2], "time_ms", spec) if len(parts) == 3 else None
        return SearchPlayer(depth, create_evaluator(kind), time_ms, name=name)
    if kind in PLAYOUT_SEARCHES:
        if not 2 <= len(parts) <= 3:
            raise ConfigurationError(f"playout player spec needs a playout count: {spec!r}")
        n_playouts = _int_field(parts[1], "playout count", spec)
        time_ms = _int_field(parts[2], "time_ms", spec) if len(parts) == 3 else None
        search = PLAYOUT_SEARCHES[kind](n_playouts, time_ms=time_ms)
        return SearchPlayer(search, name=name or f"{kind}:{n_playouts}")
    raise ConfigurationError(f"unknown player kind {kind!r} in {spec!r}")


__all__ = [
    'GameResult',
    'Player',
    'PlayerSpec',
    'SearchPlayer',
    'RandomPlayer',
    'FirstMovePlayer',
    'SubprocessPlayer',
    'create_player',
]
