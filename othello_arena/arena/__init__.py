"""Match orchestration: the shared game loop, local and network arenas"""

from .core import Arena, ArenaStats, Forfeit, MatchRecord, check_game_count
from .local import LocalArena
from .network import LineConnection, NetworkArenaClient, NetworkArenaServer, RemotePlayer

__all__ = [
    'Arena',
    'ArenaStats',
    'Forfeit',
    'MatchRecord',
    'check_game_count',
    'LocalArena',
    'LineConnection',
    'NetworkArenaClient',
    'NetworkArenaServer',
    'RemotePlayer',
]
