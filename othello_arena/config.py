"""TOML configuration for the arena tools.

Values come from `~/.othello_arena/config.toml` (or the file named by
OTHELLO_ARENA_CONFIG, or an explicit path); anything missing falls back to the
dataclass defaults below.
"""

from __future__ import annotations

import logging
import os
import pathlib
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

import tomli

from .errors import ConfigurationError

CONFIG_HOME = pathlib.Path(os.path.expanduser("~/.othello_arena"))
CONFIG_PATH = CONFIG_HOME / "config.toml"
CONFIG_ENV = "OTHELLO_ARENA_CONFIG"


@dataclass
class SearchConfig:
    max_depth: int = 4
    time_ms: Optional[int] = None
    evaluator: str = "matrix"


@dataclass
class ArenaConfig:
    move_timeout: float = 5.0  # seconds a remote player gets per move
    start_timeout: float = 5.0  # seconds for a subprocess agent to answer ping
    keep_history: bool = False


@dataclass
class NetworkConfig:
    host: str = "127.0.0.1"
    port: int = 12345
    read_timeout: float = 5.0
    accept_timeout: Optional[float] = 30.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    arena: ArenaConfig = field(default_factory=ArenaConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> "Config":
        if self.search.max_depth < 1:
            raise ConfigurationError(f"search.max_depth must be >= 1, got {self.search.max_depth}")
        if self.search.time_ms is not None and self.search.time_ms < 0:
            raise ConfigurationError(f"search.time_ms must be >= 0, got {self.search.time_ms}")
        for name in ("move_timeout", "start_timeout"):
            if getattr(self.arena, name) <= 0:
                raise ConfigurationError(f"arena.{name} must be positive")
        if self.network.read_timeout <= 0:
            raise ConfigurationError("network.read_timeout must be positive")
        if self.network.accept_timeout is not None and self.network.accept_timeout <= 0:
            raise ConfigurationError("network.accept_timeout must be positive")
        if not 0 <= self.network.port <= 65535:
            raise ConfigurationError(f"network.port out of range: {self.network.port}")
        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            raise ConfigurationError(f"unknown logging.level {self.logging.level!r}")
        return self


def _section(cls, data: Dict[str, Any], name: str):  # type: ignore[no-untyped-def]
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(f"unknown keys in [{name}]: {sorted(unknown)}")
    return cls(**data)


def config_from_dict(data: Dict[str, Any]) -> Config:
    sections = {f.name: f.type for f in fields(Config)}
    unknown = set(data) - set(sections)
    if unknown:
        raise ConfigurationError(f"unknown config sections: {sorted(unknown)}")
    try:
        cfg = Config(
            search=_section(SearchConfig, data.get("search", {}), "search"),
            arena=_section(ArenaConfig, data.get("arena", {}), "arena"),
            network=_section(NetworkConfig, data.get("network", {}), "network"),
            logging=_section(LoggingConfig, data.get("logging", {}), "logging"),
        )
    except TypeError as e:
        raise ConfigurationError(str(e)) from e
    return cfg.validate()


def load_config(path: Optional[os.PathLike] = None) -> Config:
    """Load and validate the configuration; a missing default file means defaults."""
    explicit = path is not None or CONFIG_ENV in os.environ
    config_path = pathlib.Path(path or os.environ.get(CONFIG_ENV) or CONFIG_PATH).expanduser()
    if not config_path.exists():
        if explicit:
            raise ConfigurationError(f"config file not found: {config_path}")
        return Config()
    try:
        with open(config_path, "rb") as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ConfigurationError(f"{config_path}: {e}") from e
    logging.getLogger(__name__).debug("Loaded config from %s", config_path)
    return config_from_dict(data)
