from __future__ import annotations

import pytest

from othello_arena import config
from othello_arena.config import Config, config_from_dict, load_config
from othello_arena.errors import ConfigurationError


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch, tmp_path):
    monkeypatch.delenv(config.CONFIG_ENV, raising=False)
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "missing.toml")


def test_defaults_when_no_file():
    assert load_config() == Config()


def test_load_explicit_file(tmp_path):
    path = tmp_path / "arena.toml"
    path.write_text(
        "[search]\nmax_depth = 6\nevaluator = \"piece\"\n"
        "[network]\nport = 4000\naccept_timeout = 2.5\n"
        "[logging]\nlevel = \"debug\"\n"
    )
    cfg = load_config(path)
    assert cfg.search.max_depth == 6
    assert cfg.search.evaluator == "piece"
    assert cfg.network.port == 4000
    assert cfg.network.accept_timeout == 2.5
    assert cfg.arena == Config().arena


def test_env_var_names_the_file(tmp_path, monkeypatch):
    path = tmp_path / "env.toml"
    path.write_text("[arena]\nmove_timeout = 0.5\n")
    monkeypatch.setenv(config.CONFIG_ENV, str(path))
    assert load_config().arena.move_timeout == 0.5


def test_missing_explicit_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "nope.toml")


def test_bad_toml(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("[search\n")
    with pytest.raises(ConfigurationError):
        load_config(path)


@pytest.mark.parametrize("data", [
    {"searh": {}},
    {"search": {"depth": 3}},
    {"search": {"max_depth": 0}},
    {"search": {"time_ms": -5}},
    {"arena": {"move_timeout": 0}},
    {"network": {"port": 70000}},
    {"network": {"read_timeout": -1}},
    {"logging": {"level": "LOUD"}},
])
def test_invalid_values(data):
    with pytest.raises(ConfigurationError):
        config_from_dict(data)
