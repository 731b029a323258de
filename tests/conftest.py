"""
Shared fixtures: a controllable time source and a config factory.
"""

import os

import pytest
import yaml

from fruit_drop.core.config_loader import load_config

DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "fruit_drop",
    "game_config.yaml",
)


class FakeTime:
    """Time source that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def raw_config():
    with open(DEFAULT_CONFIG_PATH, "r") as f:
        return yaml.safe_load(f)


@pytest.fixture
def make_config(tmp_path, raw_config):
    """Build a GameConfig from the default YAML with section overrides."""
    counter = {"n": 0}

    def _make(**sections):
        raw = yaml.safe_load(yaml.safe_dump(raw_config))
        for section, values in sections.items():
            if isinstance(values, dict):
                raw[section].update(values)
            else:
                raw[section] = values
        counter["n"] += 1
        path = tmp_path / f"game_config_{counter['n']}.yaml"
        path.write_text(yaml.safe_dump(raw))
        return load_config(str(path))

    return _make
