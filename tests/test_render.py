"""
Tests for the pygame renderer (headless).
"""

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import numpy as np
import pytest

from fruit_drop.core.config_loader import load_config
from fruit_drop.core.render_pygame import PygameRenderer
from fruit_drop.core.session import Session


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def session(config, fake_time):
    return Session(config=config, seed=0, time_source=fake_time)


@pytest.fixture
def renderer(config):
    r = PygameRenderer(config)
    yield r
    r.close()


class TestRender:
    """Test RGB output."""

    def test_rgb_shape(self, renderer, session):
        frame = renderer.render(session.get_render_data())
        assert frame.shape == (800, 600, 3)
        assert frame.dtype == np.uint8

    def test_fruit_color_drawn(self, renderer, session):
        """The center pixel of a large fruit carries its color."""
        fruit = session.physics.spawn_fruit(5, 300, 500)
        frame = renderer.render(session.get_render_data())
        x, y = (int(v) for v in fruit.position)
        # Sample off-center to avoid the label
        assert tuple(frame[y + 40, x]) == fruit.level_info.color

    def test_overlays(self, renderer, session):
        session.drop(300)
        playing = renderer.render(session.get_render_data())

        session.toggle_pause()
        paused = renderer.render(session.get_render_data())
        assert not np.array_equal(playing, paused)

        session.toggle_pause()
        session.trigger_game_over()
        over = renderer.render(session.get_render_data())
        assert over.shape == (800, 600, 3)
