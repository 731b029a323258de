"""
Human Play Mode
================

Play Fruit Drop interactively with mouse control and real-time physics.

Controls:
    - Mouse: Move drop position
    - Click/Space: Drop fruit
    - P: Pause / resume
    - R: Restart game
    - ESC: Quit

Usage:
    python -m tools.play_human [--seed SEED] [--fps FPS] [--log-level LEVEL]
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional

import pygame

from fruit_drop.core.config_loader import load_config, reload_config, GameConfig
from fruit_drop.core.render_pygame import PygameRenderer
from fruit_drop.core.session import Session
from fruit_drop.logging_config import setup_logging

logger = logging.getLogger("fruit_drop.tools.play_human")


class HumanPlayer:
    """
    Pygame front end for a Session.

    Physics runs on a fixed-step accumulator; the danger line is sampled once
    per rendered frame.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        target_fps: int = 60
    ):
        if config is None:
            config = load_config()

        self._config = config
        self._target_fps = target_fps

        self._session = Session(config=config, seed=seed)

        pygame.init()
        self._renderer = PygameRenderer(config)
        self._clock = pygame.time.Clock()

        self._running = True
        self._physics_dt = config.physics.dt
        self._physics_accumulator = 0.0
        self._last_time = time.monotonic()

    def run(self) -> int:
        """Run the game loop. Returns final score."""
        logger.info("Click or Space to drop, P to pause, R to restart, ESC to quit")

        while self._running:
            self._handle_events()
            self._update_physics()
            self._session.sample_danger()
            self._renderer.render_to_screen(self._session.get_render_data())
            self._clock.tick(self._target_fps)

        score = self._session.score
        self._session.teardown()
        self._renderer.close()
        pygame.quit()
        return score

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.MOUSEMOTION:
                self._session.pointer_x = event.pos[0]

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._session.drop(event.pos[0])

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key == pygame.K_SPACE:
                    self._session.drop()
                elif event.key == pygame.K_p:
                    self._session.toggle_pause()
                elif event.key == pygame.K_r:
                    self._session.reset()
                    self._physics_accumulator = 0.0

    def _update_physics(self) -> None:
        """Run as many fixed physics ticks as real time allows."""
        current_time = time.monotonic()
        frame_dt = current_time - self._last_time
        self._last_time = current_time

        if not self._session.is_playing:
            self._physics_accumulator = 0.0
            return

        # Limit to prevent spiral
        self._physics_accumulator = min(self._physics_accumulator + frame_dt, 0.2)

        while self._physics_accumulator >= self._physics_dt:
            self._physics_accumulator -= self._physics_dt
            for merge in self._session.step(self._physics_dt):
                logger.debug(
                    "+%d (level %d, total %d)",
                    merge.score_event.points, merge.new_level, self._session.score
                )


def main():
    parser = argparse.ArgumentParser(description="Play Fruit Drop interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--config", type=str, default=None, help="Path to game_config.yaml")
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    args = parser.parse_args()
    setup_logging(getattr(logging, args.log_level))

    # Cached config follows --config so default-config lookups agree
    config = reload_config(args.config)
    player = HumanPlayer(config=config, seed=args.seed, target_fps=args.fps)
    score = player.run()
    logger.info("Final score: %d", score)
    return 0


if __name__ == "__main__":
    sys.exit(main())
