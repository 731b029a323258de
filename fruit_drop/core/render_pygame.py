"""
Pygame Renderer
===============

Draws a session's render data: the bin, the dashed danger line, labeled
fruits, the preview fruit under the pointer, the score, and the paused and
game-over overlays.

World coordinates are screen pixels (y grows downward), so no transform is
needed between the session and the surface.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import pygame

from fruit_drop.core.config_loader import GameConfig, get_config


class PygameRenderer:
    """
    Renderer using pygame primitives.

    Supports:
    - Display mode for human play
    - RGB array output for headless use and tests
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config

        if not pygame.get_init():
            pygame.init()

        self._screen: Optional[pygame.Surface] = None

        pygame.font.init()
        self._font_large = pygame.font.Font(None, 48)
        self._font = pygame.font.Font(None, 28)
        self._font_small = pygame.font.Font(None, 20)

        self._bg_color = (236, 240, 241)
        self._wall_color = (52, 73, 94)
        self._danger_color = (231, 76, 60)
        self._text_color = (44, 62, 80)
        self._outline_color = (0, 0, 0, 50)

        self._label_fonts: Dict[int, pygame.font.Font] = {}

    @property
    def size(self) -> Tuple[int, int]:
        board = self._config.board
        return (board.canvas_width, board.canvas_height)

    def render(self, render_data: Dict[str, Any]) -> np.ndarray:
        """
        Render to an RGB array.

        Args:
            render_data: Data from Session.get_render_data().

        Returns:
            (height, width, 3) uint8 array.
        """
        surface = pygame.Surface(self.size)
        self._render_to_surface(surface, render_data)
        array = pygame.surfarray.array3d(surface)
        return np.transpose(array, (1, 0, 2))

    def render_to_screen(self, render_data: Dict[str, Any]) -> None:
        """Render to the pygame window, creating it on first use."""
        if self._screen is None:
            self._screen = pygame.display.set_mode(self.size)
            pygame.display.set_caption("Fruit Drop")

        self._render_to_surface(self._screen, render_data)
        pygame.display.flip()

    def _render_to_surface(
        self,
        surface: pygame.Surface,
        render_data: Dict[str, Any]
    ) -> None:
        surface.fill(self._bg_color)

        for x, y, w, h in render_data["walls"]:
            pygame.draw.rect(surface, self._wall_color, pygame.Rect(int(x), int(y), int(w), int(h)))

        self._draw_danger_line(surface, render_data)

        for fruit in render_data["fruits"]:
            self._draw_fruit(
                surface, fruit["x"], fruit["y"], fruit["radius"],
                fruit["color"], fruit["label"]
            )

        state = render_data["state"]
        if state == "playing":
            preview = render_data["preview"]
            self._draw_fruit(
                surface, preview["x"], preview["y"], preview["radius"],
                preview["color"], preview["label"], alpha=180
            )

        self._draw_score(surface, render_data["score"])

        if state == "paused":
            self._draw_overlay(surface, "PAUSED", "Press P to resume")
        elif state == "game_over":
            self._draw_overlay(
                surface, "GAME OVER",
                f"Score: {render_data['score']}  -  Press R to restart"
            )

    def _draw_danger_line(self, surface: pygame.Surface, render_data: Dict[str, Any]) -> None:
        """Dashed line across the bin, 10px dashes with 5px gaps."""
        y = int(render_data["danger_line_y"])
        left = int(render_data["bin_left"])
        right = int(render_data["bin_right"])
        for x in range(left, right, 15):
            pygame.draw.line(surface, self._danger_color, (x, y), (min(x + 10, right), y), 3)

    def _label_font(self, radius: float) -> pygame.font.Font:
        size = max(8, int(radius))
        if size not in self._label_fonts:
            self._label_fonts[size] = pygame.font.Font(None, size)
        return self._label_fonts[size]

    def _draw_fruit(
        self,
        surface: pygame.Surface,
        x: float,
        y: float,
        radius: float,
        color: Tuple[int, int, int],
        label: str,
        alpha: int = 255
    ) -> None:
        r = max(2, int(radius))
        fruit_surface = pygame.Surface((r * 2, r * 2), pygame.SRCALPHA)
        pygame.draw.circle(fruit_surface, (*color, alpha), (r, r), r)
        pygame.draw.circle(fruit_surface, self._outline_color, (r, r), r, 2)

        text = self._label_font(radius).render(label, True, (255, 255, 255))
        fruit_surface.blit(text, text.get_rect(center=(r, r)))

        surface.blit(fruit_surface, (int(x) - r, int(y) - r))

    def _draw_score(self, surface: pygame.Surface, score: int) -> None:
        label = self._font_small.render("SCORE", True, self._text_color)
        surface.blit(label, (20, 15))
        value = self._font_large.render(str(score), True, self._text_color)
        surface.blit(value, (20, 32))

    def _draw_overlay(self, surface: pygame.Surface, title: str, hint: str) -> None:
        width, height = surface.get_size()
        overlay = pygame.Surface((width, height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 150))
        surface.blit(overlay, (0, 0))

        title_surface = self._font_large.render(title, True, (255, 255, 255))
        surface.blit(title_surface, title_surface.get_rect(center=(width // 2, height // 2 - 20)))
        hint_surface = self._font.render(hint, True, (255, 255, 255))
        surface.blit(hint_surface, hint_surface.get_rect(center=(width // 2, height // 2 + 25)))

    def close(self) -> None:
        """Clean up pygame resources."""
        self._label_fonts.clear()
        self._screen = None
