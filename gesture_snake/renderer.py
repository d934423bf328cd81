"""
Pygame renderer for game snapshots and the annotated camera preview.
"""
from typing import Optional, Tuple

import cv2
import numpy as np
import pygame

from .types import ControlState, GameState, Status

# Colors - arcade theme
BLACK: Tuple[int, int, int] = (0, 0, 0)
WHITE: Tuple[int, int, int] = (255, 255, 255)
ARCADE_PURPLE: Tuple[int, int, int] = (157, 78, 221)
ARCADE_PINK: Tuple[int, int, int] = (247, 37, 133)
ARCADE_NEON: Tuple[int, int, int] = (76, 201, 240)
DIM_GREY: Tuple[int, int, int] = (70, 70, 90)
OVERLAY_ALPHA = 180


class SnakeRenderer:
    """Draws GameState snapshots. Read-only with respect to the engine."""

    def __init__(self, cell_size: int = 20):
        self.cell_size = cell_size
        self._font: Optional[pygame.font.Font] = None
        self._big_font: Optional[pygame.font.Font] = None
        self._small_font: Optional[pygame.font.Font] = None

    def board_size(self, snapshot: GameState) -> Tuple[int, int]:
        return snapshot.grid_width * self.cell_size, snapshot.grid_height * self.cell_size

    def _fonts(self) -> Tuple[pygame.font.Font, pygame.font.Font, pygame.font.Font]:
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.Font(None, 28)
            self._big_font = pygame.font.Font(None, 48)
            self._small_font = pygame.font.Font(None, 22)
        return self._font, self._big_font, self._small_font

    def draw(self, surface: pygame.Surface, snapshot: GameState) -> None:
        """Draw board, snake, food, score and any status overlay."""
        width, height = self.board_size(snapshot)
        size = self.cell_size
        surface.fill(BLACK, pygame.Rect(0, 0, width, height))

        for i, cell in enumerate(snapshot.snake):
            rect = pygame.Rect(cell.col * size, cell.row * size, size, size)
            pygame.draw.rect(surface, ARCADE_PINK if i == 0 else ARCADE_PURPLE, rect)
            # Inner glow
            pygame.draw.rect(surface, ARCADE_NEON, rect.inflate(-4, -4), 1)

        if snapshot.food is not None:
            center = (snapshot.food.col * size + size // 2, snapshot.food.row * size + size // 2)
            pygame.draw.circle(surface, ARCADE_PINK, center, size // 2)

        font, big_font, small_font = self._fonts()
        surface.blit(font.render(f"Score: {snapshot.score}", True, WHITE), (10, 8))
        high = small_font.render(f"High: {snapshot.high_score}", True, ARCADE_NEON)
        surface.blit(high, (width - high.get_width() - 10, 10))

        if snapshot.status is Status.RUNNING:
            return

        overlay = pygame.Surface((width, height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, OVERLAY_ALPHA))
        surface.blit(overlay, (0, 0))

        if snapshot.status is Status.GAME_OVER:
            reason = snapshot.game_over_reason.value if snapshot.game_over_reason else ""
            lines = [
                (big_font, "Game Over", ARCADE_PINK),
                (font, f"You {reason}!" if reason else "", WHITE),
                (font, f"Final Score: {snapshot.score}", WHITE),
                (small_font, "Press SPACE to try again", ARCADE_NEON),
            ]
        elif snapshot.status is Status.PAUSED:
            lines = [(big_font, "Paused", WHITE), (small_font, "Press P to resume", ARCADE_NEON)]
        else:
            lines = [(big_font, "Snake", ARCADE_PURPLE), (small_font, "Press SPACE to start", ARCADE_NEON)]

        y = height // 2 - 20 * len(lines)
        for line_font, text, color in lines:
            if text:
                rendered = line_font.render(text, True, color)
                surface.blit(rendered, (width // 2 - rendered.get_width() // 2, y))
            y += 40

    def draw_controls(self, surface: pygame.Surface, controls: ControlState, origin: Tuple[int, int]) -> None:
        """Arrow pad showing which direction bits are currently set."""
        font, _, _ = self._fonts()
        x, y = origin
        arrows = (
            ("^", controls.up, (x + 30, y)),
            ("<", controls.left, (x, y + 30)),
            (">", controls.right, (x + 60, y + 30)),
            ("v", controls.down, (x + 30, y + 60)),
        )
        for text, active, pos in arrows:
            surface.blit(font.render(text, True, ARCADE_PINK if active else DIM_GREY), pos)

    def draw_camera(self, surface: pygame.Surface, frame_bgr: np.ndarray, rect: pygame.Rect) -> None:
        """Blit an OpenCV frame into rect with a neon border."""
        resized = cv2.resize(frame_bgr, (rect.width, rect.height))
        frame_rgb = cv2.cvtColor(resized, cv2.COLOR_BGR2RGB)
        camera_surface = pygame.surfarray.make_surface(frame_rgb.swapaxes(0, 1))
        surface.blit(camera_surface, rect.topleft)
        pygame.draw.rect(surface, ARCADE_NEON, rect, 2)
