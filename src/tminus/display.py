"""Pygame window that plays a rendered countdown.

Requires the 'preview' extra: pip install -e ".[preview]"
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tminus.models import PixelBuffer

logger = logging.getLogger(__name__)


class PreviewWindow:
    """Shows rendered frames with their delays, looping like the GIF would."""

    def __init__(self, width: int, height: int) -> None:
        """Open a window sized to the canvas.

        Imports pygame lazily so the rest of the package works without
        the preview extra installed.
        """
        import pygame

        self._pygame = pygame
        pygame.init()
        self.screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption("tminus preview")
        self.width = width
        self.height = height
        logger.info("Preview window opened (%dx%d)", width, height)

    def update(self, buffer: PixelBuffer) -> None:
        """Blit one RGBA buffer and flip the display."""
        surface = self._pygame.image.frombytes(
            buffer.data, (buffer.width, buffer.height), "RGBA"
        )
        self.screen.blit(surface, (0, 0))
        self._pygame.display.flip()

    def handle_events(self) -> bool:
        """Process window events. Returns False if the preview should stop."""
        pygame = self._pygame
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logger.info("Received QUIT event")
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logger.info("Received ESC keypress")
                return False
        return True

    def play(self, buffers: Sequence[PixelBuffer], delays: Sequence[int], loop: int = 0) -> None:
        """Play frames until the window is closed or the loop count runs out.

        loop=0 repeats forever, matching the GIF NETSCAPE loop semantics.
        """
        plays = 0
        while loop == 0 or plays <= loop:
            for buffer, delay_ms in zip(buffers, delays):
                if not self.handle_events():
                    return
                self.update(buffer)
                self._pygame.time.wait(delay_ms)
            plays += 1

    def close(self) -> None:
        """Shut down the Pygame display."""
        logger.info("Closing preview window")
        self._pygame.quit()
