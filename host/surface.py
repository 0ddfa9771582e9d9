"""
Input surfaces - where injected events land.
Surfaces use a bottom-left origin; the injector flips Y before delivery.
"""
import logging
from typing import List, Tuple

from shared.keycodes import Modifier

logger = logging.getLogger(__name__)


class InputSurface:
    """Interface for a surface that accepts synthetic pointer and key events."""

    @property
    def height(self) -> float:
        """Surface height, used to flip Y into the surface origin."""
        raise NotImplementedError

    def mouse_down(self, x: float, y: float):
        raise NotImplementedError

    def mouse_up(self, x: float, y: float):
        raise NotImplementedError

    def right_mouse_down(self, x: float, y: float):
        raise NotImplementedError

    def right_mouse_up(self, x: float, y: float):
        raise NotImplementedError

    def key_down(self, key_code: int, modifiers: Modifier = Modifier.NONE):
        raise NotImplementedError

    def key_up(self, key_code: int, modifiers: Modifier = Modifier.NONE):
        raise NotImplementedError


class LoggingSurface(InputSurface):
    """
    Dry-run surface: logs every event and keeps a history instead of
    touching the real pointer and keyboard.
    """

    def __init__(self, height: float = 1080.0):
        self._height = height
        self.history: List[Tuple] = []

    @property
    def height(self) -> float:
        return self._height

    def _record(self, *event):
        self.history.append(event)
        logger.info(f"[SURFACE] {event}")

    def mouse_down(self, x: float, y: float):
        self._record("mouse_down", x, y)

    def mouse_up(self, x: float, y: float):
        self._record("mouse_up", x, y)

    def right_mouse_down(self, x: float, y: float):
        self._record("right_mouse_down", x, y)

    def right_mouse_up(self, x: float, y: float):
        self._record("right_mouse_up", x, y)

    def key_down(self, key_code: int, modifiers: Modifier = Modifier.NONE):
        self._record("key_down", key_code, modifiers)

    def key_up(self, key_code: int, modifiers: Modifier = Modifier.NONE):
        self._record("key_up", key_code, modifiers)
