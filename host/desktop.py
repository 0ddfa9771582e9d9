"""
Desktop surface backed by pyautogui.
Maps the VM view's bottom-left-origin coordinates into a screen region.
"""
import logging
from typing import Dict, List, Optional

import pyautogui

from host.surface import InputSurface
from shared.keycodes import CHAR_KEY_CODES, Modifier

logger = logging.getLogger(__name__)


def _build_key_names() -> Dict[int, str]:
    names = {code: char for char, code in CHAR_KEY_CODES.items()}
    names.update({
        0x24: "enter",
        0x31: "space",
        0x35: "esc",
        0x30: "tab",
        0x33: "backspace",
        0x7E: "up",
        0x7D: "down",
        0x7B: "left",
        0x7C: "right",
    })
    return names


# Virtual key code -> pyautogui key name
KEY_NAMES: Dict[int, str] = _build_key_names()

MODIFIER_KEYS = (
    (Modifier.SHIFT, "shift"),
    (Modifier.COMMAND, "command"),
)


class PyAutoGUISurface(InputSurface):
    """Injects events into a screen region through pyautogui."""

    def __init__(
        self,
        left: int = 0,
        top: int = 0,
        width: Optional[int] = None,
        height: Optional[int] = None
    ):
        """
        Initialize desktop surface.

        Args:
            left: Screen X of the region's left edge.
            top: Screen Y of the region's top edge.
            width: Region width. If None, extends to the screen edge.
            height: Region height. If None, extends to the screen edge.
        """
        screen_width, screen_height = pyautogui.size()
        self.left = left
        self.top = top
        self.width = width or (screen_width - left)
        self._height = height or (screen_height - top)

        # Timing is owned by the injector
        pyautogui.PAUSE = 0

    @property
    def height(self) -> float:
        return self._height

    def _to_screen(self, x: float, y: float):
        """Bottom-left surface point -> top-left screen point."""
        return self.left + x, self.top + (self._height - y)

    def mouse_down(self, x: float, y: float):
        sx, sy = self._to_screen(x, y)
        pyautogui.mouseDown(sx, sy, button="left")

    def mouse_up(self, x: float, y: float):
        sx, sy = self._to_screen(x, y)
        pyautogui.mouseUp(sx, sy, button="left")

    def right_mouse_down(self, x: float, y: float):
        sx, sy = self._to_screen(x, y)
        pyautogui.mouseDown(sx, sy, button="right")

    def right_mouse_up(self, x: float, y: float):
        sx, sy = self._to_screen(x, y)
        pyautogui.mouseUp(sx, sy, button="right")

    def _modifier_names(self, modifiers: Modifier) -> List[str]:
        return [name for flag, name in MODIFIER_KEYS if flag in modifiers]

    def key_down(self, key_code: int, modifiers: Modifier = Modifier.NONE):
        name = KEY_NAMES.get(key_code)
        if name is None:
            logger.debug(f"[SURFACE] No key name for code {key_code:#04x}")
            return

        for modifier in self._modifier_names(modifiers):
            pyautogui.keyDown(modifier)
        pyautogui.keyDown(name)

    def key_up(self, key_code: int, modifiers: Modifier = Modifier.NONE):
        name = KEY_NAMES.get(key_code)
        if name is None:
            return

        pyautogui.keyUp(name)
        for modifier in reversed(self._modifier_names(modifiers)):
            pyautogui.keyUp(modifier)
