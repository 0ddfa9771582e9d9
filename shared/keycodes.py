"""
Key-code table.
Maps characters and symbolic key names onto macOS virtual key codes.
"""
from enum import Flag, auto
from typing import Dict, Optional


class Modifier(Flag):
    """Modifier flags carried on synthetic key events."""
    NONE = 0
    SHIFT = auto()
    COMMAND = auto()


# Lowercase character -> virtual key code (ANSI layout)
CHAR_KEY_CODES: Dict[str, int] = {
    "a": 0x00, "b": 0x0B, "c": 0x08, "d": 0x02, "e": 0x0E,
    "f": 0x03, "g": 0x05, "h": 0x04, "i": 0x22, "j": 0x26,
    "k": 0x28, "l": 0x25, "m": 0x2E, "n": 0x2D, "o": 0x1F,
    "p": 0x23, "q": 0x0C, "r": 0x0F, "s": 0x01, "t": 0x11,
    "u": 0x20, "v": 0x09, "w": 0x0D, "x": 0x07, "y": 0x10,
    "z": 0x06,
    "1": 0x12, "2": 0x13, "3": 0x14, "4": 0x15, "5": 0x17,
    "6": 0x16, "7": 0x1A, "8": 0x1C, "9": 0x19, "0": 0x1D,
    " ": 0x31,
}

# Symbolic key name -> virtual key code
NAMED_KEY_CODES: Dict[str, int] = {
    "enter": 0x24,
    "return": 0x24,
    "space": 0x31,
    "escape": 0x35,
    "esc": 0x35,
    "tab": 0x30,
    "delete": 0x33,
    "backspace": 0x33,
    "up": 0x7E,
    "down": 0x7D,
    "left": 0x7B,
    "right": 0x7C,
}


def char_to_key_code(char: str) -> Optional[int]:
    """
    Resolve a single character through the table.

    Args:
        char: One character; case is folded before lookup.

    Returns:
        Key code, or None when the glyph is unsupported.
    """
    if not char:
        return None
    return CHAR_KEY_CODES.get(char[0].lower())


def key_name_to_code(name: str) -> Optional[int]:
    """
    Resolve a key name case-insensitively.

    Unknown names fall back to the code of their first character, so
    key('a') and cmd('c') work without a named entry.
    """
    normalized = name.strip().lower()
    if normalized in NAMED_KEY_CODES:
        return NAMED_KEY_CODES[normalized]
    return char_to_key_code(normalized[:1])
