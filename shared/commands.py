"""
Command grammar and codec shared by the controller (producer) and the host (consumer).

The command language has five literal surface forms:

    click(<x>,<y>)
    rightclick(<x>,<y>)
    type('<text>')
    key('<name>')
    cmd('<name>')

parse() and serialize() are exact inverses for every constructible command.
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from shared.constants import COMMAND_PREFIXES, CommandKeyword


def _check_point(x: float, y: float):
    for value in (x, y):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Coordinate must be a number, got {value!r}")
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"Coordinate must be finite and non-negative, got {value!r}")


def _check_text(value: str, field_name: str):
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")


@dataclass(frozen=True)
class Click:
    """Left click at surface coordinates."""
    x: float
    y: float

    def __post_init__(self):
        _check_point(self.x, self.y)


@dataclass(frozen=True)
class RightClick:
    """Right click at surface coordinates."""
    x: float
    y: float

    def __post_init__(self):
        _check_point(self.x, self.y)


@dataclass(frozen=True)
class Type:
    """Type a string one key at a time."""
    text: str

    def __post_init__(self):
        _check_text(self.text, "text")


@dataclass(frozen=True)
class Key:
    """Press a single named key."""
    name: str

    def __post_init__(self):
        _check_text(self.name, "name")


@dataclass(frozen=True)
class CmdKey:
    """Press a key with the command modifier held."""
    name: str

    def __post_init__(self):
        _check_text(self.name, "name")


Command = Union[Click, RightClick, Type, Key, CmdKey]


def _format_number(value: float) -> str:
    """Integral values serialize without a decimal point."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _parse_point(args: str) -> Optional[Tuple[float, float]]:
    parts = [part.strip() for part in args.split(",")]
    if len(parts) != 2:
        return None
    try:
        x, y = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    return x, y


def _unwrap(raw: str, keyword: CommandKeyword, quoted: bool) -> Optional[str]:
    """Strip `keyword(` ... `)` (or `keyword('` ... `')`) and return the inner text."""
    head = f"{keyword.value}('" if quoted else f"{keyword.value}("
    tail = "')" if quoted else ")"
    if raw.startswith(head) and raw.endswith(tail) and len(raw) >= len(head) + len(tail):
        return raw[len(head):len(raw) - len(tail)]
    return None


def parse(raw: str) -> Optional[Command]:
    """
    Parse a raw command string.

    Args:
        raw: Command text, e.g. "click(10,20)".

    Returns:
        The parsed Command, or None if the text matches no surface form
        or violates a command invariant. Never raises for bad input.
    """
    if not isinstance(raw, str):
        return None
    raw = raw.strip()

    try:
        inner = _unwrap(raw, CommandKeyword.RIGHT_CLICK, quoted=False)
        if inner is not None:
            point = _parse_point(inner)
            return RightClick(*point) if point else None

        inner = _unwrap(raw, CommandKeyword.CLICK, quoted=False)
        if inner is not None:
            point = _parse_point(inner)
            return Click(*point) if point else None

        inner = _unwrap(raw, CommandKeyword.TYPE, quoted=True)
        if inner is not None:
            return Type(inner)

        inner = _unwrap(raw, CommandKeyword.KEY, quoted=True)
        if inner is not None:
            return Key(inner)

        inner = _unwrap(raw, CommandKeyword.CMD, quoted=True)
        if inner is not None:
            return CmdKey(inner)

    except ValueError:
        return None

    return None


def serialize(command: Command) -> str:
    """
    Render a command in its literal surface form.

    Raises:
        TypeError: If command is not one of the five command kinds.
    """
    if isinstance(command, Click):
        return f"click({_format_number(command.x)},{_format_number(command.y)})"
    elif isinstance(command, RightClick):
        return f"rightclick({_format_number(command.x)},{_format_number(command.y)})"
    elif isinstance(command, Type):
        return f"type('{command.text}')"
    elif isinstance(command, Key):
        return f"key('{command.name}')"
    elif isinstance(command, CmdKey):
        return f"cmd('{command.name}')"
    raise TypeError(f"Unknown command kind: {type(command).__name__}")


def is_command(raw: str) -> bool:
    """True if raw parses to a valid command."""
    return parse(raw) is not None


def looks_like_command(raw: str) -> bool:
    """True if raw starts with one of the command keywords, valid or not."""
    return raw.strip().startswith(COMMAND_PREFIXES)
