"""
Shared constants for VM Pilot.
"""
from enum import Enum


class Timing(Enum):
    """Fixed delays (seconds) that keep the single-slot mailbox coherent."""
    POLL_INTERVAL = 0.1  # Host mailbox poll cadence
    PRESS_DURATION = 0.05  # Press -> release gap for one key or click
    CHAR_PACING = 0.05  # Gap between consecutive typed characters
    DISPATCH_PACING = 0.2  # Gap between sends; must stay > 2x POLL_INTERVAL


class Defaults(Enum):
    """Default names shared by host and controller."""
    MAILBOX_NAME = "vm_command.txt"
    TARGET_APP_NAME = "macOSVirtualMachineSampleApp"
    SCREENCAPTURE_UTILITY = "/usr/sbin/screencapture"


class CommandKeyword(Enum):
    """Surface keywords of the command language."""
    CLICK = "click"
    RIGHT_CLICK = "rightclick"
    TYPE = "type"
    KEY = "key"
    CMD = "cmd"


# Prefixes that mark a line as an attempted raw command
COMMAND_PREFIXES = ("click(", "rightclick(", "type('", "key('", "cmd('")
