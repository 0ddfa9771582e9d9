"""
Shared package for VM Pilot.
"""
from .commands import (
    Click,
    RightClick,
    Type,
    Key,
    CmdKey,
    Command,
    parse,
    serialize,
    is_command,
    looks_like_command
)
from .constants import (
    Timing,
    Defaults,
    CommandKeyword,
    COMMAND_PREFIXES
)
from .keycodes import Modifier, char_to_key_code, key_name_to_code
from .mailbox import Mailbox, default_mailbox_path

__all__ = [
    'Click',
    'RightClick',
    'Type',
    'Key',
    'CmdKey',
    'Command',
    'parse',
    'serialize',
    'is_command',
    'looks_like_command',
    'Timing',
    'Defaults',
    'CommandKeyword',
    'COMMAND_PREFIXES',
    'Modifier',
    'char_to_key_code',
    'key_name_to_code',
    'Mailbox',
    'default_mailbox_path'
]
