"""
Host (consumer) Package
Runs beside the VM view and replays mailbox commands as input events.
"""
from .injector import InputInjector, InjectionTask, InputEvent, EventKind
from .surface import InputSurface, LoggingSurface
from .listener import CommandListener, ListenerStats

__all__ = [
    'InputInjector',
    'InjectionTask',
    'InputEvent',
    'EventKind',
    'InputSurface',
    'LoggingSurface',
    'CommandListener',
    'ListenerStats'
]
