"""
Input Injector - The Muscles
Turns parsed commands into timed press/release events on the target surface.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from shared.commands import Command, Click, RightClick, Type, Key, CmdKey, serialize
from shared.constants import Timing
from shared.keycodes import Modifier, char_to_key_code, key_name_to_code

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Synthetic input event types."""
    MOUSE_DOWN = "mouse_down"
    MOUSE_UP = "mouse_up"
    RIGHT_MOUSE_DOWN = "right_mouse_down"
    RIGHT_MOUSE_UP = "right_mouse_up"
    KEY_DOWN = "key_down"
    KEY_UP = "key_up"


@dataclass(frozen=True)
class InputEvent:
    """One synthetic event, scheduled `offset` seconds after injection starts."""
    kind: EventKind
    offset: float
    x: Optional[float] = None  # Surface coordinates, already flipped
    y: Optional[float] = None
    key_code: Optional[int] = None
    modifiers: Modifier = Modifier.NONE


@dataclass
class InjectionTask:
    """
    A command's events placed on the event loop timeline.

    Await the task (or its `done` future) to wait for the final event.
    """
    command: Command
    events: List[InputEvent]
    started_at: float
    done: asyncio.Future
    delivered: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def duration(self) -> float:
        """Offset of the last event."""
        return self.events[-1].offset if self.events else 0.0

    @property
    def completes_at(self) -> float:
        """Loop time at which the last event is due."""
        return self.started_at + self.duration

    def __await__(self):
        return self.done.__await__()


class InputInjector:
    """
    Schedules synthetic input for commands.

    Pointer commands become a press and, PRESS_DURATION later, a release at the
    same point with Y flipped into the surface's bottom-left origin. Key commands
    become key-down then key-up. Text is typed one supported character at a time;
    unsupported characters are skipped without error.
    """

    def __init__(
        self,
        surface,
        press_duration: float = Timing.PRESS_DURATION.value,
        char_pacing: float = Timing.CHAR_PACING.value
    ):
        """
        Initialize injector.

        Args:
            surface: InputSurface receiving the events.
            press_duration: Seconds between press and release.
            char_pacing: Seconds between one character's release and the next press.
        """
        self.surface = surface
        self.press_duration = press_duration
        self.char_pacing = char_pacing

    def timeline(self, command: Command) -> List[InputEvent]:
        """
        Plan the events for a command without scheduling them.

        Raises:
            TypeError: If command is not one of the five command kinds.
        """
        if isinstance(command, Click):
            return self._pointer_events(command.x, command.y, EventKind.MOUSE_DOWN, EventKind.MOUSE_UP)

        elif isinstance(command, RightClick):
            return self._pointer_events(
                command.x, command.y, EventKind.RIGHT_MOUSE_DOWN, EventKind.RIGHT_MOUSE_UP
            )

        elif isinstance(command, Key):
            return self._key_events(key_name_to_code(command.name), Modifier.NONE, 0.0)

        elif isinstance(command, CmdKey):
            return self._key_events(key_name_to_code(command.name), Modifier.COMMAND, 0.0)

        elif isinstance(command, Type):
            return self._text_events(command.text)

        raise TypeError(f"Unknown command kind: {type(command).__name__}")

    def _pointer_events(
        self,
        x: float,
        y: float,
        down: EventKind,
        up: EventKind
    ) -> List[InputEvent]:
        flipped_y = self.surface.height - y
        return [
            InputEvent(kind=down, offset=0.0, x=x, y=flipped_y),
            InputEvent(kind=up, offset=self.press_duration, x=x, y=flipped_y),
        ]

    def _key_events(
        self,
        key_code: Optional[int],
        modifiers: Modifier,
        start: float
    ) -> List[InputEvent]:
        if key_code is None:
            return []
        return [
            InputEvent(kind=EventKind.KEY_DOWN, offset=start, key_code=key_code, modifiers=modifiers),
            InputEvent(
                kind=EventKind.KEY_UP,
                offset=start + self.press_duration,
                key_code=key_code,
                modifiers=modifiers
            ),
        ]

    def _text_events(self, text: str) -> List[InputEvent]:
        events: List[InputEvent] = []
        slot = self.press_duration + self.char_pacing
        index = 0

        for char in text:
            key_code = char_to_key_code(char)
            if key_code is None:
                continue

            modifiers = Modifier.SHIFT if char.isupper() else Modifier.NONE
            events.extend(self._key_events(key_code, modifiers, index * slot))
            index += 1

        return events

    def inject(
        self,
        command: Command,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> InjectionTask:
        """
        Schedule a command's events and return immediately.

        The release/up events fire after this returns; await the returned
        task to wait for them.

        Args:
            command: Command to inject.
            loop: Event loop to schedule on. Defaults to the running loop.

        Returns:
            InjectionTask tracking the scheduled events.
        """
        loop = loop or asyncio.get_running_loop()
        events = self.timeline(command)

        task = InjectionTask(
            command=command,
            events=events,
            started_at=loop.time(),
            done=loop.create_future()
        )

        if not events:
            logger.debug(f"[INJECTOR] Nothing to inject for {serialize(command)}")
            task.done.set_result(task)
            return task

        for event in events:
            loop.call_later(event.offset, self._fire, task, event)

        logger.info(f"[INJECTOR] Scheduled {serialize(command)} ({len(events)} events)")
        return task

    def _fire(self, task: InjectionTask, event: InputEvent):
        """Deliver one event; resolve the task after the last one."""
        try:
            self._deliver(event)
        except Exception as e:
            # Nothing awaits a timer callback; record and keep the sequence going
            logger.error(f"[INJECTOR] Failed to deliver {event.kind.value}: {e}")
            task.errors.append(str(e))

        task.delivered += 1
        if task.delivered == len(task.events) and not task.done.done():
            task.done.set_result(task)

    def _deliver(self, event: InputEvent):
        if event.kind == EventKind.MOUSE_DOWN:
            self.surface.mouse_down(event.x, event.y)
        elif event.kind == EventKind.MOUSE_UP:
            self.surface.mouse_up(event.x, event.y)
        elif event.kind == EventKind.RIGHT_MOUSE_DOWN:
            self.surface.right_mouse_down(event.x, event.y)
        elif event.kind == EventKind.RIGHT_MOUSE_UP:
            self.surface.right_mouse_up(event.x, event.y)
        elif event.kind == EventKind.KEY_DOWN:
            self.surface.key_down(event.key_code, event.modifiers)
        elif event.kind == EventKind.KEY_UP:
            self.surface.key_up(event.key_code, event.modifiers)
