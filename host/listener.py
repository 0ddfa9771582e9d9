"""
Host Listener - Main loop of the consumer process.
Polls the mailbox on a fixed cadence and replays each command through the injector.
"""
import argparse
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Dict, Any

from shared.commands import parse, serialize
from shared.config import PilotConfig, get_config, load_env
from shared.constants import Timing
from shared.mailbox import Mailbox
from host.injector import InputInjector, InjectionTask
from host.surface import InputSurface, LoggingSurface

logger = logging.getLogger(__name__)


@dataclass
class ListenerStats:
    """Statistics for the listener."""
    polls: int = 0
    commands_received: int = 0
    commands_injected: int = 0
    commands_dropped: int = 0
    start_time: float = 0.0
    last_command_time: float = 0.0


class CommandListener:
    """
    Consumer side of the mailbox.

    Single-threaded and cooperative: each tick consumes at most one command,
    and the loop sleeps for the poll interval between ticks.
    """

    def __init__(
        self,
        mailbox: Mailbox,
        injector: InputInjector,
        poll_interval: float = Timing.POLL_INTERVAL.value
    ):
        """
        Initialize listener.

        Args:
            mailbox: Mailbox to consume.
            injector: Injector that replays parsed commands.
            poll_interval: Seconds between polls.
        """
        self.mailbox = mailbox
        self.injector = injector
        self.poll_interval = poll_interval

        self.running = False
        self.stats = ListenerStats(start_time=time.time())
        self.last_task: Optional[InjectionTask] = None

    def tick(self) -> Optional[InjectionTask]:
        """
        Poll once and inject whatever is pending.

        Returns:
            The scheduled InjectionTask, or None if nothing valid was pending.
        """
        self.stats.polls += 1

        raw = self.mailbox.poll()
        if raw is None:
            return None

        raw = raw.strip()
        self.stats.commands_received += 1
        self.stats.last_command_time = time.time()

        command = parse(raw)
        if command is None:
            # No return path to the sender; drop silently
            self.stats.commands_dropped += 1
            logger.debug(f"[HOST] Dropped malformed command: {raw!r}")
            return None

        self.last_task = self.injector.inject(command)
        self.stats.commands_injected += 1
        logger.info(f"[HOST] Injected {serialize(command)}")
        return self.last_task

    async def run(self):
        """Poll until stop() is called."""
        self.running = True
        logger.info(f"[HOST] Listening on {self.mailbox.path} every {self.poll_interval * 1000:.0f}ms")

        while self.running:
            self.tick()
            await asyncio.sleep(self.poll_interval)

    def stop(self):
        """Stop the poll loop after the current tick."""
        self.running = False

    def get_stats(self) -> Dict[str, Any]:
        """Get listener statistics."""
        return {
            "polls": self.stats.polls,
            "received": self.stats.commands_received,
            "injected": self.stats.commands_injected,
            "dropped": self.stats.commands_dropped,
            "uptime": time.time() - self.stats.start_time,
        }


def build_surface(config: PilotConfig, dry_run: bool = False) -> InputSurface:
    """Create the production surface, or a logging one for dry runs."""
    if dry_run:
        return LoggingSurface(height=config.surface.height or 1080)

    from host.desktop import PyAutoGUISurface
    return PyAutoGUISurface(
        left=config.surface.left,
        top=config.surface.top,
        width=config.surface.width,
        height=config.surface.height
    )


def build_listener(config: PilotConfig, surface: InputSurface) -> CommandListener:
    """Wire mailbox, injector and listener from configuration."""
    injector = InputInjector(
        surface,
        press_duration=config.injector.press_duration,
        char_pacing=config.injector.char_pacing
    )
    return CommandListener(
        Mailbox(config.channel.mailbox_path),
        injector,
        poll_interval=config.channel.poll_interval
    )


def main(argv=None):
    """Main entry point for the host process."""
    parser = argparse.ArgumentParser(description="VM Pilot host - replays mailbox commands as input events")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--dry-run", action="store_true", help="Log events instead of injecting them")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    load_env()
    config = get_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or config.debug_mode) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    listener = build_listener(config, build_surface(config, dry_run=args.dry_run))
    print(f"[HOST] VM control listener started on {listener.mailbox.path}")

    try:
        asyncio.run(listener.run())
    except KeyboardInterrupt:
        print("\n[HOST] Shutting down...")
    finally:
        listener.stop()
        print(f"[HOST] Stopped. Stats: {listener.get_stats()}")


if __name__ == "__main__":
    main()
