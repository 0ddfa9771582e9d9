"""Tests for host/listener.py: the consumer poll loop."""

import asyncio

import pytest

from shared.config import PilotConfig
from shared.mailbox import Mailbox
from host.injector import InputInjector
from host.listener import CommandListener, build_listener, build_surface
from host.surface import LoggingSurface


@pytest.fixture
def listener(mailbox_path, surface):
    return CommandListener(Mailbox(mailbox_path), InputInjector(surface), poll_interval=0.01)


class TestTick:
    def test_empty_mailbox(self, listener):
        assert listener.tick() is None
        assert listener.stats.polls == 1
        assert listener.stats.commands_received == 0

    @pytest.mark.asyncio
    async def test_valid_command_is_injected(self, listener, surface):
        listener.mailbox.send("key('enter')")
        task = listener.tick()
        await task
        assert surface.history[0][0] == "key_down"
        assert listener.stats.commands_injected == 1

    def test_malformed_command_is_dropped(self, listener, surface):
        listener.mailbox.send("click(oops)")
        assert listener.tick() is None
        assert listener.stats.commands_dropped == 1
        assert listener.stats.commands_received == 1
        assert listener.mailbox.pending() is False
        assert surface.history == []

    @pytest.mark.asyncio
    async def test_whitespace_around_command(self, listener, surface):
        listener.mailbox.send("  click(5,5)\n")
        await listener.tick()
        assert surface.history[0] == ("mouse_down", 5, 795.0)


class TestRun:
    @pytest.mark.asyncio
    async def test_run_until_stopped(self, listener, surface):
        runner = asyncio.create_task(listener.run())
        listener.mailbox.send("click(1,2)")

        for _ in range(100):
            await asyncio.sleep(0.01)
            if len(surface.history) == 2:
                break

        listener.stop()
        await asyncio.wait_for(runner, timeout=1.0)
        assert surface.history == [("mouse_down", 1, 798.0), ("mouse_up", 1, 798.0)]
        assert listener.get_stats()["injected"] == 1


class TestBuilders:
    def test_dry_run_surface(self):
        config = PilotConfig()
        config.surface.height = 900
        surface = build_surface(config, dry_run=True)
        assert isinstance(surface, LoggingSurface)
        assert surface.height == 900

    def test_build_listener_uses_config(self, mailbox_path):
        config = PilotConfig()
        config.channel.mailbox_path = str(mailbox_path)
        config.channel.poll_interval = 0.5
        config.injector.press_duration = 0.02

        listener = build_listener(config, LoggingSurface())
        assert listener.mailbox.path == mailbox_path
        assert listener.poll_interval == 0.5
        assert listener.injector.press_duration == 0.02
