"""Shared fixtures and fakes for the VM Pilot test suite."""

import pytest

from shared.mailbox import Mailbox
from host.surface import LoggingSurface


class FakeProbe:
    def __init__(self, alive=True):
        self.alive = alive
        self.calls = 0

    def is_target_alive(self):
        self.calls += 1
        return self.alive


class FakeCapture:
    def __init__(self, data=b"\x89PNG fake"):
        self.data = data
        self.calls = 0

    def capture_png(self):
        self.calls += 1
        return self.data


class FakeLLM:
    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.requests = []

    async def request_plan(self, goal, image_png):
        self.requests.append((goal, image_png))
        if self.error is not None:
            raise self.error
        return self.response


class RecordingMailbox(Mailbox):
    """Real mailbox that also remembers every send."""

    def __init__(self, path):
        super().__init__(path)
        self.sent = []

    def send(self, raw):
        self.sent.append(raw)
        super().send(raw)


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def mailbox_path(tmp_path):
    return tmp_path / "vm_command.txt"


@pytest.fixture
def mailbox(mailbox_path):
    return RecordingMailbox(mailbox_path)


@pytest.fixture
def surface():
    return LoggingSurface(height=800.0)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
