"""Tests for the top-level launcher in __main__.py."""

import importlib.util
import sys
from pathlib import Path

import pytest

from controller import cli as cli_module
from host import listener as listener_module

MAIN_PATH = Path(__file__).resolve().parent.parent / "__main__.py"


@pytest.fixture
def launcher():
    spec = importlib.util.spec_from_file_location("vm_pilot_launcher", MAIN_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestLauncher:
    def test_help_names_real_invocations(self, launcher, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["__main__.py", "--help"])
        with pytest.raises(SystemExit) as exc_info:
            launcher.main()

        out = capsys.readouterr().out
        assert exc_info.value.code == 0
        assert "python __main__.py host" in out
        assert "vm-pilot-host" in out
        assert "python -m vm_pilot" not in out

    def test_docstring_names_real_invocations(self, launcher):
        assert "python -m vm_pilot" not in launcher.__doc__
        assert "vm-pilot" in launcher.__doc__

    def test_send_is_forwarded_to_controller(self, launcher, monkeypatch):
        calls = []
        monkeypatch.setattr(cli_module, "main", lambda argv=None: calls.append(argv))
        monkeypatch.setattr(sys, "argv", ["__main__.py", "send", "key('enter')"])

        launcher.main()
        assert calls == [["send", "key('enter')"]]

    def test_host_is_forwarded_to_listener(self, launcher, monkeypatch):
        calls = []
        monkeypatch.setattr(listener_module, "main", lambda argv=None: calls.append(argv))
        monkeypatch.setattr(sys, "argv", ["__main__.py", "host", "--dry-run"])

        launcher.main()
        assert calls == [["--dry-run"]]
