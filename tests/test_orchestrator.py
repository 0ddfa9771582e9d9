"""Tests for controller/orchestrator.py: the vision-plan cycle."""

import json

import pytest

from shared.mailbox import Mailbox
from host.injector import InputInjector
from host.listener import CommandListener
from controller.journal import PlanJournal
from controller.llm_client import LLMError
from controller.orchestrator import CommandDispatcher, CycleState, Outcome, PlanOrchestrator

from conftest import FakeCapture, FakeLLM, FakeProbe


def plan_json(commands, explanation="Doing it"):
    return json.dumps({"explanation": explanation, "commands": commands})


def make_orchestrator(mailbox, sleep_recorder, probe=None, capture=None, llm=None, journal=None):
    dispatcher = CommandDispatcher(mailbox, pacing=0.2, sleep=sleep_recorder)
    return PlanOrchestrator(
        probe or FakeProbe(),
        capture or FakeCapture(),
        llm or FakeLLM(plan_json([])),
        dispatcher,
        journal=journal,
    )


class TestCommandDispatcher:
    def test_send_one_writes_canonical_text(self, mailbox, sleep_recorder):
        dispatcher = CommandDispatcher(mailbox, sleep=sleep_recorder)
        assert dispatcher.send_one(" click( 10 , 20 ) ") == "click(10,20)"
        assert mailbox.sent == ["click(10,20)"]

    def test_send_one_rejects_invalid(self, mailbox, sleep_recorder):
        dispatcher = CommandDispatcher(mailbox, sleep=sleep_recorder)
        assert dispatcher.send_one("click(oops)") is None
        assert mailbox.sent == []
        assert mailbox.pending() is False

    @pytest.mark.asyncio
    async def test_dispatch_paces_between_sends(self, mailbox, sleep_recorder):
        dispatcher = CommandDispatcher(mailbox, pacing=0.2, sleep=sleep_recorder)
        sent, dropped = await dispatcher.dispatch(["click(1,2)", "type('hi')", "key('enter')"])

        assert sent == ["click(1,2)", "type('hi')", "key('enter')"]
        assert dropped == []
        assert sleep_recorder.delays == [0.2, 0.2]

    @pytest.mark.asyncio
    async def test_dispatch_skips_invalid_without_pacing(self, mailbox, sleep_recorder):
        dispatcher = CommandDispatcher(mailbox, pacing=0.2, sleep=sleep_recorder)
        sent, dropped = await dispatcher.dispatch(["bogus", "key('tab')", "click(-1,0)"])

        assert sent == ["key('tab')"]
        assert dropped == ["bogus", "click(-1,0)"]
        assert sleep_recorder.delays == []
        assert mailbox.sent == ["key('tab')"]


class TestPlanOrchestrator:
    @pytest.mark.asyncio
    async def test_target_not_running(self, mailbox, sleep_recorder):
        capture = FakeCapture()
        llm = FakeLLM(plan_json(["click(1,1)"]))
        orchestrator = make_orchestrator(
            mailbox, sleep_recorder, probe=FakeProbe(alive=False), capture=capture, llm=llm
        )

        result = await orchestrator.run("click somewhere")
        assert result.outcome == Outcome.TARGET_NOT_RUNNING
        assert "not running" in result.reason
        assert capture.calls == 0
        assert llm.requests == []
        assert mailbox.sent == []

    @pytest.mark.asyncio
    async def test_capture_failed(self, mailbox, sleep_recorder):
        llm = FakeLLM(plan_json(["click(1,1)"]))
        orchestrator = make_orchestrator(mailbox, sleep_recorder, capture=FakeCapture(data=None), llm=llm)

        result = await orchestrator.run("goal")
        assert result.outcome == Outcome.CAPTURE_FAILED
        assert llm.requests == []

    @pytest.mark.asyncio
    async def test_request_failed(self, mailbox, sleep_recorder):
        llm = FakeLLM(error=LLMError("API Error (401): bad key", status_code=401))
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=llm)

        result = await orchestrator.run("goal")
        assert result.outcome == Outcome.REQUEST_FAILED
        assert result.reason == "API Error (401): bad key"
        assert result.ok is False
        assert mailbox.sent == []

    @pytest.mark.asyncio
    async def test_unparseable(self, mailbox, sleep_recorder):
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=FakeLLM("I can't help with that."))

        result = await orchestrator.run("goal")
        assert result.outcome == Outcome.UNPARSEABLE
        assert "I can't help with that." in result.reason
        assert mailbox.sent == []

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, mailbox, sleep_recorder):
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=FakeLLM(plan_json([], "Already open")))

        result = await orchestrator.run("goal")
        assert result.outcome == Outcome.NOTHING_TO_DO
        assert result.ok is True
        assert result.plan.explanation == "Already open"
        assert mailbox.sent == []

    @pytest.mark.asyncio
    async def test_all_commands_invalid(self, mailbox, sleep_recorder):
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=FakeLLM(plan_json(["doubleclick(1,2)"])))

        result = await orchestrator.run("goal")
        assert result.outcome == Outcome.NOTHING_TO_DO
        assert result.dropped == ["doubleclick(1,2)"]
        assert mailbox.sent == []

    @pytest.mark.asyncio
    async def test_completed_with_partial_validity(self, mailbox, sleep_recorder):
        llm = FakeLLM(plan_json(["click(10,20)", "wave()", "type('hi')"], "Click then type"))
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=llm)

        result = await orchestrator.run("goal")
        assert result.outcome == Outcome.COMPLETED
        assert result.reason == "Click then type"
        assert result.dispatched == ["click(10,20)", "type('hi')"]
        assert result.dropped == ["wave()"]
        assert sleep_recorder.delays == [0.2]

    @pytest.mark.asyncio
    async def test_fallback_response_is_dispatched(self, mailbox, sleep_recorder):
        llm = FakeLLM("I will press key('enter') now.")
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=llm)

        result = await orchestrator.run("confirm")
        assert result.outcome == Outcome.COMPLETED
        assert mailbox.sent == ["key('enter')"]

    @pytest.mark.asyncio
    async def test_goal_and_screenshot_reach_the_model(self, mailbox, sleep_recorder):
        llm = FakeLLM(plan_json([]))
        orchestrator = make_orchestrator(mailbox, sleep_recorder, capture=FakeCapture(b"shot"), llm=llm)

        await orchestrator.run("Open Finder")
        assert llm.requests == [("Open Finder", b"shot")]

    @pytest.mark.asyncio
    async def test_state_returns_to_idle(self, mailbox, sleep_recorder):
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=FakeLLM(error=LLMError("x")))
        await orchestrator.run("goal")
        assert orchestrator.state == CycleState.IDLE
        assert orchestrator.cycles_run == 1

    @pytest.mark.asyncio
    async def test_dispatch_failure(self, tmp_path, sleep_recorder):
        class FullMailbox(Mailbox):
            def send(self, raw):
                raise OSError("disk full")

        orchestrator = make_orchestrator(
            FullMailbox(tmp_path / "slot.txt"), sleep_recorder, llm=FakeLLM(plan_json(["key('tab')"]))
        )
        result = await orchestrator.run("goal")
        assert result.outcome == Outcome.DISPATCH_FAILED
        assert "disk full" in result.reason

    @pytest.mark.asyncio
    async def test_journal_records_sent_commands(self, mailbox, sleep_recorder, tmp_path):
        journal = PlanJournal(str(tmp_path / "plans.jsonl"))
        llm = FakeLLM(plan_json(["key('tab')", "nope"], "Tab over"))
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=llm, journal=journal)

        await orchestrator.run("next field")
        entries = journal.load()
        assert len(entries) == 1
        assert entries[0].goal == "next field"
        assert entries[0].commands == ["key('tab')"]


    @pytest.mark.asyncio
    async def test_journal_write_failure_still_completes(self, mailbox, sleep_recorder, tmp_path):
        journal_dir = tmp_path / "journal_is_a_dir"
        journal_dir.mkdir()
        journal = PlanJournal(str(journal_dir))
        llm = FakeLLM(plan_json(["key('tab')"], "Tab over"))
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=llm, journal=journal)

        result = await orchestrator.run("tab over")
        assert result.outcome == Outcome.COMPLETED
        assert result.dispatched == ["key('tab')"]
        assert mailbox.sent == ["key('tab')"]
        assert orchestrator.state == CycleState.IDLE


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_click_at_10_20(self, mailbox, sleep_recorder, surface):
        llm = FakeLLM(plan_json(["click(10,20)"], "Clicking at 10,20"))
        orchestrator = make_orchestrator(mailbox, sleep_recorder, llm=llm)

        result = await orchestrator.run("click at 10,20")
        assert result.outcome == Outcome.COMPLETED
        assert mailbox.sent == ["click(10,20)"]

        listener = CommandListener(Mailbox(mailbox.path), InputInjector(surface), poll_interval=0.01)
        await listener.tick()
        assert listener.tick() is None

        assert surface.history == [
            ("mouse_down", 10, surface.height - 20),
            ("mouse_up", 10, surface.height - 20),
        ]
