"""
Vision-Plan Orchestrator - Main controller pipeline.
Goal -> liveness check -> screenshot -> model -> plan -> validated, paced mailbox sends.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from shared.commands import parse, serialize
from shared.constants import Timing
from shared.mailbox import Mailbox
from controller.llm_client import LLMError
from controller.plan_parser import Plan, extract

logger = logging.getLogger(__name__)


class CycleState(Enum):
    """Orchestration states; every cycle starts and ends in IDLE."""
    IDLE = "idle"
    CAPTURING = "capturing"
    REQUESTING = "requesting"
    PARSING = "parsing"
    DISPATCHING = "dispatching"


class Outcome(Enum):
    """How a cycle ended."""
    COMPLETED = "completed"
    NOTHING_TO_DO = "nothing_to_do"
    TARGET_NOT_RUNNING = "target_not_running"
    CAPTURE_FAILED = "capture_failed"
    REQUEST_FAILED = "request_failed"
    UNPARSEABLE = "unparseable"
    DISPATCH_FAILED = "dispatch_failed"


@dataclass
class CycleResult:
    """Result of one orchestration cycle."""
    outcome: Outcome
    reason: str
    plan: Optional[Plan] = None
    dispatched: List[str] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.COMPLETED, Outcome.NOTHING_TO_DO)


class CommandDispatcher:
    """
    Validates raw commands and sends them through the mailbox in order.

    The mailbox holds one command, so consecutive sends are spaced by
    `pacing` (longer than two host poll intervals) to avoid overwriting a
    command before the host has seen it.
    """

    def __init__(
        self,
        mailbox: Mailbox,
        pacing: float = Timing.DISPATCH_PACING.value,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Initialize dispatcher.

        Args:
            mailbox: Mailbox to write to.
            pacing: Seconds between consecutive sends.
            sleep: Awaitable sleep function.
        """
        self.mailbox = mailbox
        self.pacing = pacing
        self._sleep = sleep

    def send_one(self, raw: str) -> Optional[str]:
        """
        Validate and send a single command.

        Returns:
            The canonical text written, or None if raw is not a valid command.

        Raises:
            OSError: If the mailbox cannot be written.
        """
        command = parse(raw)
        if command is None:
            return None

        text = serialize(command)
        self.mailbox.send(text)
        return text

    async def dispatch(self, commands: Iterable[str]) -> Tuple[List[str], List[str]]:
        """
        Send commands in order with pacing between sends.

        Returns:
            (sent, dropped): canonical texts written, and raw texts that failed validation.

        Raises:
            OSError: If the mailbox cannot be written.
        """
        sent: List[str] = []
        dropped: List[str] = []

        for raw in commands:
            command = parse(raw)
            if command is None:
                logger.warning(f"[AGENT] Dropping invalid command: {raw!r}")
                dropped.append(raw)
                continue

            if sent:
                await self._sleep(self.pacing)

            text = serialize(command)
            self.mailbox.send(text)
            sent.append(text)
            logger.info(f"[AGENT] Executed: {text}")

        return sent, dropped


class PlanOrchestrator:
    """
    Runs one capture -> request -> parse -> dispatch cycle per goal.

    All collaborators are passed in; the orchestrator keeps no global state.
    Failures end the cycle early and are reported through CycleResult,
    never raised and never retried.
    """

    def __init__(
        self,
        probe,
        capture,
        llm_client,
        dispatcher: CommandDispatcher,
        journal=None
    ):
        """
        Initialize orchestrator.

        Args:
            probe: Object with is_target_alive() -> bool.
            capture: Object with capture_png() -> Optional[bytes].
            llm_client: Object with async request_plan(goal, image_png) -> str.
            dispatcher: CommandDispatcher used for the final step.
            journal: Optional PlanJournal recording dispatched plans.
        """
        self.probe = probe
        self.capture = capture
        self.llm_client = llm_client
        self.dispatcher = dispatcher
        self.journal = journal

        self.state = CycleState.IDLE
        self.cycles_run = 0

    async def run(self, goal: str) -> CycleResult:
        """
        Execute one orchestration cycle.

        Args:
            goal: Operator's natural-language goal.

        Returns:
            CycleResult describing the outcome.
        """
        self.cycles_run += 1
        try:
            return await self._run(goal)
        finally:
            self.state = CycleState.IDLE

    async def _run(self, goal: str) -> CycleResult:
        logger.info(f"[AGENT] Processing: {goal}")

        if not self.probe.is_target_alive():
            return CycleResult(Outcome.TARGET_NOT_RUNNING, "VM app not running. Please start the VM first.")

        # Capture
        self.state = CycleState.CAPTURING
        image = await asyncio.to_thread(self.capture.capture_png)
        if not image:
            return CycleResult(Outcome.CAPTURE_FAILED, "Failed to capture VM screenshot")

        # Request
        self.state = CycleState.REQUESTING
        try:
            response = await self.llm_client.request_plan(goal, image)
        except LLMError as e:
            return CycleResult(Outcome.REQUEST_FAILED, str(e))

        # Parse
        self.state = CycleState.PARSING
        plan = extract(response)
        if plan is None:
            return CycleResult(Outcome.UNPARSEABLE, f"Could not parse response: {response}")

        if not plan.commands:
            return CycleResult(Outcome.NOTHING_TO_DO, "No commands to execute", plan=plan)

        # Dispatch
        self.state = CycleState.DISPATCHING
        try:
            sent, dropped = await self.dispatcher.dispatch(plan.commands)
        except OSError as e:
            return CycleResult(Outcome.DISPATCH_FAILED, f"Failed to execute command: {e}", plan=plan)

        if not sent:
            return CycleResult(
                Outcome.NOTHING_TO_DO, "No valid commands in plan", plan=plan, dropped=dropped
            )

        if self.journal is not None:
            try:
                self.journal.record(goal, plan.explanation, sent)
            except OSError as e:
                # Commands already went out; the cycle still completed
                logger.warning(f"[JOURNAL] Failed to record plan: {e}")

        return CycleResult(
            Outcome.COMPLETED,
            plan.explanation,
            plan=plan,
            dispatched=sent,
            dropped=dropped
        )
