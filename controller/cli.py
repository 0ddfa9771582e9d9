"""
Controller CLI
Interactive prompt and one-shot commands for driving the VM through the mailbox.
"""
import argparse
import asyncio
import logging
import sys
import threading
from typing import Callable, List, Optional

from shared.commands import looks_like_command
from shared.config import PilotConfig, get_config, load_env
from shared.constants import Timing
from shared.mailbox import Mailbox
from controller.capture import ScreenCapture
from controller.journal import PlanJournal, load_journal, select_entry
from controller.liveness import ProcessProbe
from controller.llm_client import create_llm_client
from controller.orchestrator import CommandDispatcher, CycleResult, Outcome, PlanOrchestrator

logger = logging.getLogger(__name__)

COMMAND_HELP = """Commands:
  click(x,y)      - Left click at coordinates
  rightclick(x,y) - Right click at coordinates
  type('text')    - Type text
  key('name')     - Press key (enter, space, escape, tab, delete, up, down, left, right)
  cmd('key')      - Press Cmd+key"""

AGENT_HELP = """  [any text]      - Describe what you want the AI to do

Examples:
  'Open Finder'
  'Click on the Desktop folder'
  'Type hello world in the text field'"""

QUIT_WORDS = ("quit", "exit", "q")
HELP_WORDS = ("help", "h")

MODES = ("agent", "control")


class ControllerCLI:
    """
    Routes operator input: raw commands go straight to the mailbox, anything
    else is a goal for the orchestrator (agent mode only).
    """

    def __init__(
        self,
        probe: ProcessProbe,
        dispatcher: CommandDispatcher,
        orchestrator: Optional[PlanOrchestrator] = None,
        mode: str = "agent",
        output: Callable[[str], None] = print,
        send_delay: float = Timing.POLL_INTERVAL.value
    ):
        """
        Initialize CLI.

        Args:
            probe: Liveness probe gating every send.
            dispatcher: Validating mailbox dispatcher.
            orchestrator: Orchestrator for natural-language goals. Required in agent mode.
            mode: "agent" (commands and goals) or "control" (commands only).
            output: Function printing user-visible lines.
            send_delay: Pause after a raw send so the host can pick it up.
        """
        if mode not in MODES:
            raise ValueError(f"Unknown mode {mode!r}, expected one of {MODES}")
        if mode == "agent" and orchestrator is None:
            raise ValueError("Agent mode needs an orchestrator")

        self.probe = probe
        self.dispatcher = dispatcher
        self.orchestrator = orchestrator
        self.mode = mode
        self.output = output
        self.send_delay = send_delay

    def help_text(self) -> str:
        lines = [COMMAND_HELP]
        if self.mode == "agent":
            lines.append(AGENT_HELP)
        lines.append("  quit            - Exit\n  help            - Show this help")
        return "\n".join(lines)

    async def handle_line(self, line: str) -> bool:
        """
        Handle one line of input.

        Returns:
            False when the operator asked to quit, True otherwise.
        """
        text = line.strip()
        if not text:
            return True

        lowered = text.lower()
        if lowered in QUIT_WORDS:
            self.output("Goodbye!")
            return False

        if lowered in HELP_WORDS:
            self.output(self.help_text())
            return True

        if looks_like_command(text):
            await self.send_raw(text)
        elif self.mode == "agent":
            await self.ask(text)
        else:
            self.output("[CLI] Invalid command. Type 'help' for available commands.")

        return True

    async def send_raw(self, text: str) -> bool:
        """Validate and send one raw command. Returns True if it was written."""
        if not self.probe.is_target_alive():
            self.output("[CLI] VM app not running. Please start the VM first.")
            return False

        try:
            sent = self.dispatcher.send_one(text)
        except OSError as e:
            self.output(f"[CLI] Failed to send command: {e}")
            return False

        if sent is None:
            self.output("[CLI] Invalid command. Type 'help' for available commands.")
            return False

        self.output(f"[CLI] Sent command: {sent}")
        await asyncio.sleep(self.send_delay)
        return True

    async def ask(self, goal: str) -> CycleResult:
        """Run one orchestration cycle and report it."""
        self.output(f"[AGENT] Processing: {goal}")
        result = await self.orchestrator.run(goal)
        self.report(result)
        return result

    def report(self, result: CycleResult):
        """Print a cycle result for the operator."""
        if result.outcome == Outcome.COMPLETED:
            self.output(f"[AGENT] Plan: {result.plan.explanation}")
            self.output(f"[AGENT] Executed {len(result.dispatched)} command(s):")
            for command in result.dispatched:
                self.output(f"  -> {command}")
            for command in result.dropped:
                self.output(f"  skipped invalid: {command}")
        elif result.outcome == Outcome.NOTHING_TO_DO:
            if result.plan is not None:
                self.output(f"[AGENT] Plan: {result.plan.explanation}")
            self.output(f"[AGENT] {result.reason}")
        else:
            self.output(f"[AGENT] Error: {result.reason}")

    async def replay(self, commands: List[str]) -> bool:
        """Re-send a recorded command sequence with dispatch pacing."""
        if not self.probe.is_target_alive():
            self.output("[CLI] VM app not running. Please start the VM first.")
            return False

        try:
            sent, dropped = await self.dispatcher.dispatch(commands)
        except OSError as e:
            self.output(f"[CLI] Failed to send command: {e}")
            return False

        logger.info(f"[CLI] Replayed {len(sent)} command(s), skipped {len(dropped)}")
        for command in sent:
            self.output(f"  -> {command}")
        for command in dropped:
            self.output(f"  skipped invalid: {command}")
        return bool(sent)

    async def repl(self, read_line: Callable[[str], str] = input):
        """Interactive loop; returns when the operator quits or input ends."""
        while True:
            try:
                line = await read_line_async(read_line, "vm> ")
            except EOFError:
                self.output("")
                return

            if not await self.handle_line(line):
                return


def _settle(future: asyncio.Future, line: Optional[str], error: Optional[Exception]):
    if future.done():
        # Reader was cancelled while the prompt was blocked
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(line)


async def read_line_async(read_line: Callable[[str], str], prompt: str) -> str:
    """
    Read one line on a daemon thread.

    The blocking read never runs in the loop's executor, so Ctrl-C and loop
    shutdown do not wait for the operator to press enter.

    Raises:
        EOFError: If input ended.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def worker():
        try:
            line, error = read_line(prompt), None
        except Exception as e:
            line, error = None, e
        try:
            loop.call_soon_threadsafe(_settle, future, line, error)
        except RuntimeError:
            # Loop already closed
            pass

    threading.Thread(target=worker, name="cli-input", daemon=True).start()
    return await future


def build_cli(config: PilotConfig, mode: str, llm_client=None) -> ControllerCLI:
    """Wire the controller side from configuration."""
    probe = ProcessProbe(config.agent.target_app_name)
    dispatcher = CommandDispatcher(
        Mailbox(config.channel.mailbox_path),
        pacing=config.agent.dispatch_pacing
    )

    orchestrator = None
    if llm_client is not None:
        journal = PlanJournal(config.agent.journal_path) if config.agent.journal_path else None
        capture = ScreenCapture(
            backend=config.capture.backend,
            utility=config.capture.utility,
            monitor_index=config.capture.monitor_index,
            screenshot_dir=config.capture.screenshot_dir
        )
        orchestrator = PlanOrchestrator(probe, capture, llm_client, dispatcher, journal=journal)

    return ControllerCLI(
        probe,
        dispatcher,
        orchestrator=orchestrator,
        mode=mode,
        send_delay=config.channel.poll_interval
    )


async def run_command(args, config: PilotConfig) -> int:
    """Execute the parsed CLI command and return an exit code."""
    if args.command == "send":
        cli = build_cli(config, "control")
        return 0 if await cli.send_raw(" ".join(args.text)) else 1

    if args.command == "replay":
        if not args.text:
            print("[CLI] replay needs a journal file")
            return 1
        try:
            entries = load_journal(args.text[0])
        except OSError as e:
            print(f"[CLI] Cannot read journal: {e}")
            return 1
        entry = select_entry(entries, args.index)
        if entry is None:
            print("[CLI] No matching journal entry")
            return 1
        cli = build_cli(config, "control")
        print(f"[CLI] Replaying: {entry.goal} ({entry.explanation})")
        return 0 if await cli.replay(entry.commands) else 1

    async with create_llm_client(config.llm) as llm_client:
        if args.command == "ask":
            cli = build_cli(config, "agent", llm_client)
            result = await cli.ask(" ".join(args.text))
            return 0 if result.ok else 1

        cli = build_cli(config, args.mode, llm_client)
        print("VM Pilot")
        print("========")
        print(cli.help_text())
        print("")

        if not cli.probe.is_target_alive():
            print("[CLI] VM app not running. Please start the VM first.")
        if args.mode == "agent" and not config.llm.api_key:
            print("[CLI] WARNING: OPENAI_API_KEY environment variable not set!")

        await cli.repl()
        return 0


def main(argv=None):
    """Main entry point for the controller."""
    parser = argparse.ArgumentParser(
        description="VM Pilot controller - drive a VM console through the command mailbox",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  vm-pilot                              # Interactive prompt (commands and goals)
  vm-pilot --mode control               # Interactive prompt (raw commands only)
  vm-pilot send "click(100,200)"        # Send one command
  vm-pilot ask "Open Finder"            # Run one AI cycle
  vm-pilot replay plans.jsonl --index 0 # Re-send a recorded plan
        """
    )
    parser.add_argument(
        "command",
        choices=["interactive", "send", "ask", "replay"],
        nargs="?",
        default="interactive",
        help="Command to run"
    )
    parser.add_argument("text", nargs="*", help="Command text, goal, or journal path")
    parser.add_argument("--mode", choices=MODES, default="agent", help="Interactive prompt mode")
    parser.add_argument("--index", type=int, default=None, help="Journal entry to replay (default: latest)")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    load_env()
    config = get_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or config.debug_mode) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        exit_code = asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        print("\nGoodbye!")
        exit_code = 0

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
