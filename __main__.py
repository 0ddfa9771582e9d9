#!/usr/bin/env python
"""
Main entry point for VM Pilot.
Run with: python __main__.py [command] from the project root.
When installed, the same components run as vm-pilot-host and vm-pilot.
"""
import sys
import argparse
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))


def main():
    parser = argparse.ArgumentParser(
        description="VM Pilot - drive a VM console through a command mailbox",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python __main__.py host                    # Run the host listener (vm-pilot-host)
  python __main__.py host --dry-run          # Log events instead of injecting
  python __main__.py cli                     # Interactive controller prompt (vm-pilot)
  python __main__.py send "key('enter')"     # One-shot controller command
  python __main__.py ask "Open Finder"       # One AI planning cycle
  python __main__.py replay plans.jsonl      # Re-send the latest recorded plan
  python __main__.py --version               # Show version

Architecture:
  Host: polls the mailbox and replays commands on the VM view
  Controller: validates commands and plans goals with a vision model
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version="VM Pilot 1.0.0"
    )

    parser.add_argument(
        "command",
        choices=["host", "cli", "send", "ask", "replay"],
        nargs="?",
        help="Component to run"
    )

    parser.add_argument(
        "args",
        nargs=argparse.REMAINDER,
        help="Arguments passed to the component"
    )

    args = parser.parse_args()

    # Execute command
    if args.command == "host":
        print("[SYSTEM] Starting host listener...")
        from host.listener import main as host_main
        host_main(args.args)

    elif args.command == "cli":
        from controller.cli import main as cli_main
        cli_main(args.args)

    elif args.command in ("send", "ask", "replay"):
        from controller.cli import main as cli_main
        cli_main([args.command] + args.args)

    else:
        parser.print_help()


if __name__ == "__main__":
    main()
