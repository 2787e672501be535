"""
autosplit Daemon

Command-line entry point: parses flags into a Config, wires reporters onto
the event bus, installs signal handlers and runs the controller.
"""

from __future__ import annotations
import argparse
import os
import signal
import sys
import time
from typing import List, Optional

from pubsub import pub

from . import __version__, topics
from .config import Config
from .controller import Controller
from .errors import ConnectError, ProtocolError, TransportError


EXIT_OK = 0
EXIT_CONNECT_FAILED = 1
EXIT_DISCONNECTED = 2


class Reporter:
    """Prints decisions and failures published by the core."""

    def __init__(self, verbose: bool = False, stream=None):
        self.verbose = verbose
        self.stream = stream or sys.stdout

    def subscribe(self, bus):
        bus.subscribe(self._on_applied, topics.DECISION_APPLIED)
        bus.subscribe(self._on_command_failed, topics.COMMAND_FAILED)
        bus.subscribe(self._on_disconnected, topics.CONTROLLER_DISCONNECTED)
        if self.verbose:
            bus.subscribe(self._on_skipped, topics.DECISION_SKIPPED)
            bus.subscribe(self._on_command_sent, topics.COMMAND_SENT)
            bus.subscribe(self._on_forgotten, topics.STATE_FORGOTTEN)

    def _print(self, message: str):
        print(f"autosplit: {message}", file=self.stream, flush=True)

    def _on_applied(self, container_id, orientation):
        self._print(f"con {container_id} -> {orientation.value}")

    def _on_skipped(self, decision):
        detail = f" ({decision.detail})" if decision.detail else ""
        self._print(f"skip con {decision.container_id}: {decision.reason.value}{detail}")

    def _on_command_sent(self, command, dry_run):
        self._print(f"{'would run' if dry_run else 'run'}: {command}")

    def _on_command_failed(self, command, error):
        self._print(f"command failed: {command}: {error}")

    def _on_forgotten(self, container_id):
        self._print(f"forgot con {container_id}")

    def _on_disconnected(self, reason, error):
        # Fatal errors are reported by main() on stderr
        if error is None and self.verbose:
            self._print(f"disconnected: {reason}")


def debug_event_logger(topic=pub.AUTO_TOPIC, **kwargs):
    """Log all events published on the event bus."""
    timestamp = time.strftime("%H:%M:%S")
    topic_name = topic.getName()
    data_str = ", ".join(f"{k}={v}" for k, v in kwargs.items() if k != "topic")
    print(f"[{timestamp}] EVENT: {topic_name} | {data_str}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autosplit",
        description="Alternate split orientation of sway/i3 containers by aspect ratio.",
    )
    parser.add_argument(
        "--exclude-workspace",
        dest="excluded_workspaces",
        metavar="PATTERN",
        action="append",
        default=[],
        help="Never touch workspaces matching this glob (repeatable)",
    )
    parser.add_argument(
        "--exclude-output",
        dest="excluded_outputs",
        metavar="PATTERN",
        action="append",
        default=[],
        help="Never touch outputs matching this glob (repeatable)",
    )
    parser.add_argument(
        "-w",
        "--workspace",
        dest="workspaces",
        metavar="NAME",
        action="append",
        default=[],
        help="Only act on this workspace, by name or number (repeatable)",
    )
    parser.add_argument(
        "-r",
        "--ratio",
        type=float,
        default=1.0,
        help="Split vertically once height/width reaches this ratio (default: 1.0)",
    )
    parser.add_argument(
        "--no-skip-floating",
        dest="skip_floating",
        action="store_false",
        help="Also manage floating containers",
    )
    parser.add_argument(
        "--include-fullscreen",
        dest="skip_fullscreen",
        action="store_false",
        help="Also act while the target is fullscreen",
    )
    parser.add_argument(
        "--focused-output-only",
        action="store_true",
        help="Only act on the output holding focus",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print layout commands instead of sending them",
    )
    parser.add_argument(
        "--socket",
        metavar="PATH",
        default=None,
        help="IPC socket path (default: $SWAYSOCK, then $I3SOCK)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Report skips too")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    return Config(
        excluded_workspaces=tuple(args.excluded_workspaces),
        excluded_outputs=tuple(args.excluded_outputs),
        workspaces=tuple(args.workspaces),
        skip_floating=args.skip_floating,
        skip_fullscreen=args.skip_fullscreen,
        focused_output_only=args.focused_output_only,
        ratio=args.ratio,
        dry_run=args.dry_run,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    if os.getenv("AUTOSPLIT_DEBUG"):
        pub.subscribe(debug_event_logger, pub.ALL_TOPICS)

    reporter = Reporter(verbose=args.verbose)
    reporter.subscribe(pub)

    try:
        controller = Controller.open(pub, config, args.socket)
    except KeyboardInterrupt:
        # Interrupted before the signal handlers below are installed
        return EXIT_OK
    except (ConnectError, ProtocolError, TransportError) as e:
        print(f"autosplit: cannot connect: {e}", file=sys.stderr)
        return EXIT_CONNECT_FAILED

    def on_signal(signum, frame):
        controller.stop()

    signal.signal(signal.SIGINT, on_signal)
    signal.signal(signal.SIGTERM, on_signal)

    try:
        controller.run()
    except (TransportError, ProtocolError) as e:
        print(f"autosplit: connection lost: {e}", file=sys.stderr)
        return EXIT_DISCONNECTED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
