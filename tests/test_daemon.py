"""
Unit tests for the command-line entry point.
"""

import io

import pytest
from autosplit import daemon, topics
from autosplit.decider import Skip, SkipReason
from autosplit.errors import ConnectError, ConnectionClosed
from autosplit.tree import Orientation


class DispatchBus:
    """Minimal synchronous bus delivering messages to subscribed listeners."""

    def __init__(self):
        self.listeners = {}

    def subscribe(self, listener, topic):
        self.listeners.setdefault(topic, []).append(listener)

    def sendMessage(self, topic, **kwargs):
        for listener in self.listeners.get(topic, []):
            listener(**kwargs)


@pytest.mark.unit
class TestArguments:
    """Test flag parsing into Config."""

    def test_defaults(self):
        args = daemon.build_parser().parse_args([])
        config = daemon.config_from_args(args)

        assert config.skip_floating
        assert config.skip_fullscreen
        assert not config.focused_output_only
        assert not config.dry_run
        assert config.ratio == 1.0
        assert args.socket is None

    def test_all_flags(self):
        args = daemon.build_parser().parse_args(
            [
                "--exclude-workspace", "9:*",
                "--exclude-workspace", "scratch",
                "--exclude-output", "HDMI-*",
                "-w", "1",
                "--ratio", "0.8",
                "--no-skip-floating",
                "--include-fullscreen",
                "--focused-output-only",
                "--dry-run",
                "--socket", "/run/sway.sock",
            ]
        )
        config = daemon.config_from_args(args)

        assert config.excluded_workspaces == ("9:*", "scratch")
        assert config.excluded_outputs == ("HDMI-*",)
        assert config.workspaces == ("1",)
        assert config.ratio == 0.8
        assert not config.skip_floating
        assert not config.skip_fullscreen
        assert config.focused_output_only
        assert config.dry_run
        assert args.socket == "/run/sway.sock"

    def test_bad_ratio_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            daemon.main(["--ratio", "-1"])
        assert exc_info.value.code == 2


@pytest.mark.unit
class TestReporter:
    """Test the printing reporter."""

    def make(self, verbose):
        stream = io.StringIO()
        bus = DispatchBus()
        daemon.Reporter(verbose=verbose, stream=stream).subscribe(bus)
        return bus, stream

    def test_applied(self):
        bus, stream = self.make(verbose=False)

        bus.sendMessage(topics.DECISION_APPLIED, container_id=10, orientation=Orientation.VERTICAL)

        assert stream.getvalue() == "autosplit: con 10 -> vertical\n"

    def test_skips_only_when_verbose(self):
        skip = Skip(SkipReason.EXCLUDED, 10, "workspace '9:scratch' is excluded")

        quiet_bus, quiet = self.make(verbose=False)
        quiet_bus.sendMessage(topics.DECISION_SKIPPED, decision=skip)
        loud_bus, loud = self.make(verbose=True)
        loud_bus.sendMessage(topics.DECISION_SKIPPED, decision=skip)

        assert quiet.getvalue() == ""
        assert loud.getvalue() == (
            "autosplit: skip con 10: excluded (workspace '9:scratch' is excluded)\n"
        )

    def test_command_failed(self):
        bus, stream = self.make(verbose=False)

        bus.sendMessage(topics.COMMAND_FAILED, command="[con_id=10] layout splith", error="gone")

        assert "command failed" in stream.getvalue()

    def test_dry_run_command(self):
        bus, stream = self.make(verbose=True)

        bus.sendMessage(topics.COMMAND_SENT, command="[con_id=10] layout splith", dry_run=True)

        assert stream.getvalue() == "autosplit: would run: [con_id=10] layout splith\n"

    def test_disconnect_error_not_duplicated(self):
        bus, stream = self.make(verbose=True)

        bus.sendMessage(
            topics.CONTROLLER_DISCONNECTED, reason="error", error=ConnectionClosed("gone")
        )

        assert stream.getvalue() == ""


class FakeController:
    def __init__(self, error=None):
        self.error = error
        self.stopped = False

    def run(self):
        if self.error:
            raise self.error

    def stop(self):
        self.stopped = True


@pytest.mark.unit
class TestMain:
    """Test exit codes."""

    @pytest.fixture(autouse=True)
    def no_signal_handlers(self, monkeypatch):
        handlers = {}
        monkeypatch.setattr(daemon.signal, "signal", lambda sig, fn: handlers.__setitem__(sig, fn))
        return handlers

    def test_connect_failure(self, monkeypatch, capsys):
        def refuse(bus, config, socket_path=None):
            raise ConnectError("No compositor socket: neither SWAYSOCK nor I3SOCK is set")

        monkeypatch.setattr(daemon.Controller, "open", refuse)

        assert daemon.main([]) == daemon.EXIT_CONNECT_FAILED
        assert "cannot connect" in capsys.readouterr().err

    def test_interrupt_while_connecting(self, monkeypatch, capsys):
        def interrupted(bus, config, socket_path=None):
            raise KeyboardInterrupt

        monkeypatch.setattr(daemon.Controller, "open", interrupted)

        assert daemon.main([]) == daemon.EXIT_OK
        assert capsys.readouterr().err == ""

    def test_clean_shutdown(self, monkeypatch, no_signal_handlers):
        controller = FakeController()
        monkeypatch.setattr(daemon.Controller, "open", lambda bus, config, socket_path=None: controller)

        assert daemon.main(["--socket", "/run/sway.sock"]) == daemon.EXIT_OK

        # Signal handlers stop the controller
        handler = no_signal_handlers[daemon.signal.SIGTERM]
        handler(daemon.signal.SIGTERM, None)
        assert controller.stopped

    def test_connection_lost(self, monkeypatch, capsys):
        controller = FakeController(error=ConnectionClosed("Compositor closed the connection"))
        monkeypatch.setattr(daemon.Controller, "open", lambda bus, config, socket_path=None: controller)

        assert daemon.main([]) == daemon.EXIT_DISCONNECTED
        assert "connection lost" in capsys.readouterr().err
