"""Shared test fixtures."""

from __future__ import annotations

import re

import pytest

from tmux_relay.config import AppConfig, LoggingConfig, PollingConfig, TmuxConfig, TrackerConfig
from tmux_relay.errors import TmuxError
from tmux_relay.services.markers import end_marker_prefix, start_marker
from tmux_relay.services.pane_reader import PaneReader
from tmux_relay.services.tmux import TmuxClient
from tmux_relay.services.tracker import CommandTracker
from tmux_relay.storage.registry import CommandRegistry

WRAPPED = re.compile(r'^echo "TMUX_MCP_START_(?P<id>[^"]+)"; (?P<command>.*); echo "TMUX_MCP_DONE_(?P=id)_\$(\?|status)"$')


def shell_transcript(command_id: str, command: str, output: str, exit_code: int = 0) -> str:
    """Pane text a shell leaves behind after running a wrapped command."""
    typed = f'$ echo "{start_marker(command_id)}"; {command}; echo "{end_marker_prefix(command_id)}$?"'
    lines = [typed, start_marker(command_id)]
    if output:
        lines.append(output)
    lines.append(f"{end_marker_prefix(command_id)}{exit_code}")
    lines.append("$ ")
    return "\n".join(lines) + "\n"


class FakeTmuxClient(TmuxClient):
    """In-memory tmux: records invocations and serves pane buffers.

    Commands listed in ``script`` behave like a shell that runs them as soon as
    they are typed; anything else is only echoed as typed input.
    """

    def __init__(self) -> None:
        super().__init__("tmux")
        self.buffers: dict[str, str] = {}
        self.script: dict[str, tuple[str, int]] = {}
        self.calls: list[tuple[str, ...]] = []
        self.error: TmuxError | None = None
        self.on_send = None

    async def run(self, *args: str) -> str:
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        pane = args[args.index("-t") + 1]
        if args[0] == "capture-pane":
            return self.buffers.get(pane, "")
        if self.on_send is not None:
            self.on_send(args)
        if args[0] == "send-keys" and "-l" in args and "Enter" in args:
            self._type_line(pane, args[args.index("--") + 1])
        return ""

    def _type_line(self, pane: str, text: str) -> None:
        match = WRAPPED.match(text)
        if match and match.group("command") in self.script:
            output, code = self.script[match.group("command")]
            self.buffers[pane] = self.buffers.get(pane, "") + shell_transcript(
                match.group("id"), match.group("command"), output, code
            )
        else:
            self.buffers[pane] = self.buffers.get(pane, "") + f"$ {text}\n"

    @property
    def captures(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] == "capture-pane"]

    @property
    def sends(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] == "send-keys"]


@pytest.fixture
def app_config(tmp_path):
    """Create a test configuration."""
    return AppConfig(
        tmux=TmuxConfig(binary="tmux", shell="bash"),
        tracker=TrackerConfig(tail_lines=1000, max_age_minutes=60, list_max_age_minutes=10, janitor_interval=60),
        polling=PollingConfig(timeout=2, interval=0.01),
        logging=LoggingConfig(level="DEBUG", file=str(tmp_path / "test.log")),
    )


@pytest.fixture
def fake_tmux():
    return FakeTmuxClient()


@pytest.fixture
def registry():
    return CommandRegistry()


@pytest.fixture
def tracker(registry, fake_tmux):
    return CommandTracker(registry, PaneReader(fake_tmux), tail_lines=1000)
