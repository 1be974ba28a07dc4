"""Tests for command injection."""

from __future__ import annotations

import pytest

from tmux_relay.errors import TmuxError
from tmux_relay.services.injector import SPECIAL_KEYS, CommandInjector
from tmux_relay.services.markers import ShellDialect, wrap_command
from tmux_relay.storage.models import CommandMode, CommandStatus


@pytest.fixture
def injector(fake_tmux, tracker):
    return CommandInjector(fake_tmux, tracker, ShellDialect.BASH)


class TestLineMode:
    @pytest.mark.asyncio
    async def test_wraps_and_sends_with_enter(self, injector, fake_tmux, tracker):
        command_id = await injector.inject("%1", "ls -la")

        assert fake_tmux.sends == [
            ("send-keys", "-t", "%1", "-l", "--", wrap_command(command_id, "ls -la"), ";", "send-keys", "-t", "%1", "Enter")
        ]
        record = tracker.get(command_id)
        assert record.command == "ls -la"
        assert record.mode is CommandMode.NORMAL
        assert record.status is CommandStatus.PENDING

    @pytest.mark.asyncio
    async def test_fish_dialect(self, fake_tmux, tracker):
        injector = CommandInjector(fake_tmux, tracker, ShellDialect.FISH)
        command_id = await injector.inject("%1", "false")
        payload = fake_tmux.sends[0][5]
        assert payload.endswith(f'echo "TMUX_MCP_DONE_{command_id}_$status"')

    @pytest.mark.asyncio
    async def test_raw_mode_sends_unmodified(self, injector, fake_tmux, tracker):
        command_id = await injector.inject("%1", "python3", mode=CommandMode.RAW)
        assert fake_tmux.sends[0][5] == "python3"
        assert tracker.get(command_id).mode is CommandMode.RAW

    @pytest.mark.asyncio
    async def test_single_quotes_kept_literal(self, injector, fake_tmux):
        await injector.inject("%1", "echo 'it''s'", mode=CommandMode.RAW)
        assert fake_tmux.sends[0][5] == "echo 'it''s'"

    @pytest.mark.asyncio
    async def test_trailing_semicolon_escaped(self, injector, fake_tmux):
        await injector.inject("%1", "cd /tmp;", mode=CommandMode.RAW)
        assert fake_tmux.sends[0][5] == "cd /tmp\\;"

    @pytest.mark.asyncio
    async def test_find_exec_terminator_survives(self, injector, fake_tmux):
        # tmux turns the doubled backslash back into the user's "\;".
        await injector.inject("%1", "find . -name '*.pyc' -exec rm {} \\;", mode=CommandMode.RAW)
        assert fake_tmux.sends[0][5] == "find . -name '*.pyc' -exec rm {} \\\\;"

    @pytest.mark.asyncio
    async def test_unique_ids(self, injector):
        ids = {await injector.inject("%1", "true") for _ in range(20)}
        assert len(ids) == 20


class TestKeystrokeMode:
    @pytest.mark.asyncio
    async def test_text_sent_per_character(self, injector, fake_tmux):
        await injector.inject("%1", "beam", send_enter=False)
        assert fake_tmux.sends == [
            ("send-keys", "-t", "%1", "-l", "--", "b"),
            ("send-keys", "-t", "%1", "-l", "--", "e"),
            ("send-keys", "-t", "%1", "-l", "--", "a"),
            ("send-keys", "-t", "%1", "-l", "--", "m"),
        ]

    @pytest.mark.asyncio
    async def test_named_key_sent_once(self, injector, fake_tmux):
        await injector.inject("%1", "Escape", send_enter=False)
        assert fake_tmux.sends == [("send-keys", "-t", "%1", "Escape")]

    @pytest.mark.asyncio
    async def test_forces_raw_mode(self, injector, tracker):
        command_id = await injector.inject("%1", "q", mode=CommandMode.NORMAL, send_enter=False)
        assert tracker.get(command_id).mode is CommandMode.RAW

    @pytest.mark.asyncio
    async def test_semicolon_keystroke_escaped(self, injector, fake_tmux):
        await injector.inject("%1", ";", send_enter=False)
        assert fake_tmux.sends == [("send-keys", "-t", "%1", "-l", "--", "\\;")]

    def test_special_keys(self):
        assert {"Up", "Down", "Left", "Right", "Escape", "Tab", "F1", "F12", "PageUp"} <= SPECIAL_KEYS
        assert "F13" not in SPECIAL_KEYS


class TestOrdering:
    @pytest.mark.asyncio
    async def test_registered_before_send(self, injector, fake_tmux, tracker):
        seen: list[list[str]] = []
        fake_tmux.on_send = lambda args: seen.append(tracker.list_ids())

        command_id = await injector.inject("%1", "make build")
        assert seen == [[command_id]]

    @pytest.mark.asyncio
    async def test_send_failure_propagates(self, injector, fake_tmux, tracker):
        fake_tmux.error = TmuxError("can't find pane: %404")
        with pytest.raises(TmuxError):
            await injector.inject("%404", "ls")
        # Registration already happened; the record is left pending.
        assert len(tracker.list_ids()) == 1
        assert tracker.get(tracker.list_ids()[0]).status is CommandStatus.PENDING
