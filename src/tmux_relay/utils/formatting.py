"""Text renderings of captures and command records."""

from __future__ import annotations

from tmux_relay.storage.models import CaptureResult, CommandRecord

SUMMARY_COMMAND_LENGTH = 30


def truncate_command(command: str, limit: int = SUMMARY_COMMAND_LENGTH) -> str:
    if len(command) <= limit:
        return command
    return command[:limit] + "..."


def format_duration(ms: int) -> str:
    """Format milliseconds to human-readable duration."""
    if ms < 1000:
        return f"{ms}ms"
    elif ms < 60000:
        return f"{ms / 1000:.1f}s"
    else:
        minutes = ms // 60000
        seconds = (ms % 60000) // 1000
        return f"{minutes}m {seconds}s"


def format_capture(result: CaptureResult) -> str:
    if not result.lines or not result.content:
        return "No content captured"
    return f"Captured lines {result.start_line}-{result.end_line} of {result.total_lines}:\n\n{result.content}"


def format_command_result(record: CommandRecord) -> str:
    """Render a record the way ``result`` lookups report it."""
    if not record.is_terminal:
        if record.result:
            return (
                f"Status: {record.status.value}\nCommand: {record.command}\n\n"
                f"--- Message ---\n{record.result}"
            )
        return (
            f"Command still executing...\nStarted: {record.started_at.isoformat()}\n"
            f"Command: {record.command}"
        )
    return (
        f"Status: {record.status.value}\nExit code: {record.exit_code}\n"
        f"Command: {record.command}\n\n--- Output ---\n{record.result}"
    )


def format_timeout(record: CommandRecord) -> str:
    return (
        f"Timeout reached. Command ID: {record.id}\nCurrent status: {record.status.value}\n\n"
        f"--- Output ---\n{record.result or 'No output yet.'}\n\n"
        "The command is still running; check it again later."
    )


def format_submitted(command_id: str) -> str:
    return (
        f"Command execution started with ID: {command_id}\n\n"
        "Status will change from 'pending' to 'completed' or 'error' when finished."
    )


def format_raw_submitted(command_id: str, pane_id: str, send_enter: bool = True) -> str:
    mode_text = "Interactive command started (raw mode)" if send_enter else "Keys sent without Enter"
    return (
        f"{mode_text}.\n\nStatus tracking is disabled.\n"
        f"Capture pane '{pane_id}' to verify the command outcome.\n\nCommand ID: {command_id}"
    )
