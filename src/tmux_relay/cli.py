"""CLI entry point using typer."""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tmux_relay import __version__
from tmux_relay.config import (
    CONFIG_FILE,
    SHELL_TYPES,
    AppConfig,
    LoggingConfig,
    PollingConfig,
    TmuxConfig,
    TrackerConfig,
    load_config,
    save_config,
)
from tmux_relay.errors import RelayError
from tmux_relay.services.relay import CommandRelay
from tmux_relay.storage.models import CommandStatus
from tmux_relay.utils.formatting import (
    format_capture,
    format_command_result,
    format_duration,
    format_raw_submitted,
    format_submitted,
    format_timeout,
)
from tmux_relay.utils.system import check_tmux_cli

app = typer.Typer(
    name="tmux-relay",
    help="Run commands in tmux panes and track their completion.",
    add_completion=False,
)
console = Console()


def _setup_logging(config: AppConfig, verbose: bool = False) -> None:
    log_path = Path(config.logging.file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(str(log_path)),
            *([logging.StreamHandler()] if verbose else []),
        ],
    )


def _print_plain(text: str) -> None:
    # Pane output may contain square brackets; never parse it as markup.
    console.print(text, markup=False, highlight=False)


@app.command()
def init() -> None:
    """Interactive setup wizard."""
    console.print(f"\n[bold]tmux-relay v{__version__}[/bold]")
    console.print("Interactive Setup\n")

    console.print("[dim]Checking tmux...[/dim]")
    installed, version_info = check_tmux_cli()
    if installed:
        console.print(f"  tmux: [green]{version_info}[/green]")
    else:
        console.print(f"  [yellow]Warning: {version_info}[/yellow]")
        console.print("  You can still configure the relay, but tmux must be installed to use it.\n")

    # 1. Shell dialect
    console.print("\n[bold]Step 1:[/bold] Shell running in your panes")
    console.print("  Used to read the exit status of wrapped commands.")
    shell = typer.prompt(f"  Shell ({', '.join(SHELL_TYPES)})", default="bash")
    if shell not in SHELL_TYPES:
        console.print(f"[yellow]Unknown shell '{shell}', using 'bash'.[/yellow]")
        shell = "bash"

    # 2. Scan window
    console.print("\n[bold]Step 2:[/bold] Lines scanned for command markers")
    console.print("  Commands printing more than this stay pending forever.")
    tail_lines = typer.prompt("  Tail lines", default=1000, type=int)
    if tail_lines <= 0:
        console.print("[red]Tail lines must be positive.[/red]")
        raise typer.Exit(1)

    # 3. Default wait
    console.print("\n[bold]Step 3:[/bold] Default wait for command completion")
    timeout = typer.prompt("  Timeout (seconds)", default=15, type=int)

    config = AppConfig(
        tmux=TmuxConfig(shell=shell),
        tracker=TrackerConfig(tail_lines=tail_lines),
        polling=PollingConfig(timeout=timeout),
        logging=LoggingConfig(),
    )
    save_config(config)

    console.print(f"\n[green]Configuration saved to {CONFIG_FILE}[/green]")
    console.print("\nNext steps:")
    console.print("  [bold]tmux-relay run %1 'make test'[/bold]   Run a command in pane %1")
    console.print("  [bold]tmux-relay capture %1[/bold]          Show the pane's last lines\n")


@app.command()
def run(
    pane: str = typer.Argument(..., help="Target pane (e.g. %1 or session:0.1)"),
    command: str = typer.Argument(..., help="Command to run"),
    timeout: int = typer.Option(None, "--timeout", "-t", help="Seconds to wait for completion"),
    no_wait: bool = typer.Option(False, "--no-wait", help="Return after sending instead of polling"),
    raw: bool = typer.Option(False, "--raw", help="Send without markers (REPLs, editors); no tracking"),
    no_enter: bool = typer.Option(False, "--no-enter", help="Send keystrokes without Enter (TUI navigation)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to stderr"),
) -> None:
    """Run a command in a pane and wait for its result."""
    config = load_config()
    _setup_logging(config, verbose)
    relay = CommandRelay(config)
    if no_wait:
        wait = None
    else:
        wait = timeout if timeout is not None else config.polling.timeout

    start = time.monotonic()
    try:
        outcome = asyncio.run(
            relay.execute(pane, command, timeout=wait, raw=raw, send_enter=not no_enter)
        )
    except RelayError as e:
        console.print(f"[red]Error executing command: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if outcome.raw:
        _print_plain(format_raw_submitted(outcome.command_id, pane, outcome.send_enter))
        return

    if no_wait:
        _print_plain(format_submitted(outcome.command_id))
        return

    poll = outcome.poll
    if poll is None:
        console.print(f"[red]Command not found: {outcome.command_id}[/red]")
        raise typer.Exit(1)

    if poll.timed_out:
        _print_plain(format_timeout(poll.record))
        raise typer.Exit(1)

    _print_plain(f"Command ID: {outcome.command_id}\n{format_command_result(poll.record)}")
    elapsed = format_duration(int((time.monotonic() - start) * 1000))
    console.print(f"\n[dim]Finished in {elapsed}[/dim]")
    if poll.record.status is CommandStatus.ERROR:
        raise typer.Exit(1)


@app.command()
def capture(
    pane: str = typer.Argument(..., help="Target pane"),
    lines: int = typer.Option(100, "--lines", "-n", help="Recent lines to capture (0 for all)"),
    start: int = typer.Option(None, "--start", help="Start line (negative counts from the end)"),
    end: int = typer.Option(None, "--end", help="End line (negative counts from the end)"),
    colors: bool = typer.Option(False, "--colors", help="Include color escape sequences"),
) -> None:
    """Show the contents of a pane."""
    config = load_config()
    relay = CommandRelay(config)
    try:
        result = asyncio.run(relay.capture(pane, lines=lines, start=start, end=end, colors=colors))
    except ValueError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except RelayError as e:
        console.print(f"[red]Error capturing pane content: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    _print_plain(format_capture(result))


@app.command()
def config(
    key: str = typer.Argument(None, help="Config key (e.g., polling.timeout)"),
    value: str = typer.Argument(None, help="New value"),
) -> None:
    """View or modify configuration."""
    if not CONFIG_FILE.exists():
        console.print("[red]Not configured. Run 'tmux-relay init'.[/red]")
        raise typer.Exit(1)

    cfg = load_config()

    if key is None:
        table = Table(title="Configuration")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("tmux.binary", cfg.tmux.binary)
        table.add_row("tmux.shell", cfg.tmux.shell)
        table.add_row("tracker.tail_lines", str(cfg.tracker.tail_lines))
        table.add_row("tracker.max_age_minutes", str(cfg.tracker.max_age_minutes))
        table.add_row("tracker.list_max_age_minutes", str(cfg.tracker.list_max_age_minutes))
        table.add_row("tracker.janitor_interval", str(cfg.tracker.janitor_interval))
        table.add_row("polling.timeout", str(cfg.polling.timeout))
        table.add_row("polling.interval", str(cfg.polling.interval))
        table.add_row("logging.level", cfg.logging.level)
        table.add_row("logging.file", cfg.logging.file)

        console.print(table)
        return

    if value is None:
        console.print("[red]Usage: tmux-relay config <key> <value>[/red]")
        raise typer.Exit(1)

    parts = key.split(".")
    if len(parts) != 2:
        console.print("[red]Key format: section.key (e.g., polling.timeout)[/red]")
        raise typer.Exit(1)

    section, attr = parts
    section_map = {"tmux": cfg.tmux, "tracker": cfg.tracker, "polling": cfg.polling, "logging": cfg.logging}

    if section not in section_map:
        console.print(f"[red]Unknown section: {section}[/red]")
        raise typer.Exit(1)

    obj = section_map[section]
    if not hasattr(obj, attr):
        console.print(f"[red]Unknown key: {key}[/red]")
        raise typer.Exit(1)

    # Type coercion
    current = getattr(obj, attr)
    try:
        if isinstance(current, bool):
            typed_value = value.lower() in ("true", "1", "yes")
        elif isinstance(current, int):
            typed_value = int(value)
        elif isinstance(current, float):
            typed_value = float(value)
        else:
            typed_value = value
    except ValueError:
        console.print(f"[red]Invalid value type for {key}[/red]")
        raise typer.Exit(1)

    if key == "tmux.shell" and typed_value not in SHELL_TYPES:
        console.print(f"[red]Unsupported shell: {typed_value} (choose from {', '.join(SHELL_TYPES)})[/red]")
        raise typer.Exit(1)

    setattr(obj, attr, typed_value)
    save_config(cfg)
    console.print(f"[green]{key} = {typed_value}[/green]")


@app.command()
def logs(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines"),
    follow: bool = typer.Option(False, "--follow", "-f", help="Follow log output"),
) -> None:
    """View relay logs."""
    log_path = Path(load_config().logging.file).expanduser().resolve()
    if not log_path.exists():
        console.print("[dim]No log file found.[/dim]")
        return

    if follow:
        import subprocess

        try:
            subprocess.run(["tail", "-f", "-n", str(lines), str(log_path)])
        except KeyboardInterrupt:
            pass
    else:
        content = log_path.read_text()
        log_lines = content.strip().split("\n")
        for line in log_lines[-lines:]:
            _print_plain(line)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"tmux-relay v{__version__}")

    installed, version_info = check_tmux_cli()
    if installed:
        console.print(f"tmux: {version_info}")
    else:
        console.print("tmux: [yellow]not installed[/yellow]")

    console.print(f"Python: {sys.version.split()[0]}")
    console.print(f"Config: {CONFIG_FILE}")


if __name__ == "__main__":
    app()
