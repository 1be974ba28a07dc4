"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

import tomli_w

CONFIG_DIR = Path.home() / ".tmux-relay"
CONFIG_FILE = CONFIG_DIR / "config.toml"

SHELL_TYPES: tuple[str, ...] = ("bash", "zsh", "fish")


@dataclass
class TmuxConfig:
    binary: str = "tmux"
    shell: str = "bash"


@dataclass
class TrackerConfig:
    tail_lines: int = 1000
    max_age_minutes: int = 60
    list_max_age_minutes: int = 10
    janitor_interval: int = 60


@dataclass
class PollingConfig:
    timeout: int = 15
    interval: float = 1.0


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str = "~/.tmux-relay/relay.log"


@dataclass
class AppConfig:
    tmux: TmuxConfig = field(default_factory=TmuxConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def ensure_config_dir() -> None:
    """Create config directory with secure permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(CONFIG_DIR, 0o700)


def load_config() -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    config = AppConfig()

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)

        tmux = data.get("tmux", {})
        config.tmux.binary = tmux.get("binary", config.tmux.binary)
        config.tmux.shell = tmux.get("shell", config.tmux.shell)

        tracker = data.get("tracker", {})
        config.tracker.tail_lines = tracker.get("tail_lines", config.tracker.tail_lines)
        config.tracker.max_age_minutes = tracker.get("max_age_minutes", config.tracker.max_age_minutes)
        config.tracker.list_max_age_minutes = tracker.get(
            "list_max_age_minutes", config.tracker.list_max_age_minutes
        )
        config.tracker.janitor_interval = tracker.get("janitor_interval", config.tracker.janitor_interval)

        polling = data.get("polling", {})
        config.polling.timeout = polling.get("timeout", config.polling.timeout)
        config.polling.interval = polling.get("interval", config.polling.interval)

        logging_cfg = data.get("logging", {})
        config.logging.level = logging_cfg.get("level", config.logging.level)
        config.logging.file = logging_cfg.get("file", config.logging.file)

    # Environment variable overrides
    if env_bin := os.environ.get("TMUX_RELAY_TMUX_BIN"):
        config.tmux.binary = env_bin
    if env_shell := os.environ.get("TMUX_RELAY_SHELL"):
        config.tmux.shell = env_shell
    if env_tail := os.environ.get("TMUX_RELAY_TAIL_LINES"):
        config.tracker.tail_lines = int(env_tail)
    if env_max_age := os.environ.get("TMUX_RELAY_MAX_AGE"):
        config.tracker.max_age_minutes = int(env_max_age)
    if env_timeout := os.environ.get("TMUX_RELAY_TIMEOUT"):
        config.polling.timeout = int(env_timeout)
    if env_interval := os.environ.get("TMUX_RELAY_POLL_INTERVAL"):
        config.polling.interval = float(env_interval)
    if env_log_level := os.environ.get("TMUX_RELAY_LOG_LEVEL"):
        config.logging.level = env_log_level

    return config


def save_config(config: AppConfig) -> None:
    """Save configuration to TOML file."""
    ensure_config_dir()

    data = {
        "tmux": {
            "binary": config.tmux.binary,
            "shell": config.tmux.shell,
        },
        "tracker": {
            "tail_lines": config.tracker.tail_lines,
            "max_age_minutes": config.tracker.max_age_minutes,
            "list_max_age_minutes": config.tracker.list_max_age_minutes,
            "janitor_interval": config.tracker.janitor_interval,
        },
        "polling": {
            "timeout": config.polling.timeout,
            "interval": config.polling.interval,
        },
        "logging": {
            "level": config.logging.level,
            "file": config.logging.file,
        },
    }

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(data, f)

    os.chmod(CONFIG_FILE, 0o600)


# Global singleton
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or load the global config singleton."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the global config (for testing)."""
    global _config
    _config = None
