"""Asynchronous command execution and completion tracking for tmux panes."""

__version__ = "0.3.0"
