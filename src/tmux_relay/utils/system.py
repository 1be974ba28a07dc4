"""System utility checks."""

from __future__ import annotations

import shutil
import subprocess


def check_tmux_cli(binary: str = "tmux") -> tuple[bool, str]:
    """Check if tmux is installed and return its version."""
    tmux_path = shutil.which(binary)
    if not tmux_path:
        return False, f"tmux not found ({binary}). Install it with your package manager."
    try:
        result = subprocess.run(
            [binary, "-V"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        version = result.stdout.strip() or result.stderr.strip()
        return True, version
    except subprocess.TimeoutExpired:
        return False, "tmux version check timed out"
    except Exception as e:
        return False, f"Error checking tmux: {e}"
