"""Pane scrollback capture."""

from __future__ import annotations

import logging

from tmux_relay.services.tmux import TmuxClient
from tmux_relay.storage.models import CaptureResult

logger = logging.getLogger(__name__)


class PaneReader:
    """Read a pane's scrollback as lines, with absolute line positions."""

    def __init__(self, client: TmuxClient) -> None:
        self.client = client

    async def _capture_all(self, pane_id: str, colors: bool) -> list[str]:
        args = ["capture-pane", "-p"]
        if colors:
            args.append("-e")
        args.extend(["-t", pane_id, "-S", "-"])
        output = (await self.client.run(*args)).rstrip("\n")
        return output.split("\n") if output else []

    async def read_tail(self, pane_id: str, lines: int = 100, colors: bool = False) -> CaptureResult:
        """Capture the last ``lines`` lines of a pane. ``lines=0`` captures everything."""
        all_lines = await self._capture_all(pane_id, colors)
        total = len(all_lines)

        if lines <= 0:
            start = 0
        else:
            start = max(0, total - lines)

        return CaptureResult(
            lines=all_lines[start:],
            start_line=start,
            end_line=total,
            total_lines=total,
        )

    async def read_range(
        self,
        pane_id: str,
        start: int,
        end: int,
        colors: bool = False,
    ) -> CaptureResult:
        """Capture lines ``start`` to ``end``; negative values count from the end."""
        all_lines = await self._capture_all(pane_id, colors)
        total = len(all_lines)

        final_start = min(max(total + start if start < 0 else start, 0), total)
        final_end = min(max(total + end if end < 0 else end, 0), total)
        logger.debug("Capturing %s lines %d-%d of %d", pane_id, final_start, final_end, total)

        return CaptureResult(
            lines=all_lines[final_start:final_end],
            start_line=final_start,
            end_line=final_end,
            total_lines=total,
        )
