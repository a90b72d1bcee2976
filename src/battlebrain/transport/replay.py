"""Replay a saved battle log as if it arrived from the server."""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

from battlebrain.transport.base import TransportError


class ReplayTransport:
    """Yields each line of a saved log as a frame addressed to one room."""

    def __init__(self, path: Path, room_id: str, delay: float = 0.0) -> None:
        """Initialize the replay.

        Args:
            path: Log file with one protocol line per line.
            room_id: Room every frame is addressed to.
            delay: Pause between frames in seconds.
        """
        self.path = path
        self.room_id = room_id
        self.delay = delay

    async def messages(self) -> AsyncIterator[str]:
        """Yield ``>room`` frames, one per non-empty log line.

        Raises:
            TransportError: If the log cannot be read.
        """
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise TransportError(f"Could not read battle log {self.path}: {e}") from e

        for line in lines:
            if not line.strip():
                continue
            yield f">{self.room_id}\n{line}"
            if self.delay:
                await asyncio.sleep(self.delay)
