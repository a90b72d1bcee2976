"""Transport protocol shared by live and replayed battle feeds."""

from collections.abc import AsyncIterator
from typing import Protocol

LOBBY = "lobby"


class TransportError(Exception):
    """The battle feed could not be opened or broke mid-stream."""


class Transport(Protocol):
    """Source of raw protocol frames.

    A frame is one or more newline-separated lines. A first line of the form
    ``>roomid`` names the room the remaining lines belong to; frames without
    one belong to the lobby.
    """

    def messages(self) -> AsyncIterator[str]:
        """Yield frames until the feed ends.

        Raises:
            TransportError: If the feed fails.
        """
        ...


def parse_room_id(room: str) -> str:
    """Extract a room id from a bare id or a battle URL.

    Args:
        room: ``battle-gen9ou-123`` or ``https://play.pokemonshowdown.com/battle-gen9ou-123``.

    Returns:
        The room id.
    """
    room = room.strip().rstrip("/")
    if "/" in room:
        room = room.rsplit("/", 1)[1]
    return room.lstrip(">")
