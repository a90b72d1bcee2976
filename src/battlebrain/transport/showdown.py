"""Live connection to a Pokemon Showdown server."""

import asyncio
import logging
from collections.abc import AsyncIterator
from types import TracebackType

import websocket

from battlebrain.transport.base import TransportError

logger = logging.getLogger(__name__)

SHOWDOWN_URL = "wss://sim3.psim.us/showdown/websocket"


class ShowdownConnection:
    """Spectator connection to one battle room.

    Joins the room on connect and yields raw frames until the server closes
    the socket. Blocking socket calls run in a worker thread with a short
    receive timeout so the event loop stays responsive.
    """

    def __init__(
        self,
        room_id: str,
        server_url: str = SHOWDOWN_URL,
        connect_timeout: float = 30.0,
        poll_interval: float = 0.5,
    ) -> None:
        """Initialize the connection.

        Args:
            room_id: Battle room to join.
            server_url: Showdown websocket endpoint.
            connect_timeout: Timeout for the opening handshake in seconds.
            poll_interval: Receive timeout between checks in seconds.
        """
        self.room_id = room_id
        self.server_url = server_url
        self.connect_timeout = connect_timeout
        self.poll_interval = poll_interval
        self._ws: websocket.WebSocket | None = None

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and self._ws.connected

    async def __aenter__(self) -> "ShowdownConnection":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open the socket and join the room.

        Raises:
            TransportError: If the handshake or the join fails.
        """
        ws = websocket.WebSocket()
        logger.info("Connecting to %s", self.server_url)

        try:
            await asyncio.to_thread(ws.connect, self.server_url, timeout=self.connect_timeout)
        except (websocket.WebSocketException, OSError) as e:
            raise TransportError(f"Could not connect to {self.server_url}: {e}") from e

        ws.settimeout(self.poll_interval)
        self._ws = ws
        await self.send(f"|/join {self.room_id}")

    async def send(self, text: str) -> None:
        """Send a raw command.

        Args:
            text: Command text, e.g. ``|/join battle-gen9ou-1``.

        Raises:
            TransportError: If not connected or the send fails.
        """
        if self._ws is None:
            raise TransportError("Not connected")
        try:
            await asyncio.to_thread(self._ws.send, text)
        except (websocket.WebSocketException, OSError) as e:
            raise TransportError(f"Send failed: {e}") from e

    async def messages(self) -> AsyncIterator[str]:
        """Yield frames until the server closes the connection.

        Raises:
            TransportError: If not connected or the socket fails.
        """
        if self._ws is None:
            raise TransportError("Not connected")

        while True:
            try:
                frame = await asyncio.to_thread(self._ws.recv)
            except websocket.WebSocketTimeoutException:
                continue
            except websocket.WebSocketConnectionClosedException:
                logger.info("Server closed the connection")
                return
            except (websocket.WebSocketException, OSError) as e:
                raise TransportError(f"Receive failed: {e}") from e

            if isinstance(frame, bytes):
                frame = frame.decode("utf-8", errors="replace")
            if frame:
                yield frame

    async def close(self) -> None:
        """Close the socket."""
        if self._ws is None:
            return
        ws, self._ws = self._ws, None
        await asyncio.to_thread(ws.close)
