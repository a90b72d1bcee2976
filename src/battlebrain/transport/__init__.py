"""Battle feed transports."""

from battlebrain.transport.base import LOBBY, Transport, TransportError, parse_room_id
from battlebrain.transport.replay import ReplayTransport
from battlebrain.transport.showdown import SHOWDOWN_URL, ShowdownConnection

__all__ = [
    "LOBBY",
    "SHOWDOWN_URL",
    "ReplayTransport",
    "ShowdownConnection",
    "Transport",
    "TransportError",
    "parse_room_id",
]
