"""Battle protocol decoding."""

from battlebrain.protocol.events import (
    SETUP_EVENTS,
    SIDES,
    TERMINAL_EVENTS,
    BattleEvent,
    Side,
)
from battlebrain.protocol.perspective import normalize, relabel, side_labels
from battlebrain.protocol.tokenizer import IGNORED_KINDS, decode

__all__ = [
    "IGNORED_KINDS",
    "SETUP_EVENTS",
    "SIDES",
    "TERMINAL_EVENTS",
    "BattleEvent",
    "Side",
    "decode",
    "normalize",
    "relabel",
    "side_labels",
]
