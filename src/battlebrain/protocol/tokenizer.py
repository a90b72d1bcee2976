"""Decoding of raw battle protocol lines into typed events.

Each meaningful line of the feed looks like ``|kind|field|field...``. The
decoder never raises: lines with missing fields, unparseable numbers or an
unknown kind decode to ``None``.
"""

import logging
from collections.abc import Callable

from battlebrain.protocol.events import (
    Ability,
    BattleEvent,
    Boost,
    Cant,
    CureStatus,
    Crit,
    Damage,
    Faint,
    Generation,
    Heal,
    Immune,
    Mega,
    Message,
    Miss,
    Move,
    Player,
    Poke,
    Resisted,
    SideEnd,
    SideStart,
    Start,
    Status,
    SuperEffective,
    Switch,
    TeamPreview,
    TeamSize,
    Tie,
    Title,
    Turn,
    Unboost,
    Weather,
    Win,
)

logger = logging.getLogger(__name__)

DELIMITER = "|"

DEFAULT_HP = "100/100"

# Cosmetic, chat and administrative kinds; never relevant to strategy
IGNORED_KINDS = frozenset(
    {
        "",
        "j",
        "J",
        "join",
        "l",
        "L",
        "leave",
        "n",
        "N",
        "name",
        "c",
        "c:",
        "chat",
        "t:",
        "raw",
        "html",
        "uhtml",
        "uhtmlchange",
        "request",
        "init",
        "rated",
        "rule",
        "gametype",
        "tier",
        "clearpoke",
        "upkeep",
        "inactive",
        "inactiveoff",
        "badge",
        "seed",
        "timestamp",
        "debug",
        "detailschange",
        "-hint",
        "-center",
        "-anim",
    }
)


def _field(parts: list[str], index: int) -> str | None:
    """Return a stripped field, or None when it is absent or empty."""
    if index >= len(parts):
        return None
    value = parts[index].strip()
    return value or None


def _required(parts: list[str], count: int) -> list[str] | None:
    """Return fields 2..count+1 when all are present and non-empty."""
    values = [_field(parts, i) for i in range(2, 2 + count)]
    if any(v is None for v in values):
        return None
    return values  # type: ignore[return-value]


def _parse_count(text: str) -> int | None:
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


def _split_id(pokemon_id: str) -> tuple[str, str]:
    """Split ``p1a: Pikachu`` into its slot and name parts."""
    slot, sep, name = pokemon_id.partition(":")
    if not sep:
        return pokemon_id.strip(), pokemon_id.strip()
    return slot.strip(), name.strip()


def _strip_status(hp: str) -> str:
    """Drop a trailing status word from an HP field (``0 fnt`` -> ``0``)."""
    return hp.split(" ", 1)[0]


def _species(details: str) -> str:
    return details.split(",", 1)[0].strip()


def _title(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 1)
    return Title(fields[0]) if fields else None


def _generation(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 1)
    return Generation(fields[0]) if fields else None


def _player(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    return Player(side=fields[0], username=fields[1]) if fields else None


def _team_size(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    size = _parse_count(fields[1])
    return TeamSize(side=fields[0], size=size) if size is not None else None


def _poke(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    # Slot may carry a position letter (p1a); the roster is keyed by side
    return Poke(side=fields[0][:2], species=_species(fields[1]))


def _turn(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 1)
    if not fields:
        return None
    number = _parse_count(fields[0])
    return Turn(number) if number is not None else None


def _switch(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    slot, _ = _split_id(fields[0])
    hp = _field(parts, 4) or DEFAULT_HP
    return Switch(actor=slot, species=_species(fields[1]), hp=hp)


def _move(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    slot, pokemon = _split_id(fields[0])
    return Move(actor=slot, pokemon=pokemon, move=fields[1], target=_field(parts, 4))


def _damage(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    slot, pokemon = _split_id(fields[0])
    return Damage(
        actor=slot,
        pokemon=pokemon,
        hp=_strip_status(fields[1]),
        cause=_field(parts, 4),
    )


def _heal(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    return Heal(pokemon=fields[0], hp=_strip_status(fields[1]), source=_field(parts, 4))


def _faint(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 1)
    return Faint(fields[0]) if fields else None


def _status(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    return Status(pokemon=fields[0], status=fields[1]) if fields else None


def _cure_status(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    return CureStatus(pokemon=fields[0], status=fields[1]) if fields else None


def _boost(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    return Boost(pokemon=fields[0], stat=fields[1], amount=_field(parts, 4) or "1")


def _unboost(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    return Unboost(pokemon=fields[0], stat=fields[1], amount=_field(parts, 4) or "1")


def _weather(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 1)
    return Weather(fields[0]) if fields else None


def _side_condition(parts: list[str]) -> tuple[str, str] | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    side = fields[0].split(":", 1)[0].strip()
    # "move: Stealth Rock" -> "Stealth Rock"
    condition = fields[1].rsplit(":", 1)[-1].strip()
    return side, condition


def _side_start(parts: list[str]) -> BattleEvent | None:
    fields = _side_condition(parts)
    return SideStart(side=fields[0], condition=fields[1]) if fields else None


def _side_end(parts: list[str]) -> BattleEvent | None:
    fields = _side_condition(parts)
    return SideEnd(side=fields[0], condition=fields[1]) if fields else None


def _ability(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    return Ability(pokemon=fields[0], ability=fields[1]) if fields else None


def _mega(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    if not fields:
        return None
    return Mega(pokemon=fields[0], species=fields[1], megastone=_field(parts, 4))


def _single_target(event_type: type) -> Callable[[list[str]], BattleEvent | None]:
    def decode_single(parts: list[str]) -> BattleEvent | None:
        fields = _required(parts, 1)
        return event_type(fields[0]) if fields else None

    return decode_single


def _miss(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 1)
    return Miss(source=fields[0], target=_field(parts, 3)) if fields else None


def _cant(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 2)
    return Cant(pokemon=fields[0], reason=fields[1]) if fields else None


def _win(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 1)
    return Win(fields[0]) if fields else None


def _message(parts: list[str]) -> BattleEvent | None:
    fields = _required(parts, 1)
    return Message(fields[0]) if fields else None


_DECODERS: dict[str, Callable[[list[str]], BattleEvent | None]] = {
    "title": _title,
    "gen": _generation,
    "player": _player,
    "teamsize": _team_size,
    "poke": _poke,
    "teampreview": lambda parts: TeamPreview(),
    "start": lambda parts: Start(),
    "turn": _turn,
    "switch": _switch,
    "drag": _switch,
    "move": _move,
    "-damage": _damage,
    "-heal": _heal,
    "faint": _faint,
    "-status": _status,
    "-curestatus": _cure_status,
    "-boost": _boost,
    "-unboost": _unboost,
    "-weather": _weather,
    "-sidestart": _side_start,
    "-sideend": _side_end,
    "-ability": _ability,
    "-mega": _mega,
    "-supereffective": _single_target(SuperEffective),
    "-resisted": _single_target(Resisted),
    "-crit": _single_target(Crit),
    "-immune": _single_target(Immune),
    "-miss": _miss,
    "cant": _cant,
    "win": _win,
    "tie": lambda parts: Tie(),
    "-message": _message,
}


def decode(line: str) -> BattleEvent | None:
    """Decode one protocol line into a typed event.

    Args:
        line: Raw protocol line, e.g. ``|move|p1a: Pikachu|Thunderbolt|p2a: Squirtle``.

    Returns:
        The decoded event, or None for malformed, ignored or unknown lines.
    """
    line = line.rstrip("\r\n")
    if not line.startswith(DELIMITER):
        return None

    parts = line.split(DELIMITER)
    if len(parts) < 2:
        return None

    kind = parts[1].strip()
    decoder = _DECODERS.get(kind)
    if decoder is None:
        if kind not in IGNORED_KINDS:
            logger.debug("Unknown event type: %s", kind)
        return None

    return decoder(parts)
