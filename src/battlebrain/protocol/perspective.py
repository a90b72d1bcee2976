"""Rewriting of side-qualified references into the assisted player's perspective."""

import dataclasses
import re
from collections.abc import Mapping

from battlebrain.protocol.events import (
    Ability,
    BattleEvent,
    Boost,
    Cant,
    CureStatus,
    Crit,
    Damage,
    Faint,
    Heal,
    Immune,
    Mega,
    Miss,
    Move,
    Resisted,
    SideEnd,
    SideStart,
    Status,
    SuperEffective,
    Switch,
    Unboost,
)

ASSIST_LABEL = "Assist"
AGAINST_LABEL = "Against"

# Leading slot token: side tag plus optional position letter, then ':' or end
_SLOT_PATTERN = re.compile(r"^(p[1-4])[a-z]?(?=:|$)")

# Fields holding side-qualified ids, per event type
_SIDE_FIELDS: dict[type, tuple[str, ...]] = {
    Move: ("actor", "target"),
    Switch: ("actor",),
    Damage: ("actor",),
    Heal: ("pokemon",),
    Faint: ("pokemon",),
    Status: ("pokemon",),
    CureStatus: ("pokemon",),
    Boost: ("pokemon",),
    Unboost: ("pokemon",),
    Ability: ("pokemon",),
    Mega: ("pokemon",),
    SuperEffective: ("pokemon",),
    Resisted: ("pokemon",),
    Crit: ("pokemon",),
    Immune: ("pokemon",),
    Miss: ("source", "target"),
    Cant: ("pokemon",),
    SideStart: ("side",),
    SideEnd: ("side",),
}


def opponent_of(side: str) -> str:
    """Return the other side of a two-sided battle."""
    return "p2" if side == "p1" else "p1"


def side_labels(user_side: str, player_names: Mapping[str, str]) -> dict[str, str]:
    """Build the replacement label for each side.

    Args:
        user_side: Side tag of the assisted player.
        player_names: Display name per side tag.

    Returns:
        Mapping of side tag to label, e.g. ``{"p2": "[Assist: Bob]"}``.
    """
    opponent = opponent_of(user_side)
    return {
        user_side: f"[{ASSIST_LABEL}: {player_names.get(user_side, '')}]",
        opponent: f"[{AGAINST_LABEL}: {player_names.get(opponent, '')}]",
    }


def relabel(reference: str, labels: Mapping[str, str]) -> str:
    """Replace the leading slot token of a reference with its side label.

    ``p1a: Pikachu`` becomes ``[Assist: Bob]: Pikachu``; ``p2`` becomes
    ``[Against: Alice]``. Text without a leading slot token, including text
    that is already labelled, is returned unchanged.
    """
    match = _SLOT_PATTERN.match(reference)
    if match is None:
        return reference
    label = labels.get(match.group(1))
    if label is None:
        return reference
    return label + reference[match.end() :]


def normalize(
    event: BattleEvent,
    user_side: str | None,
    player_names: Mapping[str, str],
) -> BattleEvent:
    """Rewrite the side-qualified fields of an event.

    Args:
        event: Decoded event.
        user_side: Resolved side of the assisted player, or None if unknown.
        player_names: Display name per side tag.

    Returns:
        A new event with relabelled references, or the same event when the
        side is unresolved or the event carries no side-qualified fields.
    """
    if user_side is None:
        return event

    fields = _SIDE_FIELDS.get(type(event))
    if not fields:
        return event

    labels = side_labels(user_side, player_names)
    changes: dict[str, str] = {}
    for name in fields:
        value = getattr(event, name)
        if value is None:
            continue
        relabelled = relabel(value, labels)
        if relabelled != value:
            changes[name] = relabelled

    if not changes:
        return event
    return dataclasses.replace(event, **changes)  # type: ignore[type-var]
