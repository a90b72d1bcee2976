"""Battle state tracking."""

from battlebrain.battle.state import (
    BattleStateError,
    BattleTracker,
    MatchState,
    Phase,
    Roster,
    UnresolvedIdentityError,
    new_match,
)
from battlebrain.battle.triggers import (
    SuggestionTrigger,
    Trigger,
    current_turn,
    initial_ready,
    is_ended,
)

__all__ = [
    "BattleStateError",
    "BattleTracker",
    "MatchState",
    "Phase",
    "Roster",
    "SuggestionTrigger",
    "Trigger",
    "UnresolvedIdentityError",
    "current_turn",
    "initial_ready",
    "is_ended",
    "new_match",
]
