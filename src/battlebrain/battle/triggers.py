"""Queries over match state that decide when a suggestion is due."""

from dataclasses import dataclass
from enum import Enum

from battlebrain.battle.state import MatchState
from battlebrain.protocol.events import TERMINAL_EVENTS, BattleEvent, Turn


class Trigger(Enum):
    """Kind of suggestion to request."""

    INITIAL = "initial"
    TURN = "turn"


def _latest_events(state: MatchState) -> list[list[BattleEvent]]:
    """Live buffer first, then the most recently completed turn."""
    groups = [state.buffer]
    if state.last_turn is not None:
        groups.append(state.last_turn)
    return groups


def current_turn(state: MatchState) -> int:
    """Return the current turn number, or 0 before the first turn."""
    for events in _latest_events(state):
        numbers = [e.number for e in events if isinstance(e, Turn)]
        if numbers:
            return max(numbers)
    return 0


def is_ended(state: MatchState) -> bool:
    """Check whether a win or tie has been seen."""
    return any(
        isinstance(e, TERMINAL_EVENTS) for events in _latest_events(state) for e in events
    )


def initial_ready(state: MatchState) -> bool:
    """Check whether the pre-battle suggestion should be requested now."""
    rosters = list(state.rosters.values())
    return (
        state.team_preview
        and not state.battle_started
        and not state.initial_suggestion_issued
        and len(rosters) == 2
        and all(r.species and len(r.species) == r.team_size for r in rosters)
    )


@dataclass
class SuggestionTrigger:
    """Decides, line by line, whether a suggestion should be requested.

    Fires the initial suggestion once during team preview, then a turn
    suggestion whenever the turn number advances or the battle newly ends.
    """

    last_processed_turn: int = 0
    _was_ended: bool = False

    def check(self, state: MatchState) -> Trigger | None:
        """Check the state after a line has been ingested.

        Args:
            state: Current match state.

        Returns:
            The suggestion to request, or None.
        """
        ended = is_ended(state)
        newly_ended = ended and not self._was_ended
        self._was_ended = ended

        if initial_ready(state):
            return Trigger.INITIAL

        if state.battle_started and (current_turn(state) > self.last_processed_turn or newly_ended):
            return Trigger.TURN

        return None

    def record_turn(self, state: MatchState) -> None:
        """Mark the current turn as processed."""
        self.last_processed_turn = current_turn(state)
