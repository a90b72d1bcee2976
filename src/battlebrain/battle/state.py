"""Per-match battle state and the state machine that feeds it."""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum

from battlebrain.protocol.events import (
    SETUP_EVENTS,
    SIDES,
    TERMINAL_EVENTS,
    BattleEvent,
    Generation,
    Message,
    Player,
    Poke,
    Start,
    TeamPreview,
    TeamSize,
    Title,
    Turn,
)
from battlebrain.protocol.perspective import normalize
from battlebrain.protocol.tokenizer import decode

logger = logging.getLogger(__name__)

DEFAULT_TEAM_SIZE = 6

TURN_PREFIX = "|turn|"


class BattleStateError(Exception):
    """Base exception for battle state errors."""


class UnresolvedIdentityError(BattleStateError):
    """The configured username matches neither player of the match."""

    def __init__(self, username: str, players: tuple[str, str]) -> None:
        self.username = username
        self.players = players
        super().__init__(
            f"Could not match username '{username}' to either "
            f"'{players[0]}' or '{players[1]}'"
        )


class Phase(Enum):
    """Match phase."""

    SETUP = "setup"
    IN_PROGRESS = "in_progress"


@dataclass
class Roster:
    """Species revealed for one side of the match."""

    player: str = ""
    side: str = ""
    species: list[str] = field(default_factory=list)
    team_size: int = DEFAULT_TEAM_SIZE

    @property
    def is_full(self) -> bool:
        return len(self.species) >= self.team_size

    def add(self, species: str) -> bool:
        """Append a revealed species.

        Args:
            species: Species name.

        Returns:
            False if the roster is already at its declared size.
        """
        if self.is_full:
            return False
        self.species.append(species)
        return True


@dataclass
class MatchState:
    """Aggregate state of a single battle."""

    username: str
    rosters: dict[str, Roster] = field(default_factory=dict)
    init_log: list[BattleEvent] = field(default_factory=list)
    user_side: str | None = None
    buffer: list[BattleEvent] = field(default_factory=list)
    turns: list[list[BattleEvent]] = field(default_factory=list)
    battle_started: bool = False
    team_preview: bool = False
    initial_suggestion_issued: bool = False

    @property
    def phase(self) -> Phase:
        return Phase.IN_PROGRESS if self.battle_started else Phase.SETUP

    @property
    def player_names(self) -> dict[str, str]:
        return {side: roster.player for side, roster in self.rosters.items()}

    @property
    def last_turn(self) -> list[BattleEvent] | None:
        return self.turns[-1] if self.turns else None


def new_match(username: str, team_size: int = DEFAULT_TEAM_SIZE) -> MatchState:
    """Create the state for a new match with empty rosters."""
    return MatchState(
        username=username,
        rosters={side: Roster(side=side, team_size=team_size) for side in SIDES},
    )


class BattleTracker:
    """State machine over one battle's protocol lines.

    Every line goes through ``ingest``. During setup the tracker resolves
    which side the user plays, collects rosters and the init log; once the
    battle starts it normalizes events and groups them per turn.
    """

    def __init__(self, username: str, team_size: int = DEFAULT_TEAM_SIZE) -> None:
        """Initialize the tracker.

        Args:
            username: Showdown username of the assisted player.
            team_size: Roster size assumed until a team size line says otherwise.
        """
        self._state = new_match(username, team_size)

    @property
    def state(self) -> MatchState:
        """Live state. Callers must treat it as read-only."""
        return self._state

    def snapshot(self) -> MatchState:
        """Return a point-in-time copy of the state."""
        return copy.deepcopy(self._state)

    def ingest(self, line: str) -> BattleEvent | None:
        """Feed one raw protocol line.

        Args:
            line: Raw line from the room feed.

        Returns:
            The event recorded for the line, or None if nothing was recorded.

        Raises:
            UnresolvedIdentityError: If both players are known and neither is
                the configured user, or the battle starts before the user's
                side is resolved.
        """
        if self._state.battle_started:
            return self._ingest_turn(line)
        return self._ingest_setup(line)

    def mark_initial_suggestion_issued(self) -> None:
        """Record that the pre-battle suggestion has been requested."""
        self._state.initial_suggestion_issued = True

    def _ingest_setup(self, line: str) -> BattleEvent | None:
        event = decode(line)
        state = self._state

        if isinstance(event, (Title, Generation)):
            state.init_log.append(event)
            return event

        if isinstance(event, Player):
            self._record_player(event)
            return event

        if isinstance(event, TeamSize):
            roster = state.rosters.get(event.side)
            if roster is None:
                return event
            if event.size < len(roster.species):
                logger.debug(
                    "Ignored team size %d for %s with %d species revealed",
                    event.size,
                    event.side,
                    len(roster.species),
                )
            else:
                roster.team_size = event.size
            return event

        if isinstance(event, Poke):
            roster = state.rosters.get(event.side)
            if roster is None or not roster.add(event.species):
                logger.debug("Dropped roster entry %s for %s", event.species, event.side)
                return None
            return event

        if isinstance(event, TeamPreview):
            state.team_preview = True
            state.init_log.append(event)
            state.init_log.append(Message(f"You are assisting: {state.username}"))
            return event

        if isinstance(event, Start):
            if state.user_side is None:
                raise self._identity_error()
            state.init_log.append(event)
            state.battle_started = True
            return event

        return None

    def _record_player(self, event: Player) -> None:
        state = self._state
        roster = state.rosters.get(event.side)
        if roster is None:
            return
        roster.player = event.username

        if state.user_side is None and (
            event.username.strip().lower() == state.username.strip().lower()
        ):
            state.user_side = event.side
            logger.info("Assisting %s as %s", event.username, event.side)

        if state.user_side is None and all(r.player for r in state.rosters.values()):
            raise self._identity_error()

    def _identity_error(self) -> UnresolvedIdentityError:
        names = [self._state.rosters[side].player for side in SIDES]
        return UnresolvedIdentityError(self._state.username, (names[0], names[1]))

    def _ingest_turn(self, line: str) -> BattleEvent | None:
        state = self._state
        event = decode(line)

        # A turn line closes the current turn even if its number is garbled
        if line.startswith(TURN_PREFIX):
            self._flush()
            if isinstance(event, Turn):
                state.buffer.append(event)
                return event
            return None

        if event is None or isinstance(event, SETUP_EVENTS):
            return None

        event = normalize(event, state.user_side, state.player_names)

        state.buffer.append(event)
        if isinstance(event, TERMINAL_EVENTS):
            self._flush()
        return event

    def _flush(self) -> None:
        """Move the live buffer into the completed turns."""
        state = self._state
        if state.buffer:
            state.turns.append(state.buffer)
            state.buffer = []
