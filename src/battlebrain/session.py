"""Battle session orchestration."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from battlebrain.advisor import BattleAdvisor
from battlebrain.battle.state import BattleTracker, MatchState, UnresolvedIdentityError
from battlebrain.battle.triggers import SuggestionTrigger, Trigger, current_turn, is_ended
from battlebrain.llm.protocol import CompletionError
from battlebrain.llm.tool_loop import ToolLoopError
from battlebrain.protocol.events import BattleEvent
from battlebrain.tools.registry import ToolError
from battlebrain.transport.base import LOBBY, Transport, TransportError

logger = logging.getLogger(__name__)

# Failures of a single recommendation request; the session keeps going
SUGGESTION_ERRORS = (CompletionError, ToolError, ToolLoopError)


@dataclass
class Suggestion:
    """A completed recommendation."""

    trigger: Trigger
    turn: int
    prompt: str | None
    text: str


@dataclass
class SessionResult:
    """Result of a battle session."""

    outcome: str  # "ended", "disconnected", "error"
    turns: int
    suggestions: int = 0
    error: str | None = None


# Type aliases for callbacks
EventCallback = Callable[[BattleEvent], None]
RawCallback = Callable[[str], None]
TriggerCallback = Callable[[Trigger], None]
ChunkCallback = Callable[[str], None]
SuggestionCallback = Callable[[Suggestion], None]
ErrorCallback = Callable[[Exception], None]


class BattleSession:
    """Drives one battle room from raw frames to recommendations.

    Lines of the watched room go through the tracker one at a time. After
    each line the trigger decides whether a recommendation is due; the
    request runs to completion before the next line is processed.
    """

    def __init__(
        self,
        room_id: str,
        tracker: BattleTracker,
        advisor: BattleAdvisor,
        stream: bool = True,
        on_event: EventCallback | None = None,
        on_raw: RawCallback | None = None,
        on_suggestion_start: TriggerCallback | None = None,
        on_suggestion_chunk: ChunkCallback | None = None,
        on_suggestion: SuggestionCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            room_id: Battle room to follow; other rooms are ignored.
            tracker: Battle state machine for the room.
            advisor: Recommendation source.
            stream: Whether to stream recommendations.
            on_event: Called with each recorded event.
            on_raw: Called with non-protocol lines of the room.
            on_suggestion_start: Called before a recommendation is requested.
            on_suggestion_chunk: Called with each streamed fragment.
            on_suggestion: Called with each completed recommendation.
            on_error: Called when a recommendation request fails.
        """
        self.room_id = room_id
        self.tracker = tracker
        self.advisor = advisor
        self.stream = stream
        self.on_event = on_event
        self.on_raw = on_raw
        self.on_suggestion_start = on_suggestion_start
        self.on_suggestion_chunk = on_suggestion_chunk
        self.on_suggestion = on_suggestion
        self.on_error = on_error
        self.suggestions: list[Suggestion] = []
        self._trigger = SuggestionTrigger()

    async def run(self, transport: Transport) -> SessionResult:
        """Consume the transport until it ends.

        Args:
            transport: Source of raw frames.

        Returns:
            SessionResult with the outcome.
        """
        try:
            async for message in transport.messages():
                await self.handle_message(message)
        except UnresolvedIdentityError as e:
            logger.error("%s", e)
            return self._result("error", error=str(e))
        except TransportError as e:
            logger.warning("Transport failed: %s", e)
            return self._result("disconnected", error=str(e))

        if is_ended(self.tracker.state):
            return self._result("ended")
        return self._result("disconnected")

    async def handle_message(self, message: str) -> None:
        """Process one transport frame.

        Args:
            message: Newline-separated lines, optionally led by ``>roomid``.
        """
        room = LOBBY
        for line in message.split("\n"):
            if line.startswith(">"):
                room = line[1:].strip()
                continue
            if room != self.room_id:
                continue
            if line.startswith("|"):
                await self.handle_line(line)
            elif line.strip() and self.on_raw:
                self.on_raw(line)

    async def handle_line(self, line: str) -> None:
        """Ingest one protocol line and request a recommendation if due.

        Args:
            line: Raw protocol line of the watched room.

        Raises:
            UnresolvedIdentityError: If the user cannot be matched to a side.
        """
        event = self.tracker.ingest(line)
        if event is not None and self.on_event:
            self.on_event(event)

        state = self.tracker.state
        trigger = self._trigger.check(state)
        if trigger is None:
            return

        if trigger is Trigger.INITIAL:
            self.tracker.mark_initial_suggestion_issued()
        else:
            # Recorded up front so a failed request is not retried every line
            self._trigger.record_turn(state)

        await self._suggest(trigger)

    async def _suggest(self, trigger: Trigger) -> None:
        snapshot = self.tracker.snapshot()
        turn = current_turn(snapshot)
        logger.info("Requesting %s suggestion (turn %d)", trigger.value, turn)

        if self.on_suggestion_start:
            self.on_suggestion_start(trigger)

        try:
            if self.stream:
                text = await self._collect_stream(trigger, snapshot)
            elif trigger is Trigger.INITIAL:
                text = await self.advisor.suggest_initial(snapshot)
            else:
                text = await self.advisor.suggest_turn(snapshot)
        except SUGGESTION_ERRORS as e:
            logger.warning("Suggestion failed: %s", e)
            if self.on_error:
                self.on_error(e)
            return

        suggestion = Suggestion(trigger, turn, self.advisor.last_prompt, text.strip())
        self.suggestions.append(suggestion)
        if self.on_suggestion:
            self.on_suggestion(suggestion)

    async def _collect_stream(self, trigger: Trigger, snapshot: MatchState) -> str:
        if trigger is Trigger.INITIAL:
            stream = self.advisor.suggest_initial_stream(snapshot)
        else:
            stream = self.advisor.suggest_turn_stream(snapshot)

        parts: list[str] = []
        async for chunk in stream:
            parts.append(chunk)
            if self.on_suggestion_chunk:
                self.on_suggestion_chunk(chunk)
        return "".join(parts)

    def _result(self, outcome: str, error: str | None = None) -> SessionResult:
        return SessionResult(
            outcome=outcome,
            turns=current_turn(self.tracker.state),
            suggestions=len(self.suggestions),
            error=error,
        )
