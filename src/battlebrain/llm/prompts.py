"""System prompt and per-trigger user prompts for the battle advisor."""

from battlebrain.battle.state import MatchState
from battlebrain.protocol.events import SIDES, BattleEvent, TeamPreview, Turn
from battlebrain.protocol.perspective import AGAINST_LABEL, ASSIST_LABEL

# System prompt for assisting one side of a battle
SYSTEM_PROMPT = f"""\
You are a Pokemon Showdown battle Assistant.

RULES:
- You assist the player labeled [{ASSIST_LABEL}]
- You play against the player labeled [{AGAINST_LABEL}]
- Give ONE concrete action only
- Keep reasoning under 2 sentences
- No speculation or uncertainty
- Use tools at your disposal for accurate suggestions (if needed)

RESPONSE FORMAT:
Action: [specific move/switch]
Reason: [why in 1-2 sentences]"""

INITIAL_QUESTION = "Which Pokemon should I lead with and why?"

TURN_QUESTION = "Based on the current battle state, what is the optimal move or switch?"


def _render(events: list[BattleEvent]) -> list[str]:
    return [str(event) for event in events]


def build_initial_prompt(state: MatchState) -> str:
    """Build the pre-battle prompt from the setup log and both rosters.

    Args:
        state: Match state during team preview.

    Returns:
        Prompt asking which Pokemon to lead with.
    """
    lines = _render([e for e in state.init_log if not isinstance(e, TeamPreview)])

    for number, side in enumerate(SIDES, start=1):
        roster = state.rosters.get(side)
        if roster is None:
            continue
        lines.append(f"Player {number}: {roster.player}, Team: {', '.join(roster.species)}")

    lines.append("")
    lines.append(INITIAL_QUESTION)
    return "\n".join(lines) + "\n"


def build_turn_prompt(state: MatchState) -> str:
    """Build the per-turn prompt from the most recently completed turn.

    Args:
        state: Match state after a turn boundary.

    Returns:
        Prompt asking for the next move or switch.
    """
    lines: list[str] = []
    if state.last_turn is not None:
        lines = _render([e for e in state.last_turn if not isinstance(e, Turn)])

    lines.append(TURN_QUESTION)
    return "\n".join(lines) + "\n"
