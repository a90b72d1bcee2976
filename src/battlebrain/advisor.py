"""Battle advisor: turns match state into recommendation requests."""

import logging
from collections.abc import AsyncIterator

from battlebrain.battle.state import MatchState
from battlebrain.llm.history import ConversationHistory
from battlebrain.llm.prompts import build_initial_prompt, build_turn_prompt
from battlebrain.llm.protocol import AgentConfig, CompletionClient
from battlebrain.llm.tool_loop import run_with_tools, run_with_tools_stream
from battlebrain.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class BattleAdvisor:
    """Requests recommendations for one match over an owned history.

    Each request appends the user prompt to the history, runs the tool loop
    on a copy of it, and appends the trimmed final answer once the request
    succeeds.
    """

    def __init__(
        self,
        client: CompletionClient,
        registry: ToolRegistry,
        agent: AgentConfig,
    ) -> None:
        """Initialize the advisor.

        Args:
            client: Completion client.
            registry: Tools available to the model.
            agent: Model and sampling settings.
        """
        self.client = client
        self.registry = registry
        self.agent = agent
        self.history = ConversationHistory()
        self.last_prompt: str | None = None

    async def suggest_initial(self, state: MatchState) -> str:
        """Recommend a lead during team preview."""
        return await self._request(build_initial_prompt(state))

    def suggest_initial_stream(self, state: MatchState) -> AsyncIterator[str]:
        """Streaming variant of :meth:`suggest_initial`."""
        return self._request_stream(build_initial_prompt(state))

    async def suggest_turn(self, state: MatchState) -> str:
        """Recommend an action after the most recently completed turn."""
        return await self._request(build_turn_prompt(state))

    def suggest_turn_stream(self, state: MatchState) -> AsyncIterator[str]:
        """Streaming variant of :meth:`suggest_turn`."""
        return self._request_stream(build_turn_prompt(state))

    def reset(self) -> None:
        """Forget the conversation for a new match."""
        self.history.reset()
        self.last_prompt = None

    def _begin(self, prompt: str) -> None:
        logger.debug("Prompt sent to model:\n%s", prompt)
        self.last_prompt = prompt
        self.history.add_user(prompt)

    async def _request(self, prompt: str) -> str:
        self._begin(prompt)
        response = await run_with_tools(
            self.client, self.agent, self.history.messages(), self.registry
        )
        answer = response.strip()
        self.history.add_assistant(answer)
        return answer

    async def _request_stream(self, prompt: str) -> AsyncIterator[str]:
        self._begin(prompt)
        parts: list[str] = []
        async for chunk in run_with_tools_stream(
            self.client, self.agent, self.history.messages(), self.registry
        ):
            parts.append(chunk)
            yield chunk
        self.history.add_assistant("".join(parts))
