"""Bounded request / tool-execution loop over a completion client."""

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from battlebrain.llm.protocol import (
    AgentConfig,
    CompletionClient,
    CompletionError,
    ConversationMessage,
    ToolCall,
)
from battlebrain.tools.registry import (
    ToolArgumentError,
    ToolError,
    ToolExecutionError,
    ToolRegistry,
)

logger = logging.getLogger(__name__)


class ToolLoopError(Exception):
    """Base exception for tool loop errors."""


class TooManyIterationsError(ToolLoopError):
    """The model kept requesting feedback tools past the iteration cap."""

    def __init__(self, max_iterations: int) -> None:
        self.max_iterations = max_iterations
        super().__init__(f"Tool loop did not finish within {max_iterations} iterations")


@dataclass
class _Outcome:
    text: str
    # True when the model answered without tools and the answer may be re-streamed
    answered: bool


def decode_arguments(call: ToolCall) -> dict[str, Any]:
    """Decode a tool call's JSON arguments.

    Args:
        call: Tool call from the model.

    Returns:
        Decoded argument object; an empty payload decodes to ``{}``.

    Raises:
        ToolArgumentError: If the payload is not a JSON object.
    """
    if not call.arguments.strip():
        return {}
    try:
        arguments = json.loads(call.arguments)
    except json.JSONDecodeError as e:
        raise ToolArgumentError(f"Invalid arguments for {call.name}: {e}") from e
    if not isinstance(arguments, dict):
        raise ToolArgumentError(f"Arguments for {call.name} must be a JSON object")
    return arguments


async def _resolve(
    client: CompletionClient,
    agent: AgentConfig,
    history: list[ConversationMessage],
    registry: ToolRegistry,
) -> _Outcome:
    tools = registry.definitions() or None

    for iteration in range(agent.max_iterations):
        response = await client.send(history, agent, tools)

        if response.tool_calls is None:
            return _Outcome(response.text, answered=True)

        history.append(ConversationMessage.assistant(response.text or None, response.tool_calls))

        fed_back = False
        for call in response.tool_calls:
            tool = registry.get(call.name)
            arguments = decode_arguments(call)
            logger.debug("Round %d: calling %s(%s)", iteration + 1, call.name, arguments)

            try:
                result = await tool.execute(arguments)
            except ToolError:
                raise
            except Exception as e:
                raise ToolExecutionError(call.name, e) from e

            if not tool.feedback:
                return _Outcome(result, answered=False)

            history.append(ConversationMessage.tool_result(call, result))
            fed_back = True

        if not fed_back:
            return _Outcome(response.text, answered=False)

    raise TooManyIterationsError(agent.max_iterations)


async def run_with_tools(
    client: CompletionClient,
    agent: AgentConfig,
    history: list[ConversationMessage],
    registry: ToolRegistry,
) -> str:
    """Ask for an answer, executing requested tools until one is produced.

    Args:
        client: Completion client.
        agent: Model settings; ``max_iterations`` bounds the rounds.
        history: Conversation so far. Assistant tool-call messages and tool
            results are appended to it.
        registry: Tools the model may call.

    Returns:
        The model's final text, or a terminal tool's result.

    Raises:
        CompletionError: If a completion request fails.
        ToolError: If a tool is unknown, its arguments are malformed, or it fails.
        TooManyIterationsError: If the iteration cap is reached.
    """
    outcome = await _resolve(client, agent, history, registry)
    return outcome.text


async def run_with_tools_stream(
    client: CompletionClient,
    agent: AgentConfig,
    history: list[ConversationMessage],
    registry: ToolRegistry,
) -> AsyncIterator[str]:
    """Streaming variant of :func:`run_with_tools`.

    Tool rounds run non-streaming. Once the model answers without tools the
    same conversation is sent again in streaming mode, with tool calls
    disabled, and that stream is yielded. A terminal tool result is yielded
    as a single fragment.

    Raises:
        CompletionError: If a request fails or the stream carries no text.
        ToolError: As for :func:`run_with_tools`.
        TooManyIterationsError: If the iteration cap is reached.
    """
    outcome = await _resolve(client, agent, history, registry)

    if not outcome.answered:
        yield outcome.text
        return

    produced = False
    async for chunk in client.send_streaming(history, agent, registry.definitions() or None):
        if chunk:
            produced = True
        yield chunk

    if not produced:
        raise CompletionError("Streamed completion returned no text")
