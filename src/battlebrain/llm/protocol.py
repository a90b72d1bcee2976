"""Protocol definitions for completion backends."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Literal, Protocol

Role = Literal["system", "user", "assistant", "tool"]


class CompletionError(Exception):
    """The completion endpoint could not be reached or rejected the request."""


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: str  # JSON-encoded, tool-defined schema


@dataclass
class ConversationMessage:
    """A single message in the conversation."""

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @classmethod
    def user(cls, content: str) -> "ConversationMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls,
        content: str | None,
        tool_calls: list[ToolCall] | None = None,
    ) -> "ConversationMessage":
        return cls(role="assistant", content=content, tool_calls=tool_calls)

    @classmethod
    def tool_result(cls, call: ToolCall, content: str) -> "ConversationMessage":
        return cls(role="tool", content=content, tool_call_id=call.id, name=call.name)


@dataclass
class LLMResponse:
    """Non-streaming response from the model."""

    text: str
    tool_calls: list[ToolCall] | None = None


@dataclass
class AgentConfig:
    """Model and sampling settings for one advisor."""

    model: str
    system_prompt: str
    temperature: float = 0.7
    top_p: float = 0.9
    max_iterations: int = 5


class CompletionClient(Protocol):
    """Protocol for completion backends.

    Implementations prepend the agent's system prompt to a copy of the
    messages; the caller's list is never modified.
    """

    async def send(
        self,
        messages: list[ConversationMessage],
        agent: AgentConfig,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Send the conversation and wait for the complete response.

        Args:
            messages: Conversation history.
            agent: Model and sampling settings.
            tools: Optional tool definitions the model may call.

        Returns:
            LLMResponse with the text and any requested tool calls.

        Raises:
            CompletionError: If the endpoint call fails.
        """
        ...

    def send_streaming(
        self,
        messages: list[ConversationMessage],
        agent: AgentConfig,
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[str]:
        """Stream response text.

        Args:
            messages: Conversation history.
            agent: Model and sampling settings.
            tools: Optional tool definitions.

        Yields:
            Text fragments in arrival order.

        Raises:
            CompletionError: If the endpoint call fails.
        """
        ...
