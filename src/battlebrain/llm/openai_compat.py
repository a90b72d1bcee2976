"""OpenAI-compatible chat completions backend (LM Studio, OpenRouter, ...)."""

from collections.abc import AsyncIterator
from typing import Any

import openai

from battlebrain.llm.protocol import (
    AgentConfig,
    CompletionError,
    ConversationMessage,
    LLMResponse,
    ToolCall,
)

DEFAULT_BASE_URL = "http://localhost:1234/v1"


class OpenAICompatBackend:
    """Completion backend speaking the chat completions wire format.

    Works against any server exposing ``/chat/completions``: a local LM
    Studio instance, OpenRouter, or OpenAI itself.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "local",
        max_tokens: int | None = None,
        timeout: float = 120.0,
    ) -> None:
        """Initialize the backend.

        Args:
            base_url: Base URL of the API, including the ``/v1`` suffix.
            api_key: API key; local servers accept any value.
            max_tokens: Optional cap on generated tokens.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url
        self.max_tokens = max_tokens

        # Retries belong to the session driver, not the client
        self._client = openai.AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    async def send(
        self,
        messages: list[ConversationMessage],
        agent: AgentConfig,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Send messages and get a complete response.

        Args:
            messages: Conversation history.
            agent: Model and sampling settings.
            tools: Optional tool definitions.

        Returns:
            LLMResponse with the first choice's text and tool calls.

        Raises:
            CompletionError: If the request fails or returns no choices.
        """
        request = self.build_request(messages, agent, tools, stream=False)

        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APIError as e:
            raise CompletionError(f"Completion request to {self.base_url} failed: {e}") from e

        if not response.choices:
            raise CompletionError("Completion response contained no choices")

        message = response.choices[0].message
        return LLMResponse(
            text=message.content or "",
            tool_calls=self._extract_tool_calls(message),
        )

    async def send_streaming(
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
            Content fragments as they arrive.

        Raises:
            CompletionError: If the request or the stream fails.
        """
        request = self.build_request(messages, agent, tools, stream=True)

        try:
            stream = await self._client.chat.completions.create(**request)
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except openai.APIError as e:
            raise CompletionError(f"Streaming request to {self.base_url} failed: {e}") from e

    def build_request(
        self,
        messages: list[ConversationMessage],
        agent: AgentConfig,
        tools: list[dict[str, Any]] | None,
        stream: bool,
    ) -> dict[str, Any]:
        """Build the request body.

        The system prompt goes first in a new message list.

        Args:
            messages: Conversation history.
            agent: Model and sampling settings.
            tools: Optional tool definitions.
            stream: Whether to request a streamed response.

        Returns:
            Keyword arguments for ``chat.completions.create``.
        """
        api_messages: list[dict[str, Any]] = [{"role": "system", "content": agent.system_prompt}]
        api_messages.extend(self._convert_message(m) for m in messages)

        request: dict[str, Any] = {
            "model": agent.model,
            "messages": api_messages,
            "temperature": agent.temperature,
            "top_p": agent.top_p,
            "stream": stream,
        }
        if tools:
            request["tools"] = tools
            if stream:
                # Streamed responses are text only
                request["tool_choice"] = "none"
        if self.max_tokens is not None:
            request["max_tokens"] = self.max_tokens
        return request

    def _convert_message(self, message: ConversationMessage) -> dict[str, Any]:
        """Convert a conversation message to the wire format.

        Args:
            message: Conversation message.

        Returns:
            Message dict.
        """
        converted: dict[str, Any] = {"role": message.role, "content": message.content}

        if message.tool_calls:
            converted["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in message.tool_calls
            ]
        if message.tool_call_id is not None:
            converted["tool_call_id"] = message.tool_call_id
        if message.name is not None:
            converted["name"] = message.name

        return converted

    def _extract_tool_calls(self, message: Any) -> list[ToolCall] | None:
        if message.tool_calls is None:
            return None

        calls = []
        for call in message.tool_calls:
            function = getattr(call, "function", None)
            if function is None:
                continue
            calls.append(
                ToolCall(id=call.id, name=function.name, arguments=function.arguments or "{}")
            )
        return calls
