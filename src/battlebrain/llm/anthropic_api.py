"""Anthropic API backend for the completion client."""

import json
from collections.abc import AsyncIterator
from typing import Any

import anthropic

from battlebrain.llm.protocol import (
    AgentConfig,
    CompletionError,
    ConversationMessage,
    LLMResponse,
    ToolCall,
)


class AnthropicAPIBackend:
    """Completion backend using the Anthropic Messages API.

    Tool definitions and tool messages are translated between the chat
    completions shapes used throughout the project and Anthropic's
    ``tool_use`` / ``tool_result`` content blocks. Only ``temperature`` is
    sent; current Claude models reject it together with ``top_p``.
    """

    def __init__(
        self,
        max_tokens: int = 1024,
        api_key: str | None = None,
    ) -> None:
        """Initialize the Anthropic API backend.

        Args:
            max_tokens: Maximum tokens in response.
            api_key: API key (defaults to ANTHROPIC_API_KEY env var).
        """
        self.max_tokens = max_tokens

        # Retries belong to the session driver, not the client
        self._client = anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)

    async def send(
        self,
        messages: list[ConversationMessage],
        agent: AgentConfig,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Send messages and get a response.

        Args:
            messages: Conversation history.
            agent: Model and sampling settings.
            tools: Optional tool definitions in chat completions format.

        Returns:
            LLMResponse with text and requested tool calls.

        Raises:
            CompletionError: If the API call fails.
        """
        try:
            response = await self._client.messages.create(**self._build_request(messages, agent, tools))
        except anthropic.APIError as e:
            raise CompletionError(f"Anthropic API request failed: {e}") from e

        tool_calls = [
            ToolCall(id=block.id, name=block.name, arguments=json.dumps(block.input))
            for block in response.content
            if block.type == "tool_use"
        ]
        return LLMResponse(
            text=self._extract_text(response),
            tool_calls=tool_calls or None,
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
            Text chunks as they arrive.

        Raises:
            CompletionError: If the API call fails.
        """
        try:
            request = self._build_request(messages, agent, tools)
            if "tools" in request:
                # Streamed responses are text only
                request["tool_choice"] = {"type": "none"}
            async with self._client.messages.stream(**request) as stream:
                async for text in stream.text_stream:
                    yield text
        except anthropic.APIError as e:
            raise CompletionError(f"Anthropic streaming request failed: {e}") from e

    def _build_request(
        self,
        messages: list[ConversationMessage],
        agent: AgentConfig,
        tools: list[dict[str, Any]] | None,
    ) -> dict[str, Any]:
        system_prompt, api_messages = self._convert_messages(messages, agent.system_prompt)
        request: dict[str, Any] = {
            "model": agent.model,
            "max_tokens": self.max_tokens,
            "temperature": agent.temperature,
            "system": system_prompt,
            "messages": api_messages,
        }
        if tools:
            request["tools"] = [self._convert_tool(t) for t in tools]
        return request

    def _convert_tool(self, definition: dict[str, Any]) -> dict[str, Any]:
        """Convert a chat completions function definition to Anthropic format.

        Args:
            definition: ``{"type": "function", "function": {...}}`` definition.

        Returns:
            Anthropic tool dict.
        """
        function = definition.get("function", definition)
        return {
            "name": function["name"],
            "description": function.get("description", ""),
            "input_schema": function.get("parameters", {"type": "object", "properties": {}}),
        }

    def _convert_messages(
        self,
        messages: list[ConversationMessage],
        system_prompt: str,
    ) -> tuple[str, list[dict[str, Any]]]:
        """Convert conversation messages to Anthropic message format.

        Args:
            messages: Conversation messages.
            system_prompt: Agent system prompt.

        Returns:
            Tuple of (system prompt, list of Anthropic message dicts).
        """
        system_parts = [system_prompt]
        api_messages: list[dict[str, Any]] = []

        for message in messages:
            if message.role == "system":
                # Anthropic takes system text separately
                if message.content:
                    system_parts.append(message.content)
                continue

            if message.role == "tool":
                api_messages.append(
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "tool_result",
                                "tool_use_id": message.tool_call_id,
                                "content": message.content or "",
                            }
                        ],
                    }
                )
                continue

            if message.role == "assistant" and message.tool_calls:
                blocks: list[dict[str, Any]] = []
                if message.content:
                    blocks.append({"type": "text", "text": message.content})
                for call in message.tool_calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": call.id,
                            "name": call.name,
                            "input": self._decode_input(call.arguments),
                        }
                    )
                api_messages.append({"role": "assistant", "content": blocks})
                continue

            api_messages.append({"role": message.role, "content": message.content or ""})

        # Ensure we have at least one message
        if not api_messages:
            api_messages.append({"role": "user", "content": "Begin."})

        # Ensure conversation starts with user message
        if api_messages[0]["role"] != "user":
            api_messages.insert(0, {"role": "user", "content": "Continue."})

        # Ensure alternating roles (Anthropic requirement)
        cleaned: list[dict[str, Any]] = []
        for msg in api_messages:
            if cleaned and cleaned[-1]["role"] == msg["role"]:
                cleaned[-1] = {
                    "role": msg["role"],
                    "content": self._as_blocks(cleaned[-1]["content"])
                    + self._as_blocks(msg["content"]),
                }
            else:
                cleaned.append(msg)

        return "\n\n".join(system_parts), cleaned

    def _as_blocks(self, content: str | list[dict[str, Any]]) -> list[dict[str, Any]]:
        if isinstance(content, str):
            return [{"type": "text", "text": content}] if content else []
        return list(content)

    def _decode_input(self, arguments: str) -> dict[str, Any]:
        try:
            decoded = json.loads(arguments) if arguments else {}
        except json.JSONDecodeError:
            return {}
        return decoded if isinstance(decoded, dict) else {}

    def _extract_text(self, response: anthropic.types.Message) -> str:
        """Extract text content from API response.

        Args:
            response: Anthropic API response.

        Returns:
            Extracted text content.
        """
        text_parts = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
        return "\n".join(text_parts)
