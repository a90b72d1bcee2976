"""Tests for completion backends, history and prompts."""

import json
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from battlebrain.battle.state import BattleTracker
from battlebrain.llm.anthropic_api import AnthropicAPIBackend
from battlebrain.llm.history import ConversationHistory
from battlebrain.llm.openai_compat import OpenAICompatBackend
from battlebrain.llm.prompts import (
    INITIAL_QUESTION,
    SYSTEM_PROMPT,
    TURN_QUESTION,
    build_initial_prompt,
    build_turn_prompt,
)
from battlebrain.llm.protocol import AgentConfig, CompletionError, ConversationMessage, ToolCall

AGENT = AgentConfig(model="qwen/qwen3-8b", system_prompt="You are a battle assistant.", temperature=0.4)

TOOL_DEFINITION = {
    "type": "function",
    "function": {
        "name": "get_pokemon_details",
        "description": "Fetches a pokemon details from the PokeAPI",
        "parameters": {
            "type": "object",
            "properties": {"pokemon": {"type": "string"}},
            "required": ["pokemon"],
        },
    },
}

REQUEST = httpx.Request("POST", "http://localhost:1234/v1/chat/completions")


def make_completion(content: str | None, tool_calls: list[MagicMock] | None = None) -> MagicMock:
    message = MagicMock()
    message.content = content
    message.tool_calls = tool_calls
    response = MagicMock()
    response.choices = [MagicMock(message=message)]
    return response


def make_tool_call(call_id: str, name: str, arguments: str) -> MagicMock:
    call = MagicMock()
    call.id = call_id
    call.function.name = name
    call.function.arguments = arguments
    return call


def make_chunk(content: str | None) -> MagicMock:
    chunk = MagicMock()
    chunk.choices = [MagicMock(delta=MagicMock(content=content))]
    return chunk


async def iterate(items: list) -> AsyncIterator:  # type: ignore[type-arg]
    for item in items:
        yield item


class TestOpenAICompatBackend:
    """Tests for the chat completions backend."""

    def test_build_request_prepends_system_prompt(self) -> None:
        """Test system prompt leads a fresh message list."""
        backend = OpenAICompatBackend()
        history = [ConversationMessage.user("Turn 1 events")]

        request = backend.build_request(history, AGENT, None, stream=False)

        assert request["model"] == "qwen/qwen3-8b"
        assert request["messages"][0] == {"role": "system", "content": AGENT.system_prompt}
        assert request["messages"][1] == {"role": "user", "content": "Turn 1 events"}
        assert request["temperature"] == 0.4
        assert request["top_p"] == 0.9
        assert request["stream"] is False
        assert "tools" not in request
        assert "max_tokens" not in request
        assert len(history) == 1

    def test_build_request_with_tools(self) -> None:
        """Test tools and max_tokens are sent when set."""
        backend = OpenAICompatBackend(max_tokens=512)

        request = backend.build_request([], AGENT, [TOOL_DEFINITION], stream=True)

        assert request["tools"] == [TOOL_DEFINITION]
        assert request["max_tokens"] == 512
        assert request["stream"] is True
        assert request["tool_choice"] == "none"

    def test_tools_callable_without_streaming(self) -> None:
        """Test tool calls stay enabled on non-streamed requests."""
        request = OpenAICompatBackend().build_request([], AGENT, [TOOL_DEFINITION], stream=False)

        assert request["tools"] == [TOOL_DEFINITION]
        assert "tool_choice" not in request

    def test_tool_messages_converted(self) -> None:
        """Test assistant tool calls and tool results keep their correlation."""
        backend = OpenAICompatBackend()
        call = ToolCall(id="call_1", name="get_pokemon_details", arguments='{"pokemon": "Gengar"}')
        history = [
            ConversationMessage.user("Who leads?"),
            ConversationMessage.assistant(None, [call]),
            ConversationMessage.tool_result(call, "Types: ghost, poison"),
        ]

        messages = backend.build_request(history, AGENT, None, stream=False)["messages"]

        assert messages[2] == {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": "call_1",
                    "type": "function",
                    "function": {
                        "name": "get_pokemon_details",
                        "arguments": '{"pokemon": "Gengar"}',
                    },
                }
            ],
        }
        assert messages[3] == {
            "role": "tool",
            "content": "Types: ghost, poison",
            "tool_call_id": "call_1",
            "name": "get_pokemon_details",
        }

    @pytest.mark.asyncio
    async def test_send_text(self) -> None:
        """Test plain text response."""
        backend = OpenAICompatBackend()
        backend._client.chat.completions.create = AsyncMock(
            return_value=make_completion("Action: Shadow Ball\nReason: Latios is weak to ghost.")
        )

        response = await backend.send([ConversationMessage.user("Turn 1")], AGENT)

        assert response.text.startswith("Action: Shadow Ball")
        assert response.tool_calls is None
        kwargs = backend._client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    async def test_send_tool_calls(self) -> None:
        """Test tool calls are extracted."""
        backend = OpenAICompatBackend()
        call = make_tool_call("call_1", "get_pokemon_details", '{"pokemon": "Latios"}')
        backend._client.chat.completions.create = AsyncMock(
            return_value=make_completion(None, [call])
        )

        response = await backend.send([], AGENT, [TOOL_DEFINITION])

        assert response.text == ""
        assert response.tool_calls == [
            ToolCall(id="call_1", name="get_pokemon_details", arguments='{"pokemon": "Latios"}')
        ]

    @pytest.mark.asyncio
    async def test_send_no_choices(self) -> None:
        """Test a response without choices is an error."""
        backend = OpenAICompatBackend()
        response = MagicMock()
        response.choices = []
        backend._client.chat.completions.create = AsyncMock(return_value=response)

        with pytest.raises(CompletionError):
            await backend.send([], AGENT)

    @pytest.mark.asyncio
    async def test_send_api_error(self) -> None:
        """Test SDK errors are wrapped."""
        backend = OpenAICompatBackend()
        backend._client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError("server exploded", request=REQUEST, body=None)
        )

        with pytest.raises(CompletionError, match="server exploded"):
            await backend.send([], AGENT)

    @pytest.mark.asyncio
    async def test_send_streaming(self) -> None:
        """Test fragments are yielded in order, skipping empty deltas."""
        backend = OpenAICompatBackend()
        chunks = [make_chunk("Action: "), make_chunk(None), make_chunk("Moonblast")]
        empty = MagicMock()
        empty.choices = []
        chunks.insert(1, empty)
        backend._client.chat.completions.create = AsyncMock(return_value=iterate(chunks))

        fragments = [f async for f in backend.send_streaming([], AGENT)]

        assert fragments == ["Action: ", "Moonblast"]
        assert backend._client.chat.completions.create.call_args.kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_send_streaming_error(self) -> None:
        """Test stream failures are wrapped."""
        backend = OpenAICompatBackend()
        backend._client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError("stream failed", request=REQUEST, body=None)
        )

        with pytest.raises(CompletionError):
            async for _ in backend.send_streaming([], AGENT):
                pass


class TestAnthropicAPIBackend:
    """Tests for Anthropic API backend."""

    def test_init_defaults(self) -> None:
        """Test default initialization."""
        backend = AnthropicAPIBackend(api_key="test-key")

        assert backend.max_tokens == 1024

    def test_convert_messages_empty(self) -> None:
        """Test message conversion with empty list."""
        backend = AnthropicAPIBackend(api_key="test-key")

        system, result = backend._convert_messages([], "system text")

        assert system == "system text"
        assert len(result) == 1
        assert result[0]["role"] == "user"

    def test_convert_messages_alternating(self) -> None:
        """Test consecutive user messages are combined."""
        backend = AnthropicAPIBackend(api_key="test-key")
        messages = [
            ConversationMessage.user("First"),
            ConversationMessage.user("Second"),
            ConversationMessage.assistant("Response"),
        ]

        _, result = backend._convert_messages(messages, "")

        assert [m["role"] for m in result] == ["user", "assistant"]
        assert "First" in str(result[0]["content"])
        assert "Second" in str(result[0]["content"])

    def test_convert_tool_round_trip(self) -> None:
        """Test tool calls become tool_use blocks and results tool_result blocks."""
        backend = AnthropicAPIBackend(api_key="test-key")
        call = ToolCall(id="toolu_1", name="get_pokemon_details", arguments='{"pokemon": "Gengar"}')
        messages = [
            ConversationMessage.user("Who leads?"),
            ConversationMessage.assistant("Checking.", [call]),
            ConversationMessage.tool_result(call, "Types: ghost, poison"),
        ]

        _, result = backend._convert_messages(messages, "")

        assert result[1] == {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Checking."},
                {
                    "type": "tool_use",
                    "id": "toolu_1",
                    "name": "get_pokemon_details",
                    "input": {"pokemon": "Gengar"},
                },
            ],
        }
        assert result[2] == {
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "tool_use_id": "toolu_1",
                    "content": "Types: ghost, poison",
                }
            ],
        }

    def test_convert_tool_definition(self) -> None:
        """Test function definitions become Anthropic tools."""
        backend = AnthropicAPIBackend(api_key="test-key")

        tool = backend._convert_tool(TOOL_DEFINITION)

        assert tool == {
            "name": "get_pokemon_details",
            "description": "Fetches a pokemon details from the PokeAPI",
            "input_schema": TOOL_DEFINITION["function"]["parameters"],
        }

    @pytest.mark.asyncio
    async def test_send_success(self) -> None:
        """Test text and tool_use blocks are extracted."""
        backend = AnthropicAPIBackend(api_key="test-key")
        tool_block = MagicMock(type="tool_use", id="toolu_1", input={"pokemon": "Latios"})
        tool_block.name = "get_pokemon_details"
        mock_response = MagicMock()
        mock_response.content = [MagicMock(type="text", text="Let me check."), tool_block]
        backend._client.messages.create = AsyncMock(return_value=mock_response)

        response = await backend.send([ConversationMessage.user("Turn 1")], AGENT, [TOOL_DEFINITION])

        assert response.text == "Let me check."
        assert response.tool_calls == [
            ToolCall(id="toolu_1", name="get_pokemon_details", arguments=json.dumps({"pokemon": "Latios"}))
        ]
        kwargs = backend._client.messages.create.call_args.kwargs
        assert kwargs["system"] == AGENT.system_prompt
        assert kwargs["temperature"] == 0.4
        assert "top_p" not in kwargs
        assert kwargs["tools"][0]["name"] == "get_pokemon_details"

    @pytest.mark.asyncio
    async def test_send_api_error(self) -> None:
        """Test SDK errors are wrapped."""
        backend = AnthropicAPIBackend(api_key="test-key")
        backend._client.messages.create = AsyncMock(
            side_effect=anthropic.APIError("overloaded", request=REQUEST, body=None)
        )

        with pytest.raises(CompletionError, match="overloaded"):
            await backend.send([ConversationMessage.user("Turn 1")], AGENT)

    @pytest.mark.asyncio
    async def test_send_streaming(self) -> None:
        """Test text stream is relayed."""
        backend = AnthropicAPIBackend(api_key="test-key")
        stream = MagicMock()
        stream.text_stream = iterate(["Action: ", "Thunderbolt"])
        manager = MagicMock()
        manager.__aenter__ = AsyncMock(return_value=stream)
        manager.__aexit__ = AsyncMock(return_value=False)
        backend._client.messages.stream = MagicMock(return_value=manager)

        fragments = [f async for f in backend.send_streaming([ConversationMessage.user("x")], AGENT)]

        assert fragments == ["Action: ", "Thunderbolt"]

    @pytest.mark.asyncio
    async def test_send_streaming_disables_tools(self) -> None:
        """Test streamed requests keep tool definitions but forbid tool calls."""
        backend = AnthropicAPIBackend(api_key="test-key")
        stream = MagicMock()
        stream.text_stream = iterate(["Action: Protect"])
        manager = MagicMock()
        manager.__aenter__ = AsyncMock(return_value=stream)
        manager.__aexit__ = AsyncMock(return_value=False)
        backend._client.messages.stream = MagicMock(return_value=manager)

        fragments = [
            f async for f in backend.send_streaming([ConversationMessage.user("x")], AGENT, [TOOL_DEFINITION])
        ]

        kwargs = backend._client.messages.stream.call_args.kwargs
        assert fragments == ["Action: Protect"]
        assert kwargs["tools"][0]["name"] == "get_pokemon_details"
        assert kwargs["tool_choice"] == {"type": "none"}


class TestConversationHistory:
    """Tests for ConversationHistory."""

    def test_add_and_copy(self) -> None:
        """Test messages are returned as an independent copy."""
        history = ConversationHistory()
        history.add_user("prompt")
        history.add_assistant("  Action: Protect\n")

        messages = history.messages()
        messages.append(ConversationMessage.user("extra"))

        assert len(history) == 2
        assert history.messages()[1].content == "Action: Protect"

    def test_reset(self) -> None:
        """Test reset clears the history."""
        history = ConversationHistory()
        history.add_user("prompt")

        history.reset()

        assert len(history) == 0


class TestPrompts:
    """Tests for prompt building."""

    def test_system_prompt_labels(self) -> None:
        """Test system prompt names both perspective labels."""
        assert "[Assist]" in SYSTEM_PROMPT
        assert "[Against]" in SYSTEM_PROMPT
        assert "Action:" in SYSTEM_PROMPT

    def test_initial_prompt(self, setup_lines: list[str]) -> None:
        """Test initial prompt carries setup log and both rosters."""
        tracker = BattleTracker("ronak777")
        for line in setup_lines:
            tracker.ingest(line)

        prompt = build_initial_prompt(tracker.state)

        assert prompt.splitlines() == [
            "Generation: 6",
            "You are assisting: ronak777",
            "Player 1: kashimo777, Team: Amoonguss, Bisharp, Clefable, Dragonite, Excadrill, Latios",
            "Player 2: ronak777, Team: Dragonite, Zoroark, Chansey, Azumarill, Charizard, Gengar",
            "",
            INITIAL_QUESTION,
        ]
        assert "Team Preview" not in prompt

    def test_turn_prompt(self, battle_lines: list[str]) -> None:
        """Test turn prompt carries the last completed turn without its marker."""
        tracker = BattleTracker("ronak777")
        for line in battle_lines[: battle_lines.index("|turn|2") + 1]:
            tracker.ingest(line)

        prompt = build_turn_prompt(tracker.state)

        assert prompt.splitlines() == [
            "[Assist: ronak777]: Gengar used Drain Punch on [Against: kashimo777]: Latios",
            "[Against: kashimo777]: Latios resisted the attack",
            "[Against: kashimo777]: Latios HP: 221/240",
            "[Against: kashimo777]: Latios used Dragon Claw on [Assist: ronak777]: Gengar",
            "[Assist: ronak777]: Gengar HP: 165/261",
            "[Against: kashimo777]: Latios HP: 183/240 ([from] item: Rocky Helmet)",
            TURN_QUESTION,
        ]
        assert "TURN" not in prompt

    def test_turn_prompt_without_turns(self) -> None:
        """Test turn prompt with no completed turn is just the question."""
        assert build_turn_prompt(BattleTracker("ronak777").state) == TURN_QUESTION + "\n"
