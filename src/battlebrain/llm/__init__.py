"""Completion backends, prompts and the tool loop."""

from battlebrain.llm.anthropic_api import AnthropicAPIBackend
from battlebrain.llm.history import ConversationHistory
from battlebrain.llm.openai_compat import OpenAICompatBackend
from battlebrain.llm.prompts import SYSTEM_PROMPT, build_initial_prompt, build_turn_prompt
from battlebrain.llm.protocol import (
    AgentConfig,
    CompletionClient,
    CompletionError,
    ConversationMessage,
    LLMResponse,
    ToolCall,
)
from battlebrain.llm.tool_loop import (
    ToolLoopError,
    TooManyIterationsError,
    run_with_tools,
    run_with_tools_stream,
)

__all__ = [
    "SYSTEM_PROMPT",
    "AgentConfig",
    "AnthropicAPIBackend",
    "CompletionClient",
    "CompletionError",
    "ConversationHistory",
    "ConversationMessage",
    "LLMResponse",
    "OpenAICompatBackend",
    "ToolCall",
    "ToolLoopError",
    "TooManyIterationsError",
    "build_initial_prompt",
    "build_turn_prompt",
    "run_with_tools",
    "run_with_tools_stream",
]
