"""Conversation history kept across recommendation requests."""

from battlebrain.llm.protocol import ConversationMessage


class ConversationHistory:
    """Ordered record of user prompts and final answers for one match.

    Tool round-trips happen on a copy handed to the tool loop; only the
    prompt and the trimmed final answer of each request are kept here.
    """

    def __init__(self) -> None:
        self._messages: list[ConversationMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def add_user(self, content: str) -> None:
        """Append a user prompt.

        Args:
            content: Prompt text.
        """
        self._messages.append(ConversationMessage.user(content))

    def add_assistant(self, content: str) -> None:
        """Append a final answer.

        Args:
            content: Answer text, stored trimmed.
        """
        self._messages.append(ConversationMessage.assistant(content.strip()))

    def messages(self) -> list[ConversationMessage]:
        """Get a copy of the history.

        Returns:
            New list of messages; mutating it does not affect the history.
        """
        return self._messages.copy()

    def reset(self) -> None:
        """Clear the history for a new match."""
        self._messages.clear()
