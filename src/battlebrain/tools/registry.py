"""Tool protocol and the registry the tool loop resolves calls against."""

from typing import Any, Protocol


class ToolError(Exception):
    """Base exception for tool errors."""


class UnknownToolError(ToolError):
    """The model asked for a tool that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ToolArgumentError(ToolError):
    """Tool arguments could not be decoded or are missing required fields."""


class ToolExecutionError(ToolError):
    """A tool raised while executing."""

    def __init__(self, name: str, cause: Exception) -> None:
        self.name = name
        super().__init__(f"Tool {name} failed: {cause}")


class Tool(Protocol):
    """Protocol for tools callable by the model.

    A feedback tool's result is sent back to the model as a tool message.
    A terminal tool's result is the final answer and ends the loop.
    """

    name: str
    feedback: bool

    def definition(self) -> dict[str, Any]:
        """Get the chat completions function definition.

        Returns:
            ``{"type": "function", "function": {...}}`` dict.
        """
        ...

    async def execute(self, arguments: dict[str, Any]) -> str:
        """Run the tool.

        Args:
            arguments: Decoded JSON arguments.

        Returns:
            Result text.

        Raises:
            ToolArgumentError: If required arguments are missing.
        """
        ...


class ToolRegistry:
    """Tools available to the model, keyed by name."""

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, tool: Tool) -> None:
        """Register a tool, replacing any tool with the same name.

        Args:
            tool: Tool to register.
        """
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        """Look up a tool.

        Args:
            name: Tool name requested by the model.

        Returns:
            The registered tool.

        Raises:
            UnknownToolError: If no tool has that name.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[dict[str, Any]]:
        """Get the definitions of all registered tools, in registration order."""
        return [tool.definition() for tool in self._tools.values()]
