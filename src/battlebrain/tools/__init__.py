"""Tools the model can call while forming a recommendation."""

from battlebrain.tools.registry import (
    Tool,
    ToolArgumentError,
    ToolError,
    ToolExecutionError,
    ToolRegistry,
    UnknownToolError,
)
from battlebrain.tools.species import SpeciesLookupError, SpeciesLookupTool

__all__ = [
    "SpeciesLookupError",
    "SpeciesLookupTool",
    "Tool",
    "ToolArgumentError",
    "ToolError",
    "ToolExecutionError",
    "ToolRegistry",
    "UnknownToolError",
]
