"""battlebrain: LLM-powered Pokemon Showdown battle advisor."""

__version__ = "0.1.0"
