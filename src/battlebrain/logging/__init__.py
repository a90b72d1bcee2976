"""Transcript logging."""

from battlebrain.logging.transcript import (
    TranscriptEntry,
    TranscriptLogger,
    create_transcript_paths,
)

__all__ = [
    "TranscriptEntry",
    "TranscriptLogger",
    "create_transcript_paths",
]
