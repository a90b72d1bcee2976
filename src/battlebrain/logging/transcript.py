"""Transcript logging for battle sessions."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TextIO

from battlebrain.protocol.events import BattleEvent, Turn


@dataclass
class TranscriptEntry:
    """A single entry in the transcript."""

    timestamp: str
    turn: int
    entry_type: str  # "event", "prompt", "suggestion", "error", "system"
    content: str
    metadata: dict[str, str | int | None] = field(default_factory=dict)


class TranscriptLogger:
    """Dual-format transcript logger (JSON + Markdown).

    Logs battle sessions in both JSON format (for replay/analysis)
    and Markdown format (for human reading). Events are grouped under
    a heading per turn.
    """

    def __init__(
        self,
        json_path: Path | None = None,
        markdown_path: Path | None = None,
        room_id: str | None = None,
    ) -> None:
        """Initialize the transcript logger.

        Args:
            json_path: Path for JSON transcript output.
            markdown_path: Path for Markdown transcript output.
            room_id: Battle room being watched.
        """
        self.json_path = json_path
        self.markdown_path = markdown_path
        self.room_id = room_id
        self._entries: list[TranscriptEntry] = []
        self._turn = 0
        self._suggestions = 0
        self._md_file: TextIO | None = None
        self._start_time = datetime.now()

        # Keep file open for streaming writes during session
        if markdown_path:
            markdown_path.parent.mkdir(parents=True, exist_ok=True)
            self._md_file = open(markdown_path, "w")  # noqa: SIM115
            self._write_markdown_header()

    def _write_markdown_header(self) -> None:
        if self._md_file is None:
            return

        title = self.room_id or "Battle Transcript"
        self._md_file.write(f"# {title}\n\n")
        self._md_file.write(f"Started: {self._start_time.isoformat()}\n\n")
        self._md_file.write("---\n\n")
        self._md_file.flush()

    @property
    def turn(self) -> int:
        return self._turn

    def log_event(self, event: BattleEvent) -> None:
        """Log a recorded battle event.

        Args:
            event: Event as recorded by the tracker.
        """
        if isinstance(event, Turn):
            self._turn = event.number
            if self._md_file:
                self._md_file.write(f"### Turn {event.number}\n\n")
                self._md_file.flush()
            return

        self._add_entry("event", str(event), {"kind": type(event).__name__})

        if self._md_file:
            self._md_file.write(f"- {event}\n")
            self._md_file.flush()

    def log_prompt(self, trigger: str, prompt: str) -> None:
        """Log a prompt sent to the model.

        Args:
            trigger: Which suggestion was requested ("initial" or "turn").
            prompt: Prompt text.
        """
        self._add_entry("prompt", prompt, {"trigger": trigger})

        if self._md_file:
            self._md_file.write(f"\n**Prompt ({trigger}):**\n")
            self._md_file.write(f"```\n{prompt.rstrip()}\n```\n\n")
            self._md_file.flush()

    def log_suggestion(self, trigger: str, text: str) -> None:
        """Log a completed recommendation.

        Args:
            trigger: Which suggestion was requested.
            text: Recommendation text.
        """
        self._add_entry("suggestion", text, {"trigger": trigger})
        self._suggestions += 1

        if self._md_file:
            self._md_file.write(f"**Suggestion:**\n> {text.replace(chr(10), chr(10) + '> ')}\n\n")
            self._md_file.flush()

    def log_error(self, error_type: str, message: str) -> None:
        """Log an error.

        Args:
            error_type: Type of error.
            message: Error message.
        """
        self._add_entry("error", message, {"error_type": error_type})

        if self._md_file:
            self._md_file.write(f"> **Error ({error_type}):** {message}\n\n")
            self._md_file.flush()

    def log_system_note(self, note: str) -> None:
        """Log a system note.

        Args:
            note: System note content.
        """
        self._add_entry("system", note)

        if self._md_file:
            self._md_file.write(f"*[System: {note}]*\n\n")
            self._md_file.flush()

    def _add_entry(
        self,
        entry_type: str,
        content: str,
        metadata: dict[str, str | int | None] | None = None,
    ) -> None:
        self._entries.append(
            TranscriptEntry(
                timestamp=datetime.now().isoformat(),
                turn=self._turn,
                entry_type=entry_type,
                content=content,
                metadata=metadata or {},
            )
        )

    def get_entries(self) -> list[TranscriptEntry]:
        """Get all transcript entries.

        Returns:
            List of transcript entries.
        """
        return self._entries.copy()

    def finalize(self, outcome: str | None = None) -> None:
        """Write the JSON transcript and close the Markdown file.

        Args:
            outcome: How the session ended ("ended", "disconnected", ...).
        """
        end_time = datetime.now()

        if self.json_path:
            self.json_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.json_path, "w") as f:
                json.dump(
                    {
                        "room_id": self.room_id,
                        "outcome": outcome,
                        "start_time": self._start_time.isoformat(),
                        "end_time": end_time.isoformat(),
                        "total_turns": self._turn,
                        "total_suggestions": self._suggestions,
                        "entries": [asdict(e) for e in self._entries],
                    },
                    f,
                    indent=2,
                )

        if self._md_file:
            self._md_file.write("\n---\n\n")
            self._md_file.write(f"Completed: {end_time.isoformat()}\n")
            self._md_file.write(f"Total turns: {self._turn}\n")
            if outcome:
                self._md_file.write(f"Outcome: {outcome}\n")
            self._md_file.close()
            self._md_file = None

    def __enter__(self) -> "TranscriptLogger":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.finalize()


def create_transcript_paths(
    base_dir: Path,
    room_id: str,
    session_id: str | None = None,
) -> tuple[Path, Path]:
    """Create paths for transcript files.

    Args:
        base_dir: Base directory for transcripts.
        room_id: Battle room id.
        session_id: Optional session identifier.

    Returns:
        Tuple of (json_path, markdown_path).
    """
    if session_id is None:
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    # Sanitize room id for filename
    safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in room_id)

    json_path = base_dir / f"{safe_name}_{session_id}.json"
    markdown_path = base_dir / f"{safe_name}_{session_id}.md"

    return json_path, markdown_path
