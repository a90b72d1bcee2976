"""Entry point for battlebrain CLI."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from battlebrain import __version__
from battlebrain.advisor import BattleAdvisor
from battlebrain.battle.state import BattleTracker
from battlebrain.battle.triggers import Trigger
from battlebrain.config import Config, LLMConfig, load_config
from battlebrain.llm.anthropic_api import AnthropicAPIBackend
from battlebrain.llm.openai_compat import OpenAICompatBackend
from battlebrain.llm.prompts import SYSTEM_PROMPT
from battlebrain.llm.protocol import AgentConfig, CompletionClient
from battlebrain.logging.transcript import TranscriptLogger, create_transcript_paths
from battlebrain.protocol.events import BattleEvent
from battlebrain.session import BattleSession, SessionResult, Suggestion
from battlebrain.tools.registry import ToolError, ToolRegistry
from battlebrain.tools.species import SpeciesLookupError, SpeciesLookupTool
from battlebrain.transport.base import Transport, parse_room_id
from battlebrain.transport.replay import ReplayTransport
from battlebrain.transport.showdown import ShowdownConnection

app = typer.Typer(
    name="battlebrain",
    help="LLM-powered Pokemon Showdown battle advisor",
)
console = Console()


def setup_logging(level: str, verbose: bool) -> None:
    """Route library logging through rich.

    Args:
        level: Configured log level name.
        verbose: Force DEBUG level.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def create_llm_backend(config: Config) -> CompletionClient:
    """Create the completion backend.

    Args:
        config: Application configuration.

    Returns:
        Completion client instance.
    """
    if config.llm.backend == "anthropic_api":
        return AnthropicAPIBackend(max_tokens=config.llm.max_tokens)
    return OpenAICompatBackend(
        base_url=config.llm.base_url,
        api_key=config.llm.api_key,
        max_tokens=config.llm.max_tokens,
    )


def create_registry(config: Config) -> ToolRegistry:
    """Create the registry of tools offered to the model."""
    registry = ToolRegistry()
    if config.tools.species_lookup:
        registry.register(
            SpeciesLookupTool(
                base_url=config.tools.pokeapi_url,
                timeout=config.tools.request_timeout,
            )
        )
    return registry


def create_agent(config: Config) -> AgentConfig:
    return AgentConfig(
        model=config.llm.model,
        system_prompt=SYSTEM_PROMPT,
        temperature=config.llm.temperature,
        top_p=config.llm.top_p,
        max_iterations=config.llm.max_tool_iterations,
    )


def prepare_config(
    config_path: str | None,
    username: str | None,
    model: str | None,
    llm_backend: str | None,
    no_stream: bool,
) -> Config:
    """Load configuration and apply CLI overrides.

    Raises:
        typer.Exit: If the configuration is invalid or no username is set.
    """
    try:
        app_config = load_config(Path(config_path) if config_path else None, username)
        if model:
            app_config.llm.model = model
        if llm_backend:
            app_config.llm = LLMConfig(**{**app_config.llm.model_dump(), "backend": llm_backend})
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1) from None

    if no_stream:
        app_config.llm.stream = False

    if not app_config.showdown.username:
        console.print(
            "[red]No username set.[/red] Pass --username or set BATTLEBRAIN_SHOWDOWN__USERNAME"
        )
        raise typer.Exit(1)

    return app_config


def run_session(
    room_id: str,
    transport: Transport,
    app_config: Config,
    transcript_dir: Path | None,
    no_transcript: bool,
) -> None:
    """Run a battle session over a transport and report the result.

    Args:
        room_id: Battle room id.
        transport: Live connection or replay.
        app_config: Application configuration.
        transcript_dir: Transcript directory override.
        no_transcript: Disable transcript logging.
    """
    try:
        llm = create_llm_backend(app_config)
    except Exception as e:
        console.print(f"[red]Error creating LLM backend:[/red] {e}")
        raise typer.Exit(1) from None

    advisor = BattleAdvisor(llm, create_registry(app_config), create_agent(app_config))
    tracker = BattleTracker(app_config.showdown.username, app_config.showdown.team_size)

    # Set up transcript logging
    transcript_logger: TranscriptLogger | None = None
    if not no_transcript:
        t_dir = transcript_dir or app_config.logging.transcript_dir
        t_dir.mkdir(parents=True, exist_ok=True)

        json_path, md_path = create_transcript_paths(t_dir, room_id)
        transcript_logger = TranscriptLogger(
            json_path=json_path if app_config.logging.enable_json else None,
            markdown_path=md_path if app_config.logging.enable_markdown else None,
            room_id=room_id,
        )
        console.print(f"  Transcript: {md_path}")
        console.print()

    def on_event(event: BattleEvent) -> None:
        console.print(escape(str(event)), highlight=False)
        if transcript_logger:
            transcript_logger.log_event(event)

    def on_raw(line: str) -> None:
        console.print(f"[dim]{escape(line)}[/dim]")

    def on_suggestion_start(trigger: Trigger) -> None:
        label = "initial" if trigger is Trigger.INITIAL else "turn"
        console.print(f"\n[yellow]Generating {label} suggestions...[/yellow]\n")

    def on_suggestion_chunk(chunk: str) -> None:
        console.print(chunk, end="", markup=False, highlight=False)

    def on_suggestion(suggestion: Suggestion) -> None:
        if app_config.llm.stream:
            console.print("\n")
        else:
            console.print(
                Panel(escape(suggestion.text), title="[blue]Suggestion[/blue]", border_style="blue")
            )
        if transcript_logger:
            if suggestion.prompt:
                transcript_logger.log_prompt(suggestion.trigger.value, suggestion.prompt)
            transcript_logger.log_suggestion(suggestion.trigger.value, suggestion.text)

    def on_error(error: Exception) -> None:
        console.print(f"\n[red]Error generating suggestions:[/red] {escape(str(error))}")
        if transcript_logger:
            transcript_logger.log_error(type(error).__name__, str(error))

    session = BattleSession(
        room_id,
        tracker,
        advisor,
        stream=app_config.llm.stream,
        on_event=on_event,
        on_raw=on_raw,
        on_suggestion_start=on_suggestion_start,
        on_suggestion_chunk=on_suggestion_chunk,
        on_suggestion=on_suggestion,
        on_error=on_error,
    )

    async def drive() -> SessionResult:
        if isinstance(transport, ShowdownConnection):
            async with transport:
                return await session.run(transport)
        return await session.run(transport)

    console.print("[bold]Watching battle...[/bold]")
    console.print("─" * 40)

    outcome: str | None = None
    try:
        result = asyncio.run(drive())
        outcome = result.outcome

        console.print("─" * 40)
        console.print(f"[bold]Session ended:[/bold] {result.outcome}")
        console.print(f"  Turns: {result.turns}, Suggestions: {result.suggestions}")
        if result.error:
            console.print(f"  [red]Error: {escape(result.error)}[/red]")
            if transcript_logger:
                transcript_logger.log_system_note(f"Session ended with error: {result.error}")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        outcome = "interrupted"
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from None
    finally:
        if transcript_logger:
            transcript_logger.finalize(outcome)
            console.print("\n[dim]Transcript saved[/dim]")


@app.command()
def watch(
    room: Annotated[
        str,
        typer.Argument(help="Battle room id or URL (e.g., battle-gen9ou-123456)"),
    ],
    username: Annotated[
        str | None,
        typer.Option("--username", "-u", help="Showdown username of the player to assist"),
    ] = None,
    config: Annotated[
        str | None,
        typer.Option("--config", "-c", help="Path to config YAML file"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-M", help="Model name (e.g., qwen/qwen3-8b)"),
    ] = None,
    llm_backend: Annotated[
        str | None,
        typer.Option("--llm", "-l", help="LLM backend: openai_compat or anthropic_api"),
    ] = None,
    no_stream: Annotated[
        bool,
        typer.Option("--no-stream", help="Print suggestions only once complete"),
    ] = False,
    transcript_dir: Annotated[
        Path | None,
        typer.Option("--transcript-dir", "-t", help="Directory for transcripts"),
    ] = None,
    no_transcript: Annotated[
        bool,
        typer.Option("--no-transcript", help="Disable transcript logging"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Watch a live battle and suggest moves for one player."""
    app_config = prepare_config(config, username, model, llm_backend, no_stream)
    setup_logging(app_config.logging.level, verbose)
    room_id = parse_room_id(room)

    console.print(f"[bold blue]battlebrain[/bold blue] - {room_id}")
    console.print(
        f"  Assisting: {app_config.showdown.username}, "
        f"LLM: {app_config.llm.backend}, Model: {app_config.llm.model}"
    )

    connection = ShowdownConnection(
        room_id,
        server_url=app_config.showdown.server_url,
        connect_timeout=app_config.showdown.connect_timeout,
    )
    run_session(room_id, connection, app_config, transcript_dir, no_transcript)


@app.command()
def replay(
    log_file: Annotated[
        Path,
        typer.Argument(
            help="Saved battle log, one protocol line per line",
            exists=True,
            dir_okay=False,
        ),
    ],
    username: Annotated[
        str | None,
        typer.Option("--username", "-u", help="Showdown username of the player to assist"),
    ] = None,
    config: Annotated[
        str | None,
        typer.Option("--config", "-c", help="Path to config YAML file"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-M", help="Model name (e.g., qwen/qwen3-8b)"),
    ] = None,
    llm_backend: Annotated[
        str | None,
        typer.Option("--llm", "-l", help="LLM backend: openai_compat or anthropic_api"),
    ] = None,
    no_stream: Annotated[
        bool,
        typer.Option("--no-stream", help="Print suggestions only once complete"),
    ] = False,
    delay: Annotated[
        float,
        typer.Option("--delay", help="Seconds to wait between log lines"),
    ] = 0.0,
    transcript_dir: Annotated[
        Path | None,
        typer.Option("--transcript-dir", "-t", help="Directory for transcripts"),
    ] = None,
    no_transcript: Annotated[
        bool,
        typer.Option("--no-transcript", help="Disable transcript logging"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Replay a saved battle log through the advisor."""
    app_config = prepare_config(config, username, model, llm_backend, no_stream)
    setup_logging(app_config.logging.level, verbose)
    room_id = log_file.stem

    console.print(f"[bold blue]battlebrain[/bold blue] - replay of {log_file.name}")
    console.print(
        f"  Assisting: {app_config.showdown.username}, "
        f"LLM: {app_config.llm.backend}, Model: {app_config.llm.model}"
    )

    transport = ReplayTransport(log_file, room_id, delay=delay)
    run_session(room_id, transport, app_config, transcript_dir, no_transcript)


@app.command()
def lookup(
    species: Annotated[str, typer.Argument(help="Species name (e.g., Garchomp)")],
    config: Annotated[
        str | None,
        typer.Option("--config", "-c", help="Path to config YAML file"),
    ] = None,
) -> None:
    """Show species data as the model sees it."""
    app_config = load_config(Path(config) if config else None)
    tool = SpeciesLookupTool(
        base_url=app_config.tools.pokeapi_url,
        timeout=app_config.tools.request_timeout,
    )

    try:
        text = asyncio.run(tool.execute({"pokemon": species}))
    except (SpeciesLookupError, ToolError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    console.print(Panel(escape(text), title=f"[cyan]{escape(species)}[/cyan]", border_style="cyan"))


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]battlebrain[/bold] {__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
