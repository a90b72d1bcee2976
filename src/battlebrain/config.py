"""Configuration management for battlebrain."""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseModel):
    """Completion endpoint configuration."""

    backend: Literal["openai_compat", "anthropic_api"] = "openai_compat"
    model: str = "qwen/qwen3-8b"
    base_url: str = "http://localhost:1234/v1"
    api_key: str = "local"
    temperature: float = 0.4
    top_p: float = 0.9
    max_tokens: int = 1024
    max_tool_iterations: int = Field(default=5, ge=1)
    stream: bool = True


class ShowdownConfig(BaseModel):
    """Showdown server settings."""

    username: str = ""
    server_url: str = "wss://sim3.psim.us/showdown/websocket"
    connect_timeout: float = 30.0
    team_size: int = Field(default=6, ge=1)


class ToolsConfig(BaseModel):
    """Settings for tools exposed to the model."""

    species_lookup: bool = True
    pokeapi_url: str = "https://pokeapi.co/api/v2"
    request_timeout: float = 10.0


class LoggingConfig(BaseModel):
    """Logging and transcript settings."""

    transcript_dir: Path = Field(default_factory=lambda: Path("./transcripts"))
    enable_json: bool = True
    enable_markdown: bool = True
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BATTLEBRAIN_",
        env_nested_delimiter="__",
    )

    llm: LLMConfig = Field(default_factory=LLMConfig)
    showdown: ShowdownConfig = Field(default_factory=ShowdownConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(
    config_path: Path | None = None,
    username: str | None = None,
) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional path to YAML config file.
        username: Optional Showdown username to override config.

    Returns:
        Loaded configuration.
    """
    config_data: dict[str, Any] = {}

    if config_path and config_path.exists():
        import yaml

        with open(config_path) as f:
            loaded = yaml.safe_load(f)
            if loaded:
                config_data = loaded

    if username:
        config_data.setdefault("showdown", {})["username"] = username

    return Config(**config_data)
