"""Tests for the tool registry and the species lookup tool."""

from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from battlebrain.tools.registry import ToolArgumentError, ToolRegistry, UnknownToolError
from battlebrain.tools.species import (
    SpeciesLookupError,
    SpeciesLookupTool,
    render_species,
)

GENGAR = {
    "name": "gengar",
    "height": 15,
    "weight": 405,
    "types": [{"type": {"name": "ghost"}}, {"type": {"name": "poison"}}],
    "stats": [
        {"stat": {"name": "hp"}, "base_stat": 60},
        {"stat": {"name": "speed"}, "base_stat": 110},
    ],
    "abilities": [
        {"ability": {"name": "cursed-body"}, "is_hidden": False},
    ],
    "moves": [{"move": {"name": f"move-{i}"}} for i in range(14)],
}

CURSED_BODY = {
    "effect_entries": [
        {"language": {"name": "de"}, "short_effect": "Kann Attacken blockieren."},
        {"language": {"name": "en"}, "short_effect": "Has a 30% chance of disabling moves."},
    ]
}


def fake_response(payload: dict[str, Any] | None = None, status: int = 200) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Not Found")
    return response


def fake_get(url: str, timeout: float) -> MagicMock:
    if url.endswith("/pokemon/gengar"):
        return fake_response(dict(GENGAR, abilities=[dict(a) for a in GENGAR["abilities"]]))
    if url.endswith("/ability/cursed-body"):
        return fake_response(CURSED_BODY)
    return fake_response(status=404)


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_get(self) -> None:
        """Test tools are found by name."""
        tool = SpeciesLookupTool()
        registry = ToolRegistry([tool])

        assert "get_pokemon_details" in registry
        assert len(registry) == 1
        assert registry.get("get_pokemon_details") is tool
        assert registry.names() == ["get_pokemon_details"]
        assert registry.definitions() == [tool.definition()]

    def test_unknown(self) -> None:
        """Test lookup of an unregistered tool."""
        with pytest.raises(UnknownToolError, match="get_move"):
            ToolRegistry().get("get_move")

    def test_empty_definitions(self) -> None:
        """Test an empty registry has no definitions."""
        assert ToolRegistry().definitions() == []


class TestSpeciesLookupTool:
    """Tests for SpeciesLookupTool."""

    def test_definition(self) -> None:
        """Test the function definition requires a pokemon name."""
        definition = SpeciesLookupTool().definition()

        assert definition["type"] == "function"
        assert definition["function"]["name"] == "get_pokemon_details"
        assert definition["function"]["parameters"]["required"] == ["pokemon"]

    def test_fetch(self) -> None:
        """Test species and ability effects are fetched."""
        tool = SpeciesLookupTool(base_url="https://pokeapi.test/api/v2/")

        with patch("battlebrain.tools.species.requests.get", side_effect=fake_get) as mock_get:
            info = tool.fetch("Gengar")

        assert mock_get.call_args_list[0].args[0] == "https://pokeapi.test/api/v2/pokemon/gengar"
        assert info["abilities"][0]["effect"] == "Has a 30% chance of disabling moves."

    def test_fetch_slug(self) -> None:
        """Test names with spaces become slugs."""
        tool = SpeciesLookupTool()

        with patch("battlebrain.tools.species.requests.get", side_effect=fake_get) as mock_get:
            with pytest.raises(SpeciesLookupError):
                tool.fetch("Mr Mime")

        assert mock_get.call_args.args[0].endswith("/pokemon/mr-mime")

    def test_fetch_not_found(self) -> None:
        """Test a failed species request raises."""
        tool = SpeciesLookupTool()

        with patch("battlebrain.tools.species.requests.get", side_effect=fake_get):
            with pytest.raises(SpeciesLookupError, match="Missingno"):
                tool.fetch("Missingno")

    def test_ability_failure_tolerated(self) -> None:
        """Test a failed ability request leaves the effect empty."""
        tool = SpeciesLookupTool()

        def get(url: str, timeout: float) -> MagicMock:
            if "/ability/" in url:
                raise requests.ConnectionError("offline")
            return fake_get(url, timeout)

        with patch("battlebrain.tools.species.requests.get", side_effect=get):
            info = tool.fetch("gengar")

        assert info["abilities"][0]["effect"] is None

    @pytest.mark.asyncio
    async def test_execute(self) -> None:
        """Test execution renders the fetched species."""
        tool = SpeciesLookupTool()

        with patch("battlebrain.tools.species.requests.get", side_effect=fake_get):
            result = await tool.execute({"pokemon": "Gengar"})

        assert result.startswith("Pokemon: GENGAR")
        assert "Types: ghost, poison" in result

    @pytest.mark.asyncio
    async def test_execute_missing_argument(self) -> None:
        """Test a missing name is an argument error."""
        with pytest.raises(ToolArgumentError):
            await SpeciesLookupTool().execute({})
        with pytest.raises(ToolArgumentError):
            await SpeciesLookupTool().execute({"pokemon": "  "})


class TestRenderSpecies:
    """Tests for render_species."""

    def test_render(self) -> None:
        """Test the summary layout."""
        info = dict(
            GENGAR,
            abilities=[
                {
                    "ability": {"name": "cursed-body"},
                    "is_hidden": False,
                    "effect": "Has a 30% chance of disabling moves.",
                },
                {"ability": {"name": "levitate"}, "is_hidden": True, "effect": None},
            ],
        )

        lines = render_species(info).splitlines()

        assert lines[:6] == [
            "Pokemon: GENGAR",
            "Types: ghost, poison",
            "Height: 15 | Weight: 405",
            "Base stats:",
            "  hp: 60",
            "  speed: 110",
        ]
        assert lines[6:9] == [
            "Abilities:",
            "  cursed-body - Has a 30% chance of disabling moves.",
            "  levitate (Hidden)",
        ]
        assert lines[9] == "Moves: " + ", ".join(f"move-{i}" for i in range(10))

    def test_render_without_moves(self) -> None:
        """Test the moves line is omitted when there are none."""
        info = dict(GENGAR, moves=[], abilities=[])

        assert "Moves" not in render_species(info)
