"""Species data lookup backed by PokeAPI."""

import asyncio
import logging
from typing import Any

import requests

from battlebrain.tools.registry import ToolArgumentError

logger = logging.getLogger(__name__)

POKEAPI_URL = "https://pokeapi.co/api/v2"

MAX_LISTED_MOVES = 10


class SpeciesLookupError(Exception):
    """Species data could not be fetched."""


class SpeciesLookupTool:
    """Feedback tool returning a readable summary of a species.

    Fetches ``/pokemon/<name>`` and the English short effect of each of its
    abilities. Ability lookups that fail leave that ability without an effect.
    """

    name = "get_pokemon_details"
    feedback = True

    def __init__(self, base_url: str = POKEAPI_URL, timeout: float = 10.0) -> None:
        """Initialize the tool.

        Args:
            base_url: PokeAPI base URL.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": "Fetches a pokemon details from the PokeAPI",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "pokemon": {
                            "type": "string",
                            "description": "Exact Pokemon Name",
                        }
                    },
                    "required": ["pokemon"],
                },
            },
        }

    async def execute(self, arguments: dict[str, Any]) -> str:
        """Look up a species.

        Args:
            arguments: Must contain a ``pokemon`` string.

        Returns:
            Readable species summary.

        Raises:
            ToolArgumentError: If ``pokemon`` is missing or not a string.
            SpeciesLookupError: If the species request fails.
        """
        pokemon = arguments.get("pokemon")
        if not isinstance(pokemon, str) or not pokemon.strip():
            raise ToolArgumentError("Missing 'pokemon' argument")

        info = await asyncio.to_thread(self.fetch, pokemon)
        return render_species(info)

    def fetch(self, pokemon: str) -> dict[str, Any]:
        """Fetch species data and ability effects (blocking).

        Args:
            pokemon: Species name, any case.

        Returns:
            PokeAPI pokemon payload; each ability entry gains an ``effect`` key.

        Raises:
            SpeciesLookupError: If the species request fails.
        """
        slug = pokemon.strip().lower().replace(" ", "-")
        url = f"{self.base_url}/pokemon/{slug}"

        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            info: dict[str, Any] = response.json()
        except requests.RequestException as e:
            raise SpeciesLookupError(f"Failed to fetch data for {pokemon}: {e}") from e

        for slot in info.get("abilities", []):
            slot["effect"] = self._fetch_ability_effect(slot["ability"]["name"])

        return info

    def _fetch_ability_effect(self, ability: str) -> str | None:
        try:
            response = requests.get(f"{self.base_url}/ability/{ability}", timeout=self.timeout)
            response.raise_for_status()
            entries = response.json().get("effect_entries", [])
        except requests.RequestException as e:
            logger.debug("Ability lookup for %s failed: %s", ability, e)
            return None

        for entry in entries:
            if entry.get("language", {}).get("name") == "en":
                return entry.get("short_effect")
        return None


def render_species(info: dict[str, Any]) -> str:
    """Render a PokeAPI pokemon payload as plain text.

    Args:
        info: Payload from :meth:`SpeciesLookupTool.fetch`.

    Returns:
        Multi-line summary.
    """
    lines = [f"Pokemon: {info['name'].upper()}"]

    types = [slot["type"]["name"] for slot in info.get("types", [])]
    lines.append(f"Types: {', '.join(types)}")
    lines.append(f"Height: {info.get('height')} | Weight: {info.get('weight')}")

    lines.append("Base stats:")
    for stat in info.get("stats", []):
        lines.append(f"  {stat['stat']['name']}: {stat['base_stat']}")

    lines.append("Abilities:")
    for slot in info.get("abilities", []):
        entry = f"  {slot['ability']['name']}"
        if slot.get("is_hidden"):
            entry += " (Hidden)"
        if slot.get("effect"):
            entry += f" - {slot['effect']}"
        lines.append(entry)

    moves = [slot["move"]["name"] for slot in info.get("moves", [])[:MAX_LISTED_MOVES]]
    if moves:
        lines.append(f"Moves: {', '.join(moves)}")

    return "\n".join(lines)
