"""Typed events decoded from the battle protocol feed."""

from dataclasses import dataclass
from typing import Literal

Side = Literal["p1", "p2"]

SIDES: tuple[Side, Side] = ("p1", "p2")


@dataclass(frozen=True)
class Title:
    """Battle room title."""

    title: str

    def __str__(self) -> str:
        return f"Battle Title: {self.title}"


@dataclass(frozen=True)
class Generation:
    """Game generation the battle is played in."""

    generation: str

    def __str__(self) -> str:
        return f"Generation: {self.generation}"


@dataclass(frozen=True)
class Player:
    """A player taking one side of the battle."""

    side: str
    username: str

    def __str__(self) -> str:
        return f"Player {self.side}: {self.username}"


@dataclass(frozen=True)
class TeamSize:
    """Declared number of Pokemon on one side."""

    side: str
    size: int

    def __str__(self) -> str:
        return f"Team size {self.side}: {self.size}"


@dataclass(frozen=True)
class Poke:
    """A species revealed on a side's roster before the battle."""

    side: str
    species: str

    def __str__(self) -> str:
        return f"Team {self.side}: {self.species}"


@dataclass(frozen=True)
class TeamPreview:
    """Team preview has started."""

    def __str__(self) -> str:
        return "Team Preview Started"


@dataclass(frozen=True)
class Start:
    """The battle has started."""

    def __str__(self) -> str:
        return "Battle Started"


@dataclass(frozen=True)
class Turn:
    """Start of a numbered turn."""

    number: int

    def __str__(self) -> str:
        return f" TURN {self.number} "


@dataclass(frozen=True)
class Switch:
    """A Pokemon was switched or dragged in."""

    actor: str
    species: str
    hp: str

    def __str__(self) -> str:
        return f"{self.actor} sent out {self.species} (HP: {self.hp})"


@dataclass(frozen=True)
class Move:
    """A Pokemon used a move."""

    actor: str
    pokemon: str
    move: str
    target: str | None = None

    def __str__(self) -> str:
        if self.target:
            return f"{self.actor}: {self.pokemon} used {self.move} on {self.target}"
        return f"{self.actor}: {self.pokemon} used {self.move}"


@dataclass(frozen=True)
class Damage:
    """A Pokemon took damage."""

    actor: str
    pokemon: str
    hp: str
    cause: str | None = None

    def __str__(self) -> str:
        if self.cause:
            return f"{self.actor}: {self.pokemon} HP: {self.hp} ({self.cause})"
        return f"{self.actor}: {self.pokemon} HP: {self.hp}"


@dataclass(frozen=True)
class Heal:
    """A Pokemon recovered HP."""

    pokemon: str
    hp: str
    source: str | None = None

    def __str__(self) -> str:
        if self.source:
            return f"{self.pokemon} healed to {self.hp} ({self.source})"
        return f"{self.pokemon} healed to {self.hp}"


@dataclass(frozen=True)
class Faint:
    """A Pokemon fainted."""

    pokemon: str

    def __str__(self) -> str:
        return f"{self.pokemon} fainted!"


@dataclass(frozen=True)
class Status:
    """A Pokemon was inflicted with a status condition."""

    pokemon: str
    status: str

    def __str__(self) -> str:
        return f"{self.pokemon} was inflicted with {self.status}"


@dataclass(frozen=True)
class CureStatus:
    """A Pokemon was cured of a status condition."""

    pokemon: str
    status: str

    def __str__(self) -> str:
        return f"{self.pokemon} cured of {self.status}"


@dataclass(frozen=True)
class Boost:
    """A stat stage rose."""

    pokemon: str
    stat: str
    amount: str = "1"

    def __str__(self) -> str:
        return f"{self.pokemon}'s {self.stat} rose by {self.amount}"


@dataclass(frozen=True)
class Unboost:
    """A stat stage fell."""

    pokemon: str
    stat: str
    amount: str = "1"

    def __str__(self) -> str:
        return f"{self.pokemon}'s {self.stat} fell by {self.amount}"


@dataclass(frozen=True)
class Weather:
    """Weather changed or cleared."""

    weather: str

    def __str__(self) -> str:
        if self.weather == "none":
            return "Weather cleared"
        return f"Weather: {self.weather}"


@dataclass(frozen=True)
class SideStart:
    """A side condition (hazard, screen) was set up."""

    side: str
    condition: str

    def __str__(self) -> str:
        return f"{self.side} set up {self.condition}"


@dataclass(frozen=True)
class SideEnd:
    """A side condition ended."""

    side: str
    condition: str

    def __str__(self) -> str:
        return f"{self.side}'s {self.condition} wore off"


@dataclass(frozen=True)
class Ability:
    """An ability was revealed."""

    pokemon: str
    ability: str

    def __str__(self) -> str:
        return f"{self.pokemon}'s ability: {self.ability}"


@dataclass(frozen=True)
class Mega:
    """A Pokemon mega evolved."""

    pokemon: str
    species: str
    megastone: str | None = None

    def __str__(self) -> str:
        if self.megastone:
            return f"{self.pokemon} Mega Evolved from {self.species} using {self.megastone}"
        return f"{self.pokemon} Mega Evolved from {self.species}"


@dataclass(frozen=True)
class SuperEffective:
    """The last hit was super effective."""

    pokemon: str

    def __str__(self) -> str:
        return f"Super effective on {self.pokemon}!"


@dataclass(frozen=True)
class Resisted:
    """The last hit was resisted."""

    pokemon: str

    def __str__(self) -> str:
        return f"{self.pokemon} resisted the attack"


@dataclass(frozen=True)
class Crit:
    """The last hit was a critical hit."""

    pokemon: str

    def __str__(self) -> str:
        return f"Critical hit on {self.pokemon}!"


@dataclass(frozen=True)
class Immune:
    """The target was immune."""

    pokemon: str

    def __str__(self) -> str:
        return f"{self.pokemon} is immune!"


@dataclass(frozen=True)
class Miss:
    """A move missed."""

    source: str
    target: str | None = None

    def __str__(self) -> str:
        if self.target:
            return f"{self.source} missed {self.target}!"
        return f"{self.source}'s attack missed!"


@dataclass(frozen=True)
class Cant:
    """A Pokemon could not act."""

    pokemon: str
    reason: str

    def __str__(self) -> str:
        return f"{self.pokemon} can't move ({self.reason})"


@dataclass(frozen=True)
class Win:
    """The battle was won."""

    winner: str

    def __str__(self) -> str:
        return f"{self.winner} wins the battle!"


@dataclass(frozen=True)
class Tie:
    """The battle ended in a tie."""

    def __str__(self) -> str:
        return "Battle ended in a tie"


@dataclass(frozen=True)
class Message:
    """Free-text message from the server."""

    text: str

    def __str__(self) -> str:
        return self.text


BattleEvent = (
    Title
    | Generation
    | Player
    | TeamSize
    | Poke
    | TeamPreview
    | Start
    | Turn
    | Switch
    | Move
    | Damage
    | Heal
    | Faint
    | Status
    | CureStatus
    | Boost
    | Unboost
    | Weather
    | SideStart
    | SideEnd
    | Ability
    | Mega
    | SuperEffective
    | Resisted
    | Crit
    | Immune
    | Miss
    | Cant
    | Win
    | Tie
    | Message
)

# Kinds that only carry meaning before the battle starts
SETUP_EVENTS = (Title, Generation, Player, TeamSize, Poke, TeamPreview, Start)

# Kinds that end the battle
TERMINAL_EVENTS = (Win, Tie)
