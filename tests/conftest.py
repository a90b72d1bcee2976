"""Shared fixtures."""

import pytest

# Random battle captured from Pokemon Showdown; ronak777 plays p2
BATTLE_LOG = """\
|player|p1|kashimo777|268|1500
|player|p2|ronak777|1|1500
|teamsize|p1|6
|teamsize|p2|6
|gametype|singles
|gen|6
|tier|[Gen 6] Random Battle
|rated|
|rule|Sleep Clause Mod: Limit one foe put to sleep
|rule|HP Percentage Mod: HP is shown in percentages
|clearpoke
|poke|p1|Amoonguss, L84, M
|poke|p1|Bisharp, L79, F
|poke|p1|Clefable, L86, F
|poke|p1|Dragonite, L77, M
|poke|p1|Excadrill, L76, M
|poke|p1|Latios, L75, M
|poke|p2|Dragonite, L79, M
|poke|p2|Zoroark, L79, F
|poke|p2|Chansey, L83, F
|poke|p2|Azumarill, L87, F
|poke|p2|Charizard, L77, M
|poke|p2|Gengar, L78, M
|teampreview
|start
|switch|p2a: Gengar|Gengar, L78, M|261/261
|switch|p1a: Latios|Latios, L75, M|240/240
|turn|1
|move|p2a: Gengar|Drain Punch|p1a: Latios
|-resisted|p1a: Latios
|-damage|p1a: Latios|221/240
|move|p1a: Latios|Dragon Claw|p2a: Gengar
|-damage|p2a: Gengar|165/261
|-damage|p1a: Latios|183/240|[from] item: Rocky Helmet
|turn|2
|move|p1a: Latios|Psyshock|p2a: Gengar
|-damage|p2a: Gengar|97/261
|-damage|p1a: Latios|145/240|[from] item: Rocky Helmet
|switch|p2a: Dragonite|Dragonite, L79, M|271/271
|turn|3
|move|p2a: Dragonite|Aqua Tail|p1a: Latios
|-supereffective|p1a: Latios
|-damage|p1a: Latios|0 fnt
|faint|p1a: Latios
|switch|p1a: Excadrill|Excadrill, L76, M|281/281
|turn|4
|move|p2a: Dragonite|Aqua Tail|p1a: Excadrill
|-damage|p1a: Excadrill|167/281
|move|p1a: Excadrill|Iron Head|p2a: Dragonite
|-damage|p2a: Dragonite|155/271
|turn|5
|switch|p2a: Gengar|Gengar, L78, M|97/261
|move|p1a: Excadrill|Earthquake|p2a: Gengar
|-immune|p2a: Gengar
|turn|6
|switch|p1a: Amoonguss|Amoonguss, L84, M|321/321
|move|p2a: Gengar|Shadow Ball|p1a: Amoonguss
|-damage|p1a: Amoonguss|212/321
|turn|7
|move|p2a: Gengar|Hex|p1a: Amoonguss
|-damage|p1a: Amoonguss|137/321
|move|p1a: Amoonguss|Giga Drain|p2a: Gengar
|-supereffective|p2a: Gengar
|-damage|p2a: Gengar|0 fnt
|-heal|p1a: Amoonguss|186/321|[from] drain|[of] p2a: Gengar
|faint|p2a: Gengar
|switch|p2a: Dragonite|Dragonite, L79, M|155/271
|turn|8
|move|p2a: Dragonite|Dragon Claw|p1a: Amoonguss
|-resisted|p1a: Amoonguss
|-damage|p1a: Amoonguss|152/321
|move|p1a: Amoonguss|Sludge Bomb|p2a: Dragonite
|-damage|p2a: Dragonite|92/271
|turn|9
|move|p2a: Dragonite|Aqua Tail|p1a: Amoonguss
|-damage|p1a: Amoonguss|0 fnt
|-damage|p2a: Dragonite|70/271|[from] item: Rocky Helmet
|faint|p1a: Amoonguss
|switch|p1a: Clefable|Clefable, L86, F|331/331
|turn|10
|move|p1a: Clefable|Moonblast|p2a: Dragonite
|-damage|p2a: Dragonite|0 fnt
|faint|p2a: Dragonite
|switch|p2a: Azumarill|Azumarill, L87, F|341/341
|turn|11
|move|p2a: Azumarill|Play Rough|p1a: Clefable
|-damage|p1a: Clefable|235/331
|move|p1a: Clefable|Thunderbolt|p2a: Azumarill
|-supereffective|p2a: Azumarill
|-damage|p2a: Azumarill|181/341
|turn|12
|move|p2a: Azumarill|Aqua Tail|p1a: Clefable
|-damage|p1a: Clefable|157/331
|move|p1a: Clefable|Thunderbolt|p2a: Azumarill
|-supereffective|p2a: Azumarill
|-damage|p2a: Azumarill|0 fnt
|faint|p2a: Azumarill
|win|kashimo777
"""


@pytest.fixture
def battle_lines() -> list[str]:
    """Protocol lines of the sample battle."""
    return BATTLE_LOG.splitlines()


@pytest.fixture
def setup_lines(battle_lines: list[str]) -> list[str]:
    """Lines up to and including team preview."""
    return battle_lines[: battle_lines.index("|teampreview") + 1]
