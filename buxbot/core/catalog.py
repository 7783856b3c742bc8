"""
Collection Catalog

The fixed set of collections the bot tracks, with the hashlist file, reward rate
and whale threshold for each one. This is the single source for per-collection
constants; the reward and role code read it instead of keeping their own copies.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class CollectionKey(str, Enum):
    """Tracked NFT collections."""

    FCKED_CATZ = "fcked_catz"
    CELEBCATZ = "celebcatz"
    MONEY_MONSTERS = "money_monsters"
    MONEY_MONSTERS_3D = "money_monsters3d"
    AI_BITBOTS = "ai_bitbots"
    WARRIORS = "warriors"
    SQUIRRELS = "squirrels"
    RJCTD_BOTS = "rjctd_bots"
    ENERGY_APES = "energy_apes"
    DOODLE_BOTS = "doodle_bots"
    CANDY_BOTS = "candy_bots"


@dataclass(frozen=True)
class CollectionDefinition:
    """
    Static description of a tracked collection.

    Attributes:
        key: Collection identifier
        display_name: Human-readable name for profile output
        hashlist_path: Hashlist file, relative to the hashlist directory
        daily_rate: BUX accrued per held NFT per day
        whale_threshold: Count at which the whale role applies, None if the
            collection has no whale tier
        is_ai_collab: Whether the collection is one of the A.I. collabs
    """
    key: CollectionKey
    display_name: str
    hashlist_path: str
    daily_rate: int
    whale_threshold: Optional[int] = None
    is_ai_collab: bool = False


COLLECTIONS: Dict[CollectionKey, CollectionDefinition] = {
    definition.key: definition
    for definition in (
        CollectionDefinition(CollectionKey.FCKED_CATZ, "Fcked Catz", "fcked_catz.json", 2, whale_threshold=25),
        CollectionDefinition(CollectionKey.CELEBCATZ, "Celeb Catz", "celebcatz.json", 3),
        CollectionDefinition(CollectionKey.MONEY_MONSTERS, "Money Monsters", "money_monsters.json", 2, whale_threshold=25),
        CollectionDefinition(CollectionKey.MONEY_MONSTERS_3D, "Money Monsters 3D", "money_monsters3d.json", 3, whale_threshold=25),
        CollectionDefinition(CollectionKey.AI_BITBOTS, "AI Bitbots", "ai_bitbots.json", 2, whale_threshold=10),
        CollectionDefinition(CollectionKey.WARRIORS, "A.I. Warriors", "ai_collabs/warriors.json", 1, is_ai_collab=True),
        CollectionDefinition(CollectionKey.SQUIRRELS, "A.I. Squirrels", "ai_collabs/squirrels.json", 1, is_ai_collab=True),
        CollectionDefinition(CollectionKey.RJCTD_BOTS, "RJCTD Bots", "ai_collabs/rjctd_bots.json", 1, is_ai_collab=True),
        CollectionDefinition(CollectionKey.ENERGY_APES, "A.I. Energy Apes", "ai_collabs/energy_apes.json", 1, is_ai_collab=True),
        CollectionDefinition(CollectionKey.DOODLE_BOTS, "Doodle Bots", "ai_collabs/doodle_bots.json", 1, is_ai_collab=True),
        CollectionDefinition(CollectionKey.CANDY_BOTS, "Candy Bots", "ai_collabs/candy_bots.json", 1, is_ai_collab=True),
    )
}


# Whole-BUX balance tiers, lowest first
BUX_TIER_THRESHOLDS = (2500, 10000, 25000, 50000)


def whale_thresholds() -> Dict[CollectionKey, int]:
    """Collections that have a whale tier, with their thresholds."""
    return {
        key: definition.whale_threshold
        for key, definition in COLLECTIONS.items()
        if definition.whale_threshold is not None
    }


def daily_rates(overrides: Optional[Dict[str, int]] = None) -> Dict[CollectionKey, int]:
    """
    Canonical BUX/day rate per collection.

    Args:
        overrides: Optional collection key string -> rate replacements

    Returns:
        Rate for every CollectionKey
    """
    rates = {key: definition.daily_rate for key, definition in COLLECTIONS.items()}
    for raw_key, rate in (overrides or {}).items():
        key = CollectionKey(raw_key)
        if rate < 0:
            raise ValueError(f"Daily rate for {raw_key} must not be negative")
        rates[key] = rate
    return rates
