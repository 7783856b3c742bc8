"""
Collection Membership Sets

Loads the per-collection hashlists and serves them as an immutable, versioned
snapshot. A reload builds a complete new snapshot and swaps the reference in a
single assignment, so a reader either sees the old mapping or the new one.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Union

from buxbot.core.catalog import COLLECTIONS, CollectionKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipSets:
    """
    Immutable mapping of collection -> token ids.

    Attributes:
        sets: Read-only view of collection -> frozenset of mint addresses
        version: Increases with every reload
        loaded_at: When this snapshot was built
    """
    sets: Mapping[CollectionKey, FrozenSet[str]] = field(default_factory=lambda: MappingProxyType({}))
    version: int = 0
    loaded_at: float = 0.0

    @classmethod
    def build(
        cls,
        raw: Mapping[Union[CollectionKey, str], Iterable[str]],
        version: int = 0,
    ) -> "MembershipSets":
        """Copy `raw` into a fresh frozen snapshot, adding empty sets for missing keys."""
        sets: Dict[CollectionKey, FrozenSet[str]] = {key: frozenset() for key in CollectionKey}
        for key, token_ids in raw.items():
            sets[CollectionKey(key)] = frozenset(token_ids)
        return cls(sets=MappingProxyType(sets), version=version, loaded_at=time.time())

    def get(self, key: CollectionKey) -> FrozenSet[str]:
        return self.sets.get(key, frozenset())

    def collections_for(self, token_id: str) -> FrozenSet[CollectionKey]:
        """Every collection whose hashlist contains `token_id`."""
        return frozenset(key for key, token_ids in self.sets.items() if token_id in token_ids)

    def sizes(self) -> Dict[CollectionKey, int]:
        return {key: len(token_ids) for key, token_ids in self.sets.items()}


class MembershipRegistry:
    """Owns the active MembershipSets snapshot and the hashlist files behind it."""

    def __init__(self, hashlist_directory: Union[str, Path]):
        self.hashlist_directory = Path(hashlist_directory)
        self._current = MembershipSets.build({})

    @property
    def current(self) -> MembershipSets:
        """The active snapshot. Callers should hold on to it for a whole operation."""
        return self._current

    def load(self, key: CollectionKey) -> FrozenSet[str]:
        """
        Load one collection's hashlist from disk.

        A missing or corrupt file yields an empty set and a warning, so one bad
        hashlist never blocks startup.

        Args:
            key: Collection to load

        Returns:
            Token ids listed in the hashlist file
        """
        path = self.hashlist_directory / COLLECTIONS[key].hashlist_path
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Hashlist for {key.value} not found at {path}")
            return frozenset()
        except (OSError, ValueError) as e:
            logger.warning(f"Hashlist for {key.value} at {path} could not be read: {e}")
            return frozenset()

        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            logger.warning(f"Hashlist for {key.value} at {path} is not a list of token ids")
            return frozenset()

        token_ids = frozenset(data)
        if len(token_ids) != len(data):
            logger.debug(f"Hashlist for {key.value} contains {len(data) - len(token_ids)} duplicate entries")
        return token_ids

    def load_all(self) -> Dict[CollectionKey, FrozenSet[str]]:
        """Load every collection's hashlist."""
        return {key: self.load(key) for key in CollectionKey}

    def reload(self, new_sets: Mapping[Union[CollectionKey, str], Iterable[str]]) -> MembershipSets:
        """
        Replace the whole mapping with `new_sets`.

        Collections missing from `new_sets` become empty. The previous snapshot
        is left untouched for readers that still hold it.

        Returns:
            The newly active snapshot
        """
        snapshot = MembershipSets.build(new_sets, version=self._current.version + 1)
        self._current = snapshot
        logger.info(
            f"Membership sets reloaded (version {snapshot.version}, "
            f"{sum(snapshot.sizes().values())} token ids across {len(snapshot.sets)} collections)"
        )
        return snapshot

    def reload_from_disk(self) -> MembershipSets:
        """Re-read every hashlist file and swap in the result."""
        return self.reload(self.load_all())


def create_membership_registry(hashlist_directory: Union[str, Path]) -> MembershipRegistry:
    """Build a registry and load the hashlists from disk."""
    registry = MembershipRegistry(hashlist_directory)
    registry.reload_from_disk()
    return registry
