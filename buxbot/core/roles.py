#!/usr/bin/env python3
"""
Role Reconciler

Derives the Discord roles a user should hold from their holdings and applies
only the difference to the user's live roles. Only roles the bot manages are
ever added or removed.
"""

import logging
from typing import Dict, Optional, Set

from buxbot.config import RoleConfig
from buxbot.core.catalog import BUX_TIER_THRESHOLDS, CollectionKey, whale_thresholds
from buxbot.core.structures import HoldingsSnapshot, RoleDelta
from buxbot.exceptions import IdentityServiceError
from buxbot.integrations.discord_client import DiscordRoleClient

logger = logging.getLogger(__name__)


class RoleReconciler:
    """Computes target role sets and converges live roles onto them."""

    def __init__(
        self,
        role_client: DiscordRoleClient,
        role_config: RoleConfig,
        fungible_decimals: int = 9,
        whale_thresholds_by_collection: Optional[Dict[CollectionKey, int]] = None,
    ):
        self.role_client = role_client
        self.role_config = role_config
        self.fungible_decimals = fungible_decimals
        self.whale_thresholds = (
            whale_thresholds_by_collection
            if whale_thresholds_by_collection is not None
            else whale_thresholds()
        )

    def _tier_roles(self) -> Dict[int, Optional[str]]:
        configured = self.role_config.bux_tier_roles()
        return {threshold: configured.get(threshold) for threshold in BUX_TIER_THRESHOLDS}

    def managed_roles(self) -> Set[str]:
        """Every configured role id this reconciler is allowed to touch."""
        roles = set()
        for key in CollectionKey:
            roles.add(self.role_config.holder_role(key.value))
            if key in self.whale_thresholds:
                roles.add(self.role_config.whale_role(key.value))
        roles.update(self._tier_roles().values())
        roles.discard(None)
        return roles

    def target_roles(self, snapshot: HoldingsSnapshot, fungible_balance: Optional[int] = None) -> Set[str]:
        """
        Roles the user should hold.

        Each rule is evaluated on its own: a holder role per non-empty
        collection, a whale role where the count meets that collection's
        threshold, and every BUX tier whose threshold the balance reaches.

        Args:
            snapshot: Aggregated holdings
            fungible_balance: Atomic-unit balance to use instead of the snapshot's

        Returns:
            Set of role ids, unconfigured roles omitted
        """
        balance = snapshot.fungible_balance if fungible_balance is None else fungible_balance
        target = set()

        for key in CollectionKey:
            count = snapshot.count(key)
            if count <= 0:
                continue
            target.add(self.role_config.holder_role(key.value))
            threshold = self.whale_thresholds.get(key)
            if threshold is not None and count >= threshold:
                target.add(self.role_config.whale_role(key.value))

        scale = 10 ** self.fungible_decimals
        for threshold, role_id in self._tier_roles().items():
            if balance >= threshold * scale:
                target.add(role_id)

        target.discard(None)
        return target

    async def reconcile(self, user_id: str, snapshot: HoldingsSnapshot) -> RoleDelta:
        """
        Bring a user's managed roles in line with their holdings.

        Removals are applied before additions, one call per role. A failed call
        is logged and recorded in the delta; the remaining calls still run.
        When live roles already match, no mutation call is made.

        Args:
            user_id: Discord user id
            snapshot: Aggregated holdings for the user

        Returns:
            The roles added and removed, with any that failed

        Raises:
            IdentityServiceError: The user's live roles could not be read
        """
        live = await self.role_client.get_member_roles(user_id)
        target = self.target_roles(snapshot)
        managed = self.managed_roles()

        delta = RoleDelta(
            added=target - live,
            removed=(live & managed) - target,
        )
        if delta.is_noop:
            logger.debug(f"Roles for user {user_id} already up to date")
            return delta

        for role_id in sorted(delta.removed):
            try:
                await self.role_client.remove_role(user_id, role_id, reason="Holdings no longer qualify")
            except IdentityServiceError as e:
                logger.error(f"Failed to remove role {role_id} from user {user_id}: {e}")
                delta.failed_removals.add(role_id)

        for role_id in sorted(delta.added):
            try:
                await self.role_client.add_role(user_id, role_id, reason="Verified holdings")
            except IdentityServiceError as e:
                logger.error(f"Failed to add role {role_id} to user {user_id}: {e}")
                delta.failed_additions.add(role_id)

        logger.info(
            f"Reconciled roles for user {user_id}: +{sorted(delta.added)} -{sorted(delta.removed)}"
            + (f" (failed +{sorted(delta.failed_additions)} -{sorted(delta.failed_removals)})"
               if delta.has_failures else "")
        )
        return delta
