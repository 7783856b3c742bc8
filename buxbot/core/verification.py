#!/usr/bin/env python3
"""
Verification Service

Entry point used by the bot's command and HTTP handlers. Links and unlinks
wallets, and refreshes a user's profile by aggregating holdings and then
feeding that one snapshot to reward accrual and role reconciliation.
"""

import logging
from typing import Optional, Set

from buxbot.config import AppConfig
from buxbot.core.aggregator import HoldingsAggregator
from buxbot.core.catalog import daily_rates
from buxbot.core.classifier import HoldingsClassifier
from buxbot.core.membership import MembershipRegistry, create_membership_registry
from buxbot.core.rewards import RewardAccrualService
from buxbot.core.roles import RoleReconciler
from buxbot.core.structures import ProfileRefreshResult
from buxbot.integrations.discord_client import DiscordRoleClient
from buxbot.integrations.solana_client import SolanaHoldingsReader, validate_wallet_address
from buxbot.storage.accrual_ledger import AccrualLedger
from buxbot.storage.wallet_registry import WalletRegistry
from buxbot.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


class VerificationService:
    """
    Orchestrates wallet linking and profile refreshes for Discord users.

    For one user the steps of a refresh are strictly sequential: the
    aggregation completes before accrual runs, and accrual completes before
    role reconciliation.
    """

    def __init__(
        self,
        wallet_registry: WalletRegistry,
        aggregator: HoldingsAggregator,
        rewards: RewardAccrualService,
        reconciler: RoleReconciler,
    ):
        self.wallet_registry = wallet_registry
        self.aggregator = aggregator
        self.rewards = rewards
        self.reconciler = reconciler

    async def link_wallet(self, user_id: str, wallet_address: str) -> bool:
        """
        Link a wallet to a user after validating the address.

        Returns:
            True if the wallet was newly linked

        Raises:
            InvalidAddressError: The address is not a Solana public key
            RegistryError: The wallet registry is unavailable
        """
        validate_wallet_address(wallet_address)
        return await self.wallet_registry.add_wallet(user_id, wallet_address)

    async def unlink_wallet(self, user_id: str, wallet_address: str) -> bool:
        return await self.wallet_registry.remove_wallet(user_id, wallet_address)

    async def list_wallets(self, user_id: str) -> Set[str]:
        return await self.wallet_registry.get_wallets(user_id)

    async def refresh_profile(self, user_id: str) -> ProfileRefreshResult:
        """
        Recompute a user's holdings, accrue today's reward and sync roles.

        Args:
            user_id: Discord user id

        Returns:
            Snapshot, daily rate, accrual state and the applied role delta
        """
        snapshot = await self.aggregator.aggregate(user_id)
        if snapshot.is_partial:
            logger.warning(
                f"Profile for user {user_id} is partial, unreadable wallets: {sorted(snapshot.failed_wallets)}"
            )

        accrual = await self.rewards.accrue(user_id, snapshot)
        role_delta = await self.reconciler.reconcile(user_id, snapshot)

        return ProfileRefreshResult(
            snapshot=snapshot,
            daily_rate=self.rewards.daily_rate(snapshot),
            accrual=accrual,
            role_delta=role_delta,
        )


async def create_verification_service(
    config: AppConfig,
    holdings_reader: SolanaHoldingsReader,
    role_client: Optional[DiscordRoleClient],
    membership: Optional[MembershipRegistry] = None,
) -> VerificationService:
    """
    Wire a VerificationService from configuration.

    Initializes the database tables and loads hashlists from disk unless a
    membership registry is supplied. `role_client` may be None for callers
    that never refresh profiles.
    """
    if membership is None:
        membership = create_membership_registry(config.hashlist_directory)

    wallet_registry = WalletRegistry(config.database_path)
    await wallet_registry.initialize()
    ledger = AccrualLedger(config.database_path)
    await ledger.initialize()

    aggregator = HoldingsAggregator(
        wallet_registry=wallet_registry,
        holdings_reader=holdings_reader,
        classifier=HoldingsClassifier(config.solana.bux_mint),
        membership=membership,
        retry_policy=RetryPolicy(
            max_attempts=config.aggregation.retry_max_attempts,
            base_delay=config.aggregation.retry_base_delay_seconds,
            max_delay=config.aggregation.retry_max_delay_seconds,
        ),
        wallet_delay_seconds=config.aggregation.wallet_delay_seconds,
    )
    rewards = RewardAccrualService(
        ledger=ledger,
        rates=daily_rates(config.rewards.rate_overrides),
        interval_seconds=config.rewards.accrual_interval_seconds,
        max_attempts=config.rewards.cas_max_attempts,
    )
    reconciler = RoleReconciler(
        role_client=role_client,
        role_config=config.roles,
        fungible_decimals=config.solana.bux_decimals,
    )
    return VerificationService(wallet_registry, aggregator, rewards, reconciler)
