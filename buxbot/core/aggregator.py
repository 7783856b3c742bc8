#!/usr/bin/env python3
"""
Holdings Aggregator

Combines the classified holdings of every wallet a user has linked into one
HoldingsSnapshot. Wallets are read one after another with a fixed pause between
them to stay under the ledger's rate limits; a wallet that cannot be read is
recorded and skipped without discarding the others.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from buxbot.core.classifier import HoldingsClassifier
from buxbot.core.membership import MembershipRegistry, MembershipSets
from buxbot.core.structures import HoldingsSnapshot, WalletHoldings
from buxbot.exceptions import ChainQueryError
from buxbot.integrations.solana_client import SolanaHoldingsReader
from buxbot.storage.wallet_registry import WalletRegistry
from buxbot.utils.retry import RetryPolicy, retry_with_backoff

logger = logging.getLogger(__name__)


class HoldingsAggregator:
    """
    Builds a user's holdings snapshot from scratch on every call.

    This service:
    1. Reads the user's linked wallets from the registry
    2. Reads each wallet's token accounts with retry on rate limits
    3. Classifies each wallet against one membership snapshot
    4. Unions collections and sums the fungible balance
    """

    def __init__(
        self,
        wallet_registry: WalletRegistry,
        holdings_reader: SolanaHoldingsReader,
        classifier: HoldingsClassifier,
        membership: MembershipRegistry,
        retry_policy: Optional[RetryPolicy] = None,
        wallet_delay_seconds: float = 1.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.wallet_registry = wallet_registry
        self.holdings_reader = holdings_reader
        self.classifier = classifier
        self.membership = membership
        self.retry_policy = retry_policy or RetryPolicy()
        self.wallet_delay_seconds = wallet_delay_seconds
        self._sleep = sleep or asyncio.sleep

    async def aggregate(self, user_id: str) -> HoldingsSnapshot:
        """
        Aggregate holdings across all of a user's linked wallets.

        Args:
            user_id: Discord user id

        Returns:
            Snapshot with the union of per-collection mints and the summed
            fungible balance; wallets that failed are listed in failed_wallets

        Raises:
            RegistryError: The wallet registry could not be read
        """
        wallets = await self.wallet_registry.get_wallets(user_id)
        snapshot = HoldingsSnapshot(user_id=user_id)

        if not wallets:
            logger.debug(f"No wallets linked for user {user_id}")
            snapshot.computed_at = time.time()
            return snapshot

        # One membership snapshot for the whole aggregation, even if a reload lands midway
        membership = self.membership.current
        logger.info(f"Aggregating {len(wallets)} wallets for user {user_id} (hashlists v{membership.version})")

        for index, wallet in enumerate(sorted(wallets)):
            if index > 0 and self.wallet_delay_seconds > 0:
                await self._sleep(self.wallet_delay_seconds)

            try:
                holdings = await self._read_wallet(wallet, membership)
            except ChainQueryError as e:
                logger.warning(f"Skipping wallet {wallet} for user {user_id}: {e}")
                snapshot.failed_wallets[wallet] = str(e)
                continue

            self._merge(snapshot, holdings)
            snapshot.wallets.append(wallet)

        snapshot.computed_at = time.time()
        logger.info(
            f"Aggregated user {user_id}: {snapshot.total_nfts} NFTs, "
            f"fungible balance {snapshot.fungible_balance}, "
            f"{len(snapshot.failed_wallets)} of {len(wallets)} wallets failed"
        )
        return snapshot

    async def _read_wallet(self, wallet: str, membership: MembershipSets) -> WalletHoldings:
        token_accounts = await retry_with_backoff(
            lambda: self.holdings_reader.get_token_accounts(wallet),
            self.retry_policy,
            description=f"Token account read for {wallet}",
            sleep=self._sleep,
        )
        return self.classifier.classify(token_accounts, membership)

    @staticmethod
    def _merge(snapshot: HoldingsSnapshot, holdings: WalletHoldings) -> None:
        for key, mints in holdings.per_collection.items():
            snapshot.per_collection[key] |= mints
        snapshot.fungible_balance += holdings.fungible_balance
