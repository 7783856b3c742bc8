"""
Holdings Classifier

Maps one wallet's raw token accounts onto collection buckets and the BUX balance.
"""

import logging

from buxbot.core.membership import MembershipSets
from buxbot.core.structures import TokenAccountSnapshot, WalletHoldings

logger = logging.getLogger(__name__)


class HoldingsClassifier:
    """Pure classifier over a token account snapshot and a membership snapshot."""

    def __init__(self, fungible_mint: str):
        self.fungible_mint = fungible_mint

    def classify(self, snapshot: TokenAccountSnapshot, membership: MembershipSets) -> WalletHoldings:
        """
        Classify a wallet's token accounts.

        An account with amount 1 is tested against every collection and added
        to each one that lists its mint. An account for the fungible mint adds
        its amount to the fungible balance whatever the amount is.

        Args:
            snapshot: Token accounts read from chain for one wallet
            membership: Hashlist snapshot to classify against

        Returns:
            Per-collection mints and fungible balance for the wallet
        """
        holdings = WalletHoldings(wallet=snapshot.wallet)

        for account in snapshot.accounts:
            if account.amount == 1:
                for key in membership.collections_for(account.mint):
                    holdings.per_collection[key].add(account.mint)
            if account.mint == self.fungible_mint:
                holdings.fungible_balance += account.amount

        logger.debug(
            f"Classified wallet {snapshot.wallet}: "
            f"{sum(len(mints) for mints in holdings.per_collection.values())} NFTs, "
            f"fungible balance {holdings.fungible_balance}"
        )
        return holdings
