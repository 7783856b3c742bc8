#!/usr/bin/env python3
"""
Holdings Data Structures

Defines the data passed between the chain reader, classifier, aggregator,
reward accrual and role reconciliation.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Set

from buxbot.core.catalog import CollectionKey


@dataclass(frozen=True)
class TokenAccount:
    """
    A single SPL token account observed on chain.

    Attributes:
        mint: Token mint address (the token identifier)
        owner: Wallet that owns the account
        amount: Raw amount in atomic units
        decimals: Mint decimals reported by the ledger
    """
    mint: str
    owner: str
    amount: int
    decimals: int = 0


@dataclass
class TokenAccountSnapshot:
    """Token accounts owned by one wallet at query time."""
    wallet: str
    accounts: List[TokenAccount] = field(default_factory=list)
    fetched_at: Optional[float] = None


def empty_buckets() -> Dict[CollectionKey, Set[str]]:
    return {key: set() for key in CollectionKey}


@dataclass
class WalletHoldings:
    """Classifier output for a single wallet."""
    wallet: str
    per_collection: Dict[CollectionKey, Set[str]] = field(default_factory=empty_buckets)
    fungible_balance: int = 0


@dataclass
class HoldingsSnapshot:
    """
    Canonical holdings of one user across every linked wallet.

    Attributes:
        user_id: Discord user the snapshot belongs to
        per_collection: Collection -> mints held, every collection present
        fungible_balance: BUX balance in atomic units
        wallets: Wallets that were read successfully
        failed_wallets: Wallet -> error description for wallets that could not be read
        computed_at: Timestamp of the aggregation
    """
    user_id: str
    per_collection: Dict[CollectionKey, Set[str]] = field(default_factory=empty_buckets)
    fungible_balance: int = 0
    wallets: List[str] = field(default_factory=list)
    failed_wallets: Dict[str, str] = field(default_factory=dict)
    computed_at: Optional[float] = None

    def count(self, key: CollectionKey) -> int:
        return len(self.per_collection.get(key, ()))

    def counts(self) -> Dict[CollectionKey, int]:
        return {key: self.count(key) for key in CollectionKey}

    @property
    def total_nfts(self) -> int:
        return sum(self.counts().values())

    @property
    def is_partial(self) -> bool:
        """True when at least one linked wallet could not be read."""
        return bool(self.failed_wallets)

    def fungible_balance_display(self, decimals: int) -> Decimal:
        """Balance in whole tokens, exact."""
        return Decimal(self.fungible_balance).scaleb(-decimals)


@dataclass(frozen=True)
class AccrualEntry:
    """Persisted accrual ledger row for one user."""
    user_id: str
    last_accrual_timestamp: float
    claimable_balance: int


@dataclass(frozen=True)
class AccrualResult:
    """
    Outcome of an accrual check.

    Attributes:
        claimable_balance: Claimable BUX after this call
        last_accrual_timestamp: Start of the current accrual cycle
        next_boundary_timestamp: When the next reward becomes claimable
        accrued: BUX added by this call, 0 if the boundary was not crossed
    """
    claimable_balance: int
    last_accrual_timestamp: float
    next_boundary_timestamp: float
    accrued: int = 0


@dataclass
class RoleDelta:
    """Role changes attempted by a reconciliation pass."""
    added: Set[str] = field(default_factory=set)
    removed: Set[str] = field(default_factory=set)
    failed_additions: Set[str] = field(default_factory=set)
    failed_removals: Set[str] = field(default_factory=set)

    @property
    def is_noop(self) -> bool:
        return not self.added and not self.removed

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_additions or self.failed_removals)


@dataclass
class ProfileRefreshResult:
    """Everything a profile refresh produced for one user."""
    snapshot: HoldingsSnapshot
    daily_rate: int
    accrual: AccrualResult
    role_delta: RoleDelta
