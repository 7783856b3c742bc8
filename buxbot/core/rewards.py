"""
Reward Accrual

Daily BUX rate from a holdings snapshot, and the 24 hour accrual cycle kept in
the accrual ledger.
"""

import logging
import time
from typing import Callable, Dict, Optional

from buxbot.core.catalog import CollectionKey, daily_rates
from buxbot.core.structures import AccrualResult, HoldingsSnapshot
from buxbot.exceptions import AccrualRaceError
from buxbot.storage.accrual_ledger import AccrualLedger

logger = logging.getLogger(__name__)

ACCRUAL_INTERVAL_SECONDS = 24 * 60 * 60


def daily_rate(snapshot: HoldingsSnapshot, rates: Optional[Dict[CollectionKey, int]] = None) -> int:
    """
    BUX per day for the holdings in `snapshot`.

    Args:
        snapshot: Aggregated holdings
        rates: Collection -> BUX/day table, defaults to the catalog rates

    Returns:
        Sum over collections of held count times rate
    """
    rates = rates if rates is not None else daily_rates()
    return sum(rates.get(key, 0) * len(mints) for key, mints in snapshot.per_collection.items())


def format_countdown(seconds: Optional[float]) -> str:
    """Render a remaining duration as HH:MM:SS, clamped at zero."""
    remaining = max(0, int(seconds or 0))
    hours, remainder = divmod(remaining, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class RewardAccrualService:
    """
    Maintains each user's claimable BUX balance.

    The balance grows by one daily rate each time a check happens at least one
    interval after the previous accrual. Accrual only ever adds; claiming is
    not handled here.
    """

    def __init__(
        self,
        ledger: AccrualLedger,
        rates: Optional[Dict[CollectionKey, int]] = None,
        interval_seconds: int = ACCRUAL_INTERVAL_SECONDS,
        max_attempts: int = 3,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.rates = rates if rates is not None else daily_rates()
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self._clock = clock

    def daily_rate(self, snapshot: HoldingsSnapshot) -> int:
        return daily_rate(snapshot, self.rates)

    async def accrue(self, user_id: str, snapshot: HoldingsSnapshot) -> AccrualResult:
        """
        Check the user's accrual cycle and apply today's reward if it is due.

        A first call starts the cycle with a zero balance. A call at least one
        interval after the last accrual adds the daily rate of `snapshot` and
        restarts the cycle at now. Any other call returns the stored values.

        Args:
            user_id: Discord user id
            snapshot: Freshly aggregated holdings for the user

        Returns:
            Current claimable balance and cycle timestamps

        Raises:
            AccrualStoreError: The ledger is unavailable
            AccrualRaceError: Concurrent writers kept changing the entry
        """
        for attempt in range(1, self.max_attempts + 1):
            now = self._clock()
            entry = await self.ledger.get_entry(user_id)

            if entry is None:
                if await self.ledger.create_entry(user_id, now):
                    logger.info(f"Started accrual cycle for user {user_id}")
                    return self._result(0, now)
                logger.debug(f"Accrual entry for user {user_id} created concurrently, re-reading")
                continue

            if now - entry.last_accrual_timestamp < self.interval_seconds:
                return self._result(entry.claimable_balance, entry.last_accrual_timestamp)

            reward = self.daily_rate(snapshot)
            if await self.ledger.compare_and_accrue(user_id, entry.last_accrual_timestamp, now, reward):
                logger.info(
                    f"Accrued {reward} BUX for user {user_id}, "
                    f"claimable now {entry.claimable_balance + reward}"
                )
                return self._result(entry.claimable_balance + reward, now, accrued=reward)

            logger.info(f"Accrual for user {user_id} lost to a concurrent update (attempt {attempt}), re-reading")

        raise AccrualRaceError(user_id, self.max_attempts)

    async def get_claimable(self, user_id: str) -> int:
        entry = await self.ledger.get_entry(user_id)
        return entry.claimable_balance if entry else 0

    async def time_until_next_accrual(self, user_id: str) -> Optional[float]:
        """Seconds until the next reward is due, None if the cycle never started."""
        entry = await self.ledger.get_entry(user_id)
        if entry is None:
            return None
        return max(0.0, entry.last_accrual_timestamp + self.interval_seconds - self._clock())

    def _result(self, claimable: int, last_timestamp: float, accrued: int = 0) -> AccrualResult:
        return AccrualResult(
            claimable_balance=claimable,
            last_accrual_timestamp=last_timestamp,
            next_boundary_timestamp=last_timestamp + self.interval_seconds,
            accrued=accrued,
        )
