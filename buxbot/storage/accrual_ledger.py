"""
Accrual Ledger Store

Persists each user's last accrual timestamp and claimable BUX balance. Writes
that depend on a previously read row go through conditional statements so two
concurrent requests cannot both apply the same daily reward.
"""

import logging
import sqlite3
from typing import Optional

from buxbot.core.structures import AccrualEntry
from buxbot.exceptions import AccrualStoreError
from buxbot.storage.database import connect, initialize_database

logger = logging.getLogger(__name__)


class AccrualLedger:
    """SQLite-backed accrual ledger with compare-and-swap updates."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def initialize(self) -> None:
        try:
            await initialize_database(self.db_path)
        except (sqlite3.Error, OSError) as e:
            raise AccrualStoreError(f"Failed to initialize accrual ledger: {e}") from e

    async def get_entry(self, user_id: str) -> Optional[AccrualEntry]:
        try:
            async with connect(self.db_path) as db:
                async with db.execute(
                    "SELECT last_accrual_timestamp, claimable_balance FROM accrual_ledger WHERE user_id = ?",
                    (user_id,),
                ) as cursor:
                    row = await cursor.fetchone()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error reading accrual entry for user {user_id}: {e}")
            raise AccrualStoreError(f"Accrual ledger unavailable: {e}") from e

        if row is None:
            return None
        return AccrualEntry(user_id=user_id, last_accrual_timestamp=row[0], claimable_balance=row[1])

    async def create_entry(self, user_id: str, timestamp: float) -> bool:
        """
        Start a user's accrual cycle with a zero balance.

        Returns:
            False if another writer created the entry first
        """
        try:
            async with connect(self.db_path) as db:
                cursor = await db.execute(
                    "INSERT OR IGNORE INTO accrual_ledger (user_id, last_accrual_timestamp, claimable_balance) "
                    "VALUES (?, ?, 0)",
                    (user_id, timestamp),
                )
                await db.commit()
                return cursor.rowcount == 1
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error creating accrual entry for user {user_id}: {e}")
            raise AccrualStoreError(f"Accrual ledger unavailable: {e}") from e

    async def compare_and_accrue(
        self,
        user_id: str,
        expected_timestamp: float,
        new_timestamp: float,
        amount: int,
    ) -> bool:
        """
        Add `amount` and move the cycle start, only if the stored timestamp is
        still `expected_timestamp`.

        Returns:
            True if this call applied the update, False if the row changed
            since it was read
        """
        if amount < 0:
            raise ValueError("Accrual amount must not be negative")
        try:
            async with connect(self.db_path) as db:
                cursor = await db.execute(
                    "UPDATE accrual_ledger "
                    "SET claimable_balance = claimable_balance + ?, last_accrual_timestamp = ? "
                    "WHERE user_id = ? AND last_accrual_timestamp = ?",
                    (amount, new_timestamp, user_id, expected_timestamp),
                )
                await db.commit()
                return cursor.rowcount == 1
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error updating accrual entry for user {user_id}: {e}")
            raise AccrualStoreError(f"Accrual ledger unavailable: {e}") from e
