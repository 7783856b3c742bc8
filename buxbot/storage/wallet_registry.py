"""
Wallet Registry

Durable mapping from a Discord user to the set of Solana wallets they linked.
Set semantics: adding an already linked wallet is a no-op, wallets are never
overwritten, and removal is explicit.
"""

import logging
import sqlite3
import time
from typing import Set

from buxbot.exceptions import RegistryError
from buxbot.storage.database import connect, initialize_database

logger = logging.getLogger(__name__)


class WalletRegistry:
    """SQLite-backed user -> wallets store."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def initialize(self) -> None:
        try:
            await initialize_database(self.db_path)
        except (sqlite3.Error, OSError) as e:
            raise RegistryError(f"Failed to initialize wallet registry: {e}") from e

    async def get_wallets(self, user_id: str) -> Set[str]:
        """All wallets linked to `user_id` (empty set if none)."""
        try:
            async with connect(self.db_path) as db:
                async with db.execute(
                    "SELECT wallet_address FROM user_wallets WHERE user_id = ?",
                    (user_id,),
                ) as cursor:
                    rows = await cursor.fetchall()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error reading wallets for user {user_id}: {e}")
            raise RegistryError(f"Wallet registry unavailable: {e}") from e
        return {row[0] for row in rows}

    async def add_wallet(self, user_id: str, wallet_address: str) -> bool:
        """
        Link a wallet to a user.

        Returns:
            True if the wallet was newly linked, False if it was already linked
        """
        try:
            async with connect(self.db_path) as db:
                cursor = await db.execute(
                    "INSERT OR IGNORE INTO user_wallets (user_id, wallet_address, linked_at) VALUES (?, ?, ?)",
                    (user_id, wallet_address, time.time()),
                )
                await db.commit()
                added = cursor.rowcount == 1
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error adding wallet {wallet_address} for user {user_id}: {e}")
            raise RegistryError(f"Wallet registry unavailable: {e}") from e

        logger.info(f"Added wallet {wallet_address} for user {user_id}. New: {added}")
        return added

    async def remove_wallet(self, user_id: str, wallet_address: str) -> bool:
        """
        Unlink a wallet from a user.

        Returns:
            True if the wallet was linked and has been removed
        """
        try:
            async with connect(self.db_path) as db:
                cursor = await db.execute(
                    "DELETE FROM user_wallets WHERE user_id = ? AND wallet_address = ?",
                    (user_id, wallet_address),
                )
                await db.commit()
                removed = cursor.rowcount == 1
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error removing wallet {wallet_address} for user {user_id}: {e}")
            raise RegistryError(f"Wallet registry unavailable: {e}") from e

        logger.info(f"Removed wallet {wallet_address} for user {user_id}. Existed: {removed}")
        return removed
