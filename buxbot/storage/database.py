import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

# Seconds to wait on a locked database before giving up
BUSY_TIMEOUT = 10.0


def connect(db_path: str) -> aiosqlite.Connection:
    return aiosqlite.connect(db_path, timeout=BUSY_TIMEOUT)


async def initialize_database(db_path: str) -> None:
    """Create the wallet registry and accrual ledger tables if they do not exist."""
    parent = Path(db_path).parent
    if str(parent) not in ("", "."):
        parent.mkdir(parents=True, exist_ok=True)

    async with connect(db_path) as db:
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS user_wallets (
                user_id TEXT NOT NULL,
                wallet_address TEXT NOT NULL,
                linked_at REAL NOT NULL,
                PRIMARY KEY (user_id, wallet_address)
            )
            """
        )
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS accrual_ledger (
                user_id TEXT PRIMARY KEY,
                last_accrual_timestamp REAL NOT NULL,
                claimable_balance INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        await db.commit()
    logger.info(f"Database initialized at {db_path}")
