"""
BUX Bot - holdings and role engine for the BUXDAO Discord community.

This package provides the backend consumed by the bot's command and HTTP handlers:
- Solana wallet linking per Discord user
- NFT collection and BUX balance aggregation across linked wallets
- Holder, whale and BUX tier role reconciliation
- Daily BUX reward accrual
"""

__version__ = "0.1.0"
__author__ = "BUXDAO Team"
