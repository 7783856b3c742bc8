"""
Custom Exception Classes

This module defines custom exceptions for the BUX bot so callers can tell
per-wallet chain failures, identity service failures and store failures apart.
"""

from typing import Optional


class BuxBotBaseException(Exception):
    """Base exception for the BUX bot application."""

    pass


class ConfigurationError(BuxBotBaseException):
    """Raised for configuration problems."""

    pass


class ChainQueryError(BuxBotBaseException):
    """Raised when a Solana ledger query fails."""

    retryable = False

    def __init__(self, message: str, wallet: Optional[str] = None):
        self.wallet = wallet
        if wallet:
            super().__init__(f"{message} (wallet {wallet})")
        else:
            super().__init__(message)


class InvalidAddressError(ChainQueryError):
    """Raised when a wallet string does not parse as a Solana public key."""

    def __init__(self, wallet: str):
        super().__init__("Invalid wallet address", wallet=wallet)


class ChainRateLimitError(ChainQueryError):
    """Raised when the ledger service answers with 'too many requests'."""

    retryable = True


class IdentityServiceError(BuxBotBaseException):
    """Raised for errors talking to the Discord API."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        role_id: Optional[str] = None,
    ):
        self.status_code = status_code
        self.role_id = role_id
        details = message
        if status_code is not None:
            details = f"{details} (status {status_code})"
        super().__init__(details)


class RegistryError(BuxBotBaseException):
    """Raised when the wallet registry store is unavailable."""

    pass


class AccrualStoreError(BuxBotBaseException):
    """Raised when the accrual ledger store is unavailable."""

    pass


class AccrualRaceError(AccrualStoreError):
    """Raised when a conditional ledger update keeps losing to concurrent writers."""

    def __init__(self, user_id: str, attempts: int):
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(
            f"Accrual update for user {user_id} lost to concurrent writers "
            f"after {attempts} attempts"
        )
