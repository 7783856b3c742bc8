#!/usr/bin/env python3
"""
Solana Holdings Reader

Reads the SPL token accounts owned by a wallet through the Solana JSON-RPC API.
This client performs a single request per call and never retries; retry policy
belongs to the caller.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from solders.pubkey import Pubkey

from buxbot.core.structures import TokenAccount, TokenAccountSnapshot
from buxbot.exceptions import ChainQueryError, ChainRateLimitError, InvalidAddressError

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# JSON-RPC error codes providers use for throttling
RATE_LIMIT_RPC_CODES = {429, -32429}


def is_valid_wallet_address(address: str) -> bool:
    """Check if an address parses as a Solana public key."""
    if not isinstance(address, str) or not address:
        return False
    try:
        Pubkey.from_string(address)
        return True
    except Exception:
        return False


def validate_wallet_address(address: str) -> str:
    """Return `address` unchanged, or raise InvalidAddressError."""
    if not is_valid_wallet_address(address):
        raise InvalidAddressError(address)
    return address


class SolanaHoldingsReader:
    """
    Client for the ledger's token account enumeration endpoint.
    """

    def __init__(
        self,
        rpc_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not rpc_url:
            raise ValueError("RPC URL is required for SolanaHoldingsReader.")
        self.rpc_url = rpc_url
        self.api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout=timeout, connect=5.0),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        )
        self._request_id = 0

    async def __aenter__(self) -> "SolanaHoldingsReader":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _get_headers(self) -> Dict[str, str]:
        headers = {"content-type": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def _build_payload(self, wallet: str) -> Dict[str, Any]:
        self._request_id += 1
        return {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": "getTokenAccountsByOwner",
            "params": [
                wallet,
                {"programId": TOKEN_PROGRAM_ID},
                {"encoding": "jsonParsed"},
            ],
        }

    async def get_token_accounts(self, wallet: str) -> TokenAccountSnapshot:
        """
        Fetch every SPL token account owned by `wallet`.

        Args:
            wallet: Base58 Solana wallet address

        Returns:
            Snapshot of (mint, owner, amount, decimals) for each account

        Raises:
            InvalidAddressError: The wallet does not parse as a public key
            ChainRateLimitError: The ledger answered "too many requests"
            ChainQueryError: Any other transport, HTTP or payload failure
        """
        validate_wallet_address(wallet)

        try:
            response = await self._client.post(
                self.rpc_url, json=self._build_payload(wallet), headers=self._get_headers()
            )
        except httpx.TimeoutException as e:
            raise ChainQueryError(f"Timeout querying token accounts: {e}", wallet=wallet) from e
        except httpx.RequestError as e:
            raise ChainQueryError(f"Request error querying token accounts: {e}", wallet=wallet) from e

        if response.status_code == 429:
            logger.warning(f"Rate limited by Solana RPC while reading wallet {wallet}")
            raise ChainRateLimitError("Too many requests", wallet=wallet)
        if response.status_code != 200:
            raise ChainQueryError(
                f"HTTP {response.status_code} from Solana RPC: {response.text[:256]}", wallet=wallet
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ChainQueryError(f"Invalid JSON from Solana RPC: {e}", wallet=wallet) from e

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = str(error.get("message", error)) if isinstance(error, dict) else str(error)
            if code in RATE_LIMIT_RPC_CODES or "too many requests" in message.lower():
                logger.warning(f"Rate limited by Solana RPC while reading wallet {wallet}: {message}")
                raise ChainRateLimitError(message, wallet=wallet)
            raise ChainQueryError(f"RPC error {code}: {message}", wallet=wallet)

        accounts = self._parse_accounts(wallet, data)
        logger.debug(f"Read {len(accounts)} token accounts for wallet {wallet}")
        return TokenAccountSnapshot(wallet=wallet, accounts=accounts, fetched_at=time.time())

    def _parse_accounts(self, wallet: str, data: Dict[str, Any]) -> List[TokenAccount]:
        try:
            value = data["result"]["value"]
            accounts = []
            for entry in value:
                info = entry["account"]["data"]["parsed"]["info"]
                token_amount = info["tokenAmount"]
                accounts.append(
                    TokenAccount(
                        mint=info["mint"],
                        owner=info.get("owner", wallet),
                        amount=int(token_amount["amount"]),
                        decimals=int(token_amount.get("decimals", 0)),
                    )
                )
            return accounts
        except (KeyError, TypeError, ValueError) as e:
            raise ChainQueryError(f"Malformed token account payload: {e}", wallet=wallet) from e
