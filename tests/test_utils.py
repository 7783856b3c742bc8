"""
Shared test helpers: sample addresses, token account builders and in-memory
stand-ins for the Solana and Discord clients.
"""

from typing import Dict, List, Optional, Set, Union

from buxbot.core.structures import TokenAccount, TokenAccountSnapshot
from buxbot.exceptions import IdentityServiceError

BUX_MINT = "FMiRxSbLqRTWiBszt1DZmXd7SrscWCccY7fcXNtwWxHK"
BUX = 10 ** 9

# Well-known program ids, all valid base58 public keys
WALLET_A = "11111111111111111111111111111111"
WALLET_B = "So11111111111111111111111111111111111111112"
WALLET_C = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

ROLE_IDS = {
    "fcked_catz": "role-catz",
    "celebcatz": "role-celeb",
    "money_monsters": "role-mm",
    "money_monsters3d": "role-mm3d",
    "ai_bitbots": "role-bitbots",
    "warriors": "role-warriors",
    "squirrels": "role-squirrels",
    "rjctd_bots": "role-rjctd",
    "energy_apes": "role-apes",
    "doodle_bots": "role-doodle",
    "candy_bots": "role-candy",
    "fcked_catz_whale": "role-catz-whale",
    "money_monsters_whale": "role-mm-whale",
    "money_monsters3d_whale": "role-mm3d-whale",
    "ai_bitbots_whale": "role-bitbots-whale",
    "bux_2500": "role-bux-2500",
    "bux_10000": "role-bux-10000",
    "bux_25000": "role-bux-25000",
    "bux_50000": "role-bux-50000",
}


def nft(mint: str, owner: str = WALLET_A) -> TokenAccount:
    """A single-unit token account, i.e. an NFT."""
    return TokenAccount(mint=mint, owner=owner, amount=1, decimals=0)


def bux(whole_amount: int, owner: str = WALLET_A) -> TokenAccount:
    return TokenAccount(mint=BUX_MINT, owner=owner, amount=whole_amount * BUX, decimals=9)


def mints(prefix: str, count: int) -> List[str]:
    return [f"{prefix}{i}" for i in range(count)]


class FakeHoldingsReader:
    """
    In-memory stand-in for SolanaHoldingsReader.

    Each wallet maps to a list of token accounts, or to a list of outcomes
    consumed one per call, where an outcome is an exception to raise or a list
    of accounts to return.
    """

    def __init__(self, holdings: Optional[Dict[str, list]] = None):
        self.holdings = holdings or {}
        self.outcomes: Dict[str, List[Union[Exception, List[TokenAccount]]]] = {}
        self.calls: List[str] = []
        self.closed = False

    def fail(self, wallet: str, *outcomes: Union[Exception, List[TokenAccount]]) -> None:
        self.outcomes[wallet] = list(outcomes)

    async def get_token_accounts(self, wallet: str) -> TokenAccountSnapshot:
        self.calls.append(wallet)
        queued = self.outcomes.get(wallet)
        if queued:
            outcome = queued.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return TokenAccountSnapshot(wallet=wallet, accounts=list(outcome))
        return TokenAccountSnapshot(wallet=wallet, accounts=list(self.holdings.get(wallet, [])))

    async def close(self) -> None:
        self.closed = True


class FakeRoleClient:
    """In-memory stand-in for DiscordRoleClient that records every call."""

    def __init__(self, live_roles: Optional[Dict[str, Set[str]]] = None):
        self.live_roles: Dict[str, Set[str]] = live_roles or {}
        self.calls: List[tuple] = []
        self.failing_roles: Set[str] = set()
        self.read_error: Optional[Exception] = None

    async def get_member_roles(self, user_id: str) -> Set[str]:
        self.calls.append(("get", user_id))
        if self.read_error is not None:
            raise self.read_error
        return set(self.live_roles.get(user_id, set()))

    async def add_role(self, user_id: str, role_id: str, reason: Optional[str] = None) -> None:
        self.calls.append(("add", user_id, role_id))
        if role_id in self.failing_roles:
            raise IdentityServiceError("Missing Permissions", status_code=403, role_id=role_id)
        self.live_roles.setdefault(user_id, set()).add(role_id)

    async def remove_role(self, user_id: str, role_id: str, reason: Optional[str] = None) -> None:
        self.calls.append(("remove", user_id, role_id))
        if role_id in self.failing_roles:
            raise IdentityServiceError("Missing Permissions", status_code=403, role_id=role_id)
        self.live_roles.get(user_id, set()).discard(role_id)

    @property
    def mutations(self) -> List[tuple]:
        return [call for call in self.calls if call[0] != "get"]


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
