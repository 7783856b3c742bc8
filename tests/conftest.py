"""
Global test configuration and fixtures.
"""

import pytest
import pytest_asyncio

from buxbot.config import RoleConfig
from buxbot.core.catalog import CollectionKey
from buxbot.core.membership import MembershipRegistry
from buxbot.storage.accrual_ledger import AccrualLedger
from buxbot.storage.wallet_registry import WalletRegistry
from tests.test_utils import ROLE_IDS, FakeHoldingsReader, FakeRoleClient, mints


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "buxbot_test.db")


@pytest_asyncio.fixture
async def wallet_registry(db_path) -> WalletRegistry:
    registry = WalletRegistry(db_path)
    await registry.initialize()
    return registry


@pytest_asyncio.fixture
async def accrual_ledger(db_path) -> AccrualLedger:
    ledger = AccrualLedger(db_path)
    await ledger.initialize()
    return ledger


@pytest.fixture
def membership(tmp_path) -> MembershipRegistry:
    """Registry with small in-memory hashlists."""
    registry = MembershipRegistry(tmp_path / "hashlists")
    registry.reload({
        CollectionKey.FCKED_CATZ: mints("catz-", 30),
        CollectionKey.CELEBCATZ: mints("celeb-", 5),
        CollectionKey.MONEY_MONSTERS: mints("mm-", 30),
        CollectionKey.MONEY_MONSTERS_3D: mints("mm3d-", 30),
        CollectionKey.AI_BITBOTS: mints("bitbot-", 15),
        CollectionKey.WARRIORS: mints("warrior-", 5),
        CollectionKey.CANDY_BOTS: mints("candy-", 5),
    })
    return registry


@pytest.fixture
def role_config() -> RoleConfig:
    return RoleConfig(**ROLE_IDS)


@pytest.fixture
def holdings_reader() -> FakeHoldingsReader:
    return FakeHoldingsReader()


@pytest.fixture
def role_client() -> FakeRoleClient:
    return FakeRoleClient()
