"""
Test target role derivation and role reconciliation.
"""

import pytest

from buxbot.config import RoleConfig
from buxbot.core.catalog import CollectionKey
from buxbot.core.roles import RoleReconciler
from buxbot.core.structures import HoldingsSnapshot
from buxbot.exceptions import IdentityServiceError
from tests.test_utils import BUX, ROLE_IDS


def holdings(balance_whole: int = 0, **counts) -> HoldingsSnapshot:
    snapshot = HoldingsSnapshot(user_id="u1", fungible_balance=balance_whole * BUX)
    for name, count in counts.items():
        snapshot.per_collection[CollectionKey(name)] = {f"{name}-{i}" for i in range(count)}
    return snapshot


@pytest.fixture
def reconciler(role_client, role_config):
    return RoleReconciler(role_client, role_config)


class TestTargetRoles:

    def test_no_holdings_no_roles(self, reconciler):
        assert reconciler.target_roles(holdings()) == set()

    def test_holder_roles(self, reconciler):
        target = reconciler.target_roles(holdings(fcked_catz=1, warriors=2))
        assert target == {"role-catz", "role-warriors"}

    def test_whale_threshold_inclusive(self, reconciler):
        assert "role-catz-whale" not in reconciler.target_roles(holdings(fcked_catz=24))
        assert reconciler.target_roles(holdings(fcked_catz=25)) == {"role-catz", "role-catz-whale"}
        assert "role-bitbots-whale" in reconciler.target_roles(holdings(ai_bitbots=10))

    def test_collection_without_whale_tier(self, reconciler):
        assert reconciler.target_roles(holdings(celebcatz=100)) == {"role-celeb"}

    @pytest.mark.parametrize("balance, expected", [
        (0, set()),
        (2499, set()),
        (2500, {"role-bux-2500"}),
        (12000, {"role-bux-2500", "role-bux-10000"}),
        (25000, {"role-bux-2500", "role-bux-10000", "role-bux-25000"}),
        (1_000_000, {"role-bux-2500", "role-bux-10000", "role-bux-25000", "role-bux-50000"}),
    ])
    def test_bux_tiers_cumulative(self, reconciler, balance, expected):
        assert reconciler.target_roles(holdings(balance)) == expected

    def test_tier_threshold_in_atomic_units(self, reconciler):
        snapshot = HoldingsSnapshot(user_id="u1", fungible_balance=2500 * BUX - 1)
        assert reconciler.target_roles(snapshot) == set()

    def test_tiers_monotonic_in_balance(self, reconciler):
        previous = set()
        for balance in range(0, 60001, 500):
            current = reconciler.target_roles(holdings(balance))
            assert previous <= current
            previous = current

    def test_unconfigured_roles_skipped(self, role_client):
        reconciler = RoleReconciler(role_client, RoleConfig(fcked_catz="role-catz"))
        target = reconciler.target_roles(holdings(50000, fcked_catz=30, celebcatz=1))
        assert target == {"role-catz"}

    def test_managed_roles(self, reconciler):
        assert reconciler.managed_roles() == set(ROLE_IDS.values())


class TestReconcile:

    async def test_adds_missing_roles(self, reconciler, role_client):
        delta = await reconciler.reconcile("u1", holdings(3000, fcked_catz=2))

        assert delta.added == {"role-catz", "role-bux-2500"}
        assert delta.removed == set()
        assert role_client.live_roles["u1"] == {"role-catz", "role-bux-2500"}

    async def test_noop_makes_no_mutations(self, reconciler, role_client):
        role_client.live_roles["u1"] = {"role-catz", "unmanaged"}

        delta = await reconciler.reconcile("u1", holdings(fcked_catz=1))

        assert delta.is_noop
        assert role_client.mutations == []

    async def test_unmanaged_roles_untouched(self, reconciler, role_client):
        role_client.live_roles["u1"] = {"role-catz", "moderator", "role-bux-50000"}

        delta = await reconciler.reconcile("u1", holdings())

        assert delta.removed == {"role-catz", "role-bux-50000"}
        assert role_client.live_roles["u1"] == {"moderator"}

    async def test_removals_before_additions(self, reconciler, role_client):
        role_client.live_roles["u1"] = {"role-celeb"}

        await reconciler.reconcile("u1", holdings(fcked_catz=1))

        assert role_client.mutations == [
            ("remove", "u1", "role-celeb"),
            ("add", "u1", "role-catz"),
        ]

    async def test_one_call_per_role(self, reconciler, role_client):
        await reconciler.reconcile("u1", holdings(50000, fcked_catz=25))

        added = [call[2] for call in role_client.mutations if call[0] == "add"]
        assert len(added) == len(set(added)) == 6

    async def test_failed_mutation_does_not_stop_others(self, reconciler, role_client):
        role_client.live_roles["u1"] = {"role-celeb", "role-mm"}
        role_client.failing_roles = {"role-celeb", "role-catz"}

        delta = await reconciler.reconcile("u1", holdings(3000, fcked_catz=1))

        assert delta.failed_removals == {"role-celeb"}
        assert delta.failed_additions == {"role-catz"}
        assert delta.has_failures
        assert role_client.live_roles["u1"] == {"role-celeb", "role-bux-2500"}

    async def test_read_failure_propagates(self, reconciler, role_client):
        role_client.read_error = IdentityServiceError("Unknown Member", status_code=404)

        with pytest.raises(IdentityServiceError):
            await reconciler.reconcile("u1", holdings(fcked_catz=1))

        assert role_client.mutations == []
