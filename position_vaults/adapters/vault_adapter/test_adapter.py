from __future__ import annotations

import pytest

from position_vaults.adapters.vault_adapter.adapter import VaultAdapter
from position_vaults.core.engine.deployment import ONE, USDT_USD_ANSWER


@pytest.fixture
def adapter(local_protocol) -> VaultAdapter:
    return VaultAdapter(local_protocol.vault)


def test_deposit_returns_status_tuple(local_protocol, adapter):
    alice = local_protocol.actor("alice")
    local_protocol.fund(alice, 100 * ONE)

    ok, shares = adapter.deposit(alice, 100 * ONE)

    assert ok is True
    assert shares == 100 * ONE * USDT_USD_ANSWER
    assert adapter.get_status()["depositors"] == 1


def test_rejected_operation_returns_message(local_protocol, adapter):
    ok, message = adapter.withdraw(local_protocol.actor("bob"))
    assert ok is False
    assert "InsufficientBalance" in message


def test_manager_operations_check_the_role(local_protocol, adapter):
    alice = local_protocol.actor("alice")
    local_protocol.fund(alice, 100 * ONE)
    adapter.deposit(alice, 100 * ONE)
    lower, upper = local_protocol.full_range

    ok, message = adapter.add_liquidity(alice, lower, upper)
    assert ok is False
    assert "Unauthorized" in message

    ok, liquidity = adapter.add_liquidity(local_protocol.manager, lower, upper)
    assert ok is True
    assert liquidity > 0
    assert adapter.get_status()["position"] == "Open"


def test_set_exclusive_manager_data_goes_through_the_protocol(local_protocol, adapter):
    operator = local_protocol.actor("operator")
    ok, _ = adapter.set_exclusive_manager_data(local_protocol.admin, operator, 100_000)
    assert ok is True
    data = local_protocol.protocol.reward_distributor.exclusive_manager_data(
        local_protocol.vault.address
    )
    assert data.manager == operator
    assert data.percentage == 100_000


def test_reward_flow_through_the_adapter(local_protocol, adapter):
    alice = local_protocol.actor("alice")
    sponsor = local_protocol.actor("sponsor")
    local_protocol.fund(alice, 10 * ONE)
    local_protocol.fund(sponsor, 50 * ONE)
    adapter.deposit(alice, 10 * ONE)

    assert adapter.deposit_rewards(sponsor, 50 * ONE) == (True, None)
    assert adapter.distribute_rewards(local_protocol.manager) == (True, 50 * ONE)
    assert adapter.get_claimable(alice) == 50 * ONE
    assert adapter.collect_rewards(alice) == (True, 50 * ONE)
    assert adapter.collect_rewards(alice)[0] is False
