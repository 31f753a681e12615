from __future__ import annotations

import pytest

from position_vaults.core.adapters.models import (
    Deposit,
    FeeSet,
    LiquidityAdded,
    LiquidityRemoved,
    RewardsHarvested,
    Withdraw,
)
from position_vaults.core.engine.deployment import (
    ONE,
    USDT_USD_ANSWER,
    deploy_local_protocol,
)
from position_vaults.core.errors import (
    InsufficientBalance,
    InvalidEntry,
    InvalidInput,
    InvalidPositionState,
    Unauthorized,
    ZeroAddress,
)
from position_vaults.core.utils.units import mul_div
from position_vaults.vaults.position_manager.manager import PositionManager
from position_vaults.vaults.position_manager.types import PositionClosed, PositionOpen


def _deposit(d, label: str, amount: int) -> str:
    account = d.actor(label)
    d.fund(account, amount)
    d.vault.deposit(account, amount)
    return account


def _open(d) -> int:
    return d.vault.add_liquidity(d.manager, *d.full_range)


def _donate(d, amount0: int, amount1: int) -> None:
    donor = d.actor("trader")
    for token, amount in ((d.pool.token0, amount0), (d.pool.token1, amount1)):
        if amount:
            d.fund(donor, amount, token)
    d.pool.donate_fees(donor, amount0, amount1)


# ── construction ─────────────────────────────────────────────────────────────


def test_vault_is_wired_from_the_pool_library(local_protocol):
    vault = local_protocol.vault
    assert vault.pool is local_protocol.pool
    assert vault.oracle is local_protocol.feed
    assert vault.base_token is local_protocol.usdt
    assert vault.pair_token is local_protocol.aster
    assert vault.has_role("DEFAULT_ADMIN_ROLE", local_protocol.admin)
    assert vault.has_role("POSITION_MANAGER_ROLE", local_protocol.manager)
    assert not vault.has_role("POSITION_MANAGER_ROLE", local_protocol.admin)


def test_base_token_must_be_a_pool_token(local_protocol):
    d = local_protocol
    with pytest.raises(InvalidInput):
        PositionManager(d.chain, d.protocol, 0, d.actor("stranger"), d.admin)


# ── deposits ─────────────────────────────────────────────────────────────────


def test_deposit_while_closed_uses_oracle_price(local_protocol):
    d = local_protocol
    alice = _deposit(d, "alice", 100 * ONE)

    assert d.vault.balance_of(alice) == 100 * ONE * USDT_USD_ANSWER
    assert d.vault.total_supply == d.vault.balance_of(alice)
    assert d.vault.idle_balances() == (100 * ONE, 0)
    assert d.protocol.depositor_registry.is_registered(d.vault.address, alice)
    (event,) = d.chain.events_of(Deposit)
    assert event.depositor == alice
    assert event.amount_in == 100 * ONE
    assert event.emitter == d.vault.address


def test_deposit_rejects_zero(local_protocol):
    with pytest.raises(InvalidEntry):
        local_protocol.vault.deposit(local_protocol.actor("alice"), 0)


def test_failed_deposit_is_rolled_back(local_protocol):
    d = local_protocol
    alice = d.actor("alice")
    d.fund(alice, 10 * ONE)
    n_events = len(d.chain.events)

    with pytest.raises(InsufficientBalance):
        d.vault.deposit(alice, 11 * ONE)

    assert d.vault.balance_of(alice) == 0
    assert d.vault.total_supply == 0
    assert not d.protocol.depositor_registry.is_registered(d.vault.address, alice)
    assert len(d.chain.events) == n_events


def test_deposit_fee_goes_to_recipient():
    d = deploy_local_protocol("fees", vault_config={"fee_ppm": 10_000})
    alice = _deposit(d, "alice", 1_000 * ONE)

    assert d.usdt.balance_of(d.admin) == 10 * ONE
    assert d.vault.balance_of(alice) == 990 * ONE * USDT_USD_ANSWER
    (event,) = d.chain.events_of(Deposit)
    assert event.amount_in == 990 * ONE


def test_deposit_while_open_prices_by_vault_value(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    _open(d)
    supply = d.vault.total_supply
    value = d.vault.vault_value()

    bob = _deposit(d, "bob", 50 * ONE)

    assert d.vault.balance_of(bob) == mul_div(50 * ONE, supply, value)
    # the deposit is deployed into the open range
    assert len(d.chain.events_of(LiquidityAdded)) == 2


# ── fee configuration ────────────────────────────────────────────────────────


def test_set_fee(local_protocol):
    d = local_protocol
    treasury = d.actor("treasury")
    d.vault.set_fee(d.admin, 5_000, treasury)
    assert d.vault.fee.rate_ppm == 5_000
    assert d.vault.fee.recipient == treasury
    (event,) = d.chain.events_of(FeeSet)
    assert event.rate_ppm == 5_000


def test_set_fee_validation(local_protocol):
    d = local_protocol
    with pytest.raises(Unauthorized):
        d.vault.set_fee(d.manager, 5_000, d.manager)
    with pytest.raises(InvalidEntry):
        d.vault.set_fee(d.admin, 1_000_001, d.admin)
    with pytest.raises(ZeroAddress):
        d.vault.set_fee(d.admin, 1, "0x0000000000000000000000000000000000000000")


# ── withdrawals ──────────────────────────────────────────────────────────────


def test_withdraw_twice_reverts(local_protocol):
    d = local_protocol
    alice = _deposit(d, "alice", 100 * ONE)
    assert d.vault.withdraw(alice) == (100 * ONE, 0)
    n_events = len(d.chain.events)

    with pytest.raises(InsufficientBalance):
        d.vault.withdraw(alice)
    assert len(d.chain.events) == n_events
    assert d.usdt.balance_of(alice) == 100 * ONE


def test_withdraw_while_closed_is_proportional(local_protocol):
    d = local_protocol
    alice = _deposit(d, "alice", 100 * ONE)
    bob = _deposit(d, "bob", 300 * ONE)

    assert d.vault.withdraw(alice) == (100 * ONE, 0)
    assert d.vault.balance_of(alice) == 0
    assert d.vault.total_supply == d.vault.balance_of(bob)
    assert d.protocol.depositor_registry.users_set(d.vault.address) == {bob}
    (event,) = d.chain.events_of(Withdraw)
    assert event.shares == 100 * ONE * USDT_USD_ANSWER


def test_last_withdrawer_closes_the_position(local_protocol):
    d = local_protocol
    alice = _deposit(d, "alice", 100 * ONE)
    _open(d)
    value = d.vault.vault_value()

    base_out, pair_out = d.vault.withdraw(alice)

    assert isinstance(d.vault.state.position, PositionClosed)
    assert d.vault.idle_balances() == (0, 0)
    assert d.vault.total_supply == 0
    assert d.usdt.balance_of(alice) == base_out
    assert d.aster.balance_of(alice) == pair_out
    received = d.pool.value_in(d.usdt.address, pair_out, base_out)
    assert abs(received - value) <= 10
    assert len(d.chain.events_of(LiquidityRemoved)) == 1


def test_partial_withdraw_while_open(local_protocol):
    d = local_protocol
    alice = _deposit(d, "alice", 100 * ONE)
    _open(d)
    _deposit(d, "bob", 100 * ONE)
    liquidity = d.vault.position.liquidity
    value = d.vault.vault_value()

    base_out, pair_out = d.vault.withdraw(alice)

    assert isinstance(d.vault.state.position, PositionOpen)
    assert d.vault.position.liquidity < liquidity
    received = d.pool.value_in(d.usdt.address, pair_out, base_out)
    assert value * 49 // 100 <= received <= value * 51 // 100


def test_last_withdrawer_leaves_owed_fees_to_the_reward_split(local_protocol):
    d = local_protocol
    receiver = d.actor("receiver")
    alice = _deposit(d, "alice", 100 * ONE)
    d.vault.set_receiver_data(d.manager, receiver, 250_000)
    _open(d)
    value = d.vault.vault_value()
    _donate(d, 0, 40 * ONE)
    assert d.vault.vault_value() == value

    base_out, pair_out = d.vault.withdraw(alice)

    received = d.pool.value_in(d.usdt.address, pair_out, base_out)
    assert abs(received - value) <= 10
    assert d.vault.locked_rewards() == 40 * ONE
    (event,) = d.chain.events_of(RewardsHarvested)
    assert event.amount == 40 * ONE

    assert d.vault.distribute_rewards(d.manager) == 40 * ONE
    assert d.usdt.balance_of(receiver) == 10 * ONE
    assert d.protocol.reward_distributor.retained(d.vault.address) == 30 * ONE


def test_owed_fees_do_not_price_new_shares(local_protocol):
    d = local_protocol
    alice = _deposit(d, "alice", 100 * ONE)
    _open(d)
    _donate(d, 0, 100 * ONE)

    bob = _deposit(d, "bob", 100 * ONE)
    base_out, pair_out = d.vault.withdraw(bob)

    received = d.pool.value_in(d.usdt.address, pair_out, base_out)
    assert 99 * ONE <= received < 101 * ONE
    # the fees stay owed to the position and reach alice through the split
    assert d.vault.position.fees_owed() == (0, 100 * ONE)
    d.vault.harvest(d.manager)
    d.vault.distribute_rewards(d.manager)
    assert d.vault.claimable(alice) == 100 * ONE
    assert d.vault.claimable(bob) == 0


# ── position lifecycle ───────────────────────────────────────────────────────


def test_add_liquidity_opens_position(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 1_000 * ONE)
    lower, upper = d.full_range

    liquidity = _open(d)

    position = d.vault.state.position
    assert isinstance(position, PositionOpen)
    assert d.vault.tick_range() == (lower, upper)
    assert d.vault.position.liquidity == liquidity
    (event,) = d.chain.events_of(LiquidityAdded)
    assert (event.tick_lower, event.tick_upper, event.liquidity) == (lower, upper, liquidity)
    # only the rebalancing swap fee is lost
    assert d.vault.vault_value() >= 999 * ONE
    assert d.vault.status()["position"] == "Open"


def test_manager_operations_are_role_gated(local_protocol):
    d = local_protocol
    alice = _deposit(d, "alice", 100 * ONE)
    with pytest.raises(Unauthorized) as exc:
        d.vault.add_liquidity(alice, *d.full_range)
    assert exc.value.role == "POSITION_MANAGER_ROLE"
    # role is checked before the position state
    with pytest.raises(Unauthorized):
        d.vault.remove_liquidity(alice)
    with pytest.raises(Unauthorized):
        d.vault.harvest(alice)


def test_illegal_transitions(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    with pytest.raises(InvalidPositionState) as exc:
        d.vault.remove_liquidity(d.manager)
    assert (exc.value.expected, exc.value.actual) == ("Open", "Closed")
    with pytest.raises(InvalidPositionState):
        d.vault.update_position(d.manager, -600, 600)
    with pytest.raises(InvalidPositionState):
        d.vault.re_add_liquidity(d.manager)

    _open(d)
    with pytest.raises(InvalidPositionState) as exc:
        _open(d)
    assert (exc.value.expected, exc.value.actual) == ("Closed", "Open")


def test_add_liquidity_validation(local_protocol):
    d = local_protocol
    with pytest.raises(InvalidEntry):
        _open(d)
    _deposit(d, "alice", 100 * ONE)
    with pytest.raises(InvalidEntry):
        d.vault.add_liquidity(d.manager, 600, -600)
    with pytest.raises(InvalidEntry):
        d.vault.add_liquidity(d.manager, -605, 600)
    with pytest.raises(InvalidEntry):
        d.vault.add_liquidity(d.manager, -900_000, 600)
    assert isinstance(d.vault.state.position, PositionClosed)


def test_remove_liquidity_returns_assets_to_idle(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    _open(d)
    value = d.vault.vault_value()

    base, pair = d.vault.remove_liquidity(d.manager)

    assert isinstance(d.vault.state.position, PositionClosed)
    assert d.vault.tick_range() is None
    idle_base, idle_pair = d.vault.idle_balances()
    assert idle_base >= base
    assert idle_pair >= pair
    assert abs(d.vault.vault_value() - value) <= 10


def test_update_position_moves_the_range(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    _open(d)
    tick = d.pool.current_tick
    lower, upper = tick - tick % 10 - 1_000, tick - tick % 10 + 1_000

    liquidity = d.vault.update_position(d.manager, lower, upper)

    assert d.vault.tick_range() == (lower, upper)
    assert d.vault.position.liquidity == liquidity
    assert len(d.chain.events_of(LiquidityRemoved)) == 1


def test_update_position_is_atomic(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    _open(d)
    before = d.vault.state.position
    n_events = len(d.chain.events)

    with pytest.raises(InvalidEntry):
        d.vault.update_position(d.manager, 600, -600)

    assert d.vault.state.position == before
    assert d.pool.position(before.handle).liquidity > 0
    assert len(d.chain.events) == n_events


def test_re_add_liquidity_redeploys_collected_fees(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    _open(d)
    liquidity = d.vault.position.liquidity
    _donate(d, ONE, 2 * ONE)

    added = d.vault.re_add_liquidity(d.manager)

    assert added > 0
    assert d.vault.position.liquidity == liquidity + added
    assert d.vault.position.fees_owed() == (0, 0)


def test_add_remove_cycles_lose_bounded_dust(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 1_000 * ONE)
    initial = d.vault.vault_value()

    for _ in range(10):
        _open(d)
        d.vault.remove_liquidity(d.manager)

    assert d.vault.vault_value() >= initial * 99 // 100


# ── harvest ──────────────────────────────────────────────────────────────────


def test_harvest_locks_fees_as_rewards(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    _open(d)
    _donate(d, 5 * ONE, 5 * ONE)
    expected = 5 * ONE + d.pool.quote(d.aster.address, 5 * ONE)

    harvested = d.vault.harvest(d.manager)

    assert harvested == expected
    assert d.vault.locked_rewards() == expected
    (event,) = d.chain.events_of(RewardsHarvested)
    assert event.vault_key == d.vault.address


def test_harvest_without_fees(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    with pytest.raises(InvalidPositionState):
        d.vault.harvest(d.manager)
    _open(d)
    with pytest.raises(InvalidEntry):
        d.vault.harvest(d.manager)
    assert d.vault.locked_rewards() == 0


def test_status(local_protocol):
    d = local_protocol
    _deposit(d, "alice", 100 * ONE)
    status = d.vault.status()
    assert status == {
        "position": "Closed",
        "tick_range": None,
        "liquidity": 0,
        "total_supply": 100 * ONE * USDT_USD_ANSWER,
        "vault_value": 100 * ONE,
        "idle_base": 100 * ONE,
        "idle_pair": 0,
        "depositors": 1,
    }
