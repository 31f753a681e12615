from __future__ import annotations

from decimal import Decimal

import pytest

from position_vaults.adapters.balance_adapter.adapter import ERC20Token
from position_vaults.core.adapters.models import Transfer
from position_vaults.core.chain import LocalChain
from position_vaults.core.constants import ZERO_ADDRESS
from position_vaults.core.errors import InsufficientBalance, InvalidEntry, ZeroAddress


@pytest.fixture
def token() -> ERC20Token:
    return ERC20Token(LocalChain("balance"), "USDT", decimals=6)


def _addr(token: ERC20Token, label: str) -> str:
    return token.chain.new_address(label)


def test_mint_credits_balance_and_supply(token):
    alice = _addr(token, "alice")
    token.mint(alice, 500)
    assert token.balance_of(alice) == 500
    assert token.balance_of(alice.lower()) == 500
    assert token.total_supply == 500
    (event,) = token.chain.events_of(Transfer)
    assert event.sender == ZERO_ADDRESS
    assert event.amount == 500


def test_mint_rejects_zero_amount_and_zero_address(token):
    with pytest.raises(InvalidEntry):
        token.mint(_addr(token, "alice"), 0)
    with pytest.raises(ZeroAddress):
        token.mint(ZERO_ADDRESS, 1)


def test_transfer_moves_funds_and_drops_empty_entries(token):
    alice, bob = _addr(token, "alice"), _addr(token, "bob")
    token.mint(alice, 100)
    token.transfer(alice, bob, 100)
    assert token.balance_of(bob) == 100
    assert alice not in token.state.balances
    assert token.total_supply == 100


def test_transfer_of_zero_is_a_no_op(token):
    alice, bob = _addr(token, "alice"), _addr(token, "bob")
    n_events = len(token.chain.events)
    token.transfer(alice, bob, 0)
    assert len(token.chain.events) == n_events


def test_transfer_insufficient_balance(token):
    alice, bob = _addr(token, "alice"), _addr(token, "bob")
    token.mint(alice, 10)
    with pytest.raises(InsufficientBalance):
        token.transfer(alice, bob, 11)
    with pytest.raises(ZeroAddress):
        token.transfer(alice, ZERO_ADDRESS, 1)
    assert token.balance_of(alice) == 10


def test_unit_conversion_uses_decimals(token):
    assert token.to_raw("1.25") == 1_250_000
    assert token.from_raw(1_250_000) == Decimal("1.25")
