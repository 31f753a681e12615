from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from eth_utils import to_checksum_address

from position_vaults.core.adapters.BaseAdapter import BaseAdapter
from position_vaults.core.adapters.models import Transfer
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.constants import ZERO_ADDRESS
from position_vaults.core.constants.base import DEFAULT_TOKEN_DECIMALS
from position_vaults.core.errors import InsufficientBalance, InvalidEntry, ZeroAddress
from position_vaults.core.utils.units import from_erc20_raw, to_erc20_raw


@dataclass
class TokenState:
    balances: dict[str, int] = field(default_factory=dict)
    total_supply: int = 0


class ERC20Token(BaseAdapter):
    """Fungible token ledger (base asset, pair asset, reward payout asset)."""

    adapter_type: str = "BALANCE"

    def __init__(
        self,
        chain: LocalChain,
        symbol: str,
        decimals: int = DEFAULT_TOKEN_DECIMALS,
        config: dict[str, Any] | None = None,
    ):
        super().__init__(f"token:{symbol}", chain, config)
        self.symbol = symbol
        self.decimals = int(decimals)
        self.state = TokenState()

    def balance_of(self, account: str) -> int:
        return self.state.balances.get(to_checksum_address(account), 0)

    @property
    def total_supply(self) -> int:
        return self.state.total_supply

    def to_raw(self, amount_tokens: str | int | float | Decimal) -> int:
        return to_erc20_raw(amount_tokens, self.decimals)

    def from_raw(self, amount: int) -> Decimal:
        return from_erc20_raw(amount, self.decimals)

    @atomic
    def mint(self, to: str, amount: int) -> None:
        if amount <= 0:
            raise InvalidEntry(amount=amount)
        if to.lower() == ZERO_ADDRESS:
            raise ZeroAddress(to=to)
        to = to_checksum_address(to)
        self.state.balances[to] = self.state.balances.get(to, 0) + amount
        self.state.total_supply += amount
        self.emit(Transfer(token=self.symbol, sender=ZERO_ADDRESS, to=to, amount=amount))

    @atomic
    def transfer(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidEntry(amount=amount)
        if amount == 0:
            return
        if to.lower() == ZERO_ADDRESS:
            raise ZeroAddress(to=to)
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        available = self.state.balances.get(sender, 0)
        if available < amount:
            raise InsufficientBalance(
                account=sender, token=self.symbol, needed=amount, available=available
            )

        remaining = available - amount
        if remaining:
            self.state.balances[sender] = remaining
        else:
            del self.state.balances[sender]
        self.state.balances[to] = self.state.balances.get(to, 0) + amount
        self.emit(Transfer(token=self.symbol, sender=sender, to=to, amount=amount))
