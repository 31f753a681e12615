from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from eth_utils import to_checksum_address

from position_vaults.core.adapters.BaseAdapter import BaseAdapter, require_owner
from position_vaults.core.adapters.models import TokensDeposited, TokensReleased
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.errors import InsufficientBalance, InvalidEntry, ZeroAddress

if TYPE_CHECKING:
    from position_vaults.adapters.balance_adapter.adapter import ERC20Token


@dataclass
class LockerState:
    owner: str
    balances_locked: dict[str, int] = field(default_factory=dict)


class LockerAdapter(BaseAdapter):
    """Token lock used as the reward sink.

    Anyone can lock ``locked_token`` under their own address; only the owner
    (the protocol's reward distributor) can release a locked balance.
    """

    adapter_type: str = "LOCKER"

    def __init__(
        self,
        chain: LocalChain,
        locked_token: ERC20Token,
        owner: str,
        name: str = "locker",
        config: dict[str, Any] | None = None,
    ):
        super().__init__(name, chain, config)
        self.locked_token = locked_token
        self.state = LockerState(owner=to_checksum_address(owner))

    def balance_locked(self, account: str) -> int:
        return self.state.balances_locked.get(to_checksum_address(account), 0)

    @atomic
    def deposit(self, sender: str, amount: int, account: str | None = None) -> None:
        """Lock ``amount`` pulled from ``sender`` under ``account`` (defaults to the sender)."""
        if amount <= 0:
            raise InvalidEntry(amount=amount)
        account = to_checksum_address(account or sender)
        if not int(account, 16):
            raise ZeroAddress(account=account)

        self.state.balances_locked[account] = self.balance_locked(account) + amount
        self.locked_token.transfer(sender, self.address, amount)
        self.emit(TokensDeposited(account=account, amount=amount))

    @atomic
    @require_owner
    def release(self, caller: str, account: str, amount: int, to: str) -> None:
        if amount <= 0:
            raise InvalidEntry(amount=amount)
        account = to_checksum_address(account)
        locked = self.balance_locked(account)
        if locked < amount:
            raise InsufficientBalance(account=account, needed=amount, available=locked)

        if locked == amount:
            del self.state.balances_locked[account]
        else:
            self.state.balances_locked[account] = locked - amount
        self.locked_token.transfer(self.address, to, amount)
        self.emit(TokensReleased(account=account, to=to, amount=amount))

    @atomic
    @require_owner
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        if not int(new_owner, 16):
            raise ZeroAddress(new_owner=new_owner)
        self.state.owner = to_checksum_address(new_owner)
        self.logger.info(f"Locker ownership -> {self.state.owner}")
