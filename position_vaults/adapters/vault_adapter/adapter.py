from __future__ import annotations

from typing import Any

from loguru import logger

from position_vaults.core.adapters.decorators import status_tuple
from position_vaults.vaults.position_manager.manager import PositionManager


class VaultAdapter:
    """Scripting façade over one PositionManager.

    Every operation returns ``(True, result)`` or ``(False, error_message)``
    instead of raising, so scenario runners can record a rejected step and
    keep going. State is untouched by a rejected step.
    """

    adapter_type = "VAULT"

    def __init__(self, vault: PositionManager, config: dict[str, Any] | None = None):
        self.vault = vault
        self.protocol = vault.protocol
        self.config = config or {}
        self.logger = logger.bind(adapter=self.__class__.__name__, vault=vault.address)

    # ── depositors ───────────────────────────────────────────────────────────

    @status_tuple
    def deposit(self, account: str, amount: int) -> int:
        return self.vault.deposit(account, amount)

    @status_tuple
    def withdraw(self, account: str) -> tuple[int, int]:
        return self.vault.withdraw(account)

    @status_tuple
    def collect_rewards(self, account: str) -> int:
        return self.vault.collect_rewards(account)

    @status_tuple
    def deposit_rewards(self, account: str, amount: int) -> None:
        return self.vault.deposit_rewards(account, amount)

    # ── manager ──────────────────────────────────────────────────────────────

    @status_tuple
    def add_liquidity(self, account: str, tick_lower: int, tick_upper: int) -> int:
        return self.vault.add_liquidity(account, tick_lower, tick_upper)

    @status_tuple
    def remove_liquidity(self, account: str) -> tuple[int, int]:
        return self.vault.remove_liquidity(account)

    @status_tuple
    def update_position(self, account: str, tick_lower: int, tick_upper: int) -> int:
        return self.vault.update_position(account, tick_lower, tick_upper)

    @status_tuple
    def re_add_liquidity(self, account: str) -> int:
        return self.vault.re_add_liquidity(account)

    @status_tuple
    def harvest(self, account: str) -> int:
        return self.vault.harvest(account)

    @status_tuple
    def distribute_rewards(self, account: str, min_acceptable: int = 0) -> int:
        return self.vault.distribute_rewards(account, min_acceptable)

    @status_tuple
    def set_receiver_data(
        self,
        account: str,
        receiver: str,
        percentage: int,
        payout_token: str | None = None,
    ) -> None:
        return self.vault.set_receiver_data(account, receiver, percentage, payout_token)

    # ── admin ────────────────────────────────────────────────────────────────

    @status_tuple
    def set_fee(self, account: str, rate_ppm: int, recipient: str) -> None:
        return self.vault.set_fee(account, rate_ppm, recipient)

    @status_tuple
    def set_exclusive_manager_data(self, account: str, manager: str, percentage: int) -> None:
        return self.protocol.set_exclusive_manager_data(
            account, self.vault.address, manager, percentage
        )

    # ── reads ────────────────────────────────────────────────────────────────

    def get_status(self) -> dict[str, Any]:
        return dict(self.vault.status())

    def get_claimable(self, account: str) -> int:
        return self.vault.claimable(account)
