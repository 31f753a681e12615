from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from eth_utils import to_checksum_address

from position_vaults.adapters.locker_adapter.adapter import LockerAdapter
from position_vaults.adapters.pool_library_adapter.adapter import PoolLibraryAdapter
from position_vaults.core.adapters.models import LockerUpdated, PoolLibraryUpdated
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.constants import ROLE_ADMIN, ZERO_ADDRESS
from position_vaults.core.errors import InvalidInput, ZeroAddress
from position_vaults.core.vaults import Component, require_role
from position_vaults.vaults.position_manager.manager import PositionManager

from .claim_ledger import ClaimLedger
from .depositor_registry import DepositorRegistry
from .reward_distributor import RewardDistributor
from .types import ProtocolState

if TYPE_CHECKING:
    from position_vaults.adapters.balance_adapter.adapter import ERC20Token


class ProtocolManager(Component):
    """Hub shared by every vault: depositor registry, distributor, claim ledger.

    ``reward_token`` is the asset rewards are locked, split and claimed in; a
    vault's base asset must be that token. The locker must be owned by the
    distributor, which is why it is wired after construction with
    ``set_locker``.
    """

    def __init__(
        self,
        chain: LocalChain,
        admin: str,
        reward_token: ERC20Token,
        pool_library: PoolLibraryAdapter,
        name: str = "protocol_manager",
        config: dict[str, Any] | None = None,
    ):
        super().__init__(chain, name, config)
        self.reward_token = reward_token
        self.state = ProtocolState(
            roles={ROLE_ADMIN: {to_checksum_address(admin)}},
            pool_library=pool_library.address,
        )
        self.depositor_registry = DepositorRegistry(chain, self, f"{name}:registry")
        self.claim_ledger = ClaimLedger(chain, self, f"{name}:claim_ledger")
        self.reward_distributor = RewardDistributor(chain, self, f"{name}:distributor")

    # ── collaborators ────────────────────────────────────────────────────────

    @property
    def locker(self) -> LockerAdapter:
        return self.chain.resolve(self.state.locker)

    @property
    def pool_library(self) -> PoolLibraryAdapter:
        return self.chain.resolve(self.state.pool_library)

    # ── vaults ───────────────────────────────────────────────────────────────

    def is_vault(self, address: str) -> bool:
        return to_checksum_address(address) in self.state.vaults

    def vault(self, vault_key: str) -> PositionManager:
        vault_key = to_checksum_address(vault_key)
        if vault_key not in self.state.vaults:
            raise InvalidInput("vault_key", vault_key)
        return self.chain.resolve(vault_key)

    @property
    def vaults(self) -> list[str]:
        return list(self.state.vaults)

    @atomic
    @require_role(ROLE_ADMIN)
    def create_vault(
        self,
        caller: str,
        pool_id: int,
        managers: Iterable[str] = (),
        *,
        admin: str | None = None,
        name: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> PositionManager:
        vault = PositionManager(
            self.chain,
            self,
            pool_id,
            self.reward_token.address,
            admin or caller,
            managers,
            name=name or f"position_manager:{pool_id}:{self.chain.nonce}",
            config=config,
        )
        self.state.vaults[vault.address] = pool_id
        self.logger.info(f"Vault {vault.address} created for pool {pool_id}")
        return vault

    # ── admin ────────────────────────────────────────────────────────────────

    @atomic
    @require_role(ROLE_ADMIN)
    def set_locker(self, caller: str, locker: str) -> None:
        if locker.lower() == ZERO_ADDRESS:
            raise ZeroAddress(locker=locker)
        component = self.chain.resolve(locker)
        if not isinstance(component, LockerAdapter):
            raise InvalidInput("locker", locker)
        if component.locked_token.address != self.reward_token.address:
            raise InvalidInput("locker.locked_token", component.locked_token.symbol)
        if component.state.owner != self.reward_distributor.address:
            raise InvalidInput("locker.owner", component.state.owner)

        self.state.locker = component.address
        self.emit(LockerUpdated(locker=component.address))

    @atomic
    @require_role(ROLE_ADMIN)
    def set_pool_library(self, caller: str, pool_library: str) -> None:
        if pool_library.lower() == ZERO_ADDRESS:
            raise ZeroAddress(pool_library=pool_library)
        component = self.chain.resolve(pool_library)
        if not isinstance(component, PoolLibraryAdapter):
            raise InvalidInput("pool_library", pool_library)

        self.state.pool_library = component.address
        self.emit(PoolLibraryUpdated(pool_library=component.address))

    # ── forwarding ───────────────────────────────────────────────────────────

    def collect_rewards(self, caller: str, vault_key: str) -> int:
        return self.claim_ledger.collect_rewards(caller, vault_key)

    def set_exclusive_manager_data(
        self, caller: str, vault_key: str, manager: str, percentage: int
    ) -> None:
        self.reward_distributor.set_exclusive_manager_data(
            caller, vault_key, manager, percentage
        )

    def distribute_rewards(self, vault_key: str, min_acceptable: int = 0) -> int:
        return self.reward_distributor.distribute_rewards(vault_key, min_acceptable)
