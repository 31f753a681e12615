from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from eth_utils import to_checksum_address
from pydantic import BaseModel, field_validator

from position_vaults.core.adapters.BaseAdapter import BaseAdapter, require_owner
from position_vaults.core.adapters.models import PoolAdded, PoolUpdated
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.constants import ZERO_ADDRESS
from position_vaults.core.errors import InvalidInput, InvalidPoolId


class PoolData(BaseModel):
    main_pool: str
    token0_pool: str = ZERO_ADDRESS
    token1_pool: str = ZERO_ADDRESS
    chainlink_data_feed: str
    chainlink_time_interval: int

    @field_validator("main_pool", "token0_pool", "token1_pool", "chainlink_data_feed")
    @classmethod
    def checksum(cls, v: str) -> str:
        return to_checksum_address(v)


def _is_zero(address: str) -> bool:
    return address.lower() == ZERO_ADDRESS


def validate_pool_data(data: PoolData) -> None:
    if _is_zero(data.main_pool):
        raise InvalidInput("main_pool", data.main_pool)
    if _is_zero(data.chainlink_data_feed):
        raise InvalidInput("chainlink_data_feed", data.chainlink_data_feed)
    if data.chainlink_time_interval <= 0:
        raise InvalidInput("chainlink_time_interval", data.chainlink_time_interval)
    # the quote route needs at least one hop
    if _is_zero(data.token0_pool) and _is_zero(data.token1_pool):
        raise InvalidInput("token_pools", (data.token0_pool, data.token1_pool))


@dataclass
class PoolLibraryState:
    owner: str
    pools: list[PoolData] = field(default_factory=list)


class PoolLibraryAdapter(BaseAdapter):
    adapter_type: str = "POOL_LIBRARY"

    def __init__(
        self,
        chain: LocalChain,
        owner: str,
        name: str = "pool_library",
        config: dict[str, Any] | None = None,
    ):
        super().__init__(name, chain, config)
        self.state = PoolLibraryState(owner=to_checksum_address(owner))

    @property
    def pools_count(self) -> int:
        return len(self.state.pools)

    def get_pool_data(self, pool_id: int) -> PoolData:
        if not 0 <= pool_id < len(self.state.pools):
            raise InvalidPoolId(pool_id)
        return self.state.pools[pool_id].model_copy()

    @atomic
    @require_owner
    def add_pool(self, caller: str, data: PoolData) -> int:
        validate_pool_data(data)
        pool_id = len(self.state.pools)
        self.state.pools.append(data.model_copy())
        self.emit(PoolAdded(pool_id=pool_id, main_pool=data.main_pool))
        self.logger.info(f"Pool {pool_id} added: {data.main_pool}")
        return pool_id

    @atomic
    @require_owner
    def update_pool(self, caller: str, pool_id: int, data: PoolData) -> None:
        if not 0 <= pool_id < len(self.state.pools):
            raise InvalidPoolId(pool_id)
        validate_pool_data(data)
        self.state.pools[pool_id] = data.model_copy()
        self.emit(PoolUpdated(pool_id=pool_id, main_pool=data.main_pool))
