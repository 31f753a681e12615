from typing import Annotated, Literal

from pydantic import BaseModel, Field


class EventBase(BaseModel):
    # Filled in by LocalChain.emit; callers may build events without them
    # (e.g., as expected values in tests).
    emitter: str = "unknown"
    tx_index: int | None = None


class Transfer(EventBase):
    type: Literal["Transfer"] = "Transfer"
    token: str
    sender: str
    to: str
    amount: int


class Swap(EventBase):
    type: Literal["Swap"] = "Swap"
    sender: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


class Deposit(EventBase):
    type: Literal["Deposit"] = "Deposit"
    depositor: str
    shares: int
    amount_in: int


class Withdraw(EventBase):
    type: Literal["Withdraw"] = "Withdraw"
    depositor: str
    shares: int


class FeeSet(EventBase):
    type: Literal["FeeSet"] = "FeeSet"
    rate_ppm: int
    recipient: str


class LiquidityAdded(EventBase):
    type: Literal["LiquidityAdded"] = "LiquidityAdded"
    tick_lower: int
    tick_upper: int
    liquidity: int
    amount0: int
    amount1: int


class LiquidityRemoved(EventBase):
    type: Literal["LiquidityRemoved"] = "LiquidityRemoved"
    tick_lower: int
    tick_upper: int
    liquidity: int
    amount0: int
    amount1: int


class RewardsHarvested(EventBase):
    type: Literal["RewardsHarvested"] = "RewardsHarvested"
    vault_key: str
    amount: int


class RewardsDistributed(EventBase):
    type: Literal["RewardsDistributed"] = "RewardsDistributed"
    amount: int


class RewardCollected(EventBase):
    type: Literal["RewardCollected"] = "RewardCollected"
    depositor: str
    vault_key: str
    amount: int


class ReceiverDataSet(EventBase):
    type: Literal["ReceiverDataSet"] = "ReceiverDataSet"
    vault_key: str
    receiver: str
    percentage: int


class ExclusiveManagerDataSet(EventBase):
    type: Literal["ExclusiveManagerDataSet"] = "ExclusiveManagerDataSet"
    vault_key: str
    manager: str
    percentage: int


class TokensDeposited(EventBase):
    type: Literal["TokensDeposited"] = "TokensDeposited"
    account: str
    amount: int


class TokensReleased(EventBase):
    type: Literal["TokensReleased"] = "TokensReleased"
    account: str
    to: str
    amount: int


class PoolAdded(EventBase):
    type: Literal["PoolAdded"] = "PoolAdded"
    pool_id: int
    main_pool: str


class PoolUpdated(EventBase):
    type: Literal["PoolUpdated"] = "PoolUpdated"
    pool_id: int
    main_pool: str


class LockerUpdated(EventBase):
    type: Literal["LockerUpdated"] = "LockerUpdated"
    locker: str


class PoolLibraryUpdated(EventBase):
    type: Literal["PoolLibraryUpdated"] = "PoolLibraryUpdated"
    pool_library: str


Event = (
    Transfer
    | Swap
    | Deposit
    | Withdraw
    | FeeSet
    | LiquidityAdded
    | LiquidityRemoved
    | RewardsHarvested
    | RewardsDistributed
    | RewardCollected
    | ReceiverDataSet
    | ExclusiveManagerDataSet
    | TokensDeposited
    | TokensReleased
    | PoolAdded
    | PoolUpdated
    | LockerUpdated
    | PoolLibraryUpdated
)


class EventRecord(BaseModel):
    event: Annotated[Event, Field(discriminator="type")]
