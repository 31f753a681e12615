from __future__ import annotations

from dataclasses import dataclass, field

from position_vaults.core.constants import ZERO_ADDRESS


@dataclass(frozen=True)
class ReceiverData:
    receiver: str = ZERO_ADDRESS
    percentage: int = 0  # ppm of what is left after the exclusive cut
    payout_token: str | None = None  # None pays out in the reward token


@dataclass(frozen=True)
class ExclusiveManagerData:
    manager: str = ZERO_ADDRESS
    percentage: int = 0  # ppm of the gross amount


@dataclass(frozen=True)
class Distribution:
    """Breakdown of one ``distribute_rewards`` call."""

    gross: int
    exclusive_cut: int
    receiver_cut: int
    receiver_paid: int  # in the payout token
    receiver_swapped: bool
    accrued: dict[str, int]
    retained: int

    @property
    def distributable(self) -> int:
        return self.gross - self.exclusive_cut - self.receiver_cut


@dataclass
class RegistryState:
    users: dict[str, set[str]] = field(default_factory=dict)


@dataclass
class LedgerState:
    claimable: dict[str, dict[str, int]] = field(default_factory=dict)


@dataclass
class DistributorState:
    receivers: dict[str, ReceiverData] = field(default_factory=dict)
    exclusive_managers: dict[str, ExclusiveManagerData] = field(default_factory=dict)
    retained: dict[str, int] = field(default_factory=dict)


@dataclass
class ProtocolState:
    roles: dict[str, set[str]]
    locker: str = ZERO_ADDRESS
    pool_library: str = ZERO_ADDRESS
    vaults: dict[str, int] = field(default_factory=dict)  # vault key -> pool id
