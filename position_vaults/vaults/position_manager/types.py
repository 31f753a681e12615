from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from position_vaults.core.constants import ZERO_ADDRESS

# ─────────────────────────────────────────────────────────────────────────────
# POSITION STATE
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PositionClosed:
    kind: ClassVar[str] = "Closed"


@dataclass(frozen=True)
class PositionOpen:
    kind: ClassVar[str] = "Open"

    tick_lower: int
    tick_upper: int
    handle: int  # pool position id


PositionState = PositionClosed | PositionOpen


# ─────────────────────────────────────────────────────────────────────────────
# CONFIGURATION
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class FeeConfig:
    rate_ppm: int = 0
    recipient: str = ZERO_ADDRESS


# ─────────────────────────────────────────────────────────────────────────────
# VAULT STATE
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class VaultState:
    roles: dict[str, set[str]]
    fee: FeeConfig = field(default_factory=FeeConfig)
    balances: dict[str, int] = field(default_factory=dict)
    total_supply: int = 0
    position: PositionState = field(default_factory=PositionClosed)
