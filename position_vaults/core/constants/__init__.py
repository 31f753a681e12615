from .base import (
    DEFAULT_ORACLE_DECIMALS,
    MAX_PERCENTAGE,
    MAX_TICK,
    MIN_TICK,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ZERO_ADDRESS,
)

__all__ = [
    "DEFAULT_ORACLE_DECIMALS",
    "MAX_PERCENTAGE",
    "MAX_TICK",
    "MIN_TICK",
    "ROLE_ADMIN",
    "ROLE_MANAGER",
    "ZERO_ADDRESS",
]
