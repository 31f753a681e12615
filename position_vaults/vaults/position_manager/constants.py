from position_vaults.core.constants import MAX_PERCENTAGE, ROLE_ADMIN, ROLE_MANAGER

__all__ = ["MAX_PERCENTAGE", "ROLE_ADMIN", "ROLE_MANAGER"]

# ─────────────────────────────────────────────────────────────────────────────
# SWAPS
# ─────────────────────────────────────────────────────────────────────────────

# Internal rebalancing swaps accept at most this much below the pool quote.
# The local pool quotes exactly, so there is no tolerance by default.
SWAP_SLIPPAGE_BPS = 0

# ─────────────────────────────────────────────────────────────────────────────
# CONFIG KEYS (PositionManager(config=...))
# ─────────────────────────────────────────────────────────────────────────────

CONFIG_FEE_PPM = "fee_ppm"
CONFIG_FEE_RECIPIENT = "fee_recipient"
CONFIG_SWAP_SLIPPAGE_BPS = "swap_slippage_bps"
