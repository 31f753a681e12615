ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Percentages are parts-per-million: 1_000_000 == 100%
MAX_PERCENTAGE = 1_000_000

# Uniswap V3 tick range
MIN_TICK = -887272
MAX_TICK = 887272

DEFAULT_ORACLE_DECIMALS = 8
DEFAULT_TOKEN_DECIMALS = 18

# Pool fee tiers are expressed in hundredths of a bip, same unit as the ppm above
TICK_SPACING: dict[int, int] = {100: 1, 500: 10, 2500: 50, 3000: 60, 10000: 200}

ROLE_ADMIN = "DEFAULT_ADMIN_ROLE"
ROLE_MANAGER = "POSITION_MANAGER_ROLE"
