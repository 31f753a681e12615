__version__ = "0.1.0"

from position_vaults.core import (
    BaseAdapter,
    LocalChain,
    Vault,
    VaultError,
    VaultStatus,
)

__all__ = [
    "__version__",
    "BaseAdapter",
    "LocalChain",
    "Vault",
    "VaultError",
    "VaultStatus",
]
