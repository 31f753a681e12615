from position_vaults.core.adapters.BaseAdapter import BaseAdapter
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.errors import VaultError
from position_vaults.core.vaults.Vault import Vault, VaultStatus

__all__ = [
    "BaseAdapter",
    "LocalChain",
    "Vault",
    "VaultError",
    "VaultStatus",
    "atomic",
]
