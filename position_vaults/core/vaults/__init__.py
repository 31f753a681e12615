from position_vaults.core.vaults.Vault import Component, Vault, VaultStatus, require_role

__all__ = ["Component", "Vault", "VaultStatus", "require_role"]
