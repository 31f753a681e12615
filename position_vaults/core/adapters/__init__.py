from position_vaults.core.adapters.BaseAdapter import BaseAdapter, require_owner
from position_vaults.core.adapters.decorators import status_tuple

__all__ = ["BaseAdapter", "require_owner", "status_tuple"]
