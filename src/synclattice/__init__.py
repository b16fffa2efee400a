from synclattice.config import SyncSettings
from synclattice.network.graph import NetworkGraph

__all__ = ["NetworkGraph", "SyncSettings"]
