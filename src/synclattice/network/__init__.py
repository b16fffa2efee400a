from synclattice.network.agent import Agent, AgentProfile
from synclattice.network.clusters import find_clusters
from synclattice.network.graph import NetworkGraph

__all__ = ["Agent", "AgentProfile", "NetworkGraph", "find_clusters"]
