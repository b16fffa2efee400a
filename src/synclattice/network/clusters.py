from __future__ import annotations

from itertools import combinations
from typing import TYPE_CHECKING

import networkx as nx

from synclattice.models import Cluster

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

    from synclattice.models import SynchronizationResult

MIN_CLUSTER_SIZE = 2


def pair_key(agent_a: str, agent_b: str) -> str:
    return ":".join(sorted((agent_a, agent_b)))


def build_sync_graph(results: Iterable[SynchronizationResult]) -> nx.Graph:
    """Undirected graph whose edges are the synchronized pairs."""
    graph = nx.Graph()
    for result in results:
        if result.synchronized:
            a, b = result.agents
            graph.add_edge(a, b, score=result.score)
    return graph


def dfs_component(start: Hashable, graph: nx.Graph, visited: set[Hashable]) -> set[Hashable]:
    stack = [start]
    component: set[Hashable] = set()
    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        component.add(node)
        stack.extend(n for n in graph.neighbors(node) if n not in visited)
    return component


def connected_components(graph: nx.Graph) -> list[set[Hashable]]:
    visited: set[Hashable] = set()
    components: list[set[Hashable]] = []
    for node in graph.nodes:
        if node not in visited:
            components.append(dfs_component(node, graph, visited))
    return components


def find_clusters(results: list[SynchronizationResult]) -> list[Cluster]:
    """Connected groups of two or more agents linked by synchronized pairs.

    Pair count and average score cover every analyzed pair whose two agents
    both fall inside the cluster, synchronized or not.
    """
    scores = {pair_key(*r.agents): r.score for r in results}
    clusters: list[Cluster] = []
    for component in connected_components(build_sync_graph(results)):
        if len(component) < MIN_CLUSTER_SIZE:
            continue
        members = sorted(str(agent) for agent in component)
        inside = [
            scores[key]
            for key in (pair_key(a, b) for a, b in combinations(members, 2))
            if key in scores
        ]
        clusters.append(
            Cluster(
                agents=members,
                pair_count=len(inside),
                average_score=sum(inside) / len(inside) if inside else 0.0,
            )
        )
    clusters.sort(key=lambda c: c.average_score, reverse=True)
    return clusters
