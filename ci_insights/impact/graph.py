"""
Service Dependency Graph

Directed graph of services backed by networkx. Edges run from a service to
each of its dependents, so a traversal along out-edges follows the direction
in which a change propagates.

Node attributes:
    criticality    - Criticality tier (MEDIUM when undeclared)
    dependencies   - declared upstream services, informational only
    api_endpoints  - exposed API paths
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import networkx as nx

from .models import Criticality

logger = logging.getLogger(__name__)

DEFAULT_CRITICALITY = Criticality.MEDIUM


class DependencyGraph:
    """
    Read-only view over the service dependency registry.

    Example:
        >>> graph = DependencyGraph.from_dict({
        ...     "user-service": {"dependents": ["order-service"], "criticality": "HIGH"},
        ... })
        >>> graph.dependents("user-service")
        ['order-service']
    """

    def __init__(self, graph: Optional[nx.DiGraph] = None):
        self.graph = graph if graph is not None else nx.DiGraph()

    @classmethod
    def from_dict(cls, services: Dict[str, Dict[str, Any]]) -> "DependencyGraph":
        """
        Build from ``service -> {dependencies, dependents, criticality, api_endpoints}``.

        Dependents that are not declared themselves become bare nodes with
        the default criticality.
        """
        graph = nx.DiGraph()
        for name, spec in (services or {}).items():
            spec = spec or {}
            graph.add_node(
                name,
                criticality=Criticality.parse(spec.get("criticality"), DEFAULT_CRITICALITY),
                dependencies=list(spec.get("dependencies") or []),
                api_endpoints=list(spec.get("api_endpoints") or spec.get("apiEndpoints") or []),
                declared=True,
            )
        for name, spec in (services or {}).items():
            for dependent in (spec or {}).get("dependents") or []:
                if dependent not in graph:
                    graph.add_node(dependent, declared=False)
                graph.add_edge(name, dependent, relation="depends_on")
        logger.debug(
            "Loaded dependency graph: %d services, %d edges",
            graph.number_of_nodes(), graph.number_of_edges(),
        )
        return cls(graph)

    # =========================================================================
    # Queries
    # =========================================================================

    def __contains__(self, service: str) -> bool:
        return self.is_declared(service)

    @property
    def services(self) -> List[str]:
        return [n for n, d in self.graph.nodes(data=True) if d.get("declared")]

    def is_declared(self, service: str) -> bool:
        return service in self.graph and bool(self.graph.nodes[service].get("declared"))

    def dependents(self, service: str) -> List[str]:
        """Direct dependents in declaration order; empty for unknown services."""
        if service not in self.graph:
            return []
        return list(self.graph.successors(service))

    def dependencies(self, service: str) -> List[str]:
        if service not in self.graph:
            return []
        return list(self.graph.nodes[service].get("dependencies", []))

    def criticality(self, service: str) -> Criticality:
        if service not in self.graph:
            return DEFAULT_CRITICALITY
        return self.graph.nodes[service].get("criticality", DEFAULT_CRITICALITY)

    def api_endpoints(self, service: str) -> List[str]:
        if service not in self.graph:
            return []
        return list(self.graph.nodes[service].get("api_endpoints", []))

    def dependency_depth(self, service: str) -> int:
        """
        Longest shortest-path distance to any transitive dependent.

        Unknown services have depth 0. Cycles terminate because each node is
        visited once.
        """
        if not self.is_declared(service):
            return 0
        lengths = nx.single_source_shortest_path_length(self.graph, service)
        return max(lengths.values(), default=0)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {
                "dependencies": self.dependencies(name),
                "dependents": self.dependents(name),
                "criticality": self.criticality(name).value,
                "api_endpoints": self.api_endpoints(name),
            }
            for name in self.services
        }
