"""
Builds a directed dependency graph from a flat component list.
Vertices live in an arena indexed by position; names map to indices separately.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from impact_flow.core.models import ComponentInfo, DependencyEdge

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Mutable vertex arena plus outgoing adjacency lists keyed by vertex index."""

    def __init__(self):
        self.vertices: List[str] = []
        self.index: Dict[str, int] = {}
        self.out_edges: List[List[Tuple[int, float]]] = []

    def __len__(self) -> int:
        return len(self.vertices)

    def __contains__(self, name: str) -> bool:
        return name in self.index

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.out_edges)

    def add_vertex(self, name: str) -> int:
        """Add a vertex if missing and return its index."""
        existing = self.index.get(name)
        if existing is not None:
            return existing
        idx = len(self.vertices)
        self.vertices.append(name)
        self.index[name] = idx
        self.out_edges.append([])
        return idx

    def add_edge(self, edge: DependencyEdge) -> None:
        # Parallel edges are kept; each one carries rank on its own.
        source = self.add_vertex(edge.source)
        target = self.add_vertex(edge.target)
        self.out_edges[source].append((target, edge.weight))

    def out_degree(self, name: str) -> int:
        return len(self.out_edges[self.index[name]])

    def sinks(self) -> List[str]:
        """Vertices without outgoing edges; their rank is dropped during diffusion."""
        return [name for name in self.vertices if self.out_degree(name) == 0]


class GraphBuilder:
    """Turns provider components into a DependencyGraph."""

    def build(self, components: Iterable[ComponentInfo]) -> DependencyGraph:
        graph = DependencyGraph()
        components = list(components)

        # Step 1: every component is a vertex, even without dependencies
        for component in components:
            graph.add_vertex(component.name)

        # Step 2: component -> dependency edges; unknown dependencies become sink vertices
        for component in components:
            for dependency in component.dependencies:
                graph.add_edge(DependencyEdge(component.name, dependency))

        logger.debug(
            f"Built dependency graph with {len(graph)} vertices, {graph.edge_count} edges "
            f"and {len(graph.sinks())} sinks"
        )
        return graph
