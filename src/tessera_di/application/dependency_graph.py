"""Application layer - Registration-time cycle detection."""

import logging
from typing import Dict, Iterable, List, Optional, Set

from tessera_di.domain import CyclicDependencyError

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Tracks declared ``key -> dependency`` edges and rejects cycles.

    The graph is only used to validate registrations; resolution order is
    always taken from each type's own constructor description.

    Attributes:
        _edges: Outgoing dependency keys per declaring key.
    """

    def __init__(self, edges: Optional[Dict[str, List[str]]] = None) -> None:
        """Initialize the graph.

        Args:
            edges: Optional adjacency mapping to start from; copied.
        """
        self._edges: Dict[str, List[str]] = {key: list(targets) for key, targets in (edges or {}).items()}

    def add(self, key: str, dependencies: Iterable[str]) -> None:
        """Replace the outgoing edges of ``key`` after validating them.

        Args:
            key: The declaring resolution key.
            dependencies: Keys the declaring type depends on, in order.

        Raises:
            CyclicDependencyError: If the new edges close a cycle through ``key``.
                The graph is left unchanged.

        Example:
            >>> graph = DependencyGraph()
            >>> graph.add("Foo", ["Bar"])
            >>> graph.add("Bar", ["Foo"])  # Raises: Cyclic dependency from Foo to Bar
        """
        targets = list(dependencies)
        self._check(key, targets)
        self._edges[key] = targets
        logger.debug("Dependency edges for '%s': %s", key, targets)

    def remove(self, key: str) -> None:
        """Drop the outgoing edges of ``key``, if any."""
        self._edges.pop(key, None)

    def dependencies_of(self, key: str) -> List[str]:
        """Return the declared dependencies of ``key``."""
        return list(self._edges.get(key, []))

    def dependents_of(self, key: str) -> Set[str]:
        """Return every key that depends on ``key``, directly or transitively."""
        dependents: Set[str] = set()
        frontier = [key]
        while frontier:
            target = frontier.pop()
            for node, outgoing in self._edges.items():
                if target in outgoing and node not in dependents:
                    dependents.add(node)
                    frontier.append(node)
        return dependents

    def copy(self) -> "DependencyGraph":
        """Return an independent copy of this graph."""
        return DependencyGraph(self._edges)

    def _check(self, key: str, targets: List[str]) -> None:
        # Every other node was validated when added, so a new cycle must pass through key.
        visited = set()
        stack = [(key, targets)]
        while stack:
            node, outgoing = stack.pop()
            if node in visited:
                continue
            visited.add(node)
            for target in outgoing:
                if target == key:
                    raise CyclicDependencyError(node, key)
                if target not in visited:
                    stack.append((target, self._edges.get(target, [])))

    def __contains__(self, key: object) -> bool:
        return key in self._edges

    def __len__(self) -> int:
        return len(self._edges)
