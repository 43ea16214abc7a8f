"""
Path enumeration over the skeleton of a causal DAG.

Paths ignore edge direction when they are found but remember it, so that
every interior node can later be classified as a chain, fork or collider.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from tidydag.core.dag import CausalDAG


class NodeShape(Enum):
    """Arrowhead pattern at an interior node of a path."""

    CHAIN = "chain"  # a -> m -> b (or a <- m <- b)
    FORK = "fork"  # a <- m -> b
    COLLIDER = "collider"  # a -> m <- b


@dataclass(frozen=True)
class PathTriple:
    """An interior node of a path together with its two neighbours."""

    left: str
    node: str
    right: str
    shape: NodeShape


@dataclass(frozen=True)
class CausalPath:
    """A simple path in the skeleton of a DAG.

    Attributes:
        nodes: Node names from one endpoint to the other
        forward: One flag per hop; ``forward[i]`` is True when the edge
            points from ``nodes[i]`` to ``nodes[i + 1]``
    """

    nodes: tuple[str, ...]
    forward: tuple[bool, ...]

    def __post_init__(self) -> None:
        if len(self.forward) != max(len(self.nodes) - 1, 0):
            raise ValueError("A path needs one direction flag per hop")

    @property
    def source(self) -> str:
        return self.nodes[0]

    @property
    def target(self) -> str:
        return self.nodes[-1]

    @property
    def interior(self) -> tuple[str, ...]:
        return self.nodes[1:-1]

    def __len__(self) -> int:
        """Number of hops."""
        return len(self.forward)

    @property
    def is_backdoor(self) -> bool:
        """True when the first hop points into the source node."""
        return bool(self.forward) and not self.forward[0]

    @property
    def is_directed(self) -> bool:
        """True when every hop points away from the source (a causal path)."""
        return bool(self.forward) and all(self.forward)

    def triples(self) -> Iterator[PathTriple]:
        """Yield each interior node with its shape on this path."""
        for i in range(1, len(self.nodes) - 1):
            into_from_left = self.forward[i - 1]
            into_from_right = not self.forward[i]
            if into_from_left and into_from_right:
                shape = NodeShape.COLLIDER
            elif not into_from_left and not into_from_right:
                shape = NodeShape.FORK
            else:
                shape = NodeShape.CHAIN
            yield PathTriple(self.nodes[i - 1], self.nodes[i], self.nodes[i + 1], shape)

    def colliders(self) -> tuple[str, ...]:
        return tuple(t.node for t in self.triples() if t.shape == NodeShape.COLLIDER)

    def hops(self) -> Iterator[tuple[str, str]]:
        """Yield the directed edges this path runs along, as ``(source, target)``."""
        for i, forward in enumerate(self.forward):
            a, b = self.nodes[i], self.nodes[i + 1]
            yield (a, b) if forward else (b, a)

    def __str__(self) -> str:
        if not self.forward:
            return self.nodes[0]
        parts = [self.nodes[0]]
        for i, forward in enumerate(self.forward):
            parts.append("->" if forward else "<-")
            parts.append(self.nodes[i + 1])
        return " ".join(parts)


class PathEnumerator:
    """Finds all simple paths between two nodes of a DAG's skeleton.

    The number of paths is exponential in the worst case, which is
    acceptable for the tens of nodes typical of causal diagrams.

    Example:
        >>> paths = PathEnumerator(dag).all_paths("x", "y")
        >>> [str(p) for p in paths]
        ['x -> y', 'x <- z -> y']
    """

    def __init__(self, dag: CausalDAG):
        self.dag = dag
        self._skeleton = dag.skeleton()

    def all_paths(self, source: str, target: str) -> list[CausalPath]:
        """All simple paths from ``source`` to ``target``.

        Paths come out in lexicographic order of their node sequences:
        depth-first search visits neighbours in sorted order, and no path
        ending at ``target`` can be a prefix of another.

        Returns:
            The paths; an empty list when the nodes are not connected.
            ``source == target`` gives the single zero-length path.
        """
        self.dag.node(source)
        self.dag.node(target)
        if source == target:
            return [CausalPath((source,), ())]

        paths: list[CausalPath] = []
        stack = [source]
        on_path = {source}

        def walk(current: str) -> None:
            for neighbour in self._skeleton[current]:
                if neighbour in on_path:
                    continue
                stack.append(neighbour)
                if neighbour == target:
                    paths.append(self._make_path(stack))
                else:
                    on_path.add(neighbour)
                    walk(neighbour)
                    on_path.discard(neighbour)
                stack.pop()

        walk(source)
        return paths

    def backdoor_paths(self, exposure: str, outcome: str) -> list[CausalPath]:
        """Paths from exposure to outcome that start with an arrow into the exposure."""
        return [p for p in self.all_paths(exposure, outcome) if p.is_backdoor]

    def causal_paths(self, exposure: str, outcome: str) -> list[CausalPath]:
        """Directed paths from exposure to outcome."""
        return [p for p in self.all_paths(exposure, outcome) if p.is_directed]

    def _make_path(self, nodes: list[str]) -> CausalPath:
        forward = tuple(
            self.dag.has_edge(nodes[i], nodes[i + 1]) for i in range(len(nodes) - 1)
        )
        return CausalPath(tuple(nodes), forward)
