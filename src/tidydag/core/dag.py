"""
Causal DAG (Directed Acyclic Graph) implementation.

This module provides the CausalDAG class which stores a causal graph in a
NetworkX DiGraph. Bi-directed edges are canonicalized into synthetic latent
nodes and the result is checked for cycles before the DAG is handed out, so
every CausalDAG is acyclic and structurally immutable.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Iterable, Iterator, Mapping

import networkx as nx

from tidydag.core.edges import DAGEdge, EdgeKind, create_directed_edge
from tidydag.core.nodes import DAGNode, NodeRole, create_latent
from tidydag.exceptions import (
    CyclicGraphError,
    InvalidGraphError,
    RoleConflictError,
    UnknownNodeError,
)

logger = logging.getLogger(__name__)

SYNTHETIC_PREFIX = "L"


class CausalDAG:
    """A Directed Acyclic Graph of assumed causal relationships.

    The DAG keeps two views of its structure:
    - the declared edges, exactly as given (bi-directed edges included),
      used for display
    - the canonical graph, where every bi-directed edge ``a <-> b`` has been
      replaced by a synthetic latent node ``L1 -> a``, ``L1 -> b``; all
      analysis runs on this one

    Attributes:
        exposure: Name of the exposure node, if designated
        outcome: Name of the outcome node, if designated

    Example:
        >>> dag = CausalDAG.build(
        ...     [("z", "x"), ("z", "y"), ("x", "y")],
        ...     exposure="x",
        ...     outcome="y",
        ... )
        >>> dag.parents("x")
        ('z',)
    """

    def __init__(
        self,
        nodes: Iterable[DAGNode],
        edges: Iterable[DAGEdge],
        promote_synthetic: bool = False,
    ):
        """Initialize a CausalDAG.

        Prefer :meth:`build`, :meth:`from_relations` or
        :func:`tidydag.core.formula.dagify`, which create the nodes for you.

        Args:
            nodes: The declared nodes. Edge endpoints missing from this list
                are added as observed nodes.
            edges: Directed and bi-directed edges between node names.
            promote_synthetic: Tag the latent nodes created for bi-directed
                edges as observed, making them eligible for adjustment.

        Raises:
            CyclicGraphError: If the directed edges contain a cycle
            RoleConflictError: If more than one exposure or outcome is designated
        """
        self._nodes: dict[str, DAGNode] = {}
        for node in nodes:
            if node.name in self._nodes:
                raise InvalidGraphError(f"Duplicate node {node.name!r}")
            self._nodes[node.name] = node

        self._declared_edges: list[DAGEdge] = []
        for edge in edges:
            if edge in self._declared_edges:
                continue
            if edge.source == edge.target and edge.is_bidirected:
                raise InvalidGraphError(f"Bi-directed edge {edge} joins a node to itself")
            for name in (edge.source, edge.target):
                if name not in self._nodes:
                    self._nodes[name] = DAGNode(name=name)
            self._declared_edges.append(edge)

        self.exposure = self._single_role(NodeRole.EXPOSURE)
        self.outcome = self._single_role(NodeRole.OUTCOME)

        self._graph: nx.DiGraph = self._canonicalize(promote_synthetic)
        self._order = self._topological_sort()

        logger.debug(
            "Built DAG with %d nodes (%d synthetic) and %d edges",
            self._graph.number_of_nodes(),
            self._graph.number_of_nodes() - len(self._nodes),
            self._graph.number_of_edges(),
        )

    # --- Construction ---

    @classmethod
    def build(
        cls,
        edges: Iterable[DAGEdge | tuple[str, str]],
        exposure: str | None = None,
        outcome: str | None = None,
        latent: Iterable[str] = (),
        labels: Mapping[str, str] | None = None,
        coords: Mapping[str, tuple[float, float]] | None = None,
        nodes: Iterable[str] = (),
        promote_synthetic: bool = False,
    ) -> CausalDAG:
        """Build a DAG from an edge list and role tags.

        Args:
            edges: ``DAGEdge`` objects or ``(source, target)`` tuples
            exposure: Name of the exposure node
            outcome: Name of the outcome node
            latent: Names of unmeasured nodes
            labels: Display labels by node name
            coords: ``(x, y)`` coordinates by node name
            nodes: Extra node names, for isolated nodes
            promote_synthetic: See :meth:`__init__`

        Returns:
            A new CausalDAG

        Raises:
            UnknownNodeError: If a tagged, labelled or placed node is not in
                the graph
            CyclicGraphError: If the directed edges contain a cycle
        """
        edge_list = [
            edge if isinstance(edge, DAGEdge) else create_directed_edge(*edge)
            for edge in edges
        ]

        names: list[str] = list(dict.fromkeys(nodes))
        for edge in edge_list:
            for name in (edge.source, edge.target):
                if name not in names:
                    names.append(name)

        latent = set(latent)
        labels = dict(labels or {})
        coords = dict(coords or {})
        for name in [exposure, outcome, *latent, *labels, *coords]:
            if name is not None and name not in names:
                raise UnknownNodeError(name)
        if exposure is not None and exposure == outcome:
            raise RoleConflictError(f"{exposure!r} cannot be both exposure and outcome")
        if latent & {exposure, outcome}:
            raise RoleConflictError("Exposure and outcome must be observed")

        dag_nodes = []
        for name in names:
            if name == exposure:
                role = NodeRole.EXPOSURE
            elif name == outcome:
                role = NodeRole.OUTCOME
            elif name in latent:
                role = NodeRole.LATENT
            else:
                role = NodeRole.OBSERVED
            x, y = coords.get(name, (None, None))
            dag_nodes.append(
                DAGNode(name=name, role=role, label=labels.get(name), x=x, y=y)
            )

        return cls(dag_nodes, edge_list, promote_synthetic=promote_synthetic)

    @classmethod
    def from_relations(
        cls,
        relations: Mapping[str, Iterable[str]],
        **kwargs: Any,
    ) -> CausalDAG:
        """Build a DAG from ``{child: [parents, ...]}`` relations.

        Children without parents are kept as isolated nodes. Keyword
        arguments are passed on to :meth:`build`.
        """
        edges = [
            create_directed_edge(parent, child)
            for child, parents in relations.items()
            for parent in parents
        ]
        nodes = list(kwargs.pop("nodes", ())) + list(relations)
        return cls.build(edges, nodes=nodes, **kwargs)

    def _single_role(self, role: NodeRole) -> str | None:
        tagged = [n.name for n in self._nodes.values() if n.role == role]
        if len(tagged) > 1:
            raise RoleConflictError(f"At most one {role.value} allowed, got {tagged}")
        return tagged[0] if tagged else None

    def _canonicalize(self, promote_synthetic: bool) -> nx.DiGraph:
        """Expand bi-directed edges into synthetic latent nodes."""
        graph = nx.DiGraph()
        for node in self._nodes.values():
            graph.add_node(node.name, data=node)

        counter = 0
        for edge in self._declared_edges:
            if edge.kind == EdgeKind.DIRECTED:
                graph.add_edge(edge.source, edge.target, data=edge)
                continue

            counter += 1
            while f"{SYNTHETIC_PREFIX}{counter}" in graph:
                counter += 1
            name = f"{SYNTHETIC_PREFIX}{counter}"
            latent = create_latent(name, synthetic=True)
            if promote_synthetic:
                latent = latent.with_role(NodeRole.OBSERVED)
            graph.add_node(name, data=latent)
            for endpoint in (edge.source, edge.target):
                graph.add_edge(name, endpoint, data=create_directed_edge(name, endpoint))

        return graph

    def _topological_sort(self) -> list[str]:
        """Kahn's algorithm; raises CyclicGraphError when it gets stuck."""
        in_degree = {n: d for n, d in self._graph.in_degree()}
        ready = deque(sorted(n for n, d in in_degree.items() if d == 0))
        order: list[str] = []

        while ready:
            node = ready.popleft()
            order.append(node)
            for child in sorted(self._graph.successors(node)):
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    ready.append(child)

        if len(order) < self._graph.number_of_nodes():
            raise CyclicGraphError(set(self._graph.nodes) - set(order))
        return order

    # --- Nodes ---

    def _check(self, name: str) -> None:
        if name not in self._graph:
            raise UnknownNodeError(name)

    def node(self, name: str) -> DAGNode:
        """Get a node by name, including synthetic latent nodes."""
        self._check(name)
        return self._graph.nodes[name]["data"]

    def role(self, name: str) -> NodeRole:
        return self.node(name).role

    @property
    def nodes(self) -> list[DAGNode]:
        """All nodes in topological order, synthetic ones included."""
        return [self._graph.nodes[n]["data"] for n in self._order]

    @property
    def declared_nodes(self) -> list[DAGNode]:
        """Nodes as declared, without synthetic latent nodes."""
        return list(self._nodes.values())

    @property
    def node_names(self) -> list[str]:
        return list(self._order)

    @property
    def latent_nodes(self) -> set[str]:
        return {n.name for n in self.nodes if n.is_latent}

    @property
    def observed_nodes(self) -> set[str]:
        return {n.name for n in self.nodes if n.is_observed}

    @property
    def synthetic_nodes(self) -> set[str]:
        return {n.name for n in self.nodes if n.synthetic}

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    # --- Edges ---

    @property
    def declared_edges(self) -> list[DAGEdge]:
        """Edges as declared, bi-directed edges included."""
        return list(self._declared_edges)

    @property
    def edges(self) -> list[DAGEdge]:
        """Directed edges of the canonical graph, sorted by endpoints."""
        return [
            self._graph.edges[e]["data"] for e in sorted(self._graph.edges)
        ]

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def has_edge(self, source: str, target: str) -> bool:
        """Check for a directed edge ``source -> target`` in the canonical graph."""
        return self._graph.has_edge(source, target)

    def is_adjacent(self, a: str, b: str) -> bool:
        """Check for an edge between two nodes in either direction."""
        return self._graph.has_edge(a, b) or self._graph.has_edge(b, a)

    # --- Causal Graph Properties ---

    def parents(self, name: str) -> tuple[str, ...]:
        self._check(name)
        return tuple(sorted(self._graph.predecessors(name)))

    def children(self, name: str) -> tuple[str, ...]:
        self._check(name)
        return tuple(sorted(self._graph.successors(name)))

    def ancestors(self, name: str) -> set[str]:
        """Get all ancestors of a node (recursive parents), excluding the node."""
        self._check(name)
        return nx.ancestors(self._graph, name)

    def descendants(self, name: str) -> set[str]:
        """Get all descendants of a node, INCLUDING the node itself.

        Callers that need strict descendants must remove ``name``.
        """
        self._check(name)
        return nx.descendants(self._graph, name) | {name}

    def skeleton(self) -> dict[str, tuple[str, ...]]:
        """Undirected adjacency of the canonical graph, neighbours sorted."""
        return {
            n: tuple(sorted(set(self._graph.predecessors(n)) | set(self._graph.successors(n))))
            for n in self._order
        }

    def topological_order(self) -> list[str]:
        return list(self._order)

    def roots(self) -> list[str]:
        """Get all root nodes (nodes with no incoming edges)."""
        return [n for n in self._order if self._graph.in_degree(n) == 0]

    def leaves(self) -> list[str]:
        """Get all leaf nodes (nodes with no outgoing edges)."""
        return [n for n in self._order if self._graph.out_degree(n) == 0]

    # --- Serialization ---

    def to_networkx(self) -> nx.DiGraph:
        """Get a copy of the canonical NetworkX graph."""
        return self._graph.copy()

    def to_dict(self) -> dict[str, Any]:
        """Serialize the declared graph to a dictionary."""
        return {
            "nodes": [node.model_dump(mode="json") for node in self._nodes.values()],
            "edges": [edge.model_dump(mode="json") for edge in self._declared_edges],
            "promote_synthetic": any(
                n.synthetic and n.is_observed for n in self.nodes
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CausalDAG:
        """Create a CausalDAG from the output of :meth:`to_dict`."""
        nodes = [DAGNode.model_validate(n) for n in data["nodes"]]
        edges = [DAGEdge.model_validate(e) for e in data["edges"]]
        return cls(nodes, edges, promote_synthetic=data.get("promote_synthetic", False))

    def __len__(self) -> int:
        return self.node_count

    def __contains__(self, name: object) -> bool:
        return name in self._graph

    def __iter__(self) -> Iterator[DAGNode]:
        """Iterate over nodes in topological order."""
        return iter(self.nodes)

    def __repr__(self) -> str:
        return (
            f"CausalDAG(nodes={self.node_count}, edges={self.edge_count}, "
            f"exposure={self.exposure!r}, outcome={self.outcome!r})"
        )
