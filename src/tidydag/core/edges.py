"""
Edge types for causal DAGs.

Directed edges encode assumed direct causation. Bi-directed edges are a
shorthand for an unmeasured common cause of both endpoints and are expanded
into a latent node with two directed edges when a DAG is built.
"""

from enum import Enum

from pydantic import BaseModel


class EdgeKind(str, Enum):
    """Kinds of edges.

    Values are the arrow notation used in the tidy table's ``direction``
    column.
    """

    DIRECTED = "->"
    BIDIRECTED = "<->"


class DAGEdge(BaseModel):
    """An edge between two named nodes.

    Attributes:
        source: Name of the cause node (either endpoint for bi-directed edges)
        target: Name of the effect node
        kind: Directed or bi-directed

    Example:
        >>> edge = DAGEdge(source="x", target="y")
        >>> edge.pair
        ('x', 'y')
    """

    source: str
    target: str
    kind: EdgeKind = EdgeKind.DIRECTED

    class Config:
        frozen = True

    @property
    def is_bidirected(self) -> bool:
        return self.kind == EdgeKind.BIDIRECTED

    @property
    def pair(self) -> tuple[str, str]:
        """Endpoints; sorted for bi-directed edges since they have no direction."""
        if self.is_bidirected:
            return tuple(sorted((self.source, self.target)))
        return (self.source, self.target)

    def __hash__(self) -> int:
        return hash((self.pair, self.kind))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DAGEdge):
            return False
        return self.pair == other.pair and self.kind == other.kind

    def __str__(self) -> str:
        return f"{self.source} {self.kind.value} {self.target}"


def create_directed_edge(source: str, target: str) -> DAGEdge:
    """Create a directed edge ``source -> target``."""
    return DAGEdge(source=source, target=target)


def create_bidirected_edge(a: str, b: str) -> DAGEdge:
    """Create a bi-directed edge ``a <-> b`` (unmeasured common cause)."""
    return DAGEdge(source=a, target=b, kind=EdgeKind.BIDIRECTED)
