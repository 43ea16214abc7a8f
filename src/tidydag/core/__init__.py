"""Core graph model for tidydag."""

from tidydag.core.nodes import DAGNode, NodeRole
from tidydag.core.edges import DAGEdge, EdgeKind
from tidydag.core.dag import CausalDAG
from tidydag.core.formula import dagify, parse_formula

__all__ = [
    "DAGNode",
    "NodeRole",
    "DAGEdge",
    "EdgeKind",
    "CausalDAG",
    "dagify",
    "parse_formula",
]
