"""
tidydag: causal DAGs as tidy tables

Build causal diagrams, find back-door adjustment sets, test d-separation
and see which paths open when a collider is adjusted for.
"""

__version__ = "0.1.0"

from tidydag.core.nodes import DAGNode, NodeRole
from tidydag.core.edges import DAGEdge, EdgeKind
from tidydag.core.dag import CausalDAG
from tidydag.core.formula import dagify
from tidydag.causal.adjustment import AdjustmentResult, AdjustmentSetSolver, adjustment_sets, is_confounder
from tidydag.causal.colliders import ActivatedEdge, activated_edges
from tidydag.causal.dseparation import DSeparationAnalyzer
from tidydag.causal.paths import CausalPath, PathEnumerator
from tidydag.config import RenderConfig
from tidydag.exceptions import (
    CyclicGraphError,
    InvalidConditioningError,
    InvalidGraphError,
    MissingAdjustingVariableError,
    MissingRoleError,
    RoleConflictError,
    TidyDAGError,
    UnclosableBackdoorError,
    UnknownNodeError,
)
from tidydag.tidy import (
    TidyDAG,
    adjust_for,
    adjusted_view,
    control_for,
    dag_adjustment_sets,
    dag_paths,
    node_status,
    tidy_dag,
)

__all__ = [
    "DAGNode",
    "NodeRole",
    "DAGEdge",
    "EdgeKind",
    "CausalDAG",
    "dagify",
    "AdjustmentResult",
    "AdjustmentSetSolver",
    "adjustment_sets",
    "is_confounder",
    "ActivatedEdge",
    "activated_edges",
    "DSeparationAnalyzer",
    "CausalPath",
    "PathEnumerator",
    "RenderConfig",
    "CyclicGraphError",
    "InvalidConditioningError",
    "InvalidGraphError",
    "MissingAdjustingVariableError",
    "MissingRoleError",
    "RoleConflictError",
    "TidyDAGError",
    "UnclosableBackdoorError",
    "UnknownNodeError",
    "TidyDAG",
    "adjust_for",
    "adjusted_view",
    "control_for",
    "dag_adjustment_sets",
    "dag_paths",
    "node_status",
    "tidy_dag",
]
