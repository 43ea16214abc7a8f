"""Path analysis, d-separation and back-door adjustment."""

from tidydag.causal.paths import CausalPath, NodeShape, PathEnumerator, PathTriple
from tidydag.causal.dseparation import DSeparationAnalyzer, PathClassification
from tidydag.causal.adjustment import AdjustmentResult, AdjustmentSetSolver, adjustment_sets, is_confounder
from tidydag.causal.colliders import ActivatedEdge, activated_edges, colliders

__all__ = [
    "CausalPath",
    "NodeShape",
    "PathEnumerator",
    "PathTriple",
    "DSeparationAnalyzer",
    "PathClassification",
    "AdjustmentResult",
    "AdjustmentSetSolver",
    "adjustment_sets",
    "is_confounder",
    "ActivatedEdge",
    "activated_edges",
    "colliders",
]
