"""
D-separation by explicit path classification.

D-separation (directed separation) is a criterion for determining
conditional independence relationships in directed acyclic graphs.
Here it is decided path by path: every simple path between two nodes is
classified as open or blocked given a conditioning set, and two nodes are
d-separated when no path between them is open.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from tidydag.causal.paths import CausalPath, NodeShape, PathEnumerator
from tidydag.exceptions import InvalidConditioningError

if TYPE_CHECKING:
    from tidydag.core.dag import CausalDAG


def _as_set(nodes: str | Iterable[str] | None) -> set[str]:
    if nodes is None:
        return set()
    if isinstance(nodes, str):
        return {nodes}
    return set(nodes)


@dataclass(frozen=True)
class PathClassification:
    """Whether a path is open given a conditioning set.

    Attributes:
        path: The classified path
        conditioned: The conditioning set used
        is_open: True if no interior node blocks the path
        blocking: Interior nodes that block the path, in path order
    """

    path: CausalPath
    conditioned: frozenset[str]
    is_open: bool
    blocking: tuple[str, ...]

    def __str__(self) -> str:
        status = "open" if self.is_open else f"blocked by {', '.join(self.blocking)}"
        return f"{self.path}: {status}"


class DSeparationAnalyzer:
    """Implements d-separation for conditional independence testing.

    Two nodes X and Y are d-separated by a set Z if all paths between X and Y
    are "blocked" by Z. A path is blocked if it contains:
    1. A chain (A→B→C) where B is in Z
    2. A fork (A←B→C) where B is in Z
    3. A collider (A→B←C) where B is NOT in Z and no descendant of B is in Z

    Example:
        >>> analyzer = DSeparationAnalyzer(dag)
        >>> # Check if X and Y are independent given Z
        >>> is_indep = analyzer.is_d_separated({"x"}, {"y"}, {"z"})
    """

    def __init__(self, dag: CausalDAG):
        """Initialize the analyzer with a DAG.

        Args:
            dag: The CausalDAG to analyze
        """
        self.dag = dag
        self.paths = PathEnumerator(dag)
        self._descendants: dict[str, set[str]] = {}

    def _descendants_of(self, node: str) -> set[str]:
        if node not in self._descendants:
            self._descendants[node] = self.dag.descendants(node)
        return self._descendants[node]

    # --- Path classification ---

    def node_blocks(self, shape: NodeShape, node: str, conditioned: set[str]) -> bool:
        """Whether an interior node of the given shape blocks its path."""
        if shape == NodeShape.COLLIDER:
            return not (self._descendants_of(node) & conditioned)
        return node in conditioned

    def classify(
        self,
        path: CausalPath,
        conditioned: Iterable[str] | None = None,
    ) -> PathClassification:
        """Classify a path as open or blocked.

        A path without interior nodes (a direct edge, or the trivial path)
        is never blocked.
        """
        z = _as_set(conditioned)
        blocking = tuple(
            triple.node
            for triple in path.triples()
            if self.node_blocks(triple.shape, triple.node, z)
        )
        return PathClassification(
            path=path,
            conditioned=frozenset(z),
            is_open=not blocking,
            blocking=blocking,
        )

    def is_path_open(self, path: CausalPath, conditioned: Iterable[str] | None = None) -> bool:
        return self.classify(path, conditioned).is_open

    # --- D-separation ---

    def open_paths(
        self,
        x: str | Iterable[str],
        y: str | Iterable[str],
        z: Iterable[str] | None = None,
    ) -> list[CausalPath]:
        """All open paths between any node in X and any node in Y given Z."""
        xs, ys, zs = _as_set(x), _as_set(y), _as_set(z)
        return [
            path
            for source in sorted(xs)
            for target in sorted(ys)
            for path in self.paths.all_paths(source, target)
            if self.is_path_open(path, zs)
        ]

    def is_d_separated(
        self,
        x: str | Iterable[str],
        y: str | Iterable[str],
        z: Iterable[str] | None = None,
    ) -> bool:
        """Test if X and Y are d-separated given Z.

        Args:
            x: Source node set (or a single node name)
            y: Target node set (or a single node name)
            z: Conditioning set (optional, defaults to empty set)

        Returns:
            True if X and Y are d-separated given Z. Sets that share a node
            are never d-separated.

        Raises:
            InvalidConditioningError: If Z overlaps X or Y

        Example:
            >>> # In a chain A → B → C, A and C are d-separated by B
            >>> analyzer.is_d_separated({"a"}, {"c"}, {"b"})
            True
            >>> # But not without conditioning on B
            >>> analyzer.is_d_separated({"a"}, {"c"})
            False
        """
        xs, ys, zs = _as_set(x), _as_set(y), _as_set(z)
        for node in xs | ys | zs:
            self.dag.node(node)

        if xs & zs or ys & zs:
            raise InvalidConditioningError("Z must be disjoint from both X and Y")
        if xs & ys:
            return False

        for source in sorted(xs):
            for target in sorted(ys):
                for path in self.paths.all_paths(source, target):
                    if self.is_path_open(path, zs):
                        return False
        return True

    def is_d_connected(
        self,
        x: str | Iterable[str],
        y: str | Iterable[str],
        z: Iterable[str] | None = None,
    ) -> bool:
        """Test if X and Y are d-connected given Z (at least one open path)."""
        return not self.is_d_separated(x, y, z)

    def check_conditional_independence(
        self,
        x: str,
        y: str,
        given: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        """Check conditional independence and return detailed results.

        Returns:
            Dictionary with:
            - is_independent: Whether X ⊥ Y | given
            - given: The conditioning set used
            - open_paths: Paths that remain open, as strings
            - explanation: Human-readable explanation
        """
        given = _as_set(given)
        is_sep = self.is_d_separated(x, y, given)
        open_paths = [] if is_sep else [str(p) for p in self.open_paths(x, y, given)]

        if is_sep:
            explanation = (
                f"{x} and {y} are conditionally independent given the conditioning set. "
                f"All paths between them are blocked."
            )
        else:
            explanation = (
                f"{x} and {y} are NOT conditionally independent given the conditioning set. "
                f"There exists at least one unblocked (d-connected) path."
            )

        return {
            "is_independent": is_sep,
            "given": given,
            "open_paths": open_paths,
            "explanation": explanation,
        }

    # --- Backdoor criterion ---

    def find_backdoor_paths(self, exposure: str, outcome: str) -> list[CausalPath]:
        """Find all backdoor paths between exposure and outcome.

        A backdoor path is a path from exposure to outcome that starts
        with an arrow INTO the exposure. These are the confounding paths
        that need to be blocked for causal identification.
        """
        return self.paths.backdoor_paths(exposure, outcome)

    def is_valid_adjustment_set(
        self,
        exposure: str,
        outcome: str,
        adjustment_set: Iterable[str],
    ) -> bool:
        """Check if a set is a valid adjustment set (backdoor criterion).

        An adjustment set Z is valid if:
        1. Z blocks all backdoor paths from exposure to outcome
        2. Z does not include any descendant of exposure
        """
        z = _as_set(adjustment_set)
        if z & self._descendants_of(exposure):
            return False
        if outcome in z:
            return False
        return not any(
            self.is_path_open(path, z)
            for path in self.find_backdoor_paths(exposure, outcome)
        )
