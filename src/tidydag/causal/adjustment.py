"""
Covariate adjustment sets via the back-door criterion.

A set S of observed variables is a valid adjustment set for the effect of an
exposure X on an outcome Y when S contains no descendant of X and blocks
every back-door path (every path from X to Y that starts with an arrow into
X). The solver returns the minimal such sets: those with no valid proper
subset.

Reference: Pearl, J. (2009). Causality (2nd ed.). Section 3.3.1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import TYPE_CHECKING, Iterable

from tidydag.causal.dseparation import DSeparationAnalyzer
from tidydag.causal.paths import CausalPath, NodeShape
from tidydag.exceptions import (
    UNCLOSABLE_REASONS,
    MissingRoleError,
    RoleConflictError,
    UnclosableBackdoorError,
)

if TYPE_CHECKING:
    from tidydag.core.dag import CausalDAG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdjustmentResult:
    """Outcome of an adjustment-set search.

    An empty ``sets`` tuple means adjustment is impossible; a tuple holding
    the empty set means no adjustment is needed.

    Attributes:
        exposure: The exposure node
        outcome: The outcome node
        sets: Minimal adjustment sets, smallest first, then lexicographic
        backdoor_paths: Every back-door path from exposure to outcome
        unclosable_paths: Paths responsible when no set exists
        reasons: Plausible causes when no set exists
    """

    exposure: str
    outcome: str
    sets: tuple[frozenset[str], ...]
    backdoor_paths: tuple[CausalPath, ...]
    unclosable_paths: tuple[CausalPath, ...] = ()
    reasons: tuple[str, ...] = ()

    @property
    def closable(self) -> bool:
        return bool(self.sets)

    @property
    def needs_adjustment(self) -> bool:
        """False when the back-door paths are closed without adjusting."""
        return self.closable and frozenset() not in self.sets

    def raise_if_unclosable(self) -> None:
        if not self.closable:
            raise UnclosableBackdoorError(
                self.exposure, self.outcome, self.unclosable_paths, self.reasons
            )

    def __str__(self) -> str:
        if not self.closable:
            return "(No Way to Block Backdoor Paths)"
        return "\n".join(format_set(s) for s in self.sets)


def format_set(nodes: Iterable[str]) -> str:
    """Format a node set the way it appears in the ``set`` column, e.g. ``{a, b}``."""
    return "{" + ", ".join(sorted(nodes)) + "}"


class AdjustmentSetSolver:
    """Finds minimal adjustment sets by hitting-set search over back-door paths.

    1. Enumerate back-door paths from exposure to outcome.
    2. For each path, collect the eligible non-collider interior nodes;
       conditioning on any of them closes the path.
    3. Try subsets of the union of those nodes smallest first, keeping the
       ones that block every back-door path (conditioning may open
       colliders, so each subset is checked against every path) and skipping
       supersets of sets already found.

    Example:
        >>> solver = AdjustmentSetSolver(dag, exposure="x", outcome="y")
        >>> result = solver.solve()
        >>> [sorted(s) for s in result.sets]
        [['z']]
    """

    def __init__(
        self,
        dag: CausalDAG,
        exposure: str | None = None,
        outcome: str | None = None,
        max_size: int | None = None,
    ):
        """Initialize the solver.

        Args:
            dag: The CausalDAG to analyze
            exposure: Exposure node; defaults to the DAG's exposure
            outcome: Outcome node; defaults to the DAG's outcome
            max_size: Largest set size to try (default: no limit)

        Raises:
            MissingRoleError: If no exposure or outcome is given or designated
        """
        self.dag = dag
        self.exposure = exposure or dag.exposure
        self.outcome = outcome or dag.outcome
        if self.exposure is None:
            raise MissingRoleError("No exposure given and none designated in the DAG")
        if self.outcome is None:
            raise MissingRoleError("No outcome given and none designated in the DAG")
        dag.node(self.exposure)
        dag.node(self.outcome)
        if self.exposure == self.outcome:
            raise RoleConflictError("Exposure and outcome must differ")

        self.max_size = max_size
        self.analyzer = DSeparationAnalyzer(dag)
        self._exposure_descendants = dag.descendants(self.exposure)

    def ineligibility_reason(self, node: str) -> str | None:
        """Why a node can never be part of an adjustment set, or None if it can."""
        if node == self.exposure:
            return "it is the exposure"
        if node == self.outcome:
            return "it is the outcome"
        if self.dag.node(node).is_latent:
            return "it is latent (unmeasured)"
        if node in self._exposure_descendants:
            return f"it is a descendant of {self.exposure}"
        return None

    def eligible_nodes(self) -> set[str]:
        """Observed nodes that are neither endpoints nor descendants of the exposure."""
        return {n for n in self.dag.node_names if self.ineligibility_reason(n) is None}

    def blocking_candidates(self, path: CausalPath) -> frozenset[str]:
        """Eligible nodes that close ``path`` when conditioned on."""
        eligible = self.eligible_nodes()
        return frozenset(
            t.node
            for t in path.triples()
            if t.shape != NodeShape.COLLIDER and t.node in eligible
        )

    def blocks_all(self, paths: Iterable[CausalPath], candidate: Iterable[str]) -> bool:
        candidate = set(candidate)
        return not any(self.analyzer.is_path_open(path, candidate) for path in paths)

    def solve(self) -> AdjustmentResult:
        """Search for all minimal adjustment sets.

        Returns:
            AdjustmentResult; check ``closable`` before using ``sets``
        """
        backdoor = tuple(self.analyzer.find_backdoor_paths(self.exposure, self.outcome))
        candidates = {path: self.blocking_candidates(path) for path in backdoor}

        hopeless = tuple(
            path for path in backdoor if not candidates[path] and not path.colliders()
        )
        if hopeless:
            return self._unclosable(backdoor, hopeless)

        pool = sorted(set().union(*candidates.values()))
        limit = len(pool) if self.max_size is None else min(self.max_size, len(pool))
        logger.debug(
            "Searching adjustment sets for %s -> %s: %d back-door paths, %d candidate nodes",
            self.exposure,
            self.outcome,
            len(backdoor),
            len(pool),
        )

        found: list[frozenset[str]] = []
        for size in range(limit + 1):
            for combo in combinations(pool, size):
                subset = frozenset(combo)
                if any(valid <= subset for valid in found):
                    continue
                if self.blocks_all(backdoor, subset):
                    found.append(subset)

        if not found:
            still_open = tuple(
                path for path in backdoor if self.analyzer.is_path_open(path, pool)
            )
            return self._unclosable(backdoor, still_open or backdoor)

        return AdjustmentResult(
            exposure=self.exposure,
            outcome=self.outcome,
            sets=tuple(found),
            backdoor_paths=backdoor,
        )

    def _unclosable(
        self,
        backdoor: tuple[CausalPath, ...],
        responsible: tuple[CausalPath, ...],
    ) -> AdjustmentResult:
        reasons = list(UNCLOSABLE_REASONS)
        if self.max_size is not None:
            reasons.append(f"no valid set has at most {self.max_size} variables")
        logger.debug(
            "Failed to close backdoor paths from %s to %s: %s",
            self.exposure,
            self.outcome,
            "; ".join(str(p) for p in responsible),
        )
        return AdjustmentResult(
            exposure=self.exposure,
            outcome=self.outcome,
            sets=(),
            backdoor_paths=backdoor,
            unclosable_paths=responsible,
            reasons=tuple(reasons),
        )


def adjustment_sets(
    dag: CausalDAG,
    exposure: str | None = None,
    outcome: str | None = None,
    max_size: int | None = None,
) -> list[frozenset[str]]:
    """Minimal adjustment sets for the effect of exposure on outcome.

    Returns:
        The minimal sets; ``[frozenset()]`` when no adjustment is needed

    Raises:
        UnclosableBackdoorError: If no set of observed variables works
    """
    result = AdjustmentSetSolver(dag, exposure, outcome, max_size).solve()
    result.raise_if_unclosable()
    return list(result.sets)


def is_confounder(
    dag: CausalDAG,
    z: str,
    x: str,
    y: str,
    direct: bool = False,
) -> bool:
    """Assess if ``z`` confounds the relationship between ``x`` and ``y``.

    Args:
        dag: The CausalDAG to analyze
        z: The potential confounder
        x: First variable z may confound
        y: Second variable z may confound
        direct: Only consider direct confounding (x and y children of z)

    Returns:
        True if both x and y are (strict) descendants of z, or children
        when ``direct``
    """
    if direct:
        reachable = set(dag.children(z))
    else:
        reachable = dag.descendants(z) - {z}
    return {x, y} <= reachable
