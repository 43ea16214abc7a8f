"""Exceptions raised by tidydag."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Sequence

if TYPE_CHECKING:
    from tidydag.causal.paths import CausalPath


class TidyDAGError(Exception):
    """Base class for all tidydag errors."""


class CyclicGraphError(TidyDAGError, ValueError):
    """Raised when the directed edges of a graph contain a cycle.

    Attributes:
        nodes: Nodes left over when the topological sort got stuck; every
            cycle in the graph runs through these.
    """

    def __init__(self, nodes: Iterable[str]):
        self.nodes = tuple(sorted(nodes))
        super().__init__(
            f"Graph is not acyclic: cycle through {', '.join(self.nodes)}"
        )


class UnknownNodeError(TidyDAGError, ValueError):
    """Raised when a node name is not part of the graph."""

    def __init__(self, node: str):
        self.node = node
        super().__init__(f"Node {node!r} not in graph")


class InvalidGraphError(TidyDAGError, ValueError):
    """Raised for malformed graph declarations (duplicate nodes, a node
    bi-directed to itself)."""


class MissingRoleError(TidyDAGError, ValueError):
    """Raised when an exposure or outcome is needed but none is designated."""


class RoleConflictError(TidyDAGError, ValueError):
    """Raised when roles contradict each other, e.g. one node tagged as both
    exposure and outcome, or a latent exposure."""


class InvalidConditioningError(TidyDAGError, ValueError):
    """Raised when a conditioning set overlaps the nodes being tested."""


class FormulaSyntaxError(TidyDAGError, ValueError):
    """Raised when a dagify formula cannot be parsed."""


class MissingAdjustingVariableError(TidyDAGError, ValueError):
    """Raised when adjustment is requested without any variable to adjust for."""


UNCLOSABLE_REASONS = (
    "graph is not acyclic",
    "backdoor paths are not closeable with given set of variables",
    "necessary variables are unmeasured (latent)",
)


class UnclosableBackdoorError(TidyDAGError):
    """Raised when no set of observed variables closes every back-door path.

    Attributes:
        exposure: The exposure node
        outcome: The outcome node
        paths: Back-door paths that could not be closed
        reasons: Plausible causes, for display to the user
    """

    def __init__(
        self,
        exposure: str,
        outcome: str,
        paths: Sequence[CausalPath],
        reasons: Sequence[str] = UNCLOSABLE_REASONS,
    ):
        self.exposure = exposure
        self.outcome = outcome
        self.paths = tuple(paths)
        self.reasons = tuple(reasons)
        lines = [f"Failed to close backdoor paths from {exposure} to {outcome}."]
        if self.paths:
            lines.append("Open paths:")
            lines.extend(f"  {path}" for path in self.paths)
        lines.append("Common reasons include:")
        lines.extend(f"  * {reason}" for reason in self.reasons)
        super().__init__("\n".join(lines))
