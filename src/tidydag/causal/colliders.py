"""
Collider activation.

Conditioning on a collider, or on a descendant of one, opens the path
between the collider's parents ("explaining away"). ``activated_edges``
lists the parent pairs that become newly d-connected this way so that a
renderer can draw them as extra dashed edges.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import TYPE_CHECKING, Iterable

from tidydag.causal.dseparation import DSeparationAnalyzer

if TYPE_CHECKING:
    from tidydag.core.dag import CausalDAG


@dataclass(frozen=True)
class ActivatedEdge:
    """A pair of nodes d-connected through a conditioned collider.

    Attributes:
        source: First parent of the collider (alphabetically)
        target: Second parent of the collider
        collider: The collider whose parents were connected
        via: The conditioned node that opened it (the collider itself or
            one of its descendants)
    """

    source: str
    target: str
    collider: str
    via: str

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)


def colliders(dag: CausalDAG) -> list[str]:
    """Nodes with two or more parents, in topological order."""
    return [n for n in dag.node_names if len(dag.parents(n)) >= 2]


def activated_edges(dag: CausalDAG, conditioning_set: Iterable[str]) -> list[ActivatedEdge]:
    """Node pairs newly d-connected because a collider was conditioned on.

    A pair of non-adjacent, unconditioned parents of a collider with a
    conditioned descendant (itself included) is reported when it is
    d-connected given the conditioning set but d-separated once every
    conditioned descendant of every collider the pair shares is dropped
    from it.

    Args:
        dag: The CausalDAG to analyze
        conditioning_set: Nodes being adjusted for

    Returns:
        One ActivatedEdge per pair, ordered by pair; ``collider`` is the
        first opened shared collider in topological order
    """
    conditioned = set(conditioning_set)
    for node in conditioned:
        dag.node(node)

    analyzer = DSeparationAnalyzer(dag)
    activated: dict[tuple[str, str], ActivatedEdge] = {}
    checked: set[tuple[str, str]] = set()

    for collider in colliders(dag):
        if not dag.descendants(collider) & conditioned:
            continue
        for a, b in combinations(dag.parents(collider), 2):
            if (a, b) in checked:
                continue
            checked.add((a, b))
            if dag.is_adjacent(a, b) or a in conditioned or b in conditioned:
                continue

            shared = set(dag.children(a)) & set(dag.children(b))
            triggers: set[str] = set()
            for other in shared:
                triggers |= dag.descendants(other) & conditioned
            without = conditioned - triggers

            if analyzer.is_d_connected(a, b, conditioned) and analyzer.is_d_separated(a, b, without):
                own = dag.descendants(collider) & conditioned
                activated[(a, b)] = ActivatedEdge(
                    source=a,
                    target=b,
                    collider=collider,
                    via=collider if collider in own else min(own),
                )

    return [activated[pair] for pair in sorted(activated)]
