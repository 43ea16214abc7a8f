"""
Formula interface for declaring DAGs.

``dagify`` reads one relation per string:

- ``"y ~ x + z"``: x and z are direct causes of y
- ``"a ~~ b"``: a and b share an unmeasured common cause (bi-directed edge);
  ``"a ~ ~b"`` is accepted as well
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from tidydag.core.dag import CausalDAG
from tidydag.core.edges import DAGEdge, create_bidirected_edge, create_directed_edge
from tidydag.exceptions import FormulaSyntaxError

_TERM = re.compile(r"^[A-Za-z_.][\w.]*$")
_BIDIRECTED = re.compile(r"~\s*~")


def _split_terms(side: str, formula: str) -> list[str]:
    terms = [t.strip() for t in side.split("+")]
    for term in terms:
        if not _TERM.match(term):
            raise FormulaSyntaxError(f"Invalid term {term!r} in formula {formula!r}")
    return terms


def parse_formula(formula: str) -> list[DAGEdge]:
    """Parse a single relation into edges.

    Args:
        formula: A relation such as ``"y ~ x + z"`` or ``"a ~~ b"``

    Returns:
        The edges declared by the relation, in term order

    Raises:
        FormulaSyntaxError: If the relation is malformed
    """
    text = formula.strip()
    bidirected = _BIDIRECTED.search(text)
    if bidirected:
        lhs, rhs = text[: bidirected.start()], text[bidirected.end():]
    elif text.count("~") == 1:
        lhs, rhs = text.split("~")
    else:
        raise FormulaSyntaxError(f"Formula {formula!r} needs exactly one '~' or '~~'")

    if "~" in rhs:
        raise FormulaSyntaxError(f"Formula {formula!r} has more than one relation")

    children = _split_terms(lhs, formula)
    parents = _split_terms(rhs, formula)

    if bidirected:
        return [create_bidirected_edge(c, p) for c in children for p in parents]
    return [create_directed_edge(p, c) for c in children for p in parents]


def dagify(
    *formulas: str,
    exposure: str | None = None,
    outcome: str | None = None,
    latent: Iterable[str] = (),
    labels: dict[str, str] | None = None,
    coords: dict[str, tuple[float, float]] | None = None,
    **kwargs: Any,
) -> CausalDAG:
    """Create a CausalDAG from formula strings.

    Example:
        >>> dag = dagify(
        ...     "y ~ x + z2 + w2 + w1",
        ...     "x ~ z1 + w1",
        ...     "z1 ~ w1 + v",
        ...     "z2 ~ w2 + v",
        ...     "w1 ~~ w2",
        ...     exposure="x",
        ...     outcome="y",
        ... )
    """
    edges: list[DAGEdge] = []
    for formula in formulas:
        edges.extend(parse_formula(formula))
    return CausalDAG.build(
        edges,
        exposure=exposure,
        outcome=outcome,
        latent=latent,
        labels=labels,
        coords=coords,
        **kwargs,
    )
