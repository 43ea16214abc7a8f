"""
Tidy (one row per edge) tables of causal DAGs.

A TidyDAG pairs a CausalDAG with a pandas DataFrame that a renderer can draw
directly. Each verb in this module returns a new TidyDAG with annotation
columns added; the underlying DAG is never modified.

Columns:
    name, x, y       the edge's source node and its coordinates
    direction        "->" or "<->"; missing for nodes without outgoing edges
    to, xend, yend   the edge's target node and its coordinates
    label, role      display label and NodeRole value of ``name``

Annotation columns added by verbs: ``status``, ``adjusted``,
``collider_line``, ``set``, ``path``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import networkx as nx
import numpy as np
import pandas as pd

from tidydag.causal.adjustment import AdjustmentSetSolver, format_set
from tidydag.causal.colliders import activated_edges
from tidydag.causal.dseparation import DSeparationAnalyzer
from tidydag.causal.paths import CausalPath
from tidydag.config import RenderConfig
from tidydag.core.dag import CausalDAG
from tidydag.core.nodes import NodeRole
from tidydag.exceptions import UNCLOSABLE_REASONS, MissingAdjustingVariableError, MissingRoleError

logger = logging.getLogger(__name__)

COLUMNS = ["name", "x", "y", "direction", "to", "xend", "yend", "label", "role"]

ADJUSTED = "adjusted"
UNADJUSTED = "unadjusted"
UNCONDITIONALLY_CLOSED = "(Backdoor Paths Unconditionally Closed)"
NO_WAY_TO_BLOCK = "(No Way to Block Backdoor Paths)"
OPEN_PATH = "open path"


class TidyDAG:
    """A CausalDAG together with its tidy edge table.

    Attributes:
        data: The table, one row per edge plus one per node without
            outgoing edges
        dag: The DAG the table was built from
        config: Layout and display configuration
        adjusted_nodes: Nodes recorded by the last ``control_for``

    Example:
        >>> tidy = TidyDAG.from_dag(dagify("y ~ x + z", "x ~ z"))
        >>> tidy.data[["name", "to"]].values.tolist()
        [['x', 'y'], ['y', None], ['z', 'y'], ['z', 'x']]
    """

    def __init__(
        self,
        data: pd.DataFrame,
        dag: CausalDAG,
        config: RenderConfig | None = None,
        adjusted_nodes: Iterable[str] = (),
    ):
        self.data = data
        self.dag = dag
        self.config = config or RenderConfig()
        self.adjusted_nodes = tuple(sorted(adjusted_nodes))

    @classmethod
    def from_dag(
        cls,
        dag: CausalDAG,
        config: RenderConfig | None = None,
        canonical: bool = False,
    ) -> TidyDAG:
        """Build the tidy table of a DAG.

        Args:
            dag: The CausalDAG to tabulate
            config: Layout configuration; node coordinates stored on the
                DAG win when every declared node has them, with synthetic
                latent nodes placed midway between their children
            canonical: Show synthetic latent nodes instead of bi-directed edges

        Returns:
            A new TidyDAG
        """
        config = config or RenderConfig()
        nodes = dag.nodes if canonical else dag.declared_nodes
        edges = dag.edges if canonical else dag.declared_edges

        positions = {node.name: (node.x, node.y) for node in nodes if node.has_position}
        missing = [node for node in nodes if not node.has_position]
        if positions and all(node.synthetic for node in missing):
            # synthetic latent nodes sit between the two nodes they join
            for node in missing:
                xs, ys = zip(*(positions[child] for child in dag.children(node.name)))
                positions[node.name] = (float(np.mean(xs)), float(np.mean(ys)))
        else:
            layout_graph = nx.DiGraph()
            layout_graph.add_nodes_from(node.name for node in nodes)
            layout_graph.add_edges_from((e.source, e.target) for e in edges)
            positions = config.layout_positions(layout_graph)

        rows: list[dict[str, Any]] = []
        for node in nodes:
            x, y = positions[node.name]
            base = {"name": node.name, "x": x, "y": y, "label": node.label, "role": node.role.value}
            outgoing = [e for e in edges if e.source == node.name]
            for edge in outgoing:
                xend, yend = positions[edge.target]
                rows.append(
                    {**base, "direction": edge.kind.value, "to": edge.target, "xend": xend, "yend": yend}
                )
            if not outgoing:
                rows.append({**base, "direction": None, "to": None, "xend": np.nan, "yend": np.nan})

        data = pd.DataFrame(rows, columns=COLUMNS)
        return cls(data, dag, config)

    def copy(self, data: pd.DataFrame | None = None, adjusted_nodes: Iterable[str] | None = None) -> TidyDAG:
        return TidyDAG(
            self.data.copy() if data is None else data,
            self.dag,
            self.config,
            self.adjusted_nodes if adjusted_nodes is None else adjusted_nodes,
        )

    def positions(self) -> dict[str, tuple[float, float]]:
        """Node coordinates as ``{name: (x, y)}``."""
        first = self.data.drop_duplicates("name")
        return {row.name: (row.x, row.y) for row in first.itertuples(index=False)}

    def to_records(self) -> list[dict[str, Any]]:
        """Rows as plain dicts with missing values as None (JSON friendly)."""
        data = self.data.astype(object)
        return data.where(pd.notna(data), None).to_dict(orient="records")

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"TidyDAG(rows={len(self.data)}, dag={self.dag!r})"


def tidy_dag(dag: CausalDAG, config: RenderConfig | None = None, canonical: bool = False) -> TidyDAG:
    """Shortcut for :meth:`TidyDAG.from_dag`."""
    return TidyDAG.from_dag(dag, config, canonical)


def node_status(tidy: TidyDAG) -> TidyDAG:
    """Add a ``status`` column: exposure, outcome, latent, or missing."""
    shown = {NodeRole.EXPOSURE.value, NodeRole.OUTCOME.value, NodeRole.LATENT.value}
    data = tidy.data.copy()
    data["status"] = data["role"].where(data["role"].isin(shown), None)
    return tidy.copy(data)


def _adjusted_column(names: pd.Series, var: set[str], as_factor: bool) -> pd.Series:
    values = np.where(names.isin(var), ADJUSTED, UNADJUSTED)
    if as_factor:
        return pd.Categorical(values, categories=[UNADJUSTED, ADJUSTED])
    return pd.Series(values, index=names.index)


def control_for(
    tidy: TidyDAG,
    var: str | Iterable[str],
    as_factor: bool = True,
    activate_colliders: bool = True,
) -> TidyDAG:
    """Adjust for variables and add any biasing paths that result.

    Args:
        tidy: The table to annotate
        var: Variable(s) to adjust for
        as_factor: Store ``adjusted`` as a pandas Categorical
        activate_colliders: Append one ``collider_line`` row per pair of
            nodes connected through a conditioned collider

    Returns:
        A TidyDAG with an ``adjusted`` column that remembers ``var``
    """
    var = {var} if isinstance(var, str) else set(var)
    for node in var:
        tidy.dag.node(node)

    data = tidy.data.copy()
    if activate_colliders:
        data["collider_line"] = False
        positions = tidy.positions()
        labels = dict(zip(data["name"], data["label"]))
        roles = dict(zip(data["name"], data["role"]))
        extra = []
        for edge in activated_edges(tidy.dag, var):
            if edge.source not in positions or edge.target not in positions:
                continue
            x, y = positions[edge.source]
            xend, yend = positions[edge.target]
            extra.append(
                {
                    "name": edge.source,
                    "x": x,
                    "y": y,
                    "direction": "<->",
                    "to": edge.target,
                    "xend": xend,
                    "yend": yend,
                    "label": labels.get(edge.source),
                    "role": roles.get(edge.source),
                    "collider_line": True,
                }
            )
        if extra:
            logger.debug("Adjusting for %s activates %d collider paths", sorted(var), len(extra))
            data = pd.concat([data, pd.DataFrame(extra)], ignore_index=True)

    data["adjusted"] = _adjusted_column(data["name"], var, as_factor)
    return tidy.copy(data, adjusted_nodes=var)


adjust_for = control_for


def adjusted_view(tidy: TidyDAG, var: str | Iterable[str] | None = None) -> TidyDAG:
    """The table needed to draw a DAG with its adjusted variables.

    Raises:
        MissingAdjustingVariableError: If ``var`` is not given and no earlier
            ``control_for`` recorded any variable
    """
    if var is not None:
        return control_for(tidy, var)
    if not tidy.adjusted_nodes:
        raise MissingAdjustingVariableError(
            "an adjusting variable needs to be set, either via `var` or `control_for()`"
        )
    if "adjusted" not in tidy.data.columns:
        return control_for(tidy, tidy.adjusted_nodes)
    return tidy


def dag_adjustment_sets(
    tidy: TidyDAG,
    exposure: str | None = None,
    outcome: str | None = None,
    max_size: int | None = None,
) -> TidyDAG:
    """One copy of the table per minimal adjustment set.

    Adds ``adjusted`` ("adjusted"/"unadjusted") and ``set`` (e.g. "{a, b}")
    columns. When no set can close the back-door paths a warning is logged
    and a single copy labelled "(No Way to Block Backdoor Paths)" is
    returned with every node unadjusted.
    """
    result = AdjustmentSetSolver(tidy.dag, exposure, outcome, max_size).solve()

    if not result.closable:
        logger.warning(
            "Failed to close backdoor paths. Common reasons include:\n%s",
            "\n".join(f"  * {reason}" for reason in result.reasons or UNCLOSABLE_REASONS),
        )
        labelled = [(frozenset(), NO_WAY_TO_BLOCK)]
    else:
        labelled = [
            (s, format_set(s) if s else UNCONDITIONALLY_CLOSED) for s in result.sets
        ]

    frames = []
    for members, label in labelled:
        frame = tidy.data.copy()
        frame["adjusted"] = _adjusted_column(frame["name"], set(members), as_factor=False)
        frame["set"] = label
        frames.append(frame)

    return tidy.copy(pd.concat(frames, ignore_index=True))


def _path_edges(path: CausalPath, dag: CausalDAG) -> tuple[set[tuple[str, str]], set[tuple[str, str]]]:
    """Directed hops of a path, and bi-directed pairs implied by synthetic nodes."""
    directed = set(path.hops())
    bidirected = set()
    for triple in path.triples():
        if dag.node(triple.node).synthetic:
            bidirected.add(tuple(sorted((triple.left, triple.right))))
    return directed, bidirected


def dag_paths(
    tidy: TidyDAG,
    from_: str | None = None,
    to: str | None = None,
    adjust_for: Iterable[str] | None = None,
) -> TidyDAG:
    """One copy of the table per open path between two nodes.

    Args:
        tidy: The table to annotate
        from_: Start node; defaults to the exposure
        to: End node; defaults to the outcome
        adjust_for: Conditioning set

    Returns:
        A TidyDAG with ``set`` (path number, from 1) and ``path``
        ("open path" for rows on the path, missing otherwise). With no open
        paths, a single copy with both columns missing.
    """
    from_ = from_ or tidy.dag.exposure
    to = to or tidy.dag.outcome
    if from_ is None or to is None:
        raise MissingRoleError("dag_paths needs `from_` and `to`, or an exposure and outcome")

    analyzer = DSeparationAnalyzer(tidy.dag)
    open_paths = analyzer.open_paths(from_, to, adjust_for)

    if not open_paths:
        logger.info("No open paths between %s and %s", from_, to)
        data = tidy.data.copy()
        data["set"] = None
        data["path"] = None
        return tidy.copy(data)

    frames = []
    for number, path in enumerate(open_paths, start=1):
        directed, bidirected = _path_edges(path, tidy.dag)
        frame = tidy.data.copy()
        on_path = []
        for row in frame.itertuples(index=False):
            if row.direction == "->":
                on_path.append((row.name, row.to) in directed)
            elif row.direction == "<->":
                on_path.append(tuple(sorted((row.name, row.to))) in bidirected)
            else:
                on_path.append(row.name in path.nodes)
        frame["set"] = str(number)
        frame["path"] = [OPEN_PATH if flag else None for flag in on_path]
        frames.append(frame)

    return tidy.copy(pd.concat(frames, ignore_index=True))
