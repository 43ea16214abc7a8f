"""
HTML rendering of tidy DAG tables with vis.js.

The renderer only reads the tidy table (node/edge rows and annotation
columns) and a RenderConfig; it never looks at the DAG itself.
"""

from __future__ import annotations

import html
import json
from typing import Any

import pandas as pd

from tidydag.config import RenderConfig
from tidydag.tidy import ADJUSTED, TidyDAG

# vis.js positions are in pixels, tidy coordinates are roughly unit scale
PIXELS_PER_UNIT = 150


def _node_color(row: Any, config: RenderConfig) -> str:
    adjusted = getattr(row, "adjusted", None)
    if isinstance(adjusted, str):
        return config.colors[adjusted]
    status = getattr(row, "status", None)
    if isinstance(status, str) and status in config.colors:
        return config.colors[status]
    return config.colors["unadjusted"]


def dag_elements(data: pd.DataFrame, config: RenderConfig) -> tuple[list[dict], list[dict]]:
    """Build vis.js node and edge dicts from one panel of a tidy table."""
    nodes: dict[str, dict] = {}
    edges: list[dict] = []

    for row in data.itertuples(index=False):
        if row.name not in nodes:
            label = row.name
            if config.use_labels and isinstance(getattr(row, config.use_labels, None), str):
                label = getattr(row, config.use_labels)
            nodes[row.name] = {
                "id": row.name,
                "label": label if config.text else "",
                "x": row.x * PIXELS_PER_UNIT,
                "y": -row.y * PIXELS_PER_UNIT,
                "color": _node_color(row, config),
                "shape": "ellipse" if config.stylized else "circle",
                "size": config.node_size,
                "font": {"color": config.text_col},
                "hidden": not config.node,
            }

        if not isinstance(row.to, str):
            continue

        collider_line = bool(getattr(row, "collider_line", False))
        if collider_line and not config.collider_lines:
            continue
        edge: dict[str, Any] = {"from": row.name, "to": row.to}
        if collider_line:
            edge.update(dashes=True, arrows="", color=config.colors["collider"])
        elif row.direction == "<->":
            edge.update(arrows="to, from", dashes=True)
        else:
            edge.update(arrows="to")
        if config.shadow and getattr(row, "adjusted", None) == ADJUSTED:
            edge["color"] = {"opacity": 0.3}
        edges.append(edge)

    return list(nodes.values()), edges


def render_dag_html(tidy: TidyDAG, config: RenderConfig | None = None, title: str = "") -> str:
    """Render a tidy table as a standalone vis.js HTML page."""
    config = config or tidy.config
    return _page([(title, tidy.data)], config)


def render_adjustment_sets_html(tidy: TidyDAG, config: RenderConfig | None = None) -> str:
    """Render one panel per value of the ``set`` column."""
    config = config or tidy.config
    if "set" not in tidy.data.columns:
        raise ValueError("Table has no `set` column; run dag_adjustment_sets() first")
    panels = [(str(name), frame) for name, frame in tidy.data.groupby("set", sort=True)]
    return _page(panels, config)


def _page(panels: list[tuple[str, pd.DataFrame]], config: RenderConfig) -> str:
    divs = []
    scripts = []
    for i, (title, data) in enumerate(panels):
        nodes, edges = dag_elements(data, config)
        heading = f"<h4>{html.escape(title)}</h4>" if title else ""
        divs.append(f'<div class="panel">{heading}<div id="graph{i}" class="graph"></div></div>')
        scripts.append(
            f"""
            new vis.Network(
                document.getElementById('graph{i}'),
                {{ nodes: new vis.DataSet({json.dumps(nodes)}),
                   edges: new vis.DataSet({json.dumps(edges)}) }},
                {{ physics: false, edges: {{ color: '#666' }} }}
            );"""
        )

    return f"""
    <html>
    <head>
        <script src="https://unpkg.com/vis-network/standalone/umd/vis-network.min.js"></script>
        <style>
            .panel {{ display: inline-block; width: 48%; vertical-align: top; }}
            .graph {{
                width: 100%;
                height: {config.height}px;
                border: 1px solid #ddd;
                border-radius: 8px;
            }}
        </style>
    </head>
    <body>
        {''.join(divs)}
        <script>{''.join(scripts)}
        </script>
    </body>
    </html>
    """
