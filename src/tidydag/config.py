"""
Layout and display configuration.

Everything that affects how a DAG is laid out or drawn lives in an explicit
RenderConfig passed to the functions that need it; there is no global theme
and no global random seed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import networkx as nx
import numpy as np

LAYOUTS = ("spring", "kamada_kawai", "circular", "shell", "planar")


@dataclass
class RenderConfig:
    """Configuration for laying out and drawing a DAG."""

    layout: str = "spring"
    seed: int = 1234
    scale: float = 1.0
    node: bool = True
    stylized: bool = False
    text: bool = True
    node_size: int = 16
    text_size: float = 3.88
    text_col: str = "white"
    label_col: str | None = None
    use_labels: str | None = None
    shadow: bool = False
    collider_lines: bool = True
    height: int = 420
    colors: dict[str, str] = field(
        default_factory=lambda: {
            "adjusted": "#1b9e77",
            "unadjusted": "#444444",
            "exposure": "#007bff",
            "outcome": "#28a745",
            "latent": "#6c757d",
            "collider": "#dc3545",
        }
    )

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise ValueError(f"Unknown layout {self.layout!r}; choose from {LAYOUTS}")
        if self.label_col is None:
            self.label_col = self.text_col

    def layout_positions(self, graph: nx.DiGraph) -> dict[str, tuple[float, float]]:
        """Compute node coordinates with the configured NetworkX layout.

        ``kamada_kawai`` needs scipy. ``spring`` is seeded with ``seed`` so
        repeated calls give the same coordinates.
        """
        if graph.number_of_nodes() == 0:
            return {}
        if self.layout == "spring":
            pos = nx.spring_layout(graph, seed=self.seed, scale=self.scale)
        elif self.layout == "kamada_kawai":
            pos = nx.kamada_kawai_layout(graph, scale=self.scale)
        elif self.layout == "circular":
            pos = nx.circular_layout(graph, scale=self.scale)
        elif self.layout == "shell":
            pos = nx.shell_layout(graph, scale=self.scale)
        else:
            pos = nx.planar_layout(graph, scale=self.scale)
        return {
            name: (float(np.round(xy[0], 6)), float(np.round(xy[1], 6)))
            for name, xy in pos.items()
        }
