"""
Node types and data structures for causal DAGs.

Each node carries an explicit role (exposure, outcome, latent or observed)
instead of being looked up in optional side tables.
"""

from enum import Enum

from pydantic import BaseModel


class NodeRole(str, Enum):
    """Role of a variable in a causal question.

    - EXPOSURE: The treatment whose effect is estimated
    - OUTCOME: The variable the effect is measured on
    - LATENT: Unmeasured; can never be adjusted for
    - OBSERVED: Any other measured variable
    """

    EXPOSURE = "exposure"
    OUTCOME = "outcome"
    LATENT = "latent"
    OBSERVED = "observed"


class DAGNode(BaseModel):
    """A variable in a causal DAG.

    Attributes:
        name: Identifier, unique within a DAG
        role: Role of the variable in the causal question
        label: Optional display label
        x: Optional layout coordinate, used only for display
        y: Optional layout coordinate, used only for display
        synthetic: True for latent nodes introduced by canonicalization

    Example:
        >>> node = DAGNode(name="smoking", role=NodeRole.EXPOSURE)
        >>> node.is_observed
        True
    """

    name: str
    role: NodeRole = NodeRole.OBSERVED
    label: str | None = None
    x: float | None = None
    y: float | None = None
    synthetic: bool = False

    class Config:
        frozen = True

    @property
    def is_latent(self) -> bool:
        return self.role == NodeRole.LATENT

    @property
    def is_observed(self) -> bool:
        """Whether the node can be measured (and so adjusted for)."""
        return self.role != NodeRole.LATENT

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None

    def with_role(self, role: NodeRole) -> "DAGNode":
        """Create a copy of this node with a new role."""
        return self.model_copy(update={"role": role})

    def with_position(self, x: float, y: float) -> "DAGNode":
        """Create a copy of this node placed at (x, y)."""
        return self.model_copy(update={"x": float(x), "y": float(y)})

    def with_label(self, label: str) -> "DAGNode":
        return self.model_copy(update={"label": label})

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        """Equality based on node name."""
        if not isinstance(other, DAGNode):
            return False
        return self.name == other.name


def create_latent(name: str, synthetic: bool = False) -> DAGNode:
    """Factory function to create a latent (unmeasured) node."""
    return DAGNode(name=name, role=NodeRole.LATENT, synthetic=synthetic)
