"""Pytest configuration and fixtures for tidydag tests."""

import pytest

from tidydag.core.formula import dagify


@pytest.fixture
def chain_dag():
    """Create a simple chain DAG: X → Z → Y.

    This is useful for testing basic d-separation in chains.
    """
    return dagify("z ~ x", "y ~ z")


@pytest.fixture
def fork_dag():
    """Create a fork DAG: X ← Z → Y.

    This is useful for testing d-separation with common causes.
    """
    return dagify("x ~ z", "y ~ z")


@pytest.fixture
def collider_dag():
    """Create a collider DAG: X → M ← Y.

    This is useful for testing the 'explaining away' phenomenon.
    """
    return dagify("m ~ x + y")


@pytest.fixture
def confounding_dag():
    """Create a confounding DAG: Z → X, Z → Y, X → Y.

    This is the classic confounding scenario where Z confounds
    the exposure X and outcome Y relationship.
    """
    return dagify("y ~ x + z", "x ~ z", exposure="x", outcome="y")


@pytest.fixture
def m_bias_dag():
    """Create an M-bias DAG: X ← A → M ← B → Y.

    M is a collider; adjusting for it connects X and Y.
    """
    return dagify("m ~ a + b", "x ~ a", "y ~ b", exposure="x", outcome="y")


@pytest.fixture
def example_dag():
    """The textbook example with a bi-directed edge between W1 and W2.

    Its minimal adjustment sets for X → Y are {v, w1}, {w1, z1} and
    {w1, w2, z2}.
    """
    return dagify(
        "y ~ x + z2 + w2 + w1",
        "x ~ z1 + w1",
        "z1 ~ w1 + v",
        "z2 ~ w2 + v",
        "w1 ~~ w2",
        exposure="x",
        outcome="y",
    )


@pytest.fixture
def latent_confounder_dag():
    """Create a DAG whose only confounder is unmeasured: X ← U → Y, X → Y."""
    return dagify("y ~ x + u", "x ~ u", exposure="x", outcome="y", latent=["u"])
