"""Unit tests for d-separation analysis."""

import pytest

from tidydag.causal.dseparation import DSeparationAnalyzer
from tidydag.core.formula import dagify
from tidydag.exceptions import InvalidConditioningError, TidyDAGError, UnknownNodeError


class TestDSeparation:
    """Tests for d-separation on the three elementary structures."""

    def test_chain_blocked_by_middle(self, chain_dag):
        """In X → Z → Y, X ⊥ Y | Z."""
        analyzer = DSeparationAnalyzer(chain_dag)

        assert analyzer.is_d_separated({"x"}, {"y"}, {"z"}) is True
        assert analyzer.is_d_separated({"x"}, {"y"}) is False

    def test_fork_blocked_by_common_cause(self, fork_dag):
        """In X ← Z → Y, X ⊥ Y | Z."""
        analyzer = DSeparationAnalyzer(fork_dag)

        assert analyzer.is_d_separated("x", "y", ["z"]) is True
        assert analyzer.is_d_separated("x", "y") is False

    def test_collider_opened_by_conditioning(self, collider_dag):
        """In X → M ← Y, X ⊥ Y but not X ⊥ Y | M."""
        analyzer = DSeparationAnalyzer(collider_dag)

        assert analyzer.is_d_separated("x", "y") is True
        assert analyzer.is_d_separated("x", "y", ["m"]) is False

    def test_collider_descendant_opens(self):
        """Conditioning on a descendant of a collider opens the path."""
        dag = dagify("m ~ x + y", "d ~ m")
        analyzer = DSeparationAnalyzer(dag)

        assert analyzer.is_d_separated("x", "y", ["d"]) is False

    def test_direct_edge_never_blocked(self, confounding_dag):
        """Adjacent nodes stay d-connected whatever is conditioned on."""
        analyzer = DSeparationAnalyzer(confounding_dag)

        assert analyzer.is_d_connected("x", "y", ["z"]) is True

    def test_m_bias(self, m_bias_dag):
        """Adjusting for M alone opens X ← A → M ← B → Y."""
        analyzer = DSeparationAnalyzer(m_bias_dag)

        assert analyzer.is_d_separated("x", "y") is True
        assert analyzer.is_d_separated("x", "y", ["m"]) is False
        assert analyzer.is_d_separated("x", "y", ["m", "a"]) is True

    def test_repeatable(self, example_dag):
        """The same query gives the same answer twice."""
        analyzer = DSeparationAnalyzer(example_dag)

        first = analyzer.is_d_separated("x", "y", ["w1", "z1"])
        assert analyzer.is_d_separated("x", "y", ["w1", "z1"]) is first

    def test_overlapping_sets_connected(self, chain_dag):
        """A node is never d-separated from itself."""
        assert DSeparationAnalyzer(chain_dag).is_d_separated("x", {"x", "y"}) is False

    def test_conditioning_on_endpoint_rejected(self, chain_dag):
        """Z must not overlap X or Y."""
        with pytest.raises(InvalidConditioningError):
            DSeparationAnalyzer(chain_dag).is_d_separated("x", "y", ["x"])

    def test_conditioning_error_is_library_error(self, chain_dag):
        """The overlap error is a TidyDAGError and a ValueError."""
        with pytest.raises(TidyDAGError):
            DSeparationAnalyzer(chain_dag).is_d_separated("x", "y", ["y"])
        with pytest.raises(ValueError):
            DSeparationAnalyzer(chain_dag).is_d_separated("x", "y", ["y"])

    def test_unknown_node(self, chain_dag):
        """Unknown nodes raise UnknownNodeError."""
        with pytest.raises(UnknownNodeError):
            DSeparationAnalyzer(chain_dag).is_d_separated("x", "y", ["nope"])


class TestPathClassification:
    """Tests for per-path open/blocked classification."""

    def test_blocking_nodes_reported(self, confounding_dag):
        """The fork node is reported as blocking."""
        analyzer = DSeparationAnalyzer(confounding_dag)
        backdoor = analyzer.find_backdoor_paths("x", "y")[0]

        result = analyzer.classify(backdoor, ["z"])

        assert result.is_open is False
        assert result.blocking == ("z",)
        assert str(result) == "x <- z -> y: blocked by z"

    def test_unconditioned_collider_blocks(self, collider_dag):
        """An unconditioned collider blocks its path."""
        analyzer = DSeparationAnalyzer(collider_dag)
        path = analyzer.paths.all_paths("x", "y")[0]

        assert analyzer.classify(path).blocking == ("m",)

    def test_open_paths(self, confounding_dag):
        """open_paths lists every unblocked path."""
        analyzer = DSeparationAnalyzer(confounding_dag)

        assert [str(p) for p in analyzer.open_paths("x", "y")] == ["x -> y", "x <- z -> y"]
        assert [str(p) for p in analyzer.open_paths("x", "y", ["z"])] == ["x -> y"]


class TestConditionalIndependence:
    """Tests for the detailed independence report."""

    def test_independent(self, chain_dag):
        """A blocked chain is reported as independent."""
        report = DSeparationAnalyzer(chain_dag).check_conditional_independence("x", "y", ["z"])

        assert report["is_independent"] is True
        assert report["given"] == {"z"}
        assert report["open_paths"] == []
        assert "blocked" in report["explanation"]

    def test_dependent(self, chain_dag):
        """An open chain lists its open path."""
        report = DSeparationAnalyzer(chain_dag).check_conditional_independence("x", "y")

        assert report["is_independent"] is False
        assert report["open_paths"] == ["x -> z -> y"]


class TestBackdoorCriterion:
    """Tests for the back-door criterion check."""

    def test_valid_adjustment(self, confounding_dag):
        """Adjusting for the confounder is valid."""
        analyzer = DSeparationAnalyzer(confounding_dag)

        assert analyzer.is_valid_adjustment_set("x", "y", {"z"}) is True
        assert analyzer.is_valid_adjustment_set("x", "y", set()) is False

    def test_descendant_of_exposure_invalid(self):
        """Mediators cannot be adjusted for."""
        dag = dagify("m ~ x", "y ~ m + z", "x ~ z")
        analyzer = DSeparationAnalyzer(dag)

        assert analyzer.is_valid_adjustment_set("x", "y", {"z", "m"}) is False

    def test_m_bias_sets(self, m_bias_dag):
        """The empty set works; M alone does not; M with A does."""
        analyzer = DSeparationAnalyzer(m_bias_dag)

        assert analyzer.is_valid_adjustment_set("x", "y", set()) is True
        assert analyzer.is_valid_adjustment_set("x", "y", {"m"}) is False
        assert analyzer.is_valid_adjustment_set("x", "y", {"m", "a"}) is True
