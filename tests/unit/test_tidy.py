"""Unit tests for tidy DAG tables and their verbs."""

import logging

import pandas as pd
import pytest

from tidydag.config import RenderConfig
from tidydag.core.formula import dagify
from tidydag.exceptions import MissingAdjustingVariableError, MissingRoleError, UnknownNodeError
from tidydag.tidy import (
    COLUMNS,
    NO_WAY_TO_BLOCK,
    OPEN_PATH,
    UNCONDITIONALLY_CLOSED,
    TidyDAG,
    adjust_for,
    adjusted_view,
    control_for,
    dag_adjustment_sets,
    dag_paths,
    node_status,
    tidy_dag,
)


@pytest.fixture
def placed_m_bias():
    """M-bias DAG with fixed coordinates."""
    dag = dagify(
        "m ~ a + b",
        "x ~ a",
        "y ~ b",
        exposure="x",
        outcome="y",
        coords={"a": (0, 1), "b": (2, 1), "m": (1, 0.5), "x": (0, 0), "y": (2, 0)},
    )
    return tidy_dag(dag)


class TestTidyDAG:
    """Tests for building the tidy table."""

    def test_columns(self, placed_m_bias):
        """The table has the documented columns."""
        assert list(placed_m_bias.data.columns) == COLUMNS

    def test_one_row_per_edge(self, placed_m_bias):
        """Five edges, plus one row each for m, x and y."""
        assert len(placed_m_bias) == 7

    def test_stored_coordinates_used(self, placed_m_bias):
        """Coordinates stored on the DAG become x/y and xend/yend."""
        row = placed_m_bias.data.query("name == 'a' and to == 'm'").iloc[0]

        assert (row.x, row.y) == (0.0, 1.0)
        assert (row.xend, row.yend) == (1.0, 0.5)

    def test_node_without_children(self, placed_m_bias):
        """Sinks get one row with no target."""
        row = placed_m_bias.data[placed_m_bias.data["name"] == "x"].iloc[0]

        assert pd.isna(row.to)
        assert pd.isna(row.direction)
        assert pd.isna(row.xend)

    def test_roles(self, placed_m_bias):
        """The role column carries NodeRole values."""
        roles = dict(zip(placed_m_bias.data["name"], placed_m_bias.data["role"]))

        assert roles["x"] == "exposure"
        assert roles["y"] == "outcome"
        assert roles["m"] == "observed"

    def test_layout_is_deterministic(self, confounding_dag):
        """The same seed gives the same positions."""
        first = TidyDAG.from_dag(confounding_dag, RenderConfig(seed=7))
        second = TidyDAG.from_dag(confounding_dag, RenderConfig(seed=7))

        assert first.positions() == second.positions()

    def test_bidirected_rows(self):
        """Declared view keeps the bi-directed edge; canonical view shows L1."""
        dag = dagify("y ~ x", "x ~~ y")

        declared = tidy_dag(dag)
        canonical = tidy_dag(dag, canonical=True)

        assert "<->" in set(declared.data["direction"])
        assert "L1" not in set(declared.data["name"])
        assert "L1" in set(canonical.data["name"])
        assert "<->" not in set(canonical.data["direction"])

    def test_canonical_keeps_coordinates(self):
        """Stored coordinates survive canonical=True; L1 sits between x and y."""
        dag = dagify("y ~ x", "x ~~ y", coords={"x": (0, 0), "y": (1, 0)})

        positions = tidy_dag(dag, canonical=True).positions()

        assert positions["x"] == (0.0, 0.0)
        assert positions["y"] == (1.0, 0.0)
        assert positions["L1"] == (0.5, 0.0)

    def test_to_records(self, placed_m_bias):
        """Missing values become None."""
        records = placed_m_bias.to_records()
        sink = next(r for r in records if r["name"] == "y")

        assert sink["xend"] is None
        assert sink["to"] is None

    def test_node_status(self, placed_m_bias):
        """status shows exposure and outcome, nothing for other nodes."""
        data = node_status(placed_m_bias).data
        status = dict(zip(data["name"], data["status"]))

        assert status["x"] == "exposure"
        assert status["y"] == "outcome"
        assert pd.isna(status["m"])


class TestControlFor:
    """Tests for control_for / adjust_for."""

    def test_adjusted_column(self, placed_m_bias):
        """Rows of the adjusted node are marked."""
        data = control_for(placed_m_bias, "m").data

        assert set(data.loc[data["name"] == "m", "adjusted"]) == {"adjusted"}
        assert set(data.loc[data["name"] == "x", "adjusted"]) == {"unadjusted"}

    def test_adjusted_is_categorical(self, placed_m_bias):
        """as_factor gives an ordered pair of categories."""
        data = control_for(placed_m_bias, "m").data

        assert isinstance(data["adjusted"].dtype, pd.CategoricalDtype)
        assert list(data["adjusted"].cat.categories) == ["unadjusted", "adjusted"]

    def test_plain_strings(self, placed_m_bias):
        """as_factor=False gives plain strings."""
        data = control_for(placed_m_bias, "m", as_factor=False).data

        assert not isinstance(data["adjusted"].dtype, pd.CategoricalDtype)

    def test_collider_line_added(self, placed_m_bias):
        """Adjusting for the collider adds an a <-> b line."""
        data = control_for(placed_m_bias, "m").data
        lines = data[data["collider_line"]]

        assert len(data) == 8
        assert lines[["name", "to", "direction"]].values.tolist() == [["a", "b", "<->"]]
        assert (lines.iloc[0].xend, lines.iloc[0].yend) == (2.0, 1.0)

    def test_collider_lines_disabled(self, placed_m_bias):
        """activate_colliders=False leaves the table's rows alone."""
        data = control_for(placed_m_bias, "m", activate_colliders=False).data

        assert len(data) == 7
        assert "collider_line" not in data.columns

    def test_records_adjusted_nodes(self, placed_m_bias):
        """The TidyDAG remembers what was adjusted for."""
        assert control_for(placed_m_bias, ["m", "a"]).adjusted_nodes == ("a", "m")

    def test_original_untouched(self, placed_m_bias):
        """Verbs return new tables."""
        control_for(placed_m_bias, "m")

        assert "adjusted" not in placed_m_bias.data.columns

    def test_unknown_variable(self, placed_m_bias):
        """Unknown variables raise."""
        with pytest.raises(UnknownNodeError):
            control_for(placed_m_bias, "nope")

    def test_adjust_for_alias(self):
        """adjust_for is control_for."""
        assert adjust_for is control_for


class TestAdjustedView:
    """Tests for adjusted_view."""

    def test_requires_variable(self, placed_m_bias):
        """Without var or an earlier control_for, it raises."""
        with pytest.raises(MissingAdjustingVariableError) as excinfo:
            adjusted_view(placed_m_bias)

        assert "either via `var` or `control_for()`" in str(excinfo.value)

    def test_uses_previous_control_for(self, placed_m_bias):
        """An earlier control_for is reused as is."""
        adjusted = control_for(placed_m_bias, "m")

        assert adjusted_view(adjusted) is adjusted

    def test_with_variable(self, placed_m_bias):
        """var is applied on the spot."""
        data = adjusted_view(placed_m_bias, "m").data

        assert "adjusted" in data.columns

    def test_recorded_nodes_without_column(self, placed_m_bias):
        """Recorded adjusted nodes are applied when the column is missing."""
        tidy = placed_m_bias.copy(adjusted_nodes=["m"])

        assert "adjusted" in adjusted_view(tidy).data.columns


class TestDagAdjustmentSets:
    """Tests for dag_adjustment_sets."""

    def test_one_copy_per_set(self, example_dag):
        """The table is repeated for each minimal set."""
        tidy = tidy_dag(example_dag)

        data = dag_adjustment_sets(tidy).data

        assert len(data) == 3 * len(tidy)
        assert sorted(data["set"].unique()) == ["{v, w1}", "{w1, w2, z2}", "{w1, z1}"]

    def test_adjusted_within_set(self, example_dag):
        """Within a set's copy only its members are adjusted."""
        data = dag_adjustment_sets(tidy_dag(example_dag)).data
        panel = data[data["set"] == "{v, w1}"]

        adjusted = set(panel.loc[panel["adjusted"] == "adjusted", "name"])
        assert adjusted == {"v", "w1"}

    def test_unconditionally_closed(self):
        """No back-door paths gives a single labelled copy."""
        tidy = tidy_dag(dagify("y ~ x", exposure="x", outcome="y"))

        data = dag_adjustment_sets(tidy).data

        assert set(data["set"]) == {UNCONDITIONALLY_CLOSED}
        assert set(data["adjusted"]) == {"unadjusted"}

    def test_unclosable_warns(self, latent_confounder_dag, caplog):
        """An unclosable graph logs a warning and labels the copy."""
        tidy = tidy_dag(latent_confounder_dag)

        with caplog.at_level(logging.WARNING, logger="tidydag.tidy"):
            data = dag_adjustment_sets(tidy).data

        assert set(data["set"]) == {NO_WAY_TO_BLOCK}
        assert set(data["adjusted"]) == {"unadjusted"}
        assert "Failed to close backdoor paths" in caplog.text

    def test_missing_roles(self):
        """Exposure and outcome are required."""
        with pytest.raises(MissingRoleError):
            dag_adjustment_sets(tidy_dag(dagify("y ~ x")))


class TestDagPaths:
    """Tests for dag_paths."""

    def test_open_paths_numbered(self, confounding_dag):
        """Each open path gets its own copy, numbered from 1."""
        tidy = tidy_dag(confounding_dag)

        data = dag_paths(tidy).data

        assert sorted(data["set"].unique()) == ["1", "2"]
        assert len(data) == 2 * len(tidy)

    def test_rows_on_path_marked(self, confounding_dag):
        """Only edges on the path are marked as open."""
        data = dag_paths(tidy_dag(confounding_dag)).data
        first = data[data["set"] == "1"]
        second = data[data["set"] == "2"]

        def marked(panel):
            on = panel[panel["path"] == OPEN_PATH]
            return {(r.name, r.to) for r in on.itertuples(index=False) if isinstance(r.to, str)}

        assert marked(first) == {("x", "y")}
        assert marked(second) == {("z", "x"), ("z", "y")}

    def test_adjusting_closes_path(self, confounding_dag):
        """Conditioning on the confounder leaves only the causal path."""
        data = dag_paths(tidy_dag(confounding_dag), adjust_for=["z"]).data

        assert list(data["set"].unique()) == ["1"]

    def test_no_open_paths(self, collider_dag):
        """With nothing open, one copy with missing set and path."""
        tidy = tidy_dag(collider_dag)

        data = dag_paths(tidy, from_="x", to="y").data

        assert len(data) == len(tidy)
        assert data["set"].isna().all()
        assert data["path"].isna().all()

    def test_bidirected_edge_on_path(self):
        """A path through a synthetic node marks the declared <-> row."""
        dag = dagify("y ~ x", "x ~~ y", exposure="x", outcome="y")

        data = dag_paths(tidy_dag(dag)).data
        bidirected = data[(data["direction"] == "<->") & (data["path"] == OPEN_PATH)]

        assert len(bidirected) == 1

    def test_missing_endpoints(self, chain_dag):
        """Without roles, from_ and to are needed."""
        with pytest.raises(MissingRoleError):
            dag_paths(tidy_dag(chain_dag))
