"""
tidydag Streamlit Web Application.

A visual interface for drawing causal DAGs, their adjustment sets and the
paths opened by adjusting for colliders.
"""

import streamlit as st

from tidydag.config import LAYOUTS, RenderConfig
from tidydag.core.formula import dagify
from tidydag.exceptions import TidyDAGError
from tidydag.render import render_adjustment_sets_html, render_dag_html
from tidydag.tidy import TidyDAG, control_for, dag_adjustment_sets, node_status

EXAMPLE = """y ~ x + z2 + w2 + w1
x ~ z1 + w1
z1 ~ w1 + v
z2 ~ w2 + v
w1 ~~ w2"""


# --- Session State Helpers ---
def init_session():
    """Initialize session state."""
    if "formulas" not in st.session_state:
        st.session_state.formulas = EXAMPLE
    if "config" not in st.session_state:
        st.session_state.config = RenderConfig()


def _split_list(text: str) -> list[str]:
    return [t.strip() for t in text.split(",") if t.strip()]


# --- Main App UI ---
def render_app():
    """Render main application."""
    with st.sidebar:
        st.markdown("### Layout")
        layout = st.selectbox("Algorithm", LAYOUTS, index=0)
        seed = st.number_input("Seed", value=st.session_state.config.seed, step=1)
        show_colliders = st.checkbox("Show activated collider paths", value=True)
        st.session_state.config = RenderConfig(
            layout=layout,
            seed=int(seed),
            collider_lines=show_colliders,
        )

    st.title("tidydag")
    st.markdown("*Adjustment sets and collider bias for causal DAGs*")

    formulas = st.text_area("Relations, one per line", value=st.session_state.formulas, height=160)
    st.session_state.formulas = formulas
    col1, col2, col3 = st.columns(3)
    exposure = col1.text_input("Exposure", value="x")
    outcome = col2.text_input("Outcome", value="y")
    latent = col3.text_input("Latent (comma separated)", value="")

    try:
        dag = dagify(
            *[line for line in formulas.splitlines() if line.strip()],
            exposure=exposure or None,
            outcome=outcome or None,
            latent=_split_list(latent),
        )
    except TidyDAGError as e:
        st.error(f"Invalid DAG: {e}")
        return

    tidy = node_status(TidyDAG.from_dag(dag, st.session_state.config))

    with st.expander("DAG", expanded=True):
        st.components.v1.html(render_dag_html(tidy), height=st.session_state.config.height + 20)

    with st.expander("Adjustment sets", expanded=True):
        try:
            sets = dag_adjustment_sets(tidy)
        except TidyDAGError as e:
            st.error(str(e))
        else:
            labels = sets.data["set"].unique().tolist()
            st.markdown(", ".join(f"`{label}`" for label in labels))
            st.components.v1.html(
                render_adjustment_sets_html(sets),
                height=(st.session_state.config.height + 60) * ((len(labels) + 1) // 2),
            )

    with st.expander("Adjust for variables"):
        chosen = st.multiselect("Variables", [n.name for n in dag.declared_nodes])
        if chosen:
            adjusted = control_for(tidy, chosen)
            st.components.v1.html(render_dag_html(adjusted), height=st.session_state.config.height + 20)
            st.dataframe(adjusted.data)


def main():
    """Main entry point."""
    st.set_page_config(
        page_title="tidydag",
        page_icon="",
        layout="wide",
    )

    init_session()
    render_app()


if __name__ == "__main__":
    main()
