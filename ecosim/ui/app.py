"""
Ecosystem Simulator: Streamlit Web UI

Application with sidebar navigation:
  1. Home       - overview and legend
  2. Single Run - run one simulation with live grid, KPIs and events
"""

import math

import streamlit as st

# Must be the very first Streamlit command
st.set_page_config(
    page_title="Ecosystem Simulator",
    page_icon="🐇",
    layout="wide",
    initial_sidebar_state="expanded",
)


def _render_runner() -> None:
    from ecosim.ui.pages.sim_runner import render_sim_runner
    render_sim_runner()


def _render_home() -> None:
    """Render the home page."""
    st.title("🐇 Ecosystem Simulator")
    st.markdown("""
    A grid world of **rabbits** and **fluffles** whose behaviour is driven by a
    heritable genome. Animals forage, rest, court, fight and reproduce; their
    offspring inherit a recombined, mutated genome. Crowding raises population
    pressure, and random disasters test the population's resilience.

    ### Quick Start

    **▶️ Single Run**: pick a species, world size and seed, then watch the
    population evolve tick by tick. Trigger a disaster by hand at any time.

    ### Legend

    | Symbol | Meaning |
    |--------|---------|
    | ♣ ♠ · | Grass (rich, medium, bare) |
    | ≈ | Water |
    | ▲ | Rock |
    | r R ° | Rabbit (medium, large, small) |
    | f F ° | Fluffles (medium, large, small) |
    | ♥ | Courting fluffles |
    | • | Young fluffles |
    """)

    from ecosim.core.config import get_default_config
    from ecosim.core.world import CAPACITY_FRACTION
    from ecosim.logging.run_manager import RunManager

    defaults = get_default_config()
    st.divider()
    saved, grid, capacity = st.columns(3)
    saved.metric("📁 Saved runs", len(RunManager.list_runs(defaults.run.output_dir)))
    grid.metric("🗺️ Default grid", f"{defaults.world.width} x {defaults.world.height}")
    capacity.metric("🐾 Default capacity", math.floor(defaults.world.width * defaults.world.height * CAPACITY_FRACTION))


PAGES = {
    "🏠 Home": _render_home,
    "▶️ Single Run": _render_runner,
}


def main() -> None:
    st.sidebar.title("🐇 Ecosystem Simulator")
    st.sidebar.divider()
    choice = st.sidebar.radio("Go to", list(PAGES))
    PAGES[choice]()


if __name__ == "__main__":
    main()
