"""
Single Run page for the ecosystem simulator UI.

Allows users to:
  - Run a simulation for N ticks with live progress, grid and KPIs
  - Manually trigger a disaster between runs
  - View KPI evolution charts and the event log
  - Download the KPI table as CSV
"""

import time

import pandas as pd
import streamlit as st

from ecosim.core.config import SimConfig, get_default_config
from ecosim.logging.run_manager import RunManager
from ecosim.simulation.disaster import MAJOR_KINDS
from ecosim.simulation.engine import SimulationEngine
from ecosim.ui.components.charts import (
    deaths_over_time,
    energy_distribution,
    gene_evolution,
    needs_over_time,
    population_over_time,
)
from ecosim.ui.components.grid_view import render_world_grid


# ---------------------------------------------------------------------------
# Session state helpers
# ---------------------------------------------------------------------------

_STATE_DEFAULTS = {
    "sim_engine": None,
    "sim_run_manager": None,
    "sim_tick_data": [],
    "sim_result": None,
}


def _init_session_state() -> None:
    for k, v in _STATE_DEFAULTS.items():
        if k not in st.session_state:
            st.session_state[k] = list(v) if isinstance(v, list) else v


def _reset_session_state() -> None:
    run_manager = st.session_state.get("sim_run_manager")
    if run_manager is not None:
        run_manager.finalize()
    for k, v in _STATE_DEFAULTS.items():
        st.session_state[k] = list(v) if isinstance(v, list) else v


# ---------------------------------------------------------------------------
# Main render
# ---------------------------------------------------------------------------

def render_sim_runner() -> None:
    """Render the single simulation runner page."""
    _init_session_state()
    st.title("▶️ Single Simulation Run")

    config = get_default_config()

    # --- World parameters ---
    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        species = st.selectbox("Species", ["fluffles", "rabbit"], key="sr_species")
    with col2:
        initial_count = st.number_input(
            "Initial animals", min_value=1, max_value=500,
            value=config.population.initial_count, key="sr_count",
        )
    with col3:
        width = st.number_input("Width", min_value=5, max_value=200, value=config.world.width, key="sr_w")
    with col4:
        height = st.number_input("Height", min_value=5, max_value=200, value=config.world.height, key="sr_h")
    with col5:
        seed = st.number_input(
            "Seed", min_value=0, max_value=999999999,
            value=config.world.seed, step=1, key="sr_seed",
        )

    col1, col2 = st.columns(2)
    with col1:
        ticks = st.number_input("Ticks per run", min_value=1, max_value=100000, value=200, step=50, key="sr_ticks")
    with col2:
        output_dir = st.text_input("Output dir (empty = don't save)", value=config.run.output_dir, key="sr_outdir")

    st.markdown("---")

    # --- Control buttons ---
    btn_col1, btn_col2, btn_col3, btn_col4 = st.columns(4)
    engine = st.session_state.sim_engine

    with btn_col1:
        new_btn = st.button("🌱 New World", key="sr_new")
    with btn_col2:
        run_btn = st.button("🚀 Run Ticks", disabled=engine is None, key="sr_run")
    with btn_col3:
        disaster_kind = st.selectbox(
            "Disaster", ["random"] + [k.value for k in MAJOR_KINDS], key="sr_disaster_kind",
        )
        disaster_btn = st.button("⚡ Trigger Disaster", disabled=engine is None, key="sr_disaster")
    with btn_col4:
        reset_btn = st.button("🔄 Reset", key="sr_reset")

    if reset_btn:
        _reset_session_state()
        st.rerun()

    if new_btn:
        config.world.width = int(width)
        config.world.height = int(height)
        config.population.species = species
        config.population.initial_count = int(initial_count)
        _new_world(config, int(seed), output_dir)
        engine = st.session_state.sim_engine

    if disaster_btn and engine is not None:
        kind = None if disaster_kind == "random" else disaster_kind
        status = engine.trigger_disaster(kind=kind)
        st.warning(
            f"⚡ {status['kind']} triggered "
            f"(intensity {status['intensity']:.0%}, {status['duration_remaining']} ticks)"
        )

    if run_btn and engine is not None:
        _run_ticks(engine, int(ticks))

    # --- Display ---
    if engine is not None:
        _display_world(engine)
    if st.session_state.sim_tick_data:
        _display_results()


# ---------------------------------------------------------------------------
# Simulation execution
# ---------------------------------------------------------------------------

def _new_world(config: SimConfig, seed: int, output_dir: str) -> None:
    """Build a fresh engine and seed the population."""
    _reset_session_state()

    config.world.seed = seed
    run_manager = RunManager(config, base_dir=output_dir) if output_dir else None
    engine = SimulationEngine(
        config,
        seed=seed,
        event_log=run_manager.event_log if run_manager is not None else None,
    )
    engine.initialize()

    st.session_state.sim_engine = engine
    st.session_state.sim_run_manager = run_manager


def _run_ticks(engine: SimulationEngine, ticks: int) -> None:
    """Advance the simulation with live progress display."""
    run_manager = st.session_state.sim_run_manager
    tick_data = st.session_state.sim_tick_data

    progress_bar = st.progress(0.0, text="Running...")
    status_container = st.empty()

    kpi_cols = st.columns(5)
    kpi_pop = kpi_cols[0].empty()
    kpi_tick = kpi_cols[1].empty()
    kpi_pressure = kpi_cols[2].empty()
    kpi_energy = kpi_cols[3].empty()
    kpi_disaster = kpi_cols[4].empty()

    chart_placeholder = st.empty()

    start_time = time.time()
    seen = len(engine.metrics.history)

    try:
        for i in range(ticks):
            engine.tick()

            new_rows = engine.metrics.history[seen:]
            seen = len(engine.metrics.history)
            for kpis in new_rows:
                tick_data.append(kpis)
                if run_manager is not None:
                    run_manager.log_tick(kpis)

            progress_bar.progress((i + 1) / ticks, text=f"Tick {engine.current_tick}")

            if new_rows:
                kpis = new_rows[-1]
                kpi_pop.metric("🐾 Population", kpis["alive_count"])
                kpi_tick.metric("⏱️ Tick", kpis["tick"])
                kpi_pressure.metric("📈 Pressure", f"{kpis['pressure']}/10")
                kpi_energy.metric("⚡ Avg Energy", f"{kpis['avg_energy']:.1f}")
                kpi_disaster.metric("🌪️ Disaster", kpis["disaster_kind"])

                if i % 10 == 0 or i == ticks - 1:
                    df = pd.DataFrame(tick_data)
                    chart_placeholder.line_chart(
                        df.set_index("tick")[["alive_count"]].rename(columns={"alive_count": "Population"}),
                        use_container_width=True,
                    )

            if engine.is_extinct:
                status_container.warning(f"⚠️ Population extinct at tick {engine.current_tick}!")
                break

    except Exception as e:
        status_container.error(f"Simulation error: {e}")
        return

    elapsed = time.time() - start_time
    progress_bar.progress(1.0, text="✅ Done")

    result = {
        "tick": engine.current_tick,
        "final_alive": engine.alive_count,
        "total_births": engine.total_births,
        "deaths_by_cause": engine.deaths_by_cause,
        "extinct": engine.is_extinct,
        "elapsed_seconds": round(elapsed, 2),
        "seed": engine.config.world.seed,
    }
    st.session_state.sim_result = result
    st.session_state.sim_tick_data = tick_data

    if run_manager is not None:
        run_manager.write_summary(result)

    status_container.success(
        f"✅ Tick {engine.current_tick}: {engine.alive_count} animals alive "
        f"({elapsed:.1f}s)."
    )


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def _display_world(engine: SimulationEngine) -> None:
    grid_col, log_col = st.columns([3, 2])
    with grid_col:
        st.plotly_chart(render_world_grid(engine.world), use_container_width=True)
    with log_col:
        st.subheader("📜 Events")
        events = engine.event_log.last(25)
        if events:
            st.code("\n".join(e.format() for e in events), language=None)
        else:
            st.caption("No events yet.")

        disaster = engine.disasters.disaster
        if disaster.active:
            st.error(
                f"DISASTER: {disaster.kind.value} ({disaster.intensity:.0%}), "
                f"{disaster.duration_remaining} ticks remaining"
            )


def _display_results() -> None:
    """Display tick KPI data as charts and table."""
    df = pd.DataFrame(st.session_state.sim_tick_data)
    if df.empty:
        return

    st.markdown("---")
    st.subheader("📈 KPIs")

    tab_pop, tab_needs, tab_deaths, tab_genes, tab_energy = st.tabs([
        "Population", "Needs", "Deaths", "Genes", "Energy",
    ])

    with tab_pop:
        st.plotly_chart(population_over_time(df), use_container_width=True)
    with tab_needs:
        st.plotly_chart(needs_over_time(df), use_container_width=True)
    with tab_deaths:
        st.plotly_chart(deaths_over_time(df), use_container_width=True)
    with tab_genes:
        st.plotly_chart(gene_evolution(df), use_container_width=True)
    with tab_energy:
        engine = st.session_state.sim_engine
        energies = [a.get_stats().energy for a in engine.world.get_all_animals()] if engine else []
        st.plotly_chart(energy_distribution(energies), use_container_width=True)

    with st.expander("📋 Raw Data Table"):
        st.dataframe(df, use_container_width=True)

    st.download_button(
        "⬇️ Download CSV",
        data=df.to_csv(index=False),
        file_name="simulation_kpis.csv",
        mime="text/csv",
        key="sr_dl_csv",
    )
