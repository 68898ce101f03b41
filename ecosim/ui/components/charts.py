"""
Reusable chart components for the ecosystem simulator UI.

Provides helper functions that return Plotly figures for:
  - Population over time (per species, capacity, pressure)
  - Needs over time (health, energy, hunger)
  - Gene evolution lines
  - Energy distribution histogram
"""

from typing import Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from ecosim.simulation.metrics import GENE_KPIS


def _x(df: pd.DataFrame):
    return df.index if "tick" not in df.columns else df["tick"]


def _line_chart(
    df: pd.DataFrame,
    columns: dict[str, tuple[str, str]],
    title: str,
    yaxis_title: str,
) -> go.Figure:
    fig = go.Figure()
    x = _x(df)
    for col, (label, color) in columns.items():
        if col in df.columns:
            fig.add_trace(go.Scatter(
                x=x, y=df[col],
                mode="lines",
                name=label,
                line=dict(color=color, width=2),
            ))

    fig.update_layout(
        title=title,
        xaxis_title="Tick",
        yaxis_title=yaxis_title,
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig


def population_over_time(
    df: pd.DataFrame,
    title: str = "Population Over Time",
) -> go.Figure:
    """
    Line chart of population and per-species counts, with disaster ticks
    shaded.

    Args:
        df: DataFrame of tick KPIs.
        title: Chart title.

    Returns:
        Plotly figure.
    """
    fig = _line_chart(
        df,
        {
            "alive_count": ("Alive", "#2ecc71"),
            "count_rabbit": ("Rabbits", "#3498db"),
            "count_fluffles": ("Fluffles", "#9b59b6"),
            "capacity": ("Capacity", "#95a5a6"),
        },
        title,
        "Count",
    )

    if "disaster_active" in df.columns and "tick" in df.columns:
        active = df[df["disaster_active"].astype(bool)]
        if not active.empty:
            fig.add_trace(go.Scatter(
                x=active["tick"],
                y=active["alive_count"] if "alive_count" in active.columns else np.zeros(len(active)),
                mode="markers",
                marker=dict(color="#e74c3c", size=5, symbol="x"),
                name="Disaster",
            ))
    return fig


def needs_over_time(
    df: pd.DataFrame,
    title: str = "Average Needs Over Time",
) -> go.Figure:
    return _line_chart(
        df,
        {
            "avg_health": ("Health", "#2ecc71"),
            "avg_energy": ("Energy", "#f39c12"),
            "avg_hunger": ("Hunger", "#e74c3c"),
        },
        title,
        "Value (0-100)",
    )


def deaths_over_time(
    df: pd.DataFrame,
    title: str = "Deaths by Cause",
) -> go.Figure:
    """Cumulative deaths per cause."""
    causes = {
        "deaths_starvation": ("Starvation", "#e67e22"),
        "deaths_predation": ("Predation", "#c0392b"),
        "deaths_old_age": ("Old age", "#7f8c8d"),
        "deaths_injury": ("Injury", "#8e44ad"),
    }
    cumulative = df.copy()
    for col in causes:
        if col in cumulative.columns:
            cumulative[col] = cumulative[col].cumsum()
    return _line_chart(cumulative, causes, title, "Deaths (cumulative)")


def gene_evolution(
    df: pd.DataFrame,
    genes: Optional[list[str]] = None,
    title: str = "Gene Evolution",
) -> go.Figure:
    """
    Line chart of population-mean gene values.

    Args:
        df: DataFrame of tick KPIs.
        genes: Gene names to plot. None = all standard genes.
        title: Chart title.
    """
    palette = ["#3498db", "#e74c3c", "#2ecc71", "#9b59b6", "#f1c40f", "#1abc9c",
               "#e67e22", "#34495e", "#ff7f50", "#8e44ad", "#16a085", "#c0392b"]
    names = genes if genes is not None else list(GENE_KPIS)
    columns = {
        GENE_KPIS[name]: (name, palette[i % len(palette)])
        for i, name in enumerate(names) if name in GENE_KPIS
    }
    fig = _line_chart(df, columns, title, "Value")
    fig.update_yaxes(range=[0, 1])
    return fig


def energy_distribution(
    energies: list[float] | np.ndarray,
    title: str = "Energy Distribution",
    bins: int = 20,
) -> go.Figure:
    """Histogram of animal energy levels."""
    fig = go.Figure(data=[
        go.Histogram(
            x=energies,
            nbinsx=bins,
            marker_color="#f39c12",
            opacity=0.75,
        )
    ])
    fig.update_layout(
        title=title,
        xaxis_title="Energy",
        yaxis_title="Count",
        template="plotly_white",
    )
    return fig
