"""
2D Grid View component for the ecosystem simulator UI.

Renders a snapshot of the world grid using Plotly:
  - Terrain as a heatmap (grass shaded by food, water, rock)
  - Animals as glyph markers colored by fur color
"""

from typing import Optional

import numpy as np
import plotly.graph_objects as go

from ecosim.core.tile import MAX_FOOD, TileKind
from ecosim.core.world import World
from ecosim.ui.components.frame import animal_cell


PLOT_COLORS = {
    "white": "#ecf0f1",
    "red": "#e74c3c",
    "yellow": "#f1c40f",
    "magenta": "#9b59b6",
    "blue": "#3498db",
}

# Heatmap value bands: rock 0, water 1, grass 2..3 by food level
_TERRAIN_COLORSCALE = [
    [0.0, "#7f8c8d"], [0.25, "#7f8c8d"],
    [0.25, "#2e86c1"], [0.5, "#2e86c1"],
    [0.5, "#d5e8c4"], [1.0, "#1e8449"],
]


def _terrain_values(world: World) -> np.ndarray:
    terrain = world.terrain_grid()
    food = world.food_grid()
    values = np.where(terrain == TileKind.ROCK, 0.5, 1.5)
    grass = terrain == TileKind.GRASS
    values = np.where(grass, 2.0 + food / MAX_FOOD * 2.0, values)
    return values


def render_world_grid(
    world: World,
    title: Optional[str] = None,
    width: int = 800,
    height: int = 450,
) -> go.Figure:
    """
    Render a 2D grid snapshot of the world.

    Args:
        world: World to draw.
        title: Optional chart title.
        width: Plot width in pixels.
        height: Plot height in pixels.

    Returns:
        Plotly figure.
    """
    fig = go.Figure()

    if title is None:
        title = f"World Grid ({world.width}×{world.height}) | Tick {world.tick_count}"

    # --- Terrain ---
    fig.add_trace(go.Heatmap(
        z=_terrain_values(world),
        colorscale=_TERRAIN_COLORSCALE,
        zmin=0, zmax=4,
        showscale=False,
        customdata=world.food_grid(),
        hovertemplate="(%{x}, %{y})<br>Food: %{customdata:.1f}<extra></extra>",
        name="Terrain",
    ))

    # --- Animals ---
    animals = world.get_all_animals()
    if animals:
        cells = [animal_cell(a) for a in animals]
        stats = [a.get_stats() for a in animals]
        fig.add_trace(go.Scatter(
            x=[a.x for a in animals],
            y=[a.y for a in animals],
            mode="text",
            text=[c.glyph for c in cells],
            textfont=dict(
                size=16,
                color=[PLOT_COLORS.get(c.color, "#ecf0f1") for c in cells],
            ),
            customdata=[
                [a.id, a.species.value, s.health, s.energy, s.hunger, s.age]
                for a, s in zip(animals, stats)
            ],
            hovertemplate=(
                "#%{customdata[0]} %{customdata[1]} (%{x}, %{y})<br>"
                "Health: %{customdata[2]:.0f} Energy: %{customdata[3]:.0f}<br>"
                "Hunger: %{customdata[4]:.0f} Age: %{customdata[5]:.0f}<extra></extra>"
            ),
            name=f"Animals ({len(animals)})",
        ))

    # --- Layout ---
    fig.update_layout(
        title=title,
        width=width,
        height=height,
        xaxis=dict(
            range=[-0.5, world.width - 0.5],
            title="X",
            scaleanchor="y",
            scaleratio=1,
            constrain="domain",
            showgrid=False,
        ),
        yaxis=dict(
            range=[world.height - 0.5, -0.5],
            title="Y",
            showgrid=False,
        ),
        template="plotly_dark",
        showlegend=False,
        margin=dict(l=40, r=40, t=60, b=40),
    )

    return fig
