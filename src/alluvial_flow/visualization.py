from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Polygon, Rectangle

from alluvial_flow.pipeline import AlluvialChart
from alluvial_flow.primitives import Band, Bar, Label


def draw_alluvial(ax: plt.Axes, chart: AlluvialChart) -> None:
    """Draw the chart's primitives onto ``ax`` in emission order."""
    bar_width = chart.bar_width
    times = [time for time, _ in chart.time_axis]
    top = 100.0 if chart.stat == "percent" else chart.population

    for primitive in chart.primitives:
        if isinstance(primitive, Band):
            curve = np.array(primitive.curve, dtype=float)
            x_curve = curve[:, 0]
            poly_xy = np.column_stack(
                [
                    np.concatenate([x_curve, x_curve[::-1]]),
                    np.concatenate([curve[:, 2], curve[::-1, 1]]),
                ]
            )
            ax.add_patch(
                Polygon(
                    poly_xy,
                    closed=True,
                    facecolor=primitive.color,
                    edgecolor="none",
                    alpha=primitive.alpha,
                )
            )
        elif isinstance(primitive, Bar):
            height = primitive.high_y - primitive.low_y
            if height <= 0:
                continue
            ax.add_patch(
                Rectangle(
                    (primitive.time - bar_width / 2.0, primitive.low_y),
                    width=bar_width,
                    height=height,
                    facecolor=primitive.color,
                    edgecolor="white",
                    linewidth=0.5,
                )
            )
        elif isinstance(primitive, Label):
            ax.text(primitive.x, primitive.y, primitive.text, ha="center", va="center", fontsize=8)

    ax.set_xlim(min(times) - 0.5, max(times) + 0.5)
    ax.set_ylim(0, top)
    ax.set_xticks(times)
    ax.set_xticklabels([label for _, label in chart.time_axis])
    ax.set_ylabel("Percent" if chart.stat == "percent" else "Count")
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)

    handles = [
        Rectangle((0, 0), 1, 1, facecolor=color, edgecolor="none")
        for _, _, color in chart.legend
    ]
    ax.legend(
        handles,
        [label for _, label, _ in chart.legend],
        title=chart.legend_title,
        loc="upper left",
        bbox_to_anchor=(1.01, 1.0),
        frameon=False,
    )


def save_figure(chart: AlluvialChart, out_path: str | Path) -> Path:
    out_file = Path(out_path)
    out_file.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(10, 6))
    draw_alluvial(ax, chart)
    fig.tight_layout()
    fig.savefig(out_file, dpi=220)
    plt.close(fig)
    return out_file
