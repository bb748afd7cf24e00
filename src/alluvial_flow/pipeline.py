from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from alluvial_flow.colors import make_color_assigner
from alluvial_flow.config import LayoutConfig, load_config
from alluvial_flow.errors import InputMissingError
from alluvial_flow.primitives import Primitive, emit_primitives, primitive_to_record
from alluvial_flow.stacking import resolve_link_edges, stack_segments
from alluvial_flow.tables import (
    find_link_overflow,
    check_link_endpoints,
    max_category,
    population_denominator,
    prepare_links,
    prepare_nodes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlluvialChart:
    primitives: tuple[Primitive, ...]
    legend: tuple[tuple[int, str, str], ...]
    time_axis: tuple[tuple[int, str], ...]
    legend_title: str | None
    stat: str
    population: float
    bar_width: float

    def to_records(self) -> dict[str, Any]:
        return {
            "stat": self.stat,
            "population": self.population,
            "bar_width": self.bar_width,
            "legend_title": self.legend_title,
            "legend": [
                {"category": category, "label": label, "color": color}
                for category, label, color in self.legend
            ],
            "time_axis": [{"time": time, "label": label} for time, label in self.time_axis],
            "primitives": [primitive_to_record(p) for p in self.primitives],
        }


def _label_column(nodes: pd.DataFrame, key: str, column: str) -> dict[int, Any]:
    labels: dict[int, Any] = {}
    for value, label in zip(nodes[key], nodes[column]):
        if int(value) in labels:
            continue
        labels[int(value)] = value if label is None or pd.isna(label) else label
    return labels


def build_alluvial(
    nodes: Any,
    links: Any,
    config: LayoutConfig | None = None,
    population: float | None = None,
) -> AlluvialChart:
    """Validate both input tables, then lay out the chart.

    Every check runs before any geometry is computed, so a failure
    produces no primitives at all.
    """
    config = config or LayoutConfig()

    node_df = prepare_nodes(nodes)
    link_df = prepare_links(links)
    check_link_endpoints(node_df, link_df)
    n_total = population_denominator(node_df, population)
    find_link_overflow(node_df, link_df)
    color_for = make_color_assigner(config.color_list, max_category(node_df))

    category_labels = {
        category: config.category_label_format(raw)
        for category, raw in _label_column(node_df, "category", "categoryLabel").items()
    }
    time_labels = {
        time: config.time_label_format(raw)
        for time, raw in _label_column(node_df, "time", "timeLabel").items()
    }
    logger.debug(
        "Validated %d nodes and %d links across %d times",
        len(node_df),
        len(link_df),
        len(time_labels),
    )

    segments = stack_segments(
        node_df,
        n_total,
        color_for=color_for,
        label_for=lambda row: category_labels[int(row["category"])],
    )
    edges = resolve_link_edges(link_df, segments, n_total)
    primitives = emit_primitives(segments, edges, config, n_total)

    legend = tuple(
        (category, category_labels[category], color_for(category))
        for category in sorted(category_labels)
    )
    time_axis = tuple((time, time_labels[time]) for time in sorted(time_labels))
    return AlluvialChart(
        primitives=tuple(primitives),
        legend=legend,
        time_axis=time_axis,
        legend_title=config.legend_title,
        stat=config.stat,
        population=n_total,
        bar_width=config.bar_width,
    )


def _read_table(path: str | Path, name: str) -> pd.DataFrame:
    table_path = Path(path)
    if not table_path.exists():
        raise InputMissingError(f"{name} table not found: {table_path}")
    return pd.read_csv(table_path)


def run_from_files(
    nodes_path: str | Path,
    links_path: str | Path,
    config_path: str | Path | None = None,
    output_path: str | Path | None = None,
    figure_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    config = load_config(config_path) if config_path is not None else LayoutConfig()
    if overrides:
        config = LayoutConfig(
            **{
                **{name: getattr(config, name) for name in config.__dataclass_fields__},
                **overrides,
            }
        )

    chart = build_alluvial(_read_table(nodes_path, "nodes"), _read_table(links_path, "links"), config)
    records = chart.to_records()

    if output_path is not None:
        out_file = Path(output_path)
        out_file.parent.mkdir(parents=True, exist_ok=True)
        out_file.write_text(json.dumps(records, indent=2), encoding="utf-8")
        logger.info("Wrote %d primitives to %s", len(chart.primitives), out_file)

    if figure_path is not None:
        from alluvial_flow.visualization import save_figure

        save_figure(chart, figure_path)
        logger.info("Rendered chart to %s", figure_path)

    return records
