import json
from pathlib import Path

import pandas as pd
import pytest

from alluvial_flow import (
    Band,
    Bar,
    ComputationError,
    ConfigurationError,
    InputMissingError,
    Label,
    LayoutConfig,
    SchemaError,
    build_alluvial,
)
from alluvial_flow.__main__ import main
from alluvial_flow.pipeline import run_from_files


def _bars(chart) -> dict:
    return {(p.time, p.category): p for p in chart.primitives if isinstance(p, Bar)}


def test_scenario_a_percent_layout(
    scenario_nodes: pd.DataFrame, scenario_links: pd.DataFrame
) -> None:
    chart = build_alluvial(scenario_nodes, scenario_links)
    bars = _bars(chart)
    assert chart.population == 15.0
    assert bars[(1, 1)].low_y == 0.0
    assert bars[(1, 1)].high_y == pytest.approx(66.6667, abs=1e-3)
    assert bars[(1, 2)].high_y == pytest.approx(100.0)
    assert bars[(2, 1)].high_y == pytest.approx(53.3333, abs=1e-3)
    assert bars[(2, 2)].low_y == pytest.approx(53.3333, abs=1e-3)

    crossing = next(
        p
        for p in chart.primitives
        if isinstance(p, Band) and p.origin == (1, 2) and p.destination == (2, 1)
    )
    assert crossing.curve[0].y_low == pytest.approx(66.6667, abs=1e-3)
    assert crossing.curve[0].y_high == pytest.approx(80.0)
    assert crossing.color == bars[(1, 2)].color

    assert [p.text for p in chart.primitives if isinstance(p, Label)] == ["67%", "33%", "53%", "47%"]


def test_primitive_order(scenario_nodes: pd.DataFrame, scenario_links: pd.DataFrame) -> None:
    kinds = [p.kind for p in build_alluvial(scenario_nodes, scenario_links).primitives]
    assert kinds == ["band"] * 3 + ["bar"] * 4 + ["label"] * 4
    bands = [p for p in build_alluvial(scenario_nodes, scenario_links).primitives if isinstance(p, Band)]
    assert [(b.origin, b.destination) for b in bands] == [
        ((1, 1), (2, 1)),
        ((1, 2), (2, 1)),
        ((1, 2), (2, 2)),
    ]


def test_count_and_percent_differ_only_in_scale(
    scenario_nodes: pd.DataFrame, scenario_links: pd.DataFrame
) -> None:
    percent = build_alluvial(scenario_nodes, scenario_links, LayoutConfig(stat="percent"))
    count = build_alluvial(scenario_nodes, scenario_links, LayoutConfig(stat="count"))
    factor = 15.0 / 100.0

    assert len(percent.primitives) == len(count.primitives)
    for p, c in zip(percent.primitives, count.primitives):
        assert type(p) is type(c)
        if isinstance(p, Bar):
            assert (p.time, p.category, p.color) == (c.time, c.category, c.color)
            assert c.low_y == pytest.approx(p.low_y * factor)
            assert c.high_y == pytest.approx(p.high_y * factor)
        elif isinstance(p, Band):
            assert [s.x for s in p.curve] == [s.x for s in c.curve]
            for ps, cs in zip(p.curve, c.curve):
                assert cs.y_low == pytest.approx(ps.y_low * factor)
                assert cs.y_high == pytest.approx(ps.y_high * factor)
        else:
            assert c.y == pytest.approx(p.y * factor)

    assert [p.text for p in count.primitives if isinstance(p, Label)] == ["10", "5", "8", "7"]


def test_layout_is_idempotent(scenario_nodes: pd.DataFrame, scenario_links: pd.DataFrame) -> None:
    first = build_alluvial(scenario_nodes, scenario_links)
    second = build_alluvial(scenario_nodes, scenario_links)
    assert first == second
    assert json.dumps(first.to_records()) == json.dumps(second.to_records())


def test_labels_and_legend(scenario_nodes: pd.DataFrame, scenario_links: pd.DataFrame) -> None:
    nodes = scenario_nodes.assign(
        timeLabel=["Baseline", "Baseline", "Week 4", "Week 4"],
        categoryLabel=["Responder", "Non-responder", "Responder", "Non-responder"],
    )
    config = LayoutConfig(legend_title="Response", category_label_format=str.upper)
    chart = build_alluvial(nodes, scenario_links, config)
    assert chart.time_axis == ((1, "Baseline"), (2, "Week 4"))
    assert [label for _, label, _ in chart.legend] == ["RESPONDER", "NON-RESPONDER"]
    assert chart.legend_title == "Response"
    assert _bars(chart)[(2, 2)].legend_label == "NON-RESPONDER"


def test_validation_failures_produce_no_chart(
    scenario_nodes: pd.DataFrame, scenario_links: pd.DataFrame
) -> None:
    with pytest.raises(InputMissingError):
        build_alluvial(scenario_nodes, None)
    with pytest.raises(SchemaError, match="thickness"):
        build_alluvial(scenario_nodes, [{"time1": 1, "category1": 1, "time2": 2, "category2": 1}])
    with pytest.raises(ComputationError):
        build_alluvial(
            scenario_nodes,
            [{"time1": 2, "category1": 1, "time2": 1, "category2": 1, "thickness": 1}],
        )
    with pytest.raises(ConfigurationError, match="colors"):
        build_alluvial(scenario_nodes, scenario_links, LayoutConfig(color_list=["#000000"]))


def test_run_from_files(tmp_path: Path, scenario_nodes: pd.DataFrame, scenario_links: pd.DataFrame) -> None:
    nodes_path = tmp_path / "nodes.csv"
    links_path = tmp_path / "links.csv"
    config_path = tmp_path / "alluvial.yaml"
    output_path = tmp_path / "out" / "chart.json"
    scenario_nodes.to_csv(nodes_path, index=False)
    scenario_links.to_csv(links_path, index=False)
    config_path.write_text("interpolation: linear\ntimeLabelFormat: 'Visit {}'\n", encoding="utf-8")

    records = run_from_files(
        nodes_path,
        links_path,
        config_path=config_path,
        output_path=output_path,
        overrides={"stat": "count"},
    )
    assert records["stat"] == "count"
    assert records["time_axis"] == [{"time": 1, "label": "Visit 1"}, {"time": 2, "label": "Visit 2"}]
    saved = json.loads(output_path.read_text(encoding="utf-8"))
    assert saved == records
    kinds = [p["kind"] for p in saved["primitives"]]
    assert kinds.count("band") == 3


def test_run_from_files_missing_table(tmp_path: Path) -> None:
    with pytest.raises(InputMissingError, match="nodes table not found"):
        run_from_files(tmp_path / "nodes.csv", tmp_path / "links.csv")


def test_cli_prints_records(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    scenario_nodes: pd.DataFrame,
    scenario_links: pd.DataFrame,
) -> None:
    nodes_path = tmp_path / "nodes.csv"
    links_path = tmp_path / "links.csv"
    scenario_nodes.to_csv(nodes_path, index=False)
    scenario_links.to_csv(links_path, index=False)

    main(["--nodes", str(nodes_path), "--links", str(links_path), "--interpolation", "linear"])
    printed = json.loads(capsys.readouterr().out)
    assert printed["population"] == 15.0
    assert len(printed["primitives"]) == 11


def test_chart_without_transitions(scenario_nodes: pd.DataFrame) -> None:
    chart = build_alluvial(scenario_nodes, [])
    kinds = [p.kind for p in chart.primitives]
    assert "band" not in kinds
    assert kinds.count("bar") == 4
