from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import pandas as pd

from alluvial_flow.errors import (
    ComputationError,
    ConfigurationError,
    InputMissingError,
    SchemaError,
)

logger = logging.getLogger(__name__)

NODE_COLUMNS = ["time", "category", "size"]
NODE_LABEL_COLUMNS = ["timeLabel", "categoryLabel"]
LINK_COLUMNS = ["time1", "category1", "time2", "category2", "thickness"]

_RELATIVE_TOLERANCE = 1e-9


def coerce_table(table: Any, name: str, columns: list[str] | None = None) -> pd.DataFrame:
    if table is None:
        raise InputMissingError(f"Required input table is missing: {name}")
    if isinstance(table, pd.DataFrame):
        return table.copy()
    if isinstance(table, Mapping):
        return pd.DataFrame(table)
    rows = list(table)
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows)


def require_columns(df: pd.DataFrame, columns: Iterable[str], name: str) -> None:
    missing = [column for column in columns if column not in df.columns]
    if missing:
        raise SchemaError(f"{name} table missing required columns: {missing}")


def _as_int(df: pd.DataFrame, columns: list[str], name: str) -> None:
    for column in columns:
        values = pd.to_numeric(df[column], errors="coerce").astype(float)
        if values.isna().any() or (values != values.round()).any():
            raise SchemaError(f"{name}.{column} must hold integer values.")
        df[column] = values.astype(int)


def _as_float(df: pd.DataFrame, column: str, name: str) -> None:
    values = pd.to_numeric(df[column], errors="coerce")
    if values.isna().any():
        raise SchemaError(f"{name}.{column} must hold numeric values.")
    df[column] = values.astype(float)


def _require_at_least(df: pd.DataFrame, column: str, minimum: float, name: str) -> None:
    bad = df[df[column] < minimum]
    if not bad.empty:
        raise SchemaError(
            f"{name}.{column} must be >= {minimum}; offending rows: {bad.index.tolist()}"
        )


def prepare_nodes(table: Any) -> pd.DataFrame:
    nodes = coerce_table(table, "nodes", NODE_COLUMNS)
    require_columns(nodes, NODE_COLUMNS, "nodes")
    _as_int(nodes, ["time", "category"], "nodes")
    _as_float(nodes, "size", "nodes")
    _require_at_least(nodes, "time", 1, "nodes")
    _require_at_least(nodes, "category", 1, "nodes")
    _require_at_least(nodes, "size", 0.0, "nodes")

    duplicated = nodes.duplicated(subset=["time", "category"], keep=False)
    if duplicated.any():
        keys = sorted(set(zip(nodes.loc[duplicated, "time"], nodes.loc[duplicated, "category"])))
        raise SchemaError(f"nodes table has duplicate (time, category) rows: {keys}")

    for column in NODE_LABEL_COLUMNS:
        if column not in nodes.columns:
            nodes[column] = None
    return nodes.sort_values(["time", "category"]).reset_index(drop=True)


def prepare_links(table: Any) -> pd.DataFrame:
    links = coerce_table(table, "links", LINK_COLUMNS)
    require_columns(links, LINK_COLUMNS, "links")
    _as_int(links, ["time1", "category1", "time2", "category2"], "links")
    _as_float(links, "thickness", "links")
    for column in ("time1", "category1", "time2", "category2"):
        _require_at_least(links, column, 1, "links")
    _require_at_least(links, "thickness", 0.0, "links")

    backwards = links[links["time1"] >= links["time2"]]
    if not backwards.empty:
        raise ComputationError(
            f"links must run strictly left to right (time1 < time2); offending rows: "
            f"{backwards.index.tolist()}"
        )
    return links.reset_index(drop=True)


def check_link_endpoints(nodes: pd.DataFrame, links: pd.DataFrame) -> None:
    known = {(int(t), int(c)) for t, c in zip(nodes["time"], nodes["category"])}
    for side in ("1", "2"):
        endpoints = {
            (int(t), int(c)) for t, c in zip(links[f"time{side}"], links[f"category{side}"])
        }
        orphans = sorted(endpoints - known)
        if orphans:
            raise SchemaError(f"links reference (time, category) pairs with no node: {orphans}")


def population_denominator(nodes: pd.DataFrame, population: float | None = None) -> float:
    """Return the population size shared by every time point.

    The size totals of all times must agree; an explicit ``population``
    must agree with them too.
    """
    if population is not None and population <= 0:
        raise ConfigurationError(f"population must be positive, got {population}.")
    if nodes.empty:
        raise ConfigurationError("Cannot derive population denominator from an empty nodes table.")

    totals = nodes.groupby("time")["size"].sum().sort_index()
    derived = float(totals.iloc[0])
    tolerance = _RELATIVE_TOLERANCE * max(abs(derived), 1.0)
    inconsistent = totals[(totals - derived).abs() > tolerance]
    if not inconsistent.empty:
        by_time = {int(t): float(v) for t, v in totals.items()}
        raise ConfigurationError(f"Population is inconsistent across times: {by_time}")
    if derived == 0:
        raise ComputationError("Total population is zero; cannot normalise segment sizes.")
    if population is not None and abs(float(population) - derived) > tolerance:
        raise ConfigurationError(
            f"Supplied population {population} does not match node totals {derived}."
        )

    logger.debug("Population denominator N=%s over %d time points", derived, len(totals))
    return derived


def find_link_overflow(nodes: pd.DataFrame, links: pd.DataFrame) -> list[tuple[str, int, int]]:
    """List segments whose outgoing or incoming links total more than the segment size.

    Neither under-filled nor over-filled segments are rejected: unlinked
    population is left as a gap above the stacked bands, and excess flow
    stacks past the segment's high edge.
    """
    overflow: list[tuple[str, int, int]] = []
    sizes = nodes.set_index(["time", "category"])["size"]
    for side, label in (("1", "outgoing"), ("2", "incoming")):
        keys = [f"time{side}", f"category{side}"]
        flow = links.groupby(keys)["thickness"].sum()
        for key, total in flow.items():
            capacity = float(sizes.loc[key])
            if total - capacity > _RELATIVE_TOLERANCE * max(capacity, 1.0):
                logger.warning(
                    "%s links of segment (time=%s, category=%s) total %s, exceeding its size %s",
                    label,
                    key[0],
                    key[1],
                    total,
                    capacity,
                )
                overflow.append((label, int(key[0]), int(key[1])))
    return overflow


def max_category(nodes: pd.DataFrame) -> int:
    return int(nodes["category"].max())
