"""Vertical stacking of category segments and of the links sharing them.

Both stages are explicit accumulator folds over groups sorted by a fixed
key, with the accumulator reset at every group boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    time: int
    category: int
    low_fraction: float
    high_fraction: float
    low_count: float
    high_count: float
    color: str
    label: str

    @property
    def size(self) -> float:
        return self.high_count - self.low_count

    @property
    def share(self) -> float:
        return self.high_fraction - self.low_fraction


@dataclass(frozen=True)
class LinkEdges:
    time1: int
    category1: int
    time2: int
    category2: int
    thickness: float
    origin_low: float
    origin_high: float
    dest_low: float
    dest_high: float

    @property
    def origin(self) -> tuple[int, int]:
        return (self.time1, self.category1)

    @property
    def destination(self) -> tuple[int, int]:
        return (self.time2, self.category2)


def stack_segments(
    nodes: pd.DataFrame,
    population: float,
    color_for: Callable[[int], str],
    label_for: Callable[[pd.Series], str],
) -> list[Segment]:
    segments: list[Segment] = []
    for time, group in nodes.groupby("time", sort=True):
        cumulative = 0.0
        for _, row in group.sort_values("category").iterrows():
            low = cumulative
            high = cumulative + float(row["size"])
            cumulative = high
            category = int(row["category"])
            segments.append(
                Segment(
                    time=int(time),
                    category=category,
                    low_fraction=low / population,
                    high_fraction=high / population,
                    low_count=low,
                    high_count=high,
                    color=color_for(category),
                    label=label_for(row),
                )
            )
    logger.debug("Stacked %d segments over N=%s", len(segments), population)
    return segments


def _stack_pass(
    links: pd.DataFrame,
    group_keys: list[str],
    sort_keys: list[str],
    starts: dict[tuple[int, int], float],
    population: float,
) -> dict[int, tuple[float, float]]:
    extents: dict[int, tuple[float, float]] = {}
    for key, group in links.groupby(group_keys, sort=True):
        offset = starts[(int(key[0]), int(key[1]))]
        ordered = group.sort_values(sort_keys, kind="mergesort")
        for index, thickness in ordered["thickness"].items():
            low = offset
            high = offset + float(thickness) / population
            offset = high
            extents[index] = (low, high)
    return extents


def resolve_link_edges(
    links: pd.DataFrame,
    segments: list[Segment],
    population: float,
) -> list[LinkEdges]:
    """Place every link inside its origin and destination segments.

    Outgoing links of a segment stack from its low edge ordered by
    destination ``(time2, category2)``; incoming links stack ordered by
    origin ``(time1, category1)``. Links that do not fill a segment leave
    the remainder empty above them.
    """
    starts = {(s.time, s.category): s.low_fraction for s in segments}
    origin = _stack_pass(
        links, ["time1", "category1"], ["time2", "category2"], starts, population
    )
    dest = _stack_pass(
        links, ["time2", "category2"], ["time1", "category1"], starts, population
    )

    ordered = links.sort_values(["time1", "category1", "time2", "category2"], kind="mergesort")
    resolved: list[LinkEdges] = []
    for index, row in ordered.iterrows():
        origin_low, origin_high = origin[index]
        dest_low, dest_high = dest[index]
        resolved.append(
            LinkEdges(
                time1=int(row["time1"]),
                category1=int(row["category1"]),
                time2=int(row["time2"]),
                category2=int(row["category2"]),
                thickness=float(row["thickness"]),
                origin_low=origin_low,
                origin_high=origin_high,
                dest_low=dest_low,
                dest_high=dest_high,
            )
        )
    logger.debug("Resolved edges for %d links", len(resolved))
    return resolved
