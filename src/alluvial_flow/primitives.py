from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Union

from alluvial_flow.config import LayoutConfig
from alluvial_flow.curves import BandSample, band_curve
from alluvial_flow.stacking import LinkEdges, Segment

logger = logging.getLogger(__name__)

# Segments below this share of the population get no data label.
LABEL_MIN_SHARE = 0.01


@dataclass(frozen=True)
class Bar:
    time: int
    category: int
    low_y: float
    high_y: float
    color: str
    legend_label: str

    kind = "bar"


@dataclass(frozen=True)
class Band:
    origin: tuple[int, int]
    destination: tuple[int, int]
    curve: tuple[BandSample, ...]
    color: str
    alpha: float

    kind = "band"


@dataclass(frozen=True)
class Label:
    x: float
    y: float
    text: str

    kind = "label"


Primitive = Union[Bar, Band, Label]


def stat_scale(stat: str, population: float) -> float:
    return 100.0 if stat == "percent" else population


def _round_half_up(value: float, quantum: str) -> Decimal:
    return Decimal(str(value)).quantize(Decimal(quantum), rounding=ROUND_HALF_UP)


def format_value(value: float, stat: str) -> str:
    if stat == "percent":
        return f"{_round_half_up(value, '0')}%"
    if float(value).is_integer():
        return str(int(value))
    return f"{_round_half_up(value, '0.01').normalize():f}"


def shows_label(segment: Segment) -> bool:
    return round(segment.share, 12) >= LABEL_MIN_SHARE


def emit_primitives(
    segments: Iterable[Segment],
    links: Iterable[LinkEdges],
    config: LayoutConfig,
    population: float,
) -> list[Primitive]:
    """Assemble bands, bars and data labels, scaled to ``config.stat``.

    Bands come first so a renderer drawing in order tucks them under the bars.
    """
    segments = list(segments)
    colors = {(s.time, s.category): s.color for s in segments}
    scale = stat_scale(config.stat, population)

    primitives: list[Primitive] = []
    for link in links:
        curve = tuple(
            BandSample(sample.x, sample.y_low * scale, sample.y_high * scale)
            for sample in band_curve(link, config.bar_width, config.interpolation, config.sample_step)
        )
        primitives.append(
            Band(
                origin=link.origin,
                destination=link.destination,
                curve=curve,
                color=colors[link.origin],
                alpha=config.band_alpha,
            )
        )

    for segment in segments:
        primitives.append(
            Bar(
                time=segment.time,
                category=segment.category,
                low_y=segment.low_fraction * scale,
                high_y=segment.high_fraction * scale,
                color=segment.color,
                legend_label=segment.label,
            )
        )

    if config.show_data_labels:
        for segment in segments:
            if not shows_label(segment):
                continue
            value = segment.share * 100.0 if config.stat == "percent" else segment.size
            primitives.append(
                Label(
                    x=float(segment.time),
                    y=(segment.low_fraction + segment.high_fraction) / 2.0 * scale,
                    text=format_value(value, config.stat),
                )
            )

    logger.debug("Emitted %d primitives (stat=%s)", len(primitives), config.stat)
    return primitives


def primitive_to_record(primitive: Primitive) -> dict[str, Any]:
    if isinstance(primitive, Bar):
        return {
            "kind": primitive.kind,
            "time": primitive.time,
            "category": primitive.category,
            "low_y": primitive.low_y,
            "high_y": primitive.high_y,
            "color": primitive.color,
            "legend_label": primitive.legend_label,
        }
    if isinstance(primitive, Band):
        return {
            "kind": primitive.kind,
            "origin": list(primitive.origin),
            "destination": list(primitive.destination),
            "color": primitive.color,
            "alpha": primitive.alpha,
            "curve": [list(sample) for sample in primitive.curve],
        }
    return {"kind": primitive.kind, "x": primitive.x, "y": primitive.y, "text": primitive.text}
