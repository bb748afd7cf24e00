from __future__ import annotations

import math
from typing import Iterator, NamedTuple

from alluvial_flow.errors import ConfigurationError
from alluvial_flow.stacking import LinkEdges

# Fraction of the bar width the band starts inside each bar.
EDGE_INSET = 0.48
DEFAULT_STEP = 0.01


class BandSample(NamedTuple):
    x: float
    y_low: float
    y_high: float


def band_endpoints(link: LinkEdges, bar_width: float) -> tuple[float, float]:
    left = link.time1 + EDGE_INSET * bar_width
    right = link.time2 - EDGE_INSET * bar_width
    return left, right


def sample_count(left: float, right: float, step: float = DEFAULT_STEP) -> int:
    """Number of samples from ``left`` to ``right`` inclusive.

    ``ceil(span / step) + 1``; the quotient is rounded first so that an
    exact multiple of ``step`` does not gain a spurious extra sample.
    """
    span = right - left
    if span <= 0:
        return 1
    return math.ceil(round(span / step, 9)) + 1


def _linear(start: float, end: float, position: float) -> float:
    return start + (end - start) * position


def _cosine(start: float, end: float, position: float) -> float:
    amplitude = (start - end) / 2.0
    offset = start - amplitude
    return amplitude * math.cos(math.pi * position) + offset


_BLENDS = {"linear": _linear, "cosine": _cosine}


def iter_band_samples(
    link: LinkEdges,
    bar_width: float,
    interpolation: str = "cosine",
    step: float = DEFAULT_STEP,
) -> Iterator[BandSample]:
    """Yield the band outline of ``link`` from its origin bar to its destination bar.

    Both bounds are interpolated independently. The first and last samples
    carry the exact edge values of the origin and destination segments.
    """
    try:
        blend = _BLENDS[interpolation]
    except KeyError:
        raise ConfigurationError(f"Unsupported interpolation: {interpolation!r}") from None

    left, right = band_endpoints(link, bar_width)
    count = sample_count(left, right, step)
    if count == 1:
        yield BandSample(left, link.origin_low, link.origin_high)
        return

    span = right - left
    yield BandSample(left, link.origin_low, link.origin_high)
    for i in range(1, count - 1):
        x = left + i * step
        position = (x - left) / span
        yield BandSample(
            x,
            blend(link.origin_low, link.dest_low, position),
            blend(link.origin_high, link.dest_high, position),
        )
    yield BandSample(right, link.dest_low, link.dest_high)


def band_curve(
    link: LinkEdges,
    bar_width: float,
    interpolation: str = "cosine",
    step: float = DEFAULT_STEP,
) -> tuple[BandSample, ...]:
    return tuple(iter_band_samples(link, bar_width, interpolation, step))
