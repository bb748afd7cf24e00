from __future__ import annotations

from typing import Callable, Sequence

from alluvial_flow.errors import ConfigurationError


def build_color_map(color_list: Sequence[str], max_category: int) -> dict[int, str]:
    if max_category > len(color_list):
        raise ConfigurationError(
            f"{max_category} categories but only {len(color_list)} colors configured; "
            "extend color_list."
        )
    return {category: color_list[category - 1] for category in range(1, max_category + 1)}


def assign_color(category: int, color_map: dict[int, str]) -> str:
    try:
        return color_map[category]
    except KeyError:
        raise ConfigurationError(f"No color assigned to category {category}.") from None


def make_color_assigner(color_list: Sequence[str], max_category: int) -> Callable[[int], str]:
    color_map = build_color_map(color_list, max_category)

    def _assigner(category: int) -> str:
        return assign_color(category, color_map)

    return _assigner
