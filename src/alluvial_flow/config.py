from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from alluvial_flow.errors import ConfigurationError, InputMissingError

# ColorBrewer "Paired", 12 qualitative classes.
DEFAULT_COLORS: tuple[str, ...] = (
    "#1f78b4",
    "#e31a1c",
    "#33a02c",
    "#ff7f00",
    "#6a3d9a",
    "#b15928",
    "#a6cee3",
    "#fb9a99",
    "#b2df8a",
    "#fdbf6f",
    "#cab2d6",
    "#ffff99",
)

INTERPOLATION_MODES = {"linear", "cosine"}
STAT_MODES = {"percent", "count"}

_KEY_ALIASES = {
    "colorList": "color_list",
    "barWidth": "bar_width",
    "timeLabelFormat": "time_label_format",
    "categoryLabelFormat": "category_label_format",
    "legendTitle": "legend_title",
    "showDataLabels": "show_data_labels",
    "datalabel": "show_data_labels",
    "sampleStep": "sample_step",
    "bandAlpha": "band_alpha",
}

_DEPRECATED_KEYS = {"gap", "sortOrder", "sort_order"}

Formatter = Callable[[Any], str]


def _raw_label(value: Any) -> str:
    return str(value)


def as_formatter(value: Any, option: str) -> Formatter:
    """Turn a label format option into a callable.

    Accepts a callable, a ``str.format`` template such as ``"Week {}"``,
    or a mapping from raw value to display text (unmapped values fall
    back to their raw text).
    """
    if value is None:
        return _raw_label
    if callable(value):
        return value
    if isinstance(value, str):
        if "{" not in value:
            raise ConfigurationError(
                f"{option} template must contain a '{{}}' placeholder, got {value!r}."
            )
        template = value

        def _template(raw: Any) -> str:
            return template.format(raw)

        return _template
    if isinstance(value, Mapping):
        lookup = {str(k): str(v) for k, v in value.items()}

        def _lookup(raw: Any) -> str:
            return lookup.get(str(raw), str(raw))

        return _lookup
    raise ConfigurationError(
        f"{option} must be a callable, a format template or a mapping, got {type(value).__name__}."
    )


def _parse_yes_no(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text == "yes":
        return True
    if text == "no":
        return False
    raise ConfigurationError(f"show_data_labels must be 'yes' or 'no', got {value!r}.")

def _as_number(value: Any, option: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{option} must be numeric, got {value!r}.") from exc


@dataclass(frozen=True)
class LayoutConfig:
    color_list: tuple[str, ...] = DEFAULT_COLORS
    bar_width: float = 0.25
    time_label_format: Formatter = field(default=_raw_label, compare=False)
    category_label_format: Formatter = field(default=_raw_label, compare=False)
    legend_title: str | None = None
    interpolation: str = "cosine"
    stat: str = "percent"
    show_data_labels: bool = True
    sample_step: float = 0.01
    band_alpha: float = 0.28

    def __post_init__(self) -> None:
        colors = tuple(str(c) for c in self.color_list)
        if not colors:
            raise ConfigurationError("color_list must contain at least one color.")
        object.__setattr__(self, "color_list", colors)

        bar_width = _as_number(self.bar_width, "bar_width")
        if not 0.0 < bar_width <= 1.0:
            raise ConfigurationError(f"bar_width must lie in (0, 1], got {bar_width}.")
        object.__setattr__(self, "bar_width", bar_width)

        interpolation = str(self.interpolation).lower()
        if interpolation not in INTERPOLATION_MODES:
            raise ConfigurationError(
                f"Unsupported interpolation: {self.interpolation!r} "
                f"(expected one of {sorted(INTERPOLATION_MODES)})."
            )
        object.__setattr__(self, "interpolation", interpolation)

        stat = str(self.stat).lower()
        if stat not in STAT_MODES:
            raise ConfigurationError(
                f"Unsupported stat: {self.stat!r} (expected one of {sorted(STAT_MODES)})."
            )
        object.__setattr__(self, "stat", stat)

        object.__setattr__(self, "show_data_labels", _parse_yes_no(self.show_data_labels))
        object.__setattr__(
            self, "time_label_format", as_formatter(self.time_label_format, "time_label_format")
        )
        object.__setattr__(
            self,
            "category_label_format",
            as_formatter(self.category_label_format, "category_label_format"),
        )

        sample_step = _as_number(self.sample_step, "sample_step")
        if sample_step <= 0:
            raise ConfigurationError(f"sample_step must be positive, got {sample_step}.")
        object.__setattr__(self, "sample_step", sample_step)

        band_alpha = _as_number(self.band_alpha, "band_alpha")
        if not 0.0 <= band_alpha <= 1.0:
            raise ConfigurationError(f"band_alpha must lie in [0, 1], got {band_alpha}.")
        object.__setattr__(self, "band_alpha", band_alpha)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "LayoutConfig":
        if not options:
            return cls()
        deprecated = _DEPRECATED_KEYS & set(options)
        if deprecated:
            raise ConfigurationError(f"Deprecated options are no longer supported: {sorted(deprecated)}")

        kwargs: dict[str, Any] = {}
        valid = set(cls.__dataclass_fields__)
        unknown: list[str] = []
        for key, value in options.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in valid:
                unknown.append(key)
                continue
            kwargs[name] = value
        if unknown:
            raise ConfigurationError(f"Unknown configuration options: {sorted(unknown)}")
        return cls(**kwargs)


def load_config(path: str | Path) -> LayoutConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise InputMissingError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)

    if data is None:
        return LayoutConfig()
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must parse to a mapping at the top level.")
    return LayoutConfig.from_mapping(data)
