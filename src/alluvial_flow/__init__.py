"""Layout engine for longitudinal alluvial (categorical flow) charts."""

from alluvial_flow.config import LayoutConfig, load_config
from alluvial_flow.errors import (
    AlluvialError,
    ComputationError,
    ConfigurationError,
    InputMissingError,
    SchemaError,
)
from alluvial_flow.pipeline import AlluvialChart, build_alluvial
from alluvial_flow.primitives import Band, Bar, Label

__all__ = [
    "AlluvialChart",
    "AlluvialError",
    "Band",
    "Bar",
    "ComputationError",
    "ConfigurationError",
    "InputMissingError",
    "Label",
    "LayoutConfig",
    "SchemaError",
    "build_alluvial",
    "load_config",
]
