from __future__ import annotations


class AlluvialError(ValueError):
    """Base class for every failure raised while validating or laying out a chart."""


class ConfigurationError(AlluvialError):
    """Invalid or deprecated option, inconsistent population, or exhausted palette."""


class InputMissingError(AlluvialError, FileNotFoundError):
    """A required input table (or file) was not supplied."""


class SchemaError(AlluvialError):
    """An input table lacks a required column or holds values outside its domain."""


class ComputationError(AlluvialError):
    """Layout arithmetic cannot proceed (zero population, reversed time ordering)."""
