"""County population density choropleths under different legend conventions."""

from county_density.classes import (
    ClassificationError,
    ClassScheme,
    LabelConvention,
    MalformedBreakpoints,
    OutOfRange,
    classify,
    classify_values,
    label,
    parse_interval,
)

__all__ = [
    "ClassificationError",
    "ClassScheme",
    "LabelConvention",
    "MalformedBreakpoints",
    "OutOfRange",
    "classify",
    "classify_values",
    "label",
    "parse_interval",
]
