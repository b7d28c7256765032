# classes.py
# Class breaks -> (class_idx, legend label) for choropleth maps.
# Bucket assignment never depends on how the legend is written.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Sequence

import numpy as np
import pandas as pd

log = logging.getLogger(__name__)

PSEUDO_EPSILON = 1e-5


class ClassificationError(ValueError):
    pass


class OutOfRange(ClassificationError):
    """Value below the first break, at/above a finite last break, or NaN."""


class MalformedBreakpoints(ClassificationError):
    pass


class LabelConvention(Enum):
    RAW_INTERVAL = "raw-interval"
    ROUNDED = "rounded"
    PSEUDO_ROUNDED = "pseudo-rounded"
    DISCRETE = "discrete"
    OVERLAPPING = "overlapping"


def validate_breakpoints(breakpoints: Sequence[float]) -> tuple[float, ...]:
    """
    Returns the breaks as a tuple of floats.
    Only the last break may be infinite (+inf); the sequence must be strictly increasing.
    """
    try:
        bps = tuple(float(b) for b in breakpoints)
    except (TypeError, ValueError) as exc:
        raise MalformedBreakpoints(f"Breakpoints must be numeric: {breakpoints!r}") from exc
    if len(bps) < 2:
        raise MalformedBreakpoints(f"Need at least 2 breakpoints, got {len(bps)}.")
    for i, b in enumerate(bps):
        if math.isnan(b):
            raise MalformedBreakpoints(f"Breakpoint {i} is NaN.")
        if math.isinf(b) and (b < 0 or i != len(bps) - 1):
            raise MalformedBreakpoints(f"Only the last breakpoint may be infinite (got {b} at {i}).")
    for lo, hi in zip(bps, bps[1:]):
        if not lo < hi:
            raise MalformedBreakpoints(f"Breakpoints must be strictly increasing ({lo} >= {hi}).")
    return bps


def classify(value: float, breakpoints: Sequence[float]) -> int:
    """Index i such that breakpoints[i] <= value < breakpoints[i+1]."""
    bps = validate_breakpoints(breakpoints)
    v = float(value)
    if math.isnan(v) or v < bps[0] or v >= bps[-1]:
        raise OutOfRange(f"{value!r} outside [{_fmt_exact(bps[0])}, {_fmt_exact(bps[-1])}).")
    # side="right" puts a value sitting on a break into the class it opens
    return int(np.searchsorted(bps, v, side="right")) - 1


# ---------- Label helpers ----------
def _fmt_exact(x: float) -> str:
    if math.isinf(x):
        return "inf"
    if x == round(x):
        return str(int(x))
    return repr(float(x))


def _fmt_fixed(x: float, decimals: int) -> str:
    s = f"{x:.{decimals}f}"
    # rounding -0.00001 to 1 place prints "-0.0"
    return s[1:] if s.startswith("-") and float(s) == 0 else s


def _decimals_for(eps: float) -> int:
    # 2.5e-05 -> 6, 1e-05 -> 5, 1.0 -> 0
    return max(0, -Decimal(repr(float(eps))).normalize().as_tuple().exponent)


def check_precision(precision: int) -> None:
    if isinstance(precision, bool) or not isinstance(precision, int) or precision < 0:
        raise ValueError(f"precision must be an int >= 0, got {precision!r}.")


def check_discrete(breakpoints: Sequence[float]) -> None:
    """Discrete labels print hi-1, so every finite break must be a whole number."""
    finite = [b for b in breakpoints if not math.isinf(b)]
    if any(b != round(b) for b in finite):
        raise MalformedBreakpoints(f"Discrete breakpoints must be whole numbers: {tuple(breakpoints)}.")


def default_epsilon(convention: LabelConvention, precision: int) -> float:
    if convention is LabelConvention.PSEUDO_ROUNDED:
        return PSEUDO_EPSILON
    return 10.0 ** -precision


def label(
    index: int,
    breakpoints: Sequence[float],
    convention: LabelConvention = LabelConvention.RAW_INTERVAL,
    precision: int = 1,
    epsilon: Optional[float] = None,
) -> str:
    bps = validate_breakpoints(breakpoints)
    k = len(bps) - 1
    if not 0 <= index < k:
        raise IndexError(f"Class index {index} out of range for {k} classes.")
    lo, hi = bps[index], bps[index + 1]
    unbounded = math.isinf(hi)

    if convention is LabelConvention.RAW_INTERVAL:
        if unbounded:
            return f"{_fmt_exact(lo)} and over"
        return f"[{_fmt_exact(lo)}, {_fmt_exact(hi)})"

    if convention is LabelConvention.OVERLAPPING:
        if unbounded:
            return f"{_fmt_exact(lo)} and over"
        return f"{_fmt_exact(lo)}–{_fmt_exact(hi)}"

    if convention is LabelConvention.DISCRETE:
        check_discrete(bps)
        if unbounded:
            return f"{int(lo)} and over"
        return f"{int(lo)} to {int(hi) - 1}"

    if convention in (LabelConvention.ROUNDED, LabelConvention.PSEUDO_ROUNDED):
        check_precision(precision)
        eps =default_epsilon(convention, precision) if epsilon is None else epsilon
        lo_txt = _fmt_fixed(round(lo, precision), precision)
        if unbounded:
            return f"{lo_txt} and over"
        # the upper edge is shifted down by eps on purpose; this is the misleading legend
        hi_txt = _fmt_fixed(round(hi, precision) - eps, max(precision, _decimals_for(eps)))
        return f"{lo_txt}–{hi_txt}"

    raise ValueError(f"Unknown label convention: {convention!r}")


def parse_interval(text: str) -> tuple[float, float]:
    """Inverse of a RAW_INTERVAL label: '[18, 45)' -> (18.0, 45.0)."""
    s = text.strip()
    if not (s.startswith("[") and s.endswith(")")):
        raise ValueError(f"Not a half-open interval label: {text!r}")
    lo, hi = s[1:-1].split(",")
    return float(lo), float(hi)
# ------------------------------------


@dataclass(frozen=True)
class ClassScheme:
    """Breaks plus the legend convention used for one map."""

    breakpoints: tuple[float, ...]
    convention: LabelConvention = LabelConvention.RAW_INTERVAL
    precision: int = 1
    epsilon: Optional[float] = None

    def __post_init__(self):
        bps = validate_breakpoints(self.breakpoints)
        object.__setattr__(self, "breakpoints", bps)
        if not isinstance(self.convention, LabelConvention):
            object.__setattr__(self, "convention", LabelConvention(self.convention))
        check_precision(self.precision)
        if self.epsilon is not None and not self.epsilon > 0:
            raise ValueError(f"epsilon must be > 0, got {self.epsilon}.")
        if self.convention is LabelConvention.DISCRETE:
            check_discrete(bps)
        # rounding can print two classes the same; the legend would merge them
        labels = self.labels()
        if len(set(labels)) != len(labels):
            raise MalformedBreakpoints(
                f"Labels not distinct at precision {self.precision}: {labels}"
            )

    @property
    def k(self) -> int:
        return len(self.breakpoints) - 1

    def label(self, index: int) -> str:
        return label(index, self.breakpoints, self.convention, self.precision, self.epsilon)

    def labels(self) -> list[str]:
        return [self.label(i) for i in range(self.k)]


def classify_values(values, scheme: ClassScheme, *, missing: str = "raise") -> pd.DataFrame:
    """
    Vectorized classify + label.
    Returns a frame on the input's index with 'class_idx' (Int64) and
    'class_label' (ordered categorical over scheme.labels()).
    missing="raise" raises OutOfRange for NaN/out-of-range values;
    missing="keep" leaves them as <NA> for the caller to draw as "no data".
    """
    if missing not in ("raise", "keep"):
        raise ValueError(f"missing must be 'raise' or 'keep', got {missing!r}.")
    s = values if isinstance(values, pd.Series) else pd.Series(values)
    s = pd.to_numeric(s, errors="coerce").astype(float)

    labels = scheme.labels()
    cats = pd.cut(s, bins=list(scheme.breakpoints), right=False, labels=False)
    codes = cats.astype("Int64")

    bad = codes.isna()
    if bad.any():
        first = float(s[bad].iloc[0])
        if missing == "raise":
            raise OutOfRange(
                f"{int(bad.sum())} value(s) outside "
                f"[{_fmt_exact(scheme.breakpoints[0])}, {_fmt_exact(scheme.breakpoints[-1])}); "
                f"first: {first!r}"
            )
        log.info("%d of %d values left unclassified (first: %r)", int(bad.sum()), len(s), first)

    label_codes = np.where(bad, -1, codes.fillna(-1).to_numpy(dtype=int))
    class_label = pd.Categorical.from_codes(label_codes, categories=labels, ordered=True)
    return pd.DataFrame({"class_idx": codes, "class_label": class_label}, index=s.index)
