from __future__ import annotations

from dataclasses import dataclass
import math
import sys

import numpy as np


FLAT_RANGE_EPSILON = 1e-6
# Ranges narrower than this fraction of their magnitude are treated as flat.
RELATIVE_FLAT_EPSILON = 1e-9
# Keeps spans and nice-number rounding finite for values near the float limit.
AXIS_VALUE_LIMIT = sys.float_info.max / 4
MAX_TICK_DECIMALS = 20


@dataclass(frozen=True)
class Axis:
    min: float
    max: float
    spacing: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.min) and math.isfinite(self.max)):
            raise ValueError("axis bounds must be finite")
        if self.min >= self.max:
            raise ValueError("axis min must be < max")
        if not math.isfinite(self.spacing) or self.spacing <= 0:
            raise ValueError("axis spacing must be > 0")


@dataclass(frozen=True)
class PlotTransform:
    """Linear (time, value) -> (x, y) mapping for one frame, in plot-local CSS pixels."""

    time_min: float
    time_max: float
    value_min: float
    value_max: float
    width: float
    height: float

    def project(self, anim_timestamp: float, value: float) -> tuple[float, float]:
        x = scale(anim_timestamp, self.time_min, self.time_max, 0.0, self.width)
        # Value axis is inverted: larger values draw higher.
        y = scale(value, self.value_min, self.value_max, self.height, 0.0)
        return (x, y)


def scale(value: float, from_low: float, from_high: float, to_low: float, to_high: float) -> float:
    frac = (to_high - to_low) / (from_high - from_low)
    return to_low + frac * (value - from_low)


def build_transform(axis: Axis, *, now: float, window_ms: float, width: float, height: float) -> PlotTransform:
    if window_ms <= 0:
        raise ValueError("window_ms must be > 0")
    return PlotTransform(
        time_min=now - window_ms,
        time_max=now,
        value_min=axis.min,
        value_max=axis.max,
        width=float(width),
        height=float(height),
    )


def nice_number(value: float, *, round_result: bool) -> float:
    if not (math.isfinite(value) and value > 0):
        raise ValueError("value must be positive and finite")
    exp = math.floor(math.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def compute_axis(vmin: float, vmax: float, max_ticks: int) -> Axis:
    """Round raw extrema out to a "nice" axis with at most roughly ``max_ticks`` ticks."""
    if max_ticks < 2:
        raise ValueError("max_ticks must be >= 2")
    if not (math.isfinite(vmin) and math.isfinite(vmax)):
        vmin, vmax = 0.0, 0.0
    if vmin > vmax:
        vmin, vmax = vmax, vmin
    vmin = min(max(vmin, -AXIS_VALUE_LIMIT), AXIS_VALUE_LIMIT)
    vmax = min(max(vmax, -AXIS_VALUE_LIMIT), AXIS_VALUE_LIMIT)
    magnitude = max(abs(vmin), abs(vmax))
    if vmax - vmin < max(FLAT_RANGE_EPSILON, magnitude * RELATIVE_FLAT_EPSILON):
        # Pad by 1, or proportionally once 1 is below float resolution.
        pad = max(1.0, magnitude * FLAT_RANGE_EPSILON)
        vmin -= pad
        vmax += pad

    span = nice_number(vmax - vmin, round_result=False)
    spacing = nice_number(span / (max_ticks - 1), round_result=True)
    nice_min = math.floor(vmin / spacing) * spacing
    nice_max = (math.floor(vmax / spacing) + 1) * spacing
    return Axis(min=nice_min, max=nice_max, spacing=spacing)


def axis_for_range(value_range: tuple[float, float] | None, max_ticks: int) -> Axis:
    if value_range is None:
        return compute_axis(0.0, 0.0, max_ticks)
    return compute_axis(value_range[0], value_range[1], max_ticks)


def fixed_axis(min_scale: float, max_scale: float, tick_count: int) -> Axis:
    if tick_count < 2:
        raise ValueError("tick_count must be >= 2")
    return Axis(min=float(min_scale), max=float(max_scale), spacing=(max_scale - min_scale) / (tick_count - 1))


def tick_values(axis: Axis) -> np.ndarray:
    count = int(math.floor((axis.max - axis.min) / axis.spacing + 1e-9)) + 1
    ticks = axis.min + np.arange(count, dtype=np.float64) * axis.spacing
    # Normalize floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / axis.spacing) * axis.spacing if _is_multiple(axis.min, axis.spacing) else ticks
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=axis.spacing * 1e-9)] = 0.0
    return ticks


def format_tick(value: float, ticks: np.ndarray) -> str:
    if value == 0:
        return "0"
    if ticks.size > 3:
        delta = float(ticks[2] - ticks[1])
    elif ticks.size > 1:
        delta = float(ticks[1] - ticks[0])
    else:
        delta = 1.0
    # A step like 2.5 needs decimals only on the non-integer ticks.
    if abs(delta) > 1 and value != math.floor(value):
        delta = value - math.floor(value)
    decimals = -math.floor(math.log10(abs(delta))) if delta != 0 else 0
    decimals = max(0, min(MAX_TICK_DECIMALS, decimals))
    return f"{value:.{decimals}f}"


def format_ticks(axis: Axis) -> list[str]:
    ticks = tick_values(axis)
    return [format_tick(float(v), ticks) for v in ticks]


def align_coord(coord: float, scaling: float) -> float:
    """Snap a CSS coordinate to the nearest device-pixel center for a surface scaled by ``scaling``."""
    if scaling <= 0:
        raise ValueError("scaling must be > 0")
    return (math.floor(coord * scaling) + 0.5) / scaling


def _is_multiple(value: float, step: float) -> bool:
    ratio = value / step
    return abs(ratio - round(ratio)) <= 1e-6
