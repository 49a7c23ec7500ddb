from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import math
import numbers
from typing import Any, Iterable

from telegraph_plot.buffer import SampleBuffer
from telegraph_plot.options import DEFAULT_OPTIONS, GraphOptions
from telegraph_plot.renderer import GraphRenderer, RenderedFrame
from telegraph_plot.samples import Sample
from telegraph_plot.scales import Axis, axis_for_range, fixed_axis
from telegraph_plot.surface import DrawingSurface
from telegraph_plot.timeline import Clock, TimeMapper


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AxisScaling:
    is_auto_scale: bool = True
    min_scale: float = 0.0
    max_scale: float = 1.0
    tick_count: int = 5


class Graph:
    """Streaming time-series graph: sample window, axis scaling and frame rendering."""

    def __init__(
        self,
        options: GraphOptions | None = None,
        *,
        clock: Clock | None = None,
        **overrides: Any,
    ) -> None:
        base = options or DEFAULT_OPTIONS
        self._options = replace(base, **overrides) if overrides else base
        self.time_mapper = TimeMapper(clock=clock, delay_ms=self._options.delay_ms)
        self.buffer = SampleBuffer(self.time_mapper, self._options.colors, self._options.window_ms)
        self.renderer = GraphRenderer(self._options)
        self._scaling = AxisScaling()
        self._last_axis: Axis | None = None

    @property
    def options(self) -> GraphOptions:
        return self._options

    @property
    def window_ms(self) -> float:
        return self.buffer.window_ms

    @property
    def axis_scaling(self) -> AxisScaling:
        return self._scaling

    @property
    def last_axis(self) -> Axis | None:
        return self._last_axis

    @property
    def frozen(self) -> bool:
        return self.time_mapper.frozen

    def add_samples(self, batch: Iterable[Sample]) -> int:
        return self.buffer.add_samples(batch)

    def set_frozen(self, frozen: bool) -> None:
        self.time_mapper.set_frozen(frozen)

    def clear(self) -> None:
        self.buffer.clear()
        self._last_axis = None

    def current_anim_time(self) -> float:
        return self.time_mapper.current_anim_time()

    def active_keys(self) -> list[str]:
        return self.buffer.registry.keys()

    def set_window_ms(self, window_ms: Any) -> bool:
        if not _is_positive_number(window_ms):
            LOGGER.warning("ignoring invalid window_ms=%r; keeping %s", window_ms, self.buffer.window_ms)
            return False
        value = float(window_ms)
        self._options = replace(self._options, window_ms=value)
        self.renderer.options = self._options
        self.buffer.window_ms = value
        self.buffer.prune_old_samples()
        return True

    def set_auto_scale(self) -> None:
        self._scaling = replace(self._scaling, is_auto_scale=True)

    def set_fixed_axis(self, min_scale: Any, max_scale: Any, tick_count: Any) -> bool:
        """Switch to a caller-supplied axis; an unusable range leaves the current scaling in place."""
        if not (_is_number(min_scale) and _is_number(max_scale)):
            LOGGER.warning("ignoring non-numeric fixed axis (%r, %r)", min_scale, max_scale)
            return False
        if float(min_scale) >= float(max_scale):
            LOGGER.warning("ignoring fixed axis with min >= max (%r, %r)", min_scale, max_scale)
            return False
        if not math.isfinite(float(max_scale) - float(min_scale)):
            LOGGER.warning("ignoring fixed axis whose span overflows (%r, %r)", min_scale, max_scale)
            return False
        if isinstance(tick_count, bool) or not isinstance(tick_count, numbers.Integral) or tick_count < 2:
            LOGGER.warning("ignoring fixed axis with tick_count=%r", tick_count)
            return False
        self._scaling = AxisScaling(
            is_auto_scale=False,
            min_scale=float(min_scale),
            max_scale=float(max_scale),
            tick_count=int(tick_count),
        )
        return True

    def set_axis_scaling(
        self,
        *,
        is_auto_scale: bool,
        min_scale: Any = None,
        max_scale: Any = None,
        tick_count: Any = None,
    ) -> bool:
        if is_auto_scale:
            self.set_auto_scale()
            return True
        return self.set_fixed_axis(min_scale, max_scale, tick_count)

    def update_options(self, **overrides: Any) -> bool:
        """Apply option overrides at runtime; invalid values keep the previous options."""
        try:
            updated = replace(self._options, **overrides)
        except (TypeError, ValueError) as exc:
            LOGGER.warning("ignoring invalid graph options %r: %s", overrides, exc)
            return False
        self._options = updated
        self.renderer.options = updated
        self.time_mapper.delay_ms = updated.delay_ms
        self.buffer.registry.set_palette(updated.colors)
        if updated.window_ms != self.buffer.window_ms:
            self.buffer.window_ms = updated.window_ms
            self.buffer.prune_old_samples()
        return True

    def compute_axis(self) -> Axis:
        s = self._scaling
        if s.is_auto_scale:
            axis = axis_for_range(self.buffer.value_range(), self._options.max_ticks)
        else:
            axis = fixed_axis(s.min_scale, s.max_scale, s.tick_count)
        self._last_axis = axis
        return axis

    def render(self, surface: DrawingSurface | None) -> RenderedFrame | None:
        if surface is None or not surface.is_ready():
            return None
        axis = self.compute_axis()
        return self.renderer.render(
            surface,
            self.buffer,
            axis,
            now=self.current_anim_time(),
            window_ms=self.buffer.window_ms,
        )


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(float(value))


def _is_positive_number(value: Any) -> bool:
    return _is_number(value) and float(value) > 0
