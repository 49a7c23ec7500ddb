from __future__ import annotations

from collections import deque
import logging
import math
from typing import Iterable, Iterator, Sequence

from telegraph_plot.options import RGBA
from telegraph_plot.registry import SeriesRegistry
from telegraph_plot.samples import BufferedSample, Sample
from telegraph_plot.timeline import TimeMapper


LOGGER = logging.getLogger(__name__)


class SampleBuffer:
    """Sliding window of buffered samples, appended on the right and pruned from the left."""

    def __init__(self, time_mapper: TimeMapper, palette: Sequence[RGBA], window_ms: float) -> None:
        if window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        self._time_mapper = time_mapper
        self._window_ms = float(window_ms)
        self._samples: deque[BufferedSample] = deque()
        self.registry = SeriesRegistry(palette)

    @property
    def window_ms(self) -> float:
        return self._window_ms

    @window_ms.setter
    def window_ms(self, value: float) -> None:
        if value <= 0:
            raise ValueError("window_ms must be > 0")
        self._window_ms = float(value)

    @property
    def time_mapper(self) -> TimeMapper:
        return self._time_mapper

    def add_samples(self, batch: Iterable[Sample]) -> int:
        added = 0
        for sample in batch:
            if sample.is_empty:
                continue
            previous = self._samples[-1] if self._samples else None
            buffered = self._time_mapper.map_sample(sample, previous)
            self._samples.append(buffered)
            for key in sample.keys():
                self.registry.register(key)
            added += 1
        self.prune_old_samples()
        return added

    def prune_old_samples(self) -> int:
        now = self._time_mapper.current_anim_time()
        pruned = 0
        while self._samples and self._samples[0].anim_timestamp + self._window_ms < now:
            expired = self._samples.popleft()
            for key in expired.sample.keys():
                self.registry.release(key)
            pruned += 1
        if pruned:
            LOGGER.debug("pruned %d expired samples; %d remain", pruned, len(self._samples))
        return pruned

    def clear(self) -> None:
        self._samples.clear()
        self.registry.clear()

    def value_range(self) -> tuple[float, float] | None:
        lo: float | None = None
        hi: float | None = None
        for buffered in self._samples:
            for _, value in buffered.data:
                if not math.isfinite(value):
                    continue
                if lo is None or value < lo:
                    lo = value
                if hi is None or value > hi:
                    hi = value
        if lo is None or hi is None:
            return None
        return (lo, hi)

    def series_points(self, key: str) -> list[tuple[float, float]]:
        points: list[tuple[float, float]] = []
        for buffered in self._samples:
            value = buffered.value_for(key)
            if value is not None and math.isfinite(value):
                points.append((buffered.anim_timestamp, value))
        return points

    def snapshot(self) -> tuple[BufferedSample, ...]:
        return tuple(self._samples)

    def __iter__(self) -> Iterator[BufferedSample]:
        return iter(self._samples)

    def __len__(self) -> int:
        return len(self._samples)
