from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Protocol

from telegraph_plot.samples import BufferedSample, Sample


class Clock(Protocol):
    def now_ms(self) -> float:
        ...


class WallClock:
    def now_ms(self) -> float:
        return time.time_ns() / 1_000_000.0


@dataclass
class ManualClock:
    """Clock advanced explicitly; used for deterministic stepping."""

    current_ms: float = 0.0

    def now_ms(self) -> float:
        return self.current_ms

    def advance(self, delta_ms: float) -> float:
        if delta_ms < 0:
            raise ValueError("delta_ms must be >= 0")
        self.current_ms += float(delta_ms)
        return self.current_ms

    def set(self, value_ms: float) -> None:
        self.current_ms = float(value_ms)


class TimeMapper:
    """Maps externally supplied sample timestamps onto the graph's animation timeline.

    A sample with no predecessor is anchored at the current animation time. Every
    later sample is placed at the previous sample's animation time plus the
    external timestamp delta, so only deltas matter once seeded. A backwards
    external step counts as a zero delta so the timeline stays ordered.

    Freezing pins "now" to the wall-clock value captured when freezing began;
    samples are still mapped while frozen.
    """

    def __init__(self, clock: Clock | None = None, delay_ms: float = 0.0) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._clock: Clock = clock or WallClock()
        self._delay_ms = float(delay_ms)
        self._frozen = False
        self._frozen_at_ms = 0.0

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def delay_ms(self) -> float:
        return self._delay_ms

    @delay_ms.setter
    def delay_ms(self, value: float) -> None:
        if value < 0:
            raise ValueError("delay_ms must be >= 0")
        self._delay_ms = float(value)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def set_frozen(self, frozen: bool) -> None:
        self._frozen = bool(frozen)
        if self._frozen:
            self._frozen_at_ms = self._clock.now_ms()

    def current_anim_time(self) -> float:
        if self._frozen:
            return self._frozen_at_ms + self._delay_ms
        return self._clock.now_ms() + self._delay_ms

    def map_sample(self, sample: Sample, previous: BufferedSample | None) -> BufferedSample:
        if previous is None:
            anim = self.current_anim_time()
        else:
            anim = previous.anim_timestamp + max(0.0, sample.timestamp - previous.timestamp)
        return BufferedSample(sample=sample, anim_timestamp=anim)
