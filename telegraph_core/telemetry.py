from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import re
from typing import Iterable, Mapping

from telegraph_core.op_mode_lifecycle import LifecycleTransition, OpModeLifecycle
from telegraph_plot.samples import Sample


LOGGER = logging.getLogger(__name__)

_LEADING_FLOAT_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

TelemetryValue = str | int | float | bool | None


@dataclass(frozen=True)
class TelemetryPacket:
    """One telemetry update from the robot; ``timestamp`` is in milliseconds."""

    timestamp: float
    data: Mapping[str, TelemetryValue] = field(default_factory=dict)
    log: tuple[str, ...] = ()


@dataclass
class KeyMeta:
    has_numeric: bool = False
    is_selected: bool = False


def parse_numeric(value: TelemetryValue) -> float | None:
    """Lenient number parsing: the longest numeric prefix of a string, finite values only."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
    else:
        m = _LEADING_FLOAT_RE.match(str(value))
        if m is None:
            return None
        out = float(m.group(0))
    return out if math.isfinite(out) else None


class TelemetryKeyTracker:
    """Telemetry keys in first-seen order with numeric detection and graph selection."""

    def __init__(self, *, select_new_numeric: bool = False) -> None:
        self._select_new_numeric = select_new_numeric
        self._meta: dict[str, KeyMeta] = {}

    def observe(self, packets: Iterable[TelemetryPacket]) -> None:
        for packet in packets:
            for key, value in packet.data.items():
                meta = self._meta.get(key)
                if meta is None:
                    meta = KeyMeta()
                    self._meta[key] = meta
                if not meta.has_numeric and parse_numeric(value) is not None:
                    meta.has_numeric = True
                    if self._select_new_numeric:
                        meta.is_selected = True

    def keys(self) -> list[str]:
        return list(self._meta)

    def meta(self, key: str) -> KeyMeta:
        return self._meta[key]

    def numeric_keys(self) -> list[str]:
        return [key for key, meta in self._meta.items() if meta.has_numeric]

    def selected_keys(self) -> list[str]:
        return [key for key, meta in self._meta.items() if meta.is_selected]

    def set_selected(self, key: str, selected: bool) -> None:
        meta = self._meta.get(key)
        if meta is None:
            raise KeyError(f"unknown telemetry key: {key}")
        if selected and not meta.has_numeric:
            LOGGER.warning("selecting telemetry key %r that has not reported a number yet", key)
        meta.is_selected = bool(selected)

    def to_samples(self, packets: Iterable[TelemetryPacket]) -> list[Sample]:
        selected = {key for key, meta in self._meta.items() if meta.is_selected}
        samples: list[Sample] = []
        for packet in packets:
            points: list[tuple[str, float]] = []
            for key, value in packet.data.items():
                if key not in selected:
                    continue
                number = parse_numeric(value)
                if number is not None:
                    points.append((key, number))
            samples.append(Sample(timestamp=packet.timestamp, data=tuple(points)))
        return samples

    def clear(self) -> None:
        self._meta.clear()

    def bind(self, lifecycle: OpModeLifecycle) -> None:
        """Forget all keys whenever an op mode is initialized or started."""

        def _reset(event: LifecycleTransition) -> None:
            self.clear()

        lifecycle.on_enter("INIT", _reset)
        lifecycle.on_enter("RUNNING", _reset)
