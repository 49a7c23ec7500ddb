from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping


SeriesPoint = tuple[str, float]


@dataclass(frozen=True)
class Sample:
    """One timestamped set of named readings; ``timestamp`` is in milliseconds."""

    timestamp: float
    data: tuple[SeriesPoint, ...] = ()

    def __post_init__(self) -> None:
        points = tuple((str(key), float(value)) for key, value in self.data)
        seen: set[str] = set()
        for key, _ in points:
            if key in seen:
                raise ValueError(f"duplicate series key in sample: {key}")
            seen.add(key)
        object.__setattr__(self, "timestamp", float(self.timestamp))
        object.__setattr__(self, "data", points)

    @classmethod
    def from_mapping(cls, timestamp: float, values: Mapping[str, float]) -> "Sample":
        return cls(timestamp=timestamp, data=tuple(values.items()))

    @property
    def is_empty(self) -> bool:
        return not self.data

    def keys(self) -> Iterable[str]:
        return (key for key, _ in self.data)


@dataclass(frozen=True)
class BufferedSample:
    sample: Sample
    anim_timestamp: float

    @property
    def timestamp(self) -> float:
        return self.sample.timestamp

    @property
    def data(self) -> tuple[SeriesPoint, ...]:
        return self.sample.data

    def value_for(self, key: str) -> float | None:
        for other, value in self.sample.data:
            if other == key:
                return value
        return None
