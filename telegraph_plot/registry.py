from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from telegraph_plot.options import RGBA


@dataclass
class SeriesMeta:
    color: RGBA
    reference_count: int = 1


class SeriesRegistry:
    """Active series keys in first-seen order with palette colors and reference counts.

    Colors are handed out round-robin from ``palette``. Once a key's count drops to
    zero it is forgotten; if it shows up again it takes the next color in the cycle.
    """

    def __init__(self, palette: Sequence[RGBA]) -> None:
        if not palette:
            raise ValueError("palette must not be empty")
        self._palette: tuple[RGBA, ...] = tuple(palette)
        self._meta: dict[str, SeriesMeta] = {}
        self._next_color_index = 0

    @property
    def palette(self) -> tuple[RGBA, ...]:
        return self._palette

    def set_palette(self, palette: Sequence[RGBA]) -> None:
        if not palette:
            raise ValueError("palette must not be empty")
        self._palette = tuple(palette)
        self._next_color_index %= len(self._palette)

    def register(self, key: str) -> SeriesMeta:
        meta = self._meta.get(key)
        if meta is not None:
            meta.reference_count += 1
            return meta
        meta = SeriesMeta(color=self._palette[self._next_color_index], reference_count=1)
        self._next_color_index = (self._next_color_index + 1) % len(self._palette)
        self._meta[key] = meta
        return meta

    def release(self, key: str) -> bool:
        """Drop one reference; returns True when the key was removed."""
        meta = self._meta.get(key)
        if meta is None:
            raise KeyError(f"series key is not registered: {key}")
        if meta.reference_count <= 1:
            del self._meta[key]
            return True
        meta.reference_count -= 1
        return False

    def get(self, key: str) -> SeriesMeta | None:
        return self._meta.get(key)

    def color_of(self, key: str) -> RGBA:
        meta = self._meta.get(key)
        if meta is None:
            raise KeyError(f"series key is not registered: {key}")
        return meta.color

    def count(self, key: str) -> int:
        meta = self._meta.get(key)
        return 0 if meta is None else meta.reference_count

    def keys(self) -> list[str]:
        return list(self._meta)

    def items(self) -> Iterator[tuple[str, SeriesMeta]]:
        return iter(list(self._meta.items()))

    def clear(self) -> None:
        self._meta.clear()
        self._next_color_index = 0

    def __contains__(self, key: object) -> bool:
        return key in self._meta

    def __len__(self) -> int:
        return len(self._meta)
