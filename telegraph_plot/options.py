from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import math
from pathlib import Path
import re
import tomllib
from typing import Any, Mapping, Sequence

from telegraph_plot.errors import GraphConfigError


RGBA = tuple[int, int, int, int]
ColorLike = str | Sequence[int]

_HEX_RE = re.compile(r"^#([0-9a-fA-F]{6})([0-9a-fA-F]{2})?$")
_RGB_RE = re.compile(r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([0-9.]+)\s*)?\)$")


def parse_color(color: ColorLike) -> RGBA:
    """Convert ``#rrggbb[aa]``, ``rgb(r, g, b)``/``rgba(r, g, b, a)`` or an int tuple to RGBA255."""
    if isinstance(color, str):
        text = color.strip()
        m = _HEX_RE.match(text)
        if m is not None:
            rgb = m.group(1)
            alpha = int(m.group(2), 16) if m.group(2) else 255
            return (int(rgb[0:2], 16), int(rgb[2:4], 16), int(rgb[4:6], 16), alpha)
        m = _RGB_RE.match(text)
        if m is not None:
            r, g, b = (_clamp_channel(int(m.group(i))) for i in (1, 2, 3))
            alpha = 255
            if m.group(4) is not None:
                alpha = _clamp_channel(int(round(float(m.group(4)) * 255)))
            return (r, g, b, alpha)
        raise ValueError(f"unsupported color string: {color!r}")
    values = tuple(int(c) for c in color)
    if len(values) == 3:
        return (*(_clamp_channel(v) for v in values), 255)  # type: ignore[return-value]
    if len(values) == 4:
        return tuple(_clamp_channel(v) for v in values)  # type: ignore[return-value]
    raise ValueError("color tuple must have 3 or 4 channels")


def _clamp_channel(value: int) -> int:
    return max(0, min(255, int(value)))


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(float(value))


DEFAULT_COLORS: tuple[RGBA, ...] = tuple(
    parse_color(c) for c in ("#2979ff", "#dd2c00", "#4caf50", "#7c4dff", "#ffa000")
)


# All lengths are CSS pixels unless stated otherwise.
@dataclass(frozen=True)
class GraphOptions:
    window_ms: float = 5000.0
    # Offset between "now" and the right edge so fresh data is not drawn at the very edge.
    delay_ms: float = 250.0
    colors: tuple[RGBA, ...] = field(default=DEFAULT_COLORS)
    line_width: float = 2.0
    padding: float = 15.0
    legend_spacing: float = 4.0
    legend_line_length: float = 12.0
    grid_line_width: float = 1.0  # device pixels
    grid_line_color: RGBA = (120, 120, 120, 255)
    font_size: float = 14.0
    text_color: RGBA = (50, 50, 50, 255)
    background_color: RGBA = (255, 255, 255, 255)
    max_ticks: int = 7
    grid_ticks_x: int = 5

    def __post_init__(self) -> None:
        object.__setattr__(self, "colors", tuple(parse_color(c) for c in self.colors))
        object.__setattr__(self, "grid_line_color", parse_color(self.grid_line_color))
        object.__setattr__(self, "text_color", parse_color(self.text_color))
        object.__setattr__(self, "background_color", parse_color(self.background_color))
        if not self.colors:
            raise ValueError("colors must not be empty")
        if not _is_finite_number(self.window_ms) or self.window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        if not _is_finite_number(self.delay_ms) or self.delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        if self.line_width <= 0:
            raise ValueError("line_width must be > 0")
        if self.grid_line_width <= 0:
            raise ValueError("grid_line_width must be > 0")
        if self.padding < 0:
            raise ValueError("padding must be >= 0")
        if self.font_size <= 0:
            raise ValueError("font_size must be > 0")
        if int(self.max_ticks) < 2:
            raise ValueError("max_ticks must be >= 2")
        if int(self.grid_ticks_x) < 2:
            raise ValueError("grid_ticks_x must be >= 2")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "GraphOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise GraphConfigError("unknown graph option(s): " + ", ".join(unknown))
        try:
            return cls(**dict(raw))
        except (TypeError, ValueError) as exc:
            raise GraphConfigError(str(exc)) from exc

    def with_overrides(self, **overrides: Any) -> "GraphOptions":
        return replace(self, **overrides)


DEFAULT_OPTIONS = GraphOptions()


def load_graph_options(path: str | Path, *, table: str = "graph") -> GraphOptions:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"graph config not found: {config_path}")
    with config_path.open("rb") as f:
        try:
            raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise GraphConfigError(f"invalid TOML in {config_path}: {exc}") from exc
    section = raw.get(table, {})
    if not isinstance(section, dict):
        raise GraphConfigError(f"[{table}] must be a table")
    return GraphOptions.from_mapping(section)