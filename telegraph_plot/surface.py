from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol, Sequence

import numpy as np
from PIL import Image

from telegraph_plot.raster import RGBA, draw_polyline, draw_text, fill_rect, new_canvas, text_size


TextAlign = Literal["left", "right", "center"]


class DrawingSurface(Protocol):
    """2D drawing target addressed in CSS pixels and scaled by a transform to device pixels."""

    @property
    def css_width(self) -> float:
        ...

    @property
    def css_height(self) -> float:
        ...

    @property
    def device_pixel_ratio(self) -> float:
        ...

    def is_ready(self) -> bool:
        ...

    def reset(self) -> None:
        ...

    def scaling(self) -> tuple[float, float]:
        ...

    def scale(self, sx: float, sy: float) -> None:
        ...

    def save(self) -> None:
        ...

    def restore(self) -> None:
        ...

    def clip_rect(self, x: float, y: float, width: float, height: float) -> None:
        ...

    def fill_rect(self, x: float, y: float, width: float, height: float, color: RGBA) -> None:
        ...

    def stroke_polyline(self, points: Sequence[tuple[float, float]], color: RGBA, line_width: float) -> None:
        ...

    def fill_text(self, text: str, x: float, y: float, color: RGBA, *, font_size: float, align: TextAlign = "left") -> None:
        ...

    def measure_text(self, text: str, *, font_size: float) -> float:
        ...


@dataclass
class _SurfaceState:
    sx: float = 1.0
    sy: float = 1.0
    clip: tuple[int, int, int, int] | None = None


class RasterSurface:
    """numpy RGBA drawing surface; text is vertically centered on its anchor point."""

    def __init__(self, css_width: float, css_height: float, device_pixel_ratio: float = 1.0) -> None:
        if device_pixel_ratio <= 0:
            raise ValueError("device_pixel_ratio must be > 0")
        self._dpr = float(device_pixel_ratio)
        self._canvas: np.ndarray | None = None
        self._state = _SurfaceState()
        self._stack: list[_SurfaceState] = []
        self.resize(css_width, css_height)

    def resize(self, css_width: float, css_height: float) -> None:
        if css_width < 0 or css_height < 0:
            raise ValueError("surface size must be >= 0")
        self._css_width = float(css_width)
        self._css_height = float(css_height)
        w = int(round(self._css_width * self._dpr))
        h = int(round(self._css_height * self._dpr))
        self._canvas = new_canvas(w, h, color=(0, 0, 0, 0)) if w > 0 and h > 0 else None
        self.reset()

    @property
    def css_width(self) -> float:
        return self._css_width

    @property
    def css_height(self) -> float:
        return self._css_height

    @property
    def device_pixel_ratio(self) -> float:
        return self._dpr

    @property
    def device_size(self) -> tuple[int, int]:
        if self._canvas is None:
            return (0, 0)
        return (int(self._canvas.shape[1]), int(self._canvas.shape[0]))

    def is_ready(self) -> bool:
        return self._canvas is not None

    def reset(self) -> None:
        if self._canvas is not None:
            self._canvas[:, :] = 0
        self._state = _SurfaceState()
        self._stack.clear()

    def scaling(self) -> tuple[float, float]:
        return (self._state.sx, self._state.sy)

    def scale(self, sx: float, sy: float) -> None:
        if sx <= 0 or sy <= 0:
            raise ValueError("scale factors must be > 0")
        self._state.sx *= float(sx)
        self._state.sy *= float(sy)

    def save(self) -> None:
        self._stack.append(_SurfaceState(self._state.sx, self._state.sy, self._state.clip))

    def restore(self) -> None:
        if self._stack:
            self._state = self._stack.pop()

    def clip_rect(self, x: float, y: float, width: float, height: float) -> None:
        x0, y0 = self._to_device(x, y)
        x1, y1 = self._to_device(x + width, y + height)
        box = (int(np.floor(min(x0, x1))), int(np.floor(min(y0, y1))), int(np.ceil(max(x0, x1))), int(np.ceil(max(y0, y1))))
        current = self._state.clip
        if current is not None:
            box = (max(box[0], current[0]), max(box[1], current[1]), min(box[2], current[2]), min(box[3], current[3]))
        self._state.clip = box

    def fill_rect(self, x: float, y: float, width: float, height: float, color: RGBA) -> None:
        target, ox, oy = self._target()
        if target is None:
            return
        x0, y0 = self._to_device(x, y)
        x1, y1 = self._to_device(x + width, y + height)
        fill_rect(target, int(round(x0)) - ox, int(round(y0)) - oy, int(round(x1)) - ox, int(round(y1)) - oy, color)

    def stroke_polyline(self, points: Sequence[tuple[float, float]], color: RGBA, line_width: float) -> None:
        target, ox, oy = self._target()
        if target is None or not points:
            return
        device = [self._to_device(x, y) for x, y in points]
        xs = [p[0] - ox for p in device]
        ys = [p[1] - oy for p in device]
        brush = max(1, int(round(line_width * max(self._state.sx, self._state.sy))))
        draw_polyline(target, xs, ys, color=color, width=brush)

    def fill_text(self, text: str, x: float, y: float, color: RGBA, *, font_size: float, align: TextAlign = "left") -> None:
        target, ox, oy = self._target()
        if target is None or not text:
            return
        font_px = font_size * self._state.sy
        w, h = text_size(text, font_size_px=font_px)
        dx, dy = self._to_device(x, y)
        if align == "right":
            dx -= w
        elif align == "center":
            dx -= w / 2.0
        draw_text(target, int(round(dx)) - ox, int(round(dy - h / 2.0)) - oy, text, color, font_size_px=font_px)

    def measure_text(self, text: str, *, font_size: float) -> float:
        w, _ = text_size(text, font_size_px=font_size * self._state.sy)
        return w / self._state.sx

    def to_rgba(self) -> np.ndarray:
        if self._canvas is None:
            raise RuntimeError("surface has no pixels")
        return self._canvas.copy()

    def save_png(self, path: str | Path) -> None:
        Image.fromarray(self.to_rgba()).save(str(path))

    def _to_device(self, x: float, y: float) -> tuple[float, float]:
        return (x * self._state.sx, y * self._state.sy)

    def _target(self) -> tuple[np.ndarray | None, int, int]:
        if self._canvas is None:
            return (None, 0, 0)
        clip = self._state.clip
        if clip is None:
            return (self._canvas, 0, 0)
        h, w = self._canvas.shape[0], self._canvas.shape[1]
        x0, y0 = max(0, clip[0]), max(0, clip[1])
        x1, y1 = min(w, clip[2]), min(h, clip[3])
        if x1 <= x0 or y1 <= y0:
            return (None, 0, 0)
        return (self._canvas[y0:y1, x0:x1], x0, y0)
