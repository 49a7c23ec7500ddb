from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from telegraph_plot.raster.canvas import RGBA, fill_rect


def draw_polyline(dst: np.ndarray, xs: Sequence[float], ys: Sequence[float], color: RGBA, width: int = 1) -> None:
    """Stroke connected segments through device-pixel coordinates.

    Segments are clipped to the canvas (plus the brush radius) before
    rasterization, so far off-canvas points cost nothing.
    """
    if len(xs) != len(ys):
        raise ValueError("xs and ys must have the same length")
    if len(xs) == 0:
        return
    if len(xs) == 1:
        _draw_square_brush(dst, math.floor(xs[0]), math.floor(ys[0]), color=color, width=width)
        return
    reach = max(0, width // 2) + 1
    box = (-reach, -reach, dst.shape[1] + reach, dst.shape[0] + reach)
    for i in range(len(xs) - 1):
        clipped = _clip_segment(float(xs[i]), float(ys[i]), float(xs[i + 1]), float(ys[i + 1]), box)
        if clipped is None:
            continue
        x0, y0, x1, y1 = clipped
        _draw_line_segment(dst, math.floor(x0), math.floor(y0), math.floor(x1), math.floor(y1), color=color, width=width)


def _clip_segment(
    x0: float, y0: float, x1: float, y1: float, box: tuple[float, float, float, float]
) -> tuple[float, float, float, float] | None:
    # Liang-Barsky against an axis-aligned box.
    xmin, ymin, xmax, ymax = box
    dx = x1 - x0
    dy = y1 - y0
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, x0 - xmin), (dx, xmax - x0), (-dy, y0 - ymin), (dy, ymax - y0)):
        if p == 0:
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)
    return (x0 + t0 * dx, y0 + t0 * dy, x0 + t1 * dx, y0 + t1 * dy)


def _draw_line_segment(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA, width: int) -> None:
    dx = abs(x1 - x0)
    sx = 1 if x0 < x1 else -1
    dy = -abs(y1 - y0)
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    while True:
        _draw_square_brush(dst, x0, y0, color=color, width=width)
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def _draw_square_brush(dst: np.ndarray, x: int, y: int, color: RGBA, width: int) -> None:
    radius = max(0, width // 2)
    span = max(1, width)
    fill_rect(dst, x - radius, y - radius, x - radius + span, y - radius + span, color)
