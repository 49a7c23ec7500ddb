from __future__ import annotations

import numpy as np


RGBA = tuple[int, int, int, int]


def new_canvas(width: int, height: int, color: RGBA = (255, 255, 255, 255)) -> np.ndarray:
    if width <= 0 or height <= 0:
        raise ValueError("canvas width/height must be > 0")
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[:, :] = np.asarray(color, dtype=np.uint8)
    return canvas


def _blend_into(segment: np.ndarray, color: RGBA) -> None:
    a = color[3] / 255.0
    if a >= 1.0:
        segment[..., :3] = np.asarray(color[0:3], dtype=np.uint8)
    else:
        src = np.asarray(color[0:3], dtype=np.float32) * a
        segment[..., :3] = (src + segment[..., :3].astype(np.float32) * (1.0 - a)).astype(np.uint8)
    segment[..., 3] = 255


def fill_rect(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA) -> None:
    """Fill the half-open device-pixel box ``[x0, x1) x [y0, y1)``."""
    left = max(0, min(int(x0), int(x1)))
    right = min(dst.shape[1], max(int(x0), int(x1)))
    top = max(0, min(int(y0), int(y1)))
    bottom = min(dst.shape[0], max(int(y0), int(y1)))
    if right <= left or bottom <= top:
        return
    _blend_into(dst[top:bottom, left:right], color)
