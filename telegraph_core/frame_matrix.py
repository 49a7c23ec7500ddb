from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
import threading
import time

import numpy as np
import torch


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FullRewrite:
    tensor_h_w_4: torch.Tensor


@dataclass(frozen=True)
class WriteBatch:
    operations: list[FullRewrite]


@dataclass(frozen=True)
class FrameCommit:
    commit_id: int
    revision: int
    ts_ns: int


def compile_frame_batch(frame_rgba: np.ndarray) -> WriteBatch:
    if frame_rgba.dtype != np.uint8:
        raise ValueError("frame_rgba must be uint8")
    if frame_rgba.ndim != 3 or frame_rgba.shape[2] != 4:
        raise ValueError("frame_rgba must have shape (H, W, 4)")
    return WriteBatch([FullRewrite(torch.from_numpy(np.ascontiguousarray(frame_rgba)))])


class FrameMatrix:
    """Latest presented graph frame as an RGBA255 tensor, committed atomically per batch.

    Each commit bumps ``revision`` and queues a :class:`FrameCommit` for whichever
    consumer displays or records frames.
    """

    def __init__(self, height: int, width: int, background: tuple[int, int, int, int] = (255, 255, 255, 255)) -> None:
        if height <= 0 or width <= 0:
            raise ValueError("height and width must be > 0")
        self._background = background
        self._write_lock = threading.Lock()
        self._commit_cv = threading.Condition()
        self._commits: deque[FrameCommit] = deque()
        self._next_commit_id = 1
        self._revision = 0
        self._allocate(height, width)

    @property
    def height(self) -> int:
        return self._height

    @property
    def width(self) -> int:
        return self._width

    @property
    def revision(self) -> int:
        return self._revision

    def resize(self, height: int, width: int) -> None:
        if height <= 0 or width <= 0:
            raise ValueError("height and width must be > 0")
        with self._write_lock:
            if (height, width) != (self._height, self._width):
                LOGGER.debug("frame matrix resized %dx%d -> %dx%d", self._width, self._height, width, height)
                self._allocate(height, width)

    def read_snapshot(self) -> torch.Tensor:
        with self._write_lock:
            return self._matrix.clone()

    def submit(self, batch: WriteBatch) -> FrameCommit:
        if not batch.operations:
            raise ValueError("write batch must include at least one operation")

        with self._write_lock:
            # Validate every operation before the frame is replaced.
            staged = self._matrix
            for op in batch.operations:
                staged = self._apply_operation(op)
            self._matrix = staged
            self._revision += 1
            commit = FrameCommit(commit_id=self._next_commit_id, revision=self._revision, ts_ns=time.time_ns())
            self._next_commit_id += 1

        with self._commit_cv:
            self._commits.append(commit)
            self._commit_cv.notify_all()
        return commit

    def pop_commit(self, timeout: float | None = None) -> FrameCommit | None:
        with self._commit_cv:
            if not self._commits and timeout is not None:
                self._commit_cv.wait(timeout=timeout)
            if not self._commits:
                return None
            return self._commits.popleft()

    def pending_commit_count(self) -> int:
        with self._commit_cv:
            return len(self._commits)

    def _allocate(self, height: int, width: int) -> None:
        self._height = height
        self._width = width
        bg = torch.tensor(self._background, dtype=torch.uint8).view(1, 1, 4)
        self._matrix = bg.expand(height, width, 4).clone()

    def _apply_operation(self, op: FullRewrite) -> torch.Tensor:
        if not isinstance(op, FullRewrite):
            raise TypeError(f"Unsupported write op: {type(op)!r}")
        return _checked_rgba_tensor(op.tensor_h_w_4, (self._height, self._width, 4))


def _checked_rgba_tensor(value: torch.Tensor, expected_shape: tuple[int, ...]) -> torch.Tensor:
    if not torch.is_tensor(value):
        raise ValueError("rgba tensor must be a torch.Tensor")
    if value.dtype != torch.uint8:
        raise ValueError(f"rgba tensor must be uint8, got {value.dtype}")
    if tuple(value.shape) != expected_shape:
        raise ValueError(f"rgba tensor has invalid shape: {tuple(value.shape)} expected {expected_shape}")
    return value.clone()
