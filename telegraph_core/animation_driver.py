from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
import logging
import math
import threading
import time
from typing import Callable, Iterable, Literal, Protocol

from telegraph_core.frame_matrix import FrameMatrix, compile_frame_batch
from telegraph_plot.graph import Graph
from telegraph_plot.renderer import RenderedFrame
from telegraph_plot.samples import Sample
from telegraph_plot.surface import RasterSurface


LOGGER = logging.getLogger(__name__)

DriverState = Literal["RUNNING", "PAUSED", "STOPPED"]


class FrameScheduler(Protocol):
    def request_frame(self, callback: Callable[[], None]) -> int:
        ...

    def cancel_frame(self, handle: int) -> None:
        ...


class StepScheduler:
    """Frame scheduler stepped explicitly by the host (or a test)."""

    def __init__(self) -> None:
        self._next_handle = 1
        self._pending: dict[int, Callable[[], None]] = {}

    def request_frame(self, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def pending_count(self) -> int:
        return len(self._pending)

    def step(self) -> int:
        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback()
        return len(callbacks)


@dataclass(frozen=True)
class TickResult:
    epoch: int
    drained_batches: int
    added_samples: int
    rendered: bool
    frame: RenderedFrame | None = None


@dataclass
class FramePacer:
    """Loop cadence for :meth:`AnimationDriver.run` plus an optional slower redraw cadence.

    Time after the first render is cut into ``1 / render_fps`` slots and at most one
    tick per slot draws. Slots missed during a stall are not made up.
    """

    tick_fps: int = 60
    render_fps: int | None = None
    _origin: float | None = field(default=None, repr=False)
    _last_slot: int | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.tick_fps <= 0:
            raise ValueError("tick_fps must be > 0")
        if self.render_fps is not None and self.render_fps <= 0:
            raise ValueError("render_fps must be > 0 when provided")
        if self.render_fps is not None:
            self.render_fps = min(self.render_fps, self.tick_fps)

    @property
    def tick_dt(self) -> float:
        return 1.0 / float(self.tick_fps)

    def render_due(self, now: float) -> bool:
        if self.render_fps is None:
            return True
        if self._origin is None:
            self._origin = now
        slot = math.floor((now - self._origin) * self.render_fps + 1e-9)
        if slot == self._last_slot:
            return False
        self._last_slot = slot
        return True

    def sleep_for(self, tick_started: float, tick_finished: float) -> float:
        return max(0.0, self.tick_dt - max(0.0, tick_finished - tick_started))

    def reset(self) -> None:
        self._origin = None
        self._last_slot = None


class AnimationDriver:
    """Drains queued sample batches into a graph each tick and redraws unless paused.

    Producers call :meth:`enqueue` from any thread. A tick swaps the whole pending
    queue out in one step, so batches are never partially drained. :meth:`reset`
    discards history and the queue together and starts a new epoch; batches tagged
    with an older epoch are dropped when drained.
    """

    def __init__(
        self,
        graph: Graph,
        surface: RasterSurface | None = None,
        *,
        frame_sink: FrameMatrix | None = None,
        pacer: FramePacer | None = None,
    ) -> None:
        self.graph = graph
        self.surface = surface
        self.frame_sink = frame_sink
        self.pacer = pacer or FramePacer()
        self._state: DriverState = "RUNNING"
        self._queue_lock = threading.Lock()
        self._tick_lock = threading.RLock()
        self._pending: deque[tuple[int, list[Sample]]] = deque()
        self._epoch = 0
        self._scheduler: FrameScheduler | None = None
        self._frame_handle: int | None = None
        self._last_error: Exception | None = None
        self._last_frame: RenderedFrame | None = None

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def paused(self) -> bool:
        return self._state == "PAUSED"

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def last_frame(self) -> RenderedFrame | None:
        return self._last_frame

    def enqueue(self, batch: Iterable[Sample], *, epoch: int | None = None) -> None:
        tagged = self._epoch if epoch is None else epoch
        with self._queue_lock:
            self._pending.append((tagged, list(batch)))

    def pending_batches(self) -> int:
        with self._queue_lock:
            return len(self._pending)

    def play(self) -> None:
        with self._tick_lock:
            if self._state == "STOPPED":
                self.graph.set_frozen(False)
            self._state = "RUNNING"

    def pause(self) -> bool:
        with self._tick_lock:
            if self._state != "RUNNING":
                return False
            self._state = "PAUSED"
            return True

    def toggle_pause(self) -> DriverState:
        with self._tick_lock:
            if self._state == "RUNNING":
                self._state = "PAUSED"
            elif self._state == "PAUSED":
                self._state = "RUNNING"
            return self._state

    def stop(self) -> None:
        with self._tick_lock:
            self.graph.set_frozen(True)
            self._state = "STOPPED"

    def reset(self) -> int:
        with self._tick_lock:
            with self._queue_lock:
                self._pending.clear()
                self._epoch += 1
            self.graph.clear()
            self.pacer.reset()
            self._last_frame = None
            LOGGER.debug("driver reset; epoch=%d", self._epoch)
            return self._epoch

    def tick(self) -> TickResult:
        with self._tick_lock:
            with self._queue_lock:
                drained = self._pending
                self._pending = deque()
                epoch = self._epoch

            added = 0
            stale = 0
            for batch_epoch, batch in drained:
                if batch_epoch != epoch:
                    stale += 1
                    continue
                try:
                    added += self.graph.add_samples(batch)
                except Exception as exc:  # noqa: BLE001
                    self._last_error = exc
                    LOGGER.exception("dropping malformed sample batch")
            if stale:
                LOGGER.debug("discarded %d batches from earlier epochs", stale)

            if self._state == "PAUSED" or not self.pacer.render_due(time.perf_counter()):
                return TickResult(epoch=epoch, drained_batches=len(drained), added_samples=added, rendered=False)

            frame = self._render()
            return TickResult(
                epoch=epoch,
                drained_batches=len(drained),
                added_samples=added,
                rendered=frame is not None,
                frame=frame,
            )

    def attach(self, scheduler: FrameScheduler) -> None:
        self.detach()
        self._scheduler = scheduler
        self._frame_handle = scheduler.request_frame(self._on_frame)

    def detach(self) -> None:
        if self._scheduler is not None and self._frame_handle is not None:
            self._scheduler.cancel_frame(self._frame_handle)
        self._scheduler = None
        self._frame_handle = None

    def run(
        self,
        *,
        max_ticks: int | None = None,
        should_continue: Callable[[], bool] | None = None,
        on_tick: Callable[[TickResult], None] | None = None,
    ) -> int:
        if max_ticks is not None and max_ticks <= 0:
            raise ValueError("max_ticks must be > 0")
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            if should_continue is not None and not should_continue():
                break
            started = time.perf_counter()
            result = self.tick()
            ticks += 1
            if on_tick is not None:
                on_tick(result)
            pause_s = self.pacer.sleep_for(started, time.perf_counter())
            if pause_s > 0:
                time.sleep(pause_s)
        return ticks

    def _on_frame(self) -> None:
        scheduler = self._scheduler
        try:
            self.tick()
        finally:
            if scheduler is not None and self._scheduler is scheduler:
                self._frame_handle = scheduler.request_frame(self._on_frame)

    def _render(self) -> RenderedFrame | None:
        try:
            frame = self.graph.render(self.surface)
            if frame is not None and self.frame_sink is not None and self.surface is not None:
                rgba = self.surface.to_rgba()
                self.frame_sink.resize(rgba.shape[0], rgba.shape[1])
                self.frame_sink.submit(compile_frame_batch(rgba))
        except Exception as exc:  # noqa: BLE001
            self._last_error = exc
            LOGGER.exception("graph render failed; skipping frame")
            return None
        if frame is not None:
            self._last_frame = frame
        return frame
