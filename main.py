from __future__ import annotations

import argparse
import logging
import math
from pathlib import Path
import threading
import time

from telegraph_core import (
    AnimationDriver,
    FrameMatrix,
    FramePacer,
    OpModeLifecycle,
    TelemetryKeyTracker,
    TelemetryPacket,
    bind_driver,
)
from telegraph_plot import Graph, GraphOptions, RasterSurface, load_graph_options


LOGGER = logging.getLogger("telegraph")


class _SyntheticTelemetry:
    """Pushes sine/cosine telemetry packets at an irregular cadence until stopped."""

    def __init__(self, driver: AnimationDriver, tracker: TelemetryKeyTracker, period_s: float) -> None:
        self._driver = driver
        self._tracker = tracker
        self._period_s = period_s
        self._running = threading.Event()
        self._thread: threading.Thread | None = None
        self.packets_sent = 0

    def start(self) -> None:
        self._running.set()
        self._thread = threading.Thread(target=self._run, name="telegraph-synthetic", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running.clear()
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

    def _run(self) -> None:
        started = time.time()
        n = 0
        while self._running.is_set():
            t = time.time() - started
            packet = TelemetryPacket(
                timestamp=time.time() * 1000.0,
                data={
                    "x": f"{math.sin(2.0 * t):.4f}",
                    "y": f"{0.5 * math.cos(0.7 * t):.4f}",
                    "status": "OK",
                },
            )
            # Skip every fourth period so sample spacing is uneven.
            n += 1
            if n % 4 != 0:
                self._tracker.observe([packet])
                self._driver.enqueue(self._tracker.to_samples([packet]))
                self.packets_sent += 1
            time.sleep(self._period_s)


def main() -> None:
    parser = argparse.ArgumentParser(prog="telegraph")
    sub = parser.add_subparsers(dest="command", required=True)

    demo = sub.add_parser("demo", help="Stream synthetic telemetry through the graph engine headlessly.")
    demo.add_argument("--ticks", type=int, default=180)
    demo.add_argument("--fps", type=int, default=60)
    demo.add_argument("--render-fps", type=int, default=None)
    demo.add_argument("--width", type=float, default=640.0, help="Surface width in CSS pixels.")
    demo.add_argument("--height", type=float, default=360.0, help="Surface height in CSS pixels.")
    demo.add_argument("--dpr", type=float, default=1.0, help="Device pixel ratio.")
    demo.add_argument("--window-ms", type=float, default=None)
    demo.add_argument("--config", type=Path, default=None, help="TOML file with a [graph] table.")
    demo.add_argument("--png", type=Path, default=None, help="Write the last rendered frame here.")
    demo.add_argument("--period-ms", type=float, default=20.0, help="Synthetic packet period.")
    demo.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    if args.command == "demo":
        options = load_graph_options(args.config) if args.config is not None else GraphOptions()
        graph = Graph(options)
        if args.window_ms is not None:
            graph.set_window_ms(args.window_ms)
        surface = RasterSurface(args.width, args.height, device_pixel_ratio=args.dpr)
        w, h = surface.device_size
        matrix = FrameMatrix(height=max(1, h), width=max(1, w), background=options.background_color)
        driver = AnimationDriver(
            graph,
            surface,
            frame_sink=matrix,
            pacer=FramePacer(tick_fps=args.fps, render_fps=args.render_fps),
        )
        lifecycle = OpModeLifecycle()
        tracker = TelemetryKeyTracker(select_new_numeric=True)
        bind_driver(lifecycle, driver, clear_on_start=True)
        tracker.bind(lifecycle)

        source = _SyntheticTelemetry(driver, tracker, period_s=max(0.001, args.period_ms / 1000.0))
        lifecycle.update("SyntheticOpMode", "RUNNING")
        source.start()
        try:
            ticks = driver.run(max_ticks=args.ticks)
        finally:
            source.stop()
            lifecycle.update("", "STOPPED")
        # One more tick so the frozen state and any late batches are reflected.
        driver.tick()

        LOGGER.info(
            "ticks=%d packets=%d buffered=%d series=%s frames=%d",
            ticks,
            source.packets_sent,
            len(graph.buffer),
            ",".join(graph.active_keys()) or "-",
            matrix.revision,
        )
        if driver.last_error is not None:
            LOGGER.warning("last driver error: %s", driver.last_error)
        if args.png is not None:
            surface.save_png(args.png)
            LOGGER.info("wrote %s", args.png)


if __name__ == "__main__":
    main()
