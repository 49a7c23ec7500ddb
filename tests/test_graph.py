from __future__ import annotations

import unittest

import numpy as np

from telegraph_plot import (
    DEFAULT_OPTIONS,
    Axis,
    Graph,
    GraphOptions,
    ManualClock,
    RasterSurface,
    Sample,
)


def _sample(ts: float, **values: float) -> Sample:
    return Sample.from_mapping(ts, values)


class GraphScalingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = ManualClock(0.0)
        self.graph = Graph(clock=self.clock)

    def test_flat_series_gets_padded_axis(self) -> None:
        self.graph.add_samples([_sample(0, x=1.0)])
        self.graph.add_samples([_sample(100, x=1.0)])
        self.assertEqual(len(self.graph.buffer), 2)
        axis = self.graph.compute_axis()
        self.assertEqual(axis, Axis(min=0.0, max=2.5, spacing=0.5))
        self.assertLess(axis.min, 1.0)
        self.assertGreater(axis.max, 1.0)

    def test_inverted_fixed_axis_is_ignored(self) -> None:
        self.graph.add_samples([_sample(0, x=3.0)])
        auto_axis = self.graph.compute_axis()
        with self.assertLogs("telegraph_plot.graph", level="WARNING"):
            accepted = self.graph.set_axis_scaling(is_auto_scale=False, min_scale=5, max_scale=2, tick_count=5)
        self.assertFalse(accepted)
        self.assertTrue(self.graph.axis_scaling.is_auto_scale)
        self.assertEqual(self.graph.compute_axis(), auto_axis)

    def test_inverted_fixed_axis_keeps_previous_fixed_axis(self) -> None:
        self.assertTrue(self.graph.set_fixed_axis(0, 10, 5))
        self.assertFalse(self.graph.set_fixed_axis(5, 2, 5))
        self.assertFalse(self.graph.set_fixed_axis(0, 10, 1))
        self.assertFalse(self.graph.set_fixed_axis("0", 10, 5))
        self.assertFalse(self.graph.set_fixed_axis(0, float("inf"), 5))
        with self.assertLogs("telegraph_plot.graph", level="WARNING"):
            self.assertFalse(self.graph.set_fixed_axis(-1e308, 1e308, 5))
        axis = self.graph.compute_axis()
        self.assertEqual(axis, Axis(min=0.0, max=10.0, spacing=2.5))
        self.assertLess(axis.min, axis.max)

    def test_return_to_auto_scale(self) -> None:
        self.graph.set_fixed_axis(0, 10, 5)
        self.graph.set_axis_scaling(is_auto_scale=True)
        self.assertTrue(self.graph.axis_scaling.is_auto_scale)
        self.assertEqual(self.graph.compute_axis(), Axis(min=-1.0, max=1.5, spacing=0.5))


class GraphConfigurationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = ManualClock(0.0)
        self.graph = Graph(clock=self.clock, delay_ms=0.0)

    def test_invalid_window_is_rejected(self) -> None:
        for bad in (0, -5, float("nan"), float("inf"), "500", True, None):
            with self.assertLogs("telegraph_plot.graph", level="WARNING"):
                self.assertFalse(self.graph.set_window_ms(bad))
        self.assertEqual(self.graph.window_ms, DEFAULT_OPTIONS.window_ms)

    def test_window_change_prunes_immediately(self) -> None:
        self.graph.add_samples([_sample(0, x=1.0)])
        self.clock.advance(2000.0)
        self.graph.add_samples([_sample(2000, x=1.0)])
        self.assertTrue(self.graph.set_window_ms(1000))
        self.assertEqual(self.graph.window_ms, 1000.0)
        self.assertEqual(self.graph.options.window_ms, 1000.0)
        self.assertEqual(len(self.graph.buffer), 1)

    def test_overrides_apply_over_options(self) -> None:
        graph = Graph(GraphOptions(line_width=3.0), clock=self.clock, window_ms=750.0)
        self.assertEqual(graph.options.line_width, 3.0)
        self.assertEqual(graph.window_ms, 750.0)

    def test_invalid_runtime_options_keep_previous(self) -> None:
        before = self.graph.options
        with self.assertLogs("telegraph_plot.graph", level="WARNING"):
            self.assertFalse(self.graph.update_options(line_width=-1.0))
        with self.assertLogs("telegraph_plot.graph", level="WARNING"):
            self.assertFalse(self.graph.update_options(not_an_option=1))
        self.assertIs(self.graph.options, before)

    def test_runtime_options_reach_time_mapper_and_palette(self) -> None:
        self.assertTrue(self.graph.update_options(delay_ms=100.0, colors=("#000000",)))
        self.assertEqual(self.graph.current_anim_time(), 100.0)
        self.graph.add_samples([_sample(0, a=1.0, b=2.0)])
        self.assertEqual(self.graph.buffer.registry.color_of("b"), (0, 0, 0, 255))

    def test_freeze_pins_now_but_keeps_ingesting(self) -> None:
        self.graph.set_frozen(True)
        self.clock.advance(1000.0)
        self.assertTrue(self.graph.frozen)
        self.assertEqual(self.graph.current_anim_time(), 0.0)
        self.assertEqual(self.graph.add_samples([_sample(0, x=1.0), _sample(10, x=2.0)]), 2)
        self.assertEqual(len(self.graph.buffer), 2)

    def test_color_assignment_is_deterministic(self) -> None:
        other = Graph(clock=ManualClock(500.0))
        batch = [_sample(0, a=1.0), _sample(1, b=1.0, c=1.0), _sample(2, d=1.0, a=2.0)]
        self.graph.add_samples(batch)
        other.add_samples(batch)
        self.assertEqual(self.graph.active_keys(), other.active_keys())
        ours = [self.graph.buffer.registry.color_of(k) for k in self.graph.active_keys()]
        theirs = [other.buffer.registry.color_of(k) for k in other.active_keys()]
        self.assertEqual(ours, theirs)
        self.assertEqual(ours, list(DEFAULT_OPTIONS.colors[:4]))


class GraphRenderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = ManualClock(0.0)
        self.graph = Graph(clock=self.clock)
        self.surface = RasterSurface(320, 200)

    def test_render_without_surface_is_a_noop(self) -> None:
        self.graph.add_samples([_sample(0, x=1.0)])
        self.assertIsNone(self.graph.render(None))
        self.assertIsNone(self.graph.render(RasterSurface(0, 200)))

    def test_render_with_no_series(self) -> None:
        frame = self.graph.render(self.surface)
        self.assertIsNotNone(frame)
        self.assertEqual(frame.legend, ())
        self.assertEqual(frame.legend_height, 0.0)
        self.assertEqual(frame.series, ())
        self.assertEqual(frame.axis, Axis(min=-1.0, max=1.5, spacing=0.5))
        self.assertEqual(frame.tick_labels, ("-1.0", "-0.5", "0", "0.5", "1.0", "1.5"))
        pixels = self.surface.to_rgba()
        # Background is painted everywhere that nothing else is drawn.
        self.assertEqual(tuple(int(c) for c in pixels[-1, -1]), DEFAULT_OPTIONS.background_color)

    def test_render_is_idempotent(self) -> None:
        for i in range(20):
            self.clock.advance(10.0)
            self.graph.add_samples([_sample(i * 10, x=float(i % 5), y=-float(i))])
        first = self.graph.render(self.surface)
        first_pixels = self.surface.to_rgba()
        second = self.graph.render(self.surface)
        self.assertEqual(first, second)
        self.assertTrue(np.array_equal(first_pixels, self.surface.to_rgba()))

    def test_layout_and_projection(self) -> None:
        o = self.graph.options
        self.graph.add_samples([_sample(0, x=0.0)])
        self.clock.advance(100.0)
        self.graph.add_samples([_sample(100, x=2.0)])
        frame = self.graph.render(self.surface)
        plot_x, plot_y, plot_w, plot_h = frame.plot_rect
        self.assertEqual(frame.legend_height, o.font_size)
        self.assertAlmostEqual(plot_x, frame.axis_label_width + 2 * o.padding)
        self.assertAlmostEqual(plot_y, frame.legend_height + o.padding)
        self.assertAlmostEqual(plot_w, 320 - frame.axis_label_width - 3 * o.padding)
        self.assertAlmostEqual(plot_h, 200 - frame.legend_height - 2 * o.padding)

        points = frame.points_for("x")
        self.assertEqual(len(points), 2)
        for px, py in points:
            self.assertEqual(px % 1.0, 0.5)
            self.assertEqual(py % 1.0, 0.5)
            self.assertGreaterEqual(px, plot_x - 1.0)
            self.assertLessEqual(px, plot_x + plot_w + 1.0)
            self.assertGreaterEqual(py, plot_y - 1.0)
            self.assertLessEqual(py, plot_y + plot_h + 1.0)
        # Larger values draw higher; later samples draw further right.
        self.assertLess(points[1][1], points[0][1])
        self.assertGreater(points[1][0], points[0][0])

    def test_render_with_values_beyond_float_resolution(self) -> None:
        self.graph.add_samples([_sample(0, x=1e17)])
        self.clock.advance(50.0)
        self.graph.add_samples([_sample(50, x=1e17)])
        frame = self.graph.render(self.surface)
        self.assertIsNotNone(frame)
        self.assertLess(frame.axis.min, 1e17)
        self.assertGreater(frame.axis.max, 1e17)
        self.assertEqual(len(frame.points_for("x")), 2)

    def test_render_with_values_near_float_limit(self) -> None:
        self.graph.add_samples([_sample(0, x=-1e308, y=1e308)])
        frame = self.graph.render(self.surface)
        self.assertIsNotNone(frame)
        self.assertLess(frame.axis.min, frame.axis.max)

    def test_legend_lists_active_series_only(self) -> None:
        graph = Graph(clock=self.clock, window_ms=500.0)
        for i in range(61):
            self.clock.advance(20.0)
            if i < 10:
                graph.add_samples([_sample(i * 20, x=1.0, y=0.5)])
            else:
                graph.add_samples([_sample(i * 20, y=0.5)])
        frame = graph.render(self.surface)
        self.assertEqual([row.key for row in frame.legend], ["y"])
        self.assertEqual(frame.points_for("x"), ())

    def test_render_on_high_dpi_surface(self) -> None:
        surface = RasterSurface(160, 100, device_pixel_ratio=2.0)
        self.graph.add_samples([_sample(0, x=1.0), _sample(50, x=3.0)])
        frame = self.graph.render(surface)
        self.assertEqual(surface.device_size, (320, 200))
        for px, _ in frame.points_for("x"):
            self.assertAlmostEqual((px * 2.0) % 1.0, 0.5)

    def test_clear_forgets_history(self) -> None:
        self.graph.add_samples([_sample(0, x=1.0)])
        self.graph.compute_axis()
        self.graph.clear()
        self.assertEqual(len(self.graph.buffer), 0)
        self.assertEqual(self.graph.active_keys(), [])
        self.assertIsNone(self.graph.last_axis)


if __name__ == "__main__":
    unittest.main()
