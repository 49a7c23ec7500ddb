from __future__ import annotations

import math
import random
import unittest

import numpy as np

from telegraph_plot.scales import (
    Axis,
    PlotTransform,
    align_coord,
    axis_for_range,
    build_transform,
    compute_axis,
    fixed_axis,
    format_ticks,
    nice_number,
    tick_values,
)


def _mantissa(value: float) -> float:
    return value / (10 ** math.floor(math.log10(value)))


class NiceNumberTests(unittest.TestCase):
    def test_rounded_nice_number_thresholds(self) -> None:
        self.assertEqual(nice_number(1.4, round_result=True), 1.0)
        self.assertEqual(nice_number(2.9, round_result=True), 2.0)
        self.assertEqual(nice_number(6.9, round_result=True), 5.0)
        self.assertEqual(nice_number(7.0, round_result=True), 10.0)
        self.assertAlmostEqual(nice_number(0.0333, round_result=True), 0.05)

    def test_ceiling_nice_number_never_shrinks(self) -> None:
        self.assertEqual(nice_number(1.0, round_result=False), 1.0)
        self.assertEqual(nice_number(1.01, round_result=False), 2.0)
        self.assertEqual(nice_number(4.2, round_result=False), 5.0)
        self.assertEqual(nice_number(5.1, round_result=False), 10.0)
        self.assertEqual(nice_number(420.0, round_result=False), 500.0)

    def test_rejects_non_positive_values(self) -> None:
        for value in (0.0, -1.0, float("inf"), float("nan")):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    nice_number(value, round_result=True)

    def test_axis_covers_range_with_nice_spacing(self) -> None:
        rng = random.Random(1234)
        for _ in range(500):
            a = rng.uniform(-1e4, 1e4)
            b = a + 10 ** rng.uniform(-3, 4)
            max_ticks = rng.randint(2, 12)
            axis = compute_axis(a, b, max_ticks)
            self.assertLessEqual(axis.min, a + 1e-9 * max(1.0, abs(a)))
            self.assertGreaterEqual(axis.max, b - 1e-9 * max(1.0, abs(b)))
            mantissa = _mantissa(axis.spacing)
            self.assertTrue(
                any(math.isclose(mantissa, m, rel_tol=1e-9) for m in (1.0, 2.0, 5.0, 10.0)),
                msg=f"spacing {axis.spacing} is not a nice number",
            )
            self.assertTrue(math.isclose(axis.min / axis.spacing, round(axis.min / axis.spacing), abs_tol=1e-6))


class ComputeAxisTests(unittest.TestCase):
    def test_flat_range_is_padded(self) -> None:
        axis = compute_axis(1.0, 1.0, 7)
        self.assertEqual(axis, Axis(min=0.0, max=2.5, spacing=0.5))

    def test_empty_range_uses_default_axis(self) -> None:
        self.assertEqual(axis_for_range(None, 7), Axis(min=-1.0, max=1.5, spacing=0.5))

    def test_non_finite_extrema_fall_back_to_default_axis(self) -> None:
        self.assertEqual(compute_axis(float("nan"), 3.0, 7), Axis(min=-1.0, max=1.5, spacing=0.5))

    def test_swapped_extrema_are_reordered(self) -> None:
        self.assertEqual(compute_axis(10.0, -10.0, 5), compute_axis(-10.0, 10.0, 5))

    def test_rejects_too_few_ticks(self) -> None:
        with self.assertRaises(ValueError):
            compute_axis(0.0, 1.0, 1)

    def test_axis_rejects_inverted_bounds(self) -> None:
        with self.assertRaises(ValueError):
            Axis(min=5.0, max=2.0, spacing=1.0)
        with self.assertRaises(ValueError):
            Axis(min=0.0, max=1.0, spacing=0.0)

    def test_flat_range_far_from_zero_is_padded_proportionally(self) -> None:
        for high, low in ((1e17, 1e17), (1e17 + 16, 1e17), (-3e20, -3e20)):
            with self.subTest(value=low):
                axis = compute_axis(low, high, 7)
                self.assertLess(axis.min, low)
                self.assertGreater(axis.max, high)
                self.assertTrue(np.all(np.isfinite(tick_values(axis))))

    def test_range_near_float_limit_stays_finite(self) -> None:
        axis = compute_axis(-1e308, 1e308, 7)
        self.assertTrue(math.isfinite(axis.min))
        self.assertTrue(math.isfinite(axis.max))
        self.assertLess(axis.min, axis.max)
        ticks = tick_values(axis)
        self.assertTrue(np.all(np.isfinite(ticks)))
        self.assertLessEqual(ticks.size, 12)
        self.assertEqual(len(format_ticks(axis)), ticks.size)

    def test_fixed_axis_spacing(self) -> None:
        axis = fixed_axis(0.0, 10.0, 5)
        self.assertEqual(axis.spacing, 2.5)
        with self.assertRaises(ValueError):
            fixed_axis(0.0, 10.0, 1)


class TickFormattingTests(unittest.TestCase):
    def test_tick_values_snap_drift_to_zero(self) -> None:
        ticks = tick_values(Axis(min=-0.3, max=0.3, spacing=0.1))
        self.assertEqual(ticks.size, 7)
        self.assertEqual(float(ticks[3]), 0.0)

    def test_half_step_labels(self) -> None:
        self.assertEqual(format_ticks(Axis(min=0.0, max=2.5, spacing=0.5)), ["0", "0.5", "1.0", "1.5", "2.0", "2.5"])

    def test_negative_labels_and_zero(self) -> None:
        self.assertEqual(format_ticks(Axis(min=-1.0, max=1.5, spacing=0.5)), ["-1.0", "-0.5", "0", "0.5", "1.0", "1.5"])

    def test_large_fractional_step_only_adds_needed_decimals(self) -> None:
        self.assertEqual(format_ticks(fixed_axis(0.0, 10.0, 5)), ["0", "2.5", "5", "7.5", "10"])

    def test_integer_steps_have_no_decimals(self) -> None:
        self.assertEqual(format_ticks(Axis(min=0.0, max=100.0, spacing=20.0)), ["0", "20", "40", "60", "80", "100"])


class ProjectionTests(unittest.TestCase):
    def test_project_maps_window_onto_plot_and_inverts_y(self) -> None:
        transform = build_transform(Axis(min=0.0, max=10.0, spacing=2.0), now=1000.0, window_ms=500.0, width=200.0, height=100.0)
        self.assertEqual(transform.project(500.0, 0.0), (0.0, 100.0))
        self.assertEqual(transform.project(1000.0, 10.0), (200.0, 0.0))
        x, y = transform.project(750.0, 5.0)
        self.assertAlmostEqual(x, 100.0)
        self.assertAlmostEqual(y, 50.0)

    def test_project_is_pure(self) -> None:
        transform = PlotTransform(time_min=0.0, time_max=1.0, value_min=-1.0, value_max=1.0, width=10.0, height=10.0)
        self.assertEqual(transform.project(0.25, 0.5), transform.project(0.25, 0.5))

    def test_build_transform_rejects_empty_window(self) -> None:
        with self.assertRaises(ValueError):
            build_transform(Axis(min=0.0, max=1.0, spacing=0.5), now=0.0, window_ms=0.0, width=1.0, height=1.0)


class AlignCoordTests(unittest.TestCase):
    def test_align_to_device_pixel_center(self) -> None:
        self.assertEqual(align_coord(10.2, 1.0), 10.5)
        self.assertEqual(align_coord(10.2, 2.0), 10.25)
        self.assertEqual(align_coord(10.0, 1.0), 10.5)

    def test_aligned_coords_land_on_half_device_pixels(self) -> None:
        for scale in (1.0, 1.5, 2.0, 3.0):
            for coord in np.linspace(-20.0, 20.0, 41):
                device = align_coord(float(coord), scale) * scale
                self.assertAlmostEqual(device - math.floor(device), 0.5, places=9)

    def test_rejects_non_positive_scale(self) -> None:
        with self.assertRaises(ValueError):
            align_coord(1.0, 0.0)


if __name__ == "__main__":
    unittest.main()
