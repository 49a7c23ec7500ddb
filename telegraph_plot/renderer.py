from __future__ import annotations

from dataclasses import dataclass
import logging
import math

from telegraph_plot.buffer import SampleBuffer
from telegraph_plot.options import RGBA, GraphOptions
from telegraph_plot.scales import Axis, PlotTransform, align_coord, build_transform, format_ticks
from telegraph_plot.surface import DrawingSurface


LOGGER = logging.getLogger(__name__)

Rect = tuple[float, float, float, float]


@dataclass(frozen=True)
class LegendRow:
    key: str
    color: RGBA
    line_x: float
    line_y: float


@dataclass(frozen=True)
class RenderedFrame:
    """Geometry of one painted frame, in CSS pixels."""

    axis: Axis
    tick_labels: tuple[str, ...]
    legend: tuple[LegendRow, ...]
    legend_height: float
    axis_label_width: float
    plot_rect: Rect
    transform: PlotTransform
    series: tuple[tuple[str, tuple[tuple[float, float], ...]], ...]

    def points_for(self, key: str) -> tuple[tuple[float, float], ...]:
        for other, points in self.series:
            if other == key:
                return points
        return ()


class GraphRenderer:
    """Paints legend, axis labels, grid and series lines; holds no per-frame state."""

    def __init__(self, options: GraphOptions) -> None:
        self.options = options

    def render(
        self,
        surface: DrawingSurface,
        buffer: SampleBuffer,
        axis: Axis,
        *,
        now: float,
        window_ms: float,
    ) -> RenderedFrame:
        o = self.options
        surface.reset()
        # Draw in CSS pixels; the surface maps them to device pixels.
        dpr = surface.device_pixel_ratio
        surface.scale(dpr, dpr)

        width = surface.css_width
        height = surface.css_height
        surface.fill_rect(0.0, 0.0, width, height, o.background_color)

        legend, legend_height = self._render_legend(surface, buffer, 0.0, 0.0, width)
        return self._render_graph(
            surface,
            buffer,
            axis,
            legend=legend,
            legend_height=legend_height,
            x=0.0,
            y=legend_height,
            width=width,
            height=height - legend_height,
            now=now,
            window_ms=window_ms,
        )

    def _render_legend(
        self, surface: DrawingSurface, buffer: SampleBuffer, x: float, y: float, width: float
    ) -> tuple[tuple[LegendRow, ...], float]:
        o = self.options
        rows: list[LegendRow] = []
        keys = buffer.registry.keys()
        if not keys:
            return ((), 0.0)
        sx, sy = surface.scaling()
        surface.save()
        for i, key in enumerate(keys):
            color = buffer.registry.color_of(key)
            line_y = y + i * (o.font_size + o.legend_spacing) + o.font_size / 2.0
            row_width = surface.measure_text(key, font_size=o.font_size) + o.legend_line_length + o.legend_spacing
            line_x = x + (width - row_width) / 2.0
            swatch = [
                (align_coord(line_x, sx), align_coord(line_y, sy)),
                (align_coord(line_x + o.legend_line_length, sx), align_coord(line_y, sy)),
            ]
            surface.stroke_polyline(swatch, color, o.line_width)
            surface.fill_text(
                key,
                line_x + o.legend_line_length + o.legend_spacing,
                line_y,
                o.text_color,
                font_size=o.font_size,
            )
            rows.append(LegendRow(key=key, color=color, line_x=line_x, line_y=line_y))
        surface.restore()
        legend_height = len(keys) * o.font_size + (len(keys) - 1) * o.legend_spacing
        return (tuple(rows), legend_height)

    def _render_graph(
        self,
        surface: DrawingSurface,
        buffer: SampleBuffer,
        axis: Axis,
        *,
        legend: tuple[LegendRow, ...],
        legend_height: float,
        x: float,
        y: float,
        width: float,
        height: float,
        now: float,
        window_ms: float,
    ) -> RenderedFrame:
        o = self.options
        graph_height = height - 2 * o.padding
        labels = tuple(format_ticks(axis))
        axis_width = self._render_axis_labels(surface, x + o.padding, y + o.padding, graph_height, labels)

        plot_x = x + axis_width + 2 * o.padding
        plot_y = y + o.padding
        graph_width = width - axis_width - 3 * o.padding
        plot_rect = (plot_x, plot_y, graph_width, graph_height)
        transform = build_transform(
            axis,
            now=now,
            window_ms=window_ms,
            width=max(0.0, graph_width),
            height=max(0.0, graph_height),
        )

        series: tuple[tuple[str, tuple[tuple[float, float], ...]], ...] = ()
        if graph_width > 0 and graph_height > 0:
            self._render_grid_lines(surface, plot_rect, o.grid_ticks_x, len(labels))
            series = self._render_series_lines(surface, buffer, plot_rect, transform)
        else:
            LOGGER.debug("plot area collapsed (%.1f x %.1f); skipping grid and lines", graph_width, graph_height)

        return RenderedFrame(
            axis=axis,
            tick_labels=labels,
            legend=legend,
            legend_height=legend_height,
            axis_label_width=axis_width,
            plot_rect=plot_rect,
            transform=transform,
            series=series,
        )

    def _render_axis_labels(
        self, surface: DrawingSurface, x: float, y: float, height: float, labels: tuple[str, ...]
    ) -> float:
        o = self.options
        width = 0.0
        for label in labels:
            width = max(width, surface.measure_text(label, font_size=o.font_size))
        if len(labels) < 2:
            return width

        surface.save()
        vert_spacing = height / (len(labels) - 1)
        right = x + width
        for i, label in enumerate(labels):
            surface.fill_text(
                label,
                right,
                y + (len(labels) - i - 1) * vert_spacing,
                o.text_color,
                font_size=o.font_size,
                align="right",
            )
        surface.restore()
        return width

    def _render_grid_lines(self, surface: DrawingSurface, rect: Rect, num_ticks_x: int, num_ticks_y: int) -> None:
        o = self.options
        x, y, width, height = rect
        sx, sy = surface.scaling()
        line_width = o.grid_line_width / surface.device_pixel_ratio

        surface.save()
        if num_ticks_x >= 2:
            hor_spacing = width / (num_ticks_x - 1)
            for i in range(num_ticks_x):
                line_x = align_coord(x + hor_spacing * i, sx)
                surface.stroke_polyline(
                    [(line_x, align_coord(y, sy)), (line_x, align_coord(y + height, sy))],
                    o.grid_line_color,
                    line_width,
                )
        if num_ticks_y >= 2:
            vert_spacing = height / (num_ticks_y - 1)
            for i in range(num_ticks_y):
                line_y = align_coord(y + vert_spacing * i, sy)
                surface.stroke_polyline(
                    [(align_coord(x, sx), line_y), (align_coord(x + width, sx), line_y)],
                    o.grid_line_color,
                    line_width,
                )
        surface.restore()

    def _render_series_lines(
        self,
        surface: DrawingSurface,
        buffer: SampleBuffer,
        rect: Rect,
        transform: PlotTransform,
    ) -> tuple[tuple[str, tuple[tuple[float, float], ...]], ...]:
        o = self.options
        x, y, width, height = rect
        sx, sy = surface.scaling()
        out: list[tuple[str, tuple[tuple[float, float], ...]]] = []

        surface.save()
        surface.clip_rect(x, y, width, height)
        for key, meta in buffer.registry.items():
            points: list[tuple[float, float]] = []
            for anim_timestamp, value in buffer.series_points(key):
                px, py = transform.project(anim_timestamp, value)
                if not (math.isfinite(px) and math.isfinite(py)):
                    continue
                points.append((align_coord(x + px, sx), align_coord(y + py, sy)))
            surface.stroke_polyline(points, meta.color, o.line_width)
            out.append((key, tuple(points)))
        surface.restore()
        return tuple(out)
