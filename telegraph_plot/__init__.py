from telegraph_plot.buffer import SampleBuffer
from telegraph_plot.errors import GraphConfigError
from telegraph_plot.graph import AxisScaling, Graph
from telegraph_plot.options import DEFAULT_OPTIONS, GraphOptions, load_graph_options, parse_color
from telegraph_plot.registry import SeriesMeta, SeriesRegistry
from telegraph_plot.renderer import GraphRenderer, LegendRow, RenderedFrame
from telegraph_plot.samples import BufferedSample, Sample
from telegraph_plot.scales import Axis, PlotTransform, align_coord, compute_axis, format_ticks, nice_number
from telegraph_plot.surface import DrawingSurface, RasterSurface
from telegraph_plot.timeline import Clock, ManualClock, TimeMapper, WallClock

__all__ = [
    "Axis",
    "AxisScaling",
    "BufferedSample",
    "Clock",
    "DEFAULT_OPTIONS",
    "DrawingSurface",
    "Graph",
    "GraphConfigError",
    "GraphOptions",
    "GraphRenderer",
    "LegendRow",
    "ManualClock",
    "PlotTransform",
    "RasterSurface",
    "RenderedFrame",
    "Sample",
    "SampleBuffer",
    "SeriesMeta",
    "SeriesRegistry",
    "TimeMapper",
    "WallClock",
    "align_coord",
    "compute_axis",
    "format_ticks",
    "load_graph_options",
    "nice_number",
    "parse_color",
]
