"""Forest and funnel plot rendering."""

from metaengine.visualization.forest_plot import render_forest_plot
from metaengine.visualization.funnel_plot import render_funnel_plot

__all__ = ["render_forest_plot", "render_funnel_plot"]
