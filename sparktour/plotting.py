"""
matplotlib renderers for materialized (local) results.

Plotting happens on the driver, so every function here takes a
pandas DataFrame. Remote tables must be pulled back explicitly with
`RemoteTable.collect()` (ideally after aggregating or sampling).
"""

import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from pathlib import Path

from .engine.table import RemoteTable
from .exceptions import DataError

__all__ = [
    "scatter",
    "bar",
    "line",
    "histogram",
    "residuals",
    "save"
    ]

logger = logging.getLogger(__name__)

def _check_local(data, *cols):
    """ Validates plot input is a local DataFrame holding `cols` """
    if isinstance(data, RemoteTable):
        raise DataError(
            "Plots need local data; call .collect() on the remote "
            "table first (after aggregating or sampling it)")
    if not isinstance(data, pd.DataFrame):
        raise TypeError("Expected a pandas DataFrame, got {0}".format(type(data)))
    missing = [c for c in cols if c is not None and c not in data.columns]
    if missing:
        raise DataError("Columns not found for plotting: {0!r}".format(missing))

def _axes(ax):
    if ax is None:
        _, ax = plt.subplots(figsize=(7, 5))
    return ax

def _label(ax, x, y, title):
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    if title:
        ax.set_title(title)

def scatter(data, x, y, color=None, title=None, ax=None):
    """
    Scatter plot of two columns, optionally colored by a
    categorical column.

    Returns:
        ax (matplotlib Axes)
    """
    _check_local(data, x, y, color)
    ax = _axes(ax)
    if color is None:
        ax.scatter(data[x], data[y], alpha=0.8)
    else:
        for value, group in data.groupby(color, sort=True):
            ax.scatter(group[x], group[y], alpha=0.8, label=str(value))
        ax.legend(title=color)
    _label(ax, x, y, title)
    return ax

def bar(data, x, y, title=None, ax=None):
    """ Bar chart of `y` per category in `x` """
    _check_local(data, x, y)
    ax = _axes(ax)
    ax.bar(data[x].astype(str), data[y])
    _label(ax, x, y, title)
    return ax

def line(data, x, y, group=None, title=None, ax=None):
    """ Line plot of `y` against `x`, one line per `group` value """
    _check_local(data, x, y, group)
    ax = _axes(ax)
    ordered = data.sort_values(x)
    if group is None:
        ax.plot(ordered[x], ordered[y], marker="o")
    else:
        for value, part in ordered.groupby(group, sort=True):
            ax.plot(part[x], part[y], marker="o", label=str(value))
        ax.legend(title=group)
    _label(ax, x, y, title)
    return ax

def histogram(data, column, bins=20, title=None, ax=None):
    """ Histogram of a numeric column """
    _check_local(data, column)
    ax = _axes(ax)
    ax.hist(data[column].dropna(), bins=bins)
    _label(ax, column, "count", title)
    return ax

def residuals(data, observed, predicted="prediction", title=None, ax=None):
    """
    Predicted against observed values with the identity line;
    points on the line are perfect predictions.
    """
    _check_local(data, observed, predicted)
    ax = _axes(ax)
    ax.scatter(data[observed], data[predicted], alpha=0.8)
    bounds = [
        np.nanmin([data[observed].min(), data[predicted].min()]),
        np.nanmax([data[observed].max(), data[predicted].max()])
        ]
    ax.plot(bounds, bounds, linestyle="--", color="grey")
    _label(ax, observed, predicted, title)
    return ax

def save(figure, path, close=True):
    """
    Write a figure (or the figure owning an Axes) to disk

    Args:
        figure (matplotlib Figure or Axes): what to save
        path (str or Path): output file; the suffix picks the format
        close (bool): release the figure afterwards
    Returns:
        path (Path)
    """
    if hasattr(figure, "get_figure") and not hasattr(figure, "savefig"):
        figure = figure.get_figure()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    figure.tight_layout()
    figure.savefig(path, bbox_inches="tight")
    logger.info("Saved figure to %s", path)
    if close:
        plt.close(figure)
    return path
