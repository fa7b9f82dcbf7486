"""
Test matplotlib renderers
"""

import pytest
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd

from unittest import mock

try:
    from sparktour import plotting
    from sparktour.datasets import load_mtcars
    from sparktour.engine.table import RemoteTable
    from sparktour.exceptions import DataError
    _import_error = None
except Exception as e:
    _import_error = e

def test_import_plotting():
    assert _import_error == None

def test_scatter_groups():
    ax = plotting.scatter(load_mtcars(), "wt", "mpg", color="cyl", title="cars")
    assert ax.get_xlabel() == "wt"
    assert ax.get_ylabel() == "mpg"
    assert ax.get_title() == "cars"
    assert [t.get_text() for t in ax.get_legend().get_texts()] == ["4", "6", "8"]
    plt.close(ax.get_figure())

def test_bar_and_line():
    summary = pd.DataFrame({"cyl": [4, 6, 8], "mpg": [26.7, 19.7, 15.1]})
    ax = plotting.bar(summary, "cyl", "mpg")
    assert len(ax.patches) == 3
    ax = plotting.line(summary, "cyl", "mpg", ax=ax)
    assert len(ax.get_lines()) == 1
    plt.close(ax.get_figure())

def test_histogram_and_residuals():
    data = load_mtcars()
    ax = plotting.histogram(data, "hp", bins=5)
    assert ax.get_ylabel() == "count"
    data["prediction"] = data["mpg"] + 0.5
    ax = plotting.residuals(data, "mpg")
    assert ax.get_ylabel() == "prediction"
    plt.close("all")

def test_refuses_remote_tables():
    table = RemoteTable(mock.Mock(), mock.Mock())
    with pytest.raises(DataError):
        plotting.scatter(table, "wt", "mpg")

def test_missing_columns():
    with pytest.raises(DataError):
        plotting.bar(load_mtcars(), "cylinders", "mpg")

def test_save(tmp_path):
    ax = plotting.scatter(load_mtcars(), "wt", "mpg")
    path = plotting.save(ax, tmp_path / "plots" / "wt_mpg.png")
    assert path.exists()
    assert path.stat().st_size > 0
