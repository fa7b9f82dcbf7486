"""
Test remote table transformations
"""

import sys
import pytest
import numpy as np
import pandas as pd

from unittest import mock

try:
    import pyspark
    from pyspark.sql import functions as F
except ImportError:
    pass

try:
    from sparktour.engine import ClusterConnection, RemoteTable, copy_to
    from sparktour.engine.table import _as_aggregate
    from sparktour.datasets import load_mtcars, load_iris_frame, load_reviews
    from sparktour.exceptions import DataError
    _import_error = None
except Exception as e:
    _import_error = e

def _mtcars(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    return conn, copy_to(conn, load_mtcars())

def test_import_table():
    assert _import_error == None

def test_handles_are_immutable():
    table = RemoteTable(mock.Mock(), mock.Mock())
    with pytest.raises(AttributeError):
        table.frame = None

def test_unknown_aggregate():
    with pytest.raises(ValueError):
        _as_aggregate("m", ("median_of_medians", "mpg"))
    with pytest.raises(TypeError):
        _as_aggregate("m", "mean(mpg)")

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_transformations_return_new_handles(spark_session):
    conn, mtcars = _mtcars(spark_session)
    heavy = mtcars.filter("wt > 3.5")
    derived = mtcars.mutate(wt_kg="wt * 453.6")

    assert heavy is not mtcars
    assert mtcars.count() == 32
    assert "wt_kg" not in mtcars.columns
    assert "wt_kg" in derived.columns
    assert heavy.count() == (load_mtcars()["wt"] > 3.5).sum()

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_filter_group_aggregate_matches_pandas(spark_session):
    conn, mtcars = _mtcars(spark_session)
    remote = (
        mtcars
        .filter(F.col("hp") > 100)
        .group_by("cyl")
        .summarise(mpg=("mean", "mpg"), hp=("max", "hp"), n=("count", "*"))
        .arrange("cyl")
        .collect()
        )

    local = load_mtcars()
    local = (
        local[local["hp"] > 100]
        .groupby("cyl")
        .agg(mpg=("mpg", "mean"), hp=("hp", "max"), n=("mpg", "size"))
        .reset_index()
        .sort_values("cyl")
        )
    assert list(remote["cyl"]) == list(local["cyl"])
    assert np.allclose(remote["mpg"], local["mpg"])
    assert list(remote["hp"]) == list(local["hp"])
    assert list(remote["n"]) == list(local["n"])

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_summarise_ungrouped(spark_session):
    conn, mtcars = _mtcars(spark_session)
    result = mtcars.summarise(
        mean_mpg=F.mean("mpg"), cars=("count", "*")).collect()
    assert len(result) == 1
    assert result["cars"][0] == 32
    assert np.isclose(result["mean_mpg"][0], load_mtcars()["mpg"].mean())

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_group_by_is_recorded(spark_session):
    conn, mtcars = _mtcars(spark_session)
    grouped = mtcars.group_by("cyl", "am")
    assert grouped.groups == ("cyl", "am")
    assert mtcars.groups == ()
    assert grouped.ungroup().groups == ()
    counts = mtcars.count_by("gear").arrange("gear").collect()
    assert list(counts["n"]) == [15, 12, 5]

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_group_by_missing_column(spark_session):
    conn, mtcars = _mtcars(spark_session)
    with pytest.raises(DataError):
        mtcars.group_by("cylinders")

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_bad_expression_is_data_error(spark_session):
    conn, mtcars = _mtcars(spark_session)
    with pytest.raises(DataError):
        mtcars.filter("horsepower > 100")
    with pytest.raises(DataError):
        mtcars.rename(power="horsepower")

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_select_rename_arrange(spark_session):
    conn, mtcars = _mtcars(spark_session)
    top = (
        mtcars
        .select("model", "mpg")
        .rename(miles_per_gallon="mpg")
        .arrange("miles_per_gallon", ascending=False)
        .head(2)
        )
    assert list(top.columns) == ["model", "miles_per_gallon"]
    assert list(top["model"]) == ["Toyota Corolla", "Fiat 128"]

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_join(spark_session):
    conn, mtcars = _mtcars(spark_session)
    names = copy_to(conn, pd.DataFrame({
        "am": [0, 1], "transmission": ["automatic", "manual"]}))
    joined = mtcars.join(names, on="am", how="left")
    counts = joined.count_by("transmission").arrange("transmission").collect()
    assert list(counts["transmission"]) == ["automatic", "manual"]
    assert list(counts["n"]) == [19, 13]

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_join_across_connections(spark_session):
    conn, mtcars = _mtcars(spark_session)
    other_conn, other = _mtcars(spark_session)
    with pytest.raises(DataError):
        mtcars.join(other, on="model")

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_random_split_sizes(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    iris = copy_to(conn, load_iris_frame())
    partitions = iris.random_split({"training": 0.8, "test": 0.2}, seed=1099)

    sizes = {name: part.count() for name, part in partitions.items()}
    assert sorted(partitions) == ["test", "training"]
    assert sizes["training"] + sizes["test"] == 150
    assert 0.65 < sizes["training"] / 150.0 < 0.95

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_random_split_weights(spark_session):
    conn, mtcars = _mtcars(spark_session)
    with pytest.raises(ValueError):
        mtcars.random_split({"training": 1.0, "test": 0.0})
    with pytest.raises(ValueError):
        mtcars.random_split({})

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_sample_fraction(spark_session):
    conn, mtcars = _mtcars(spark_session)
    assert mtcars.sample(1.0, seed=3).count() == 32
    with pytest.raises(ValueError):
        mtcars.sample(1.5)

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_binarize_and_bucketize(spark_session):
    conn, mtcars = _mtcars(spark_session)
    result = (
        mtcars
        .binarize("hp", 150)
        .bucketize("mpg", [0, 15, 20, 25, float("inf")], output="mpg_band")
        .collect()
        )
    local = load_mtcars()
    assert list(result["hp_binary"]) == list((local["hp"] > 150).astype(float))
    assert set(result["mpg_band"]) == {0.0, 1.0, 2.0, 3.0}

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_describe(spark_session):
    conn, mtcars = _mtcars(spark_session)
    summary = mtcars.describe("mpg", "hp")
    assert list(summary.columns) == ["mpg", "hp"]
    assert summary.loc["count", "mpg"] == 32
    assert np.isclose(summary.loc["mean", "hp"], load_mtcars()["hp"].mean())

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_cache_register_explain(spark_session):
    conn, mtcars = _mtcars(spark_session)
    cached = mtcars.filter("am = 1").cache()
    cached.register("manual_cars")
    assert conn.table("manual_cars").count() == 13
    assert "Filter" in cached.explain()
    cached.uncache()

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_describe_needs_numeric_columns(spark_session):
    conn, mtcars = _mtcars(spark_session)
    reviews = copy_to(conn, load_reviews())
    assert list(reviews.describe().columns) == ["id"]
    with pytest.raises(DataError):
        reviews.select("text").describe()
    with pytest.raises(DataError):
        mtcars.describe("model")
    with pytest.raises(DataError):
        mtcars.describe("horsepower")
