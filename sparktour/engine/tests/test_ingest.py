"""
Test ingestion of local and remote data
"""

import sys
import pytest
import pandas as pd

try:
    import pyspark
except ImportError:
    pass

try:
    from sparktour.engine import ingest
    from sparktour.engine import ClusterConnection, copy_to, read_csv, load_sample
    from sparktour.datasets import load_mtcars
    from sparktour.exceptions import DataError
    _import_error = None
except Exception as e:
    _import_error = e

def test_import_ingest():
    assert _import_error == None

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_copy_to_row_count(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    local = load_mtcars()
    remote = copy_to(conn, local)
    assert remote.count() == len(local)

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_copy_to_normalises_columns(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    local = pd.DataFrame({"Sepal.Length": [5.1, 4.9], "Species Name": ["a", "b"]})
    remote = copy_to(conn, local)
    assert remote.columns == ["sepal_length", "species_name"]
    assert list(local.columns) == ["Sepal.Length", "Species Name"]

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_copy_to_refuses_overwrite(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    copy_to(conn, load_mtcars(), name="ingest_cars", overwrite=True)
    with pytest.raises(DataError):
        copy_to(conn, load_mtcars(), name="ingest_cars")
    replaced = copy_to(
        conn, load_mtcars().head(5), name="ingest_cars", overwrite=True)
    assert conn.table("ingest_cars").count() == 5
    assert replaced.count() == 5

def test_copy_to_requires_pandas():
    with pytest.raises(TypeError):
        copy_to(None, [[1, 2], [3, 4]])

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_read_csv_local(spark_session, tmp_path):
    conn = ClusterConnection.from_session(spark_session)
    path = tmp_path / "cars.csv"
    load_mtcars().to_csv(path, index=False)

    remote = read_csv(conn, str(path), name="csv_cars", overwrite=True)
    assert remote.count() == 32
    assert remote.dtypes["mpg"] == "double"
    assert remote.dtypes["cyl"] == "int"
    assert "csv_cars" in conn.list_tables()

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_read_csv_missing_file(spark_session, tmp_path):
    conn = ClusterConnection.from_session(spark_session)
    with pytest.raises(DataError):
        read_csv(conn, str(tmp_path / "missing.csv"))

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_read_csv_url(spark_session, monkeypatch):
    conn = ClusterConnection.from_session(spark_session)
    requested = []

    def fake_read_csv(path, **kwargs):
        requested.append((path, kwargs))
        return pd.DataFrame({"Total Bill": [16.99, 10.34], "Tip": [1.01, 1.66]})

    monkeypatch.setattr(ingest.pd, "read_csv", fake_read_csv)
    remote = read_csv(conn, "https://example.com/tips.csv", sep=",")
    assert requested == [("https://example.com/tips.csv", {"header": 0, "sep": ","})]
    assert remote.columns == ["total_bill", "tip"]
    assert remote.count() == 2

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_read_csv_url_failure(spark_session, monkeypatch):
    conn = ClusterConnection.from_session(spark_session)

    def failing_read_csv(path, **kwargs):
        raise OSError("connection refused")

    monkeypatch.setattr(ingest.pd, "read_csv", failing_read_csv)
    with pytest.raises(DataError):
        read_csv(conn, "https://example.com/tips.csv")

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_load_sample(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    iris = load_sample(conn, "iris", name="ingest_iris", overwrite=True)
    assert iris.count() == 150
    assert "species" in iris.columns
    with pytest.raises(DataError):
        load_sample(conn, "titanic")

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_load_sample_without_arrow(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    key = "spark.sql.execution.arrow.pyspark.enabled"
    previous = spark_session.conf.get(key, "false")
    spark_session.conf.set(key, "false")
    try:
        iris = load_sample(conn, "iris", name="iris_no_arrow", overwrite=True)
        assert iris.count() == 150
        assert iris.dtypes["species"] == "string"
    finally:
        spark_session.conf.set(key, previous)

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_read_csv_url_options(spark_session, monkeypatch):
    conn = ClusterConnection.from_session(spark_session)
    requested = []

    def fake_read_csv(path, **kwargs):
        requested.append(kwargs)
        return pd.DataFrame({"a": ["1", "2"], "b": ["x", None]})

    monkeypatch.setattr(ingest.pd, "read_csv", fake_read_csv)
    read_csv(conn, "https://example.com/data.csv", infer_schema=False,
             delimiter=";", quote="'", nullValue="NA")
    assert requested == [{
        "header": 0, "sep": ";", "quotechar": "'",
        "na_values": ["NA"], "dtype": str}]

    with pytest.raises(ValueError):
        read_csv(conn, "https://example.com/data.csv", multiLine=True)
    assert len(requested) == 1
