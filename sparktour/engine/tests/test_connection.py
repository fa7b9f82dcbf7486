"""
Test cluster connection lifecycle
"""

import sys
import pytest

from unittest import mock

try:
    import pyspark
except ImportError:
    pass

try:
    from sparktour.engine import connection as connection_module
    from sparktour.engine import ClusterConnection, connect, copy_to
    from sparktour.exceptions import ClusterConnectionError, DataError
    from sparktour.datasets import load_mtcars
    _import_error = None
except Exception as e:
    _import_error = e

def _fake_builder(session):
    builder = mock.MagicMock()
    builder.master.return_value = builder
    builder.appName.return_value = builder
    builder.config.return_value = builder
    builder.getOrCreate.return_value = session
    return builder

def test_import_connection():
    assert _import_error == None

def test_connect_applies_profile(monkeypatch):
    session = mock.MagicMock()
    builder = _fake_builder(session)
    monkeypatch.setattr(
        connection_module, "SparkSession", mock.MagicMock(builder=builder))
    monkeypatch.delenv("SPARKTOUR_MASTER", raising=False)
    monkeypatch.delenv("SPARKTOUR_LOG_LEVEL", raising=False)

    conn = connect(app_name="test-app", config={"spark.driver.memory": "1g"})

    builder.master.assert_called_once_with("local[*]")
    builder.appName.assert_called_once_with("test-app")
    builder.config.assert_any_call("spark.sql.shuffle.partitions", "4")
    builder.config.assert_any_call("spark.driver.memory", "1g")
    session.sparkContext.setLogLevel.assert_called_once_with("WARN")
    assert not conn.closed

def test_connect_master_from_environment(monkeypatch):
    builder = _fake_builder(mock.MagicMock())
    monkeypatch.setattr(
        connection_module, "SparkSession", mock.MagicMock(builder=builder))
    monkeypatch.setenv("SPARKTOUR_MASTER", "spark://example:7077")
    connect()
    builder.master.assert_called_once_with("spark://example:7077")

def test_disconnect_stops_owned_session():
    session = mock.MagicMock()
    conn = ClusterConnection(session)
    conn.disconnect()
    conn.disconnect()
    session.stop.assert_called_once_with()
    assert conn.closed

def test_disconnect_leaves_borrowed_session():
    session = mock.MagicMock()
    conn = ClusterConnection.from_session(session)
    conn.disconnect()
    session.stop.assert_not_called()
    with pytest.raises(ClusterConnectionError):
        conn.session

def test_context_manager_releases_on_failure():
    session = mock.MagicMock()
    with pytest.raises(RuntimeError):
        with ClusterConnection(session) as conn:
            raise RuntimeError("step failed")
    assert conn.closed
    session.stop.assert_called_once_with()

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_sql_and_tables(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    copy_to(conn, load_mtcars(), name="conn_mtcars", overwrite=True)

    assert "conn_mtcars" in conn.list_tables()
    assert conn.table("conn_mtcars").count() == 32
    heavy = conn.sql("SELECT model FROM conn_mtcars WHERE wt > 5")
    assert sorted(heavy.collect()["model"]) == [
        "Cadillac Fleetwood", "Chrysler Imperial", "Lincoln Continental"]

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_sql_errors_are_data_errors(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    with pytest.raises(DataError):
        conn.sql("SELECT * FROM no_such_table_anywhere")

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_operations_after_teardown_fail(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    mtcars = copy_to(conn, load_mtcars())
    heavy = mtcars.filter("wt > 3")
    conn.disconnect()

    for operation in (
            lambda: mtcars.count(),
            lambda: heavy.collect(),
            lambda: heavy.filter("hp > 100"),
            lambda: mtcars.group_by("cyl"),
            lambda: conn.sql("SELECT 1"),
            lambda: copy_to(conn, load_mtcars())):
        with pytest.raises(ClusterConnectionError):
            operation()
    # borrowed session is still usable by its owner
    assert spark_session.range(3).count() == 3
