"""
Scoped connection to a Spark cluster
"""

import logging

from pyspark.sql import SparkSession

from ..exceptions import ClusterConnectionError, DataError
from . import _defaults
from .base import _translate_errors
from .table import RemoteTable

__all__ = [
    "ClusterConnection",
    "connect"
]

logger = logging.getLogger(__name__)

class ClusterConnection:
    """
    Handle on an active Spark session. Every remote table and model
    handle created through the connection checks it is still open
    before touching the engine, so nothing derived from a connection
    can be used once it has been released.

    Connections opened with `connect` own their session and stop it on
    `disconnect`. Connections built with `from_session` wrap a session
    owned by someone else (a notebook, a test fixture) and leave it
    running.

    Args:
        session (pyspark.sql.SparkSession): active session
        owns_session (bool): stop the session on disconnect

    Example:
    >>> from sparktour.engine import connect
    >>> with connect(master="local[2]") as conn:
    >>>     print(conn.web_ui_url)
    ... http://10.0.0.12:4040
    """
    def __init__(self, session, owns_session=True):
        self._session = session
        self._owns_session = owns_session
        self._closed = False

    @classmethod
    def from_session(cls, session):
        """ Wrap an existing session without taking ownership """
        return cls(session, owns_session=False)

    def __enter__(self):
        self._check_open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()
        return False

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return "<ClusterConnection master={0!r} app_name={1!r} ({2})>".format(
            self.master, self.app_name, state)

    @property
    def closed(self):
        return self._closed

    @property
    def session(self):
        """ Underlying SparkSession """
        self._check_open()
        return self._session

    @property
    def master(self):
        return self._session.sparkContext.master

    @property
    def app_name(self):
        return self._session.sparkContext.appName

    @property
    def version(self):
        return self._session.version

    @property
    def web_ui_url(self):
        """ URL of the engine's monitoring interface, if running """
        self._check_open()
        return self._session.sparkContext.uiWebUrl

    def _check_open(self):
        if self._closed:
            raise ClusterConnectionError(
                "Connection to {0!r} has been closed".format(self.master))

    def disconnect(self):
        """
        Release the connection. Owned sessions are stopped. Calling
        disconnect more than once is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        if self._owns_session:
            logger.info("Stopping Spark session on %s", self.master)
            with _translate_errors(ClusterConnectionError, "disconnect"):
                self._session.stop()
        else:
            logger.debug("Releasing borrowed Spark session on %s", self.master)

    def sql(self, query):
        """
        Run a SQL query against registered views

        Args:
            query (str): Spark SQL statement
        Returns:
            table (RemoteTable)
        """
        self._check_open()
        with _translate_errors(DataError, "sql"):
            return RemoteTable(self, self._session.sql(query))

    def table(self, name):
        """ Remote table reference for a registered view """
        self._check_open()
        with _translate_errors(DataError, "table {0!r}".format(name)):
            return RemoteTable(self, self._session.table(name))

    def list_tables(self):
        """ Names of the views and tables visible to the session """
        self._check_open()
        with _translate_errors(DataError, "list tables"):
            return sorted(t.name for t in self._session.catalog.listTables())

    def has_table(self, name):
        return name in self.list_tables()

def connect(master=None, app_name=None, profile="local", config=None,
            log_level=None):
    """
    Open a connection to a Spark cluster.

    Settings resolve as explicit argument, then environment variable
    (SPARKTOUR_MASTER, SPARKTOUR_APP_NAME, SPARKTOUR_LOG_LEVEL), then
    the defaults in `_defaults`.

    Args:
        master (str): Spark master URL, e.g. 'local[*]' or 'spark://host:7077'
        app_name (str): application name shown in the web UI
        profile (str): name of a configuration profile
        config (dict): extra Spark settings applied over the profile
        log_level (str): JVM log level
    Returns:
        connection (ClusterConnection)
    """
    master = _defaults.resolve_setting(
        master, _defaults.MASTER_ENV, _defaults.DEFAULT_MASTER)
    app_name = _defaults.resolve_setting(
        app_name, _defaults.APP_NAME_ENV, _defaults.DEFAULT_APP_NAME)
    level = _defaults.resolve_log_level(log_level)
    conf = _defaults.resolve_config(profile, config)

    builder = SparkSession.builder.master(master).appName(app_name)
    for key, value in conf.items():
        builder = builder.config(key, value)

    logger.info("Connecting to %s as %r (profile=%s)", master, app_name, profile)
    with _translate_errors(ClusterConnectionError, "connect to {0!r}".format(master)):
        session = builder.getOrCreate()
        session.sparkContext.setLogLevel(level)
    connection = ClusterConnection(session, owns_session=True)
    logger.info("Connected to Spark %s; web UI at %s",
                session.version, session.sparkContext.uiWebUrl)
    return connection
