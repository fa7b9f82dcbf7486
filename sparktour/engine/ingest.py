"""
Ingestion of local and remote data into the engine
"""

import logging
import pandas as pd

from .. import datasets
from ..exceptions import DataError
from .base import _translate_errors, _normalise_columns, _is_url
from .table import RemoteTable

__all__ = [
    "copy_to",
    "read_csv",
    "load_sample"
]

logger = logging.getLogger(__name__)

def _register(connection, table, name, overwrite):
    """ Register a table under `name`, refusing silent replacement """
    if name is None:
        return table
    if not overwrite and connection.has_table(name):
        raise DataError(
            "A table named {0!r} already exists; pass overwrite=True "
            "to replace it".format(name))
    return table.register(name)

def copy_to(connection, data, name=None, overwrite=False):
    """
    Copy a local pandas DataFrame into the engine

    Args:
        connection (ClusterConnection): open connection
        data (pandas DataFrame): local data
        name (str): register the result as a view with this name
        overwrite (bool): replace an existing view of the same name
    Returns:
        table (RemoteTable)
    """
    if not isinstance(data, pd.DataFrame):
        raise TypeError(
            "copy_to expects a pandas DataFrame, got {0}".format(type(data)))
    connection._check_open()
    local = data.copy()
    local.columns = _normalise_columns(local.columns)
    logger.info("Copying %d rows x %d columns to the cluster%s",
                len(local), len(local.columns),
                " as {0!r}".format(name) if name else "")
    with _translate_errors(DataError, "copy_to"):
        frame = connection.session.createDataFrame(local)
    return _register(connection, RemoteTable(connection, frame), name, overwrite)

# Spark CSV reader options honoured for downloads, by pandas keyword
_URL_OPTIONS = {
    "sep": "sep",
    "delimiter": "sep",
    "quote": "quotechar",
    "escape": "escapechar",
    "comment": "comment",
    "nullValue": "na_values",
    "encoding": "encoding"
}

def _url_read_options(header, infer_schema, options):
    """ Translate Spark reader options into pandas.read_csv keywords """
    unsupported = sorted(set(options) - set(_URL_OPTIONS))
    if unsupported:
        raise ValueError(
            "Reader options {0} are not supported for http(s) sources; "
            "supported options are {1}".format(
                unsupported, sorted(_URL_OPTIONS)))
    read_options = {"header": 0 if header else None}
    for key, value in options.items():
        if key == "nullValue":
            value = [value]
        read_options[_URL_OPTIONS[key]] = value
    if not infer_schema:
        read_options["dtype"] = str
    return read_options

def read_csv(connection, path, name=None, header=True, infer_schema=True,
             overwrite=False, **options):
    """
    Read a CSV file into the engine. Local and cluster paths are read
    by Spark directly; HTTP(S) resources are downloaded with pandas and
    copied in, since Spark's readers do not speak HTTP.

    Args:
        connection (ClusterConnection): open connection
        path (str): file path, glob, or http(s) URL
        name (str): register the result as a view with this name
        header (bool): first line holds column names
        infer_schema (bool): detect column types
        overwrite (bool): replace an existing view of the same name
        **options: extra reader options, e.g. sep=";". Downloads
            accept sep, delimiter, quote, escape, comment, nullValue
            and encoding; anything else raises ValueError.
    Returns:
        table (RemoteTable)
    """
    connection._check_open()
    if _is_url(path):
        logger.info("Downloading %s", path)
        read_options = _url_read_options(header, infer_schema, options)
        try:
            local = pd.read_csv(path, **read_options)
        except (OSError, ValueError) as exc:
            raise DataError("read_csv failed for {0}: {1}".format(path, exc)) from exc
        if not header:
            local.columns = ["_c{0}".format(i) for i in range(len(local.columns))]
        return copy_to(connection, local, name=name, overwrite=overwrite)

    logger.info("Reading %s", path)
    with _translate_errors(DataError, "read_csv {0}".format(path)):
        frame = (
            connection.session.read
            .options(**{k: str(v) for k, v in options.items()})
            .csv(str(path), header=header, inferSchema=infer_schema)
            )
        frame = frame.toDF(*_normalise_columns(frame.columns))
    return _register(connection, RemoteTable(connection, frame), name, overwrite)

def load_sample(connection, dataset, name=None, overwrite=False):
    """
    Copy one of the bundled sample datasets into the engine,
    registered under its own name unless another is given.
    """
    data = datasets.load(dataset)
    return copy_to(
        connection, data, name=name or dataset, overwrite=overwrite)
