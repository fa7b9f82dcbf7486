"""
Base helpers shared by connection, table and model handles
"""

import re

from contextlib import contextmanager
from py4j.protocol import Py4JError
from pyspark.errors import PySparkException

_ENGINE_ERRORS = (PySparkException, Py4JError)

@contextmanager
def _translate_errors(error_cls, action):
    """
    Re-raise engine failures as a sparktour error category.

    Args:
        error_cls (type): SparkTourError subclass to raise
        action (str): short description of the attempted operation
    """
    try:
        yield
    except _ENGINE_ERRORS as exc:
        message = str(exc).strip().split("\n")[0]
        raise error_cls("{0} failed: {1}".format(action, message)) from exc

def _normalise_name(name):
    """
    Lower snake case column name safe for formulas and SQL,
    e.g. 'Sepal.Length' -> 'sepal_length'
    """
    name = re.sub(r"[^0-9a-zA-Z_]+", "_", str(name).strip())
    name = re.sub(r"_+", "_", name).strip("_").lower()
    if not name:
        raise ValueError("Column name is empty after normalisation")
    if name[0].isdigit():
        name = "_" + name
    return name

def _normalise_columns(names):
    """ Normalise a sequence of column names, rejecting collisions """
    normalised = [_normalise_name(name) for name in names]
    if len(set(normalised)) != len(normalised):
        raise ValueError(
            "Column names collide after normalisation: "
            "{0!r}".format(list(names)))
    return normalised

def _is_url(path):
    """ Determines if the input path is an HTTP(S) resource """
    return bool(re.match(r"^https?://", str(path), flags=re.IGNORECASE))
