"""
Immutable handles on lazily composed Spark DataFrames
"""

import io
import logging

from contextlib import redirect_stdout
from pyspark.ml.feature import Binarizer, Bucketizer
from pyspark.sql import Column, functions as F

from ..exceptions import DataError
from .base import _translate_errors

__all__ = [
    "RemoteTable"
]

logger = logging.getLogger(__name__)

_AGGREGATES = (
    "count", "count_distinct", "sum", "mean", "avg", "min", "max",
    "stddev", "variance", "first", "last", "collect_list",
    "collect_set", "approx_count_distinct"
)

_NUMERIC_TYPES = (
    "tinyint", "smallint", "int", "bigint", "float", "double"
)

def _as_column(expr):
    """ Column passthrough; strings are parsed as SQL expressions """
    if isinstance(expr, Column):
        return expr
    if isinstance(expr, str):
        return F.expr(expr)
    raise TypeError(
        "Expected a pyspark Column or SQL expression string, got "
        "{0}".format(type(expr)))

def _as_aggregate(name, spec):
    """
    Build an aliased aggregate column from either a Column or a
    (function_name, column) tuple, e.g. ("mean", "mpg")
    """
    if isinstance(spec, Column):
        return spec.alias(name)
    if isinstance(spec, (tuple, list)) and len(spec) == 2:
        func, col = spec
        if func not in _AGGREGATES:
            raise ValueError(
                "Unknown aggregate {0!r} for {1!r}; expected one of "
                "{2}".format(func, name, list(_AGGREGATES)))
        if func == "count_distinct":
            return F.countDistinct(col).alias(name)
        if func == "count" and col == "*":
            return F.count(F.lit(1)).alias(name)
        return getattr(F, func)(col).alias(name)
    raise TypeError(
        "Aggregate {0!r} must be a Column or a (function, column) "
        "tuple, got {1!r}".format(name, spec))

class RemoteTable:
    """
    Reference to a dataset living in the engine. Transformations are
    composed lazily and return a new RemoteTable; the original handle
    is never modified. Only the materializing methods (`count`,
    `collect`, `head`, `describe`) trigger execution.

    Args:
        connection (ClusterConnection): owning connection
        frame (pyspark.sql.DataFrame): composed query plan
        groups (tuple): grouping keys set by `group_by`

    Example:
    >>> by_cyl = (
    >>>     mtcars
    >>>     .filter("hp > 100")
    >>>     .group_by("cyl")
    >>>     .summarise(mpg=("mean", "mpg"), n=("count", "*"))
    >>>     .arrange("cyl")
    >>>     )
    >>> by_cyl.collect()
    ...    cyl        mpg   n
    ... 0    4  25.900000   2
    ... 1    6  19.742857   7
    ... 2    8  15.100000  14
    """
    __slots__ = ("_connection", "_frame", "_groups")

    def __init__(self, connection, frame, groups=()):
        object.__setattr__(self, "_connection", connection)
        object.__setattr__(self, "_frame", frame)
        object.__setattr__(self, "_groups", tuple(groups))

    def __setattr__(self, name, value):
        raise AttributeError("RemoteTable handles are immutable")

    def __repr__(self):
        if self._connection.closed:
            return "<RemoteTable (connection closed)>"
        groups = " groups={0}".format(list(self._groups)) if self._groups else ""
        return "<RemoteTable columns={0}{1}>".format(self._frame.columns, groups)

    def _derive(self, action, build, keep_groups=True):
        """ Check the connection, then compose a new plan """
        self._connection._check_open()
        with _translate_errors(DataError, action):
            frame = build(self._frame)
        return RemoteTable(
            self._connection, frame,
            self._groups if keep_groups else ())

    def _materialize(self, action, run):
        self._connection._check_open()
        logger.debug("Materializing %s", action)
        with _translate_errors(DataError, action):
            return run(self._frame)

    @property
    def connection(self):
        return self._connection

    @property
    def frame(self):
        """ Underlying pyspark DataFrame """
        self._connection._check_open()
        return self._frame

    @property
    def groups(self):
        return self._groups

    @property
    def columns(self):
        self._connection._check_open()
        return list(self._frame.columns)

    @property
    def dtypes(self):
        self._connection._check_open()
        return dict(self._frame.dtypes)

    def select(self, *cols):
        """ Keep the given columns (names, SQL expressions or Columns) """
        return self._derive(
            "select", lambda df: df.select(*[
                c if isinstance(c, str) and c in df.columns else _as_column(c)
                for c in cols]))

    def filter(self, condition):
        """ Keep rows matching a SQL condition string or boolean Column """
        return self._derive(
            "filter", lambda df: df.filter(_as_column(condition)))

    def mutate(self, **exprs):
        """
        Derive or replace columns, in keyword order

        Args:
            **exprs: column name -> SQL expression string or Column
        """
        def build(df):
            for name, expr in exprs.items():
                df = df.withColumn(name, _as_column(expr))
            return df
        return self._derive("mutate", build)

    def rename(self, **mapping):
        """ Rename columns; new_name='old_name' """
        def build(df):
            for new, old in mapping.items():
                if old not in df.columns:
                    raise DataError("Cannot rename missing column {0!r}".format(old))
                df = df.withColumnRenamed(old, new)
            return df
        return self._derive("rename", build)

    def arrange(self, *cols, ascending=True):
        """ Sort by the given columns """
        return self._derive(
            "arrange", lambda df: df.orderBy(*cols, ascending=ascending))

    def distinct(self):
        return self._derive("distinct", lambda df: df.distinct())

    def limit(self, n):
        return self._derive("limit", lambda df: df.limit(int(n)))

    def dropna(self, subset=None):
        """ Drop rows with nulls in any (or the given) columns """
        return self._derive("dropna", lambda df: df.dropna(subset=subset))

    def group_by(self, *cols):
        """ Record grouping keys used by the next `summarise` """
        if not cols:
            raise ValueError("group_by requires at least one column")
        missing = [c for c in cols if c not in self.columns]
        if missing:
            raise DataError("Cannot group by missing columns {0!r}".format(missing))
        return RemoteTable(self._connection, self._frame, cols)

    def ungroup(self):
        return RemoteTable(self._connection, self._frame)

    def summarise(self, **aggs):
        """
        Aggregate each group (or the whole table when ungrouped)
        into one row.

        Args:
            **aggs: output name -> Column or (function, column) tuple
        Returns:
            table (RemoteTable): ungrouped summary
        """
        if not aggs:
            raise ValueError("summarise requires at least one aggregate")
        columns = [_as_aggregate(name, spec) for name, spec in aggs.items()]
        groups = self._groups

        def build(df):
            if groups:
                return df.groupBy(*groups).agg(*columns)
            return df.agg(*columns)
        return self._derive("summarise", build, keep_groups=False)

    summarize = summarise

    def count_by(self, *cols, name="n"):
        """ Number of rows per distinct combination of columns """
        return self.group_by(*cols).summarise(**{name: ("count", "*")})

    def join(self, other, on=None, how="inner"):
        """
        Join with another table from the same connection

        Args:
            other (RemoteTable): right hand table
            on (str, list or Column): join keys or condition
            how (str): join type, e.g. 'inner', 'left', 'anti'
        """
        if not isinstance(other, RemoteTable):
            raise TypeError("Can only join RemoteTable handles")
        if other._connection is not self._connection:
            raise DataError("Cannot join tables from different connections")
        other._connection._check_open()
        return self._derive(
            "join", lambda df: df.join(other._frame, on=on, how=how),
            keep_groups=False)

    def sample(self, fraction, seed=None, with_replacement=False):
        """ Bernoulli sample of approximately `fraction` of the rows """
        if not 0.0 < fraction <= 1.0:
            raise ValueError("fraction must be in (0, 1], got {0}".format(fraction))
        return self._derive(
            "sample", lambda df: df.sample(
                withReplacement=with_replacement,
                fraction=float(fraction), seed=seed))

    def random_split(self, weights, seed=None):
        """
        Partition the rows into disjoint random subsets. Subset sizes
        sum to the size of the table and approximate the requested
        proportions.

        Args:
            weights (dict): subset name -> relative weight,
                e.g. {"training": 0.8, "test": 0.2}
            seed (int): random seed
        Returns:
            partitions (dict): subset name -> RemoteTable
        """
        if not weights:
            raise ValueError("random_split requires at least one weight")
        names = list(weights)
        values = [float(weights[name]) for name in names]
        if any(value <= 0 for value in values):
            raise ValueError("Weights must be positive: {0!r}".format(weights))
        self._connection._check_open()
        with _translate_errors(DataError, "random_split"):
            frames = self._frame.randomSplit(values, seed=seed)
        return {
            name: RemoteTable(self._connection, frame)
            for name, frame in zip(names, frames)
        }

    def binarize(self, column, threshold, output=None):
        """ 1.0 where `column` > threshold else 0.0 (Spark ML Binarizer) """
        output = output or "{0}_binary".format(column)
        binarizer = Binarizer(
            threshold=float(threshold), inputCol=column, outputCol=output)
        return self._derive(
            "binarize", lambda df: binarizer.transform(
                df.withColumn(column, F.col(column).cast("double"))))

    def bucketize(self, column, splits, output=None):
        """ Bucket index of `column` for the ordered split points """
        output = output or "{0}_bucket".format(column)
        bucketizer = Bucketizer(
            splits=[float(s) for s in splits], inputCol=column,
            outputCol=output, handleInvalid="keep")
        return self._derive(
            "bucketize", lambda df: bucketizer.transform(
                df.withColumn(column, F.col(column).cast("double"))))

    def cache(self):
        """ Pin the computed plan in engine memory """
        return self._derive("cache", lambda df: df.cache())

    def uncache(self):
        return self._derive("uncache", lambda df: df.unpersist())

    def register(self, name):
        """ Register the plan as a temporary view for SQL """
        self._connection._check_open()
        with _translate_errors(DataError, "register {0!r}".format(name)):
            self._frame.createOrReplaceTempView(name)
        return self

    def count(self):
        """ Number of rows, computed by the engine """
        return self._materialize("count", lambda df: df.count())

    def collect(self):
        """
        Pull the full result into local memory

        Returns:
            data (pandas DataFrame)
        """
        return self._materialize("collect", lambda df: df.toPandas())

    def head(self, n=10):
        """ First `n` rows as a pandas DataFrame """
        return self._materialize(
            "head", lambda df: df.limit(int(n)).toPandas())

    def describe(self, *cols):
        """
        count, mean, stddev, min and max of numeric columns

        Args:
            *cols (str): numeric columns to summarise; all numeric
                columns if none are given
        Returns:
            summary (pandas DataFrame): one column per summarised column
        """
        dtypes = self.dtypes
        numeric = [
            name for name, dtype in dtypes.items()
            if dtype in _NUMERIC_TYPES or dtype.startswith("decimal")]
        unknown = [name for name in cols if name not in dtypes]
        if unknown:
            raise DataError("Unknown columns: {0}".format(unknown))
        not_numeric = [name for name in cols if name not in numeric]
        if not_numeric:
            raise DataError(
                "describe summarises numeric columns only; {0} are "
                "not numeric".format(not_numeric))
        names = list(cols) or numeric
        if not names:
            raise DataError("Table has no numeric columns to describe")

        def run(df):
            summary = df.describe(*names).toPandas().set_index("summary")
            return summary.astype(float)
        return self._materialize("describe", run)

    def explain(self, extended=True):
        """ Query plan as text """
        def run(df):
            buffer = io.StringIO()
            with redirect_stdout(buffer):
                df.explain(extended=extended)
            return buffer.getvalue()
        return self._materialize("explain", run)
