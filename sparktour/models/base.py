"""
Base model handle and formula preparation shared by
all Spark ML model wrappers
"""

import logging

from pyspark.ml import PipelineModel
from pyspark.ml.feature import RFormula

from ..engine.base import _translate_errors
from ..engine.table import RemoteTable
from ..exceptions import ModelingError

__all__ = [
    "ModelHandle"
    ]

logger = logging.getLogger(__name__)

FEATURES_COL = "_features"
LABEL_COL = "_label"
INTERCEPT = "(Intercept)"

def _check_table(table):
    """ Validates a model input is an open RemoteTable """
    if not isinstance(table, RemoteTable):
        raise TypeError(
            "Models take RemoteTable handles; got {0}. Copy local "
            "data in with sparktour.engine.copy_to first".format(type(table)))
    table.connection._check_open()

def _attribute_names(frame, col):
    """
    Ordered names of the slots in an assembled vector column,
    read from the ML attribute metadata Spark attaches to it.
    """
    attrs = frame.schema[col].metadata.get("ml_attr", {})
    named = []
    for group in attrs.get("attrs", {}).values():
        named.extend((a["idx"], a.get("name", "")) for a in group)
    if named:
        return [name for idx, name in sorted(named)]
    return ["x{0}".format(i) for i in range(attrs.get("num_attrs", 0))]

def _label_values(frame, col):
    """ Original values of an indexed string label, or None if numeric """
    attrs = frame.schema[col].metadata.get("ml_attr", {})
    values = attrs.get("vals")
    return list(values) if values else None

def _prepare_formula(table, formula):
    """
    Fit Spark's RFormula on the table.

    Args:
        table (RemoteTable): training data
        formula (str): R style formula, e.g. 'mpg ~ wt + cyl'
    Returns:
        formula_model (pyspark RFormulaModel)
        prepared (pyspark DataFrame): table with feature and label columns
        feature_names (list)
        labels (list or None): string label values by index
    """
    _check_table(table)
    if not isinstance(formula, str) or "~" not in formula:
        raise ValueError(
            "Formula must look like 'response ~ terms', got {0!r}".format(formula))
    stage = RFormula(
        formula=formula, featuresCol=FEATURES_COL,
        labelCol=LABEL_COL, handleInvalid="error")
    with _translate_errors(ModelingError, "formula {0!r}".format(formula)):
        formula_model = stage.fit(table.frame)
        prepared = formula_model.transform(table.frame)
        feature_names = _attribute_names(prepared, FEATURES_COL)
        labels = _label_values(prepared, LABEL_COL)
    return formula_model, prepared, feature_names, labels

class ModelHandle:
    """
    Handle on a model fitted by the engine. Training data never leaves
    the cluster; predictions come back as RemoteTable handles and only
    summaries are materialized locally.

    Args:
        connection (ClusterConnection): owning connection
        pipeline_model (pyspark PipelineModel): fitted stages, the
            last being the fitted estimator
        formula (str): formula the model was fitted with
        feature_names (array-like): ordered feature names
        labels (array-like): original label values for classifiers
    """
    _internal_columns = (FEATURES_COL, LABEL_COL)

    def __init__(self, connection, pipeline_model, formula=None,
                 feature_names=(), labels=None):
        self._connection = connection
        self._pipeline_model = pipeline_model
        self.formula = formula
        self.feature_names = list(feature_names)
        self.labels = list(labels) if labels is not None else None

    def __repr__(self):
        return "<{0} formula={1!r}>".format(type(self).__name__, self.formula)

    @property
    def connection(self):
        return self._connection

    @property
    def pipeline_model(self):
        """ Fitted Spark PipelineModel """
        self._connection._check_open()
        return self._pipeline_model

    @property
    def stage(self):
        """ Fitted Spark model, last stage of the pipeline """
        return self.pipeline_model.stages[-1]

    def _transform(self, table):
        """ Apply all stages, keeping internal columns """
        _check_table(table)
        if table.connection is not self._connection:
            raise ModelingError("Table belongs to a different connection")
        with _translate_errors(ModelingError, "predict"):
            return self._pipeline_model.transform(table.frame)

    def _finalize(self, frame):
        """ Hook to reshape prediction output; drops internal columns """
        drop = [c for c in self._internal_columns if c in frame.columns]
        return frame.drop(*drop)

    def predict(self, table):
        """
        Append model output columns to a table

        Args:
            table (RemoteTable): data with the model's input columns
        Returns:
            predictions (RemoteTable)
        """
        frame = self._transform(table)
        with _translate_errors(ModelingError, "predict"):
            frame = self._finalize(frame)
        return RemoteTable(self._connection, frame)

    def summary(self):
        """ Fitted parameters as a pandas DataFrame """
        raise NotImplementedError

    def evaluate(self, table, metrics=None):
        """ Score predictions on a table; returns {metric: value} """
        raise NotImplementedError

def _evaluate_with(evaluator, frame, metrics):
    """ Run a Spark ML evaluator once per metric name """
    scores = {}
    with _translate_errors(ModelingError, "evaluate"):
        for metric in metrics:
            scores[metric] = float(
                evaluator.evaluate(frame, {evaluator.metricName: metric}))
    return scores

def _fit_pipeline(table, formula, estimator_builder, description):
    """
    Prepare a formula, build the estimator from the prepared
    feature names and labels, fit it, and return the assembled
    PipelineModel with names and labels.
    """
    formula_model, prepared, feature_names, labels = _prepare_formula(
        table, formula)
    estimator = estimator_builder(prepared, feature_names, labels)
    logger.info("Fitting %s: %s (%d features)",
                description, formula, len(feature_names))
    with _translate_errors(ModelingError, "fit {0}".format(description)):
        fitted = estimator.fit(prepared)
    return PipelineModel(stages=[formula_model, fitted]), feature_names, labels
