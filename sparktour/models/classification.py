"""
Logistic regression and feedforward neural network
classifiers fitted by Spark ML
"""

import pandas as pd

from pyspark.ml.classification import (
    LogisticRegression, MultilayerPerceptronClassifier
    )
from pyspark.ml.evaluation import (
    BinaryClassificationEvaluator, MulticlassClassificationEvaluator
    )
from pyspark.ml.feature import IndexToString
from pyspark.ml.functions import vector_to_array
from pyspark.sql import functions as F

from ..engine.base import _translate_errors
from ..exceptions import ModelingError
from .base import (
    ModelHandle, FEATURES_COL, LABEL_COL, INTERCEPT,
    _fit_pipeline, _evaluate_with
    )

__all__ = [
    "LogisticRegressionModel",
    "MultilayerPerceptronModel",
    "logistic_regression",
    "multilayer_perceptron"
    ]

_MULTICLASS_METRICS = ("accuracy", "f1", "weightedPrecision", "weightedRecall")
_BINARY_METRICS = ("areaUnderROC", "areaUnderPR")

def _n_classes(prepared, labels):
    """ Number of label classes, from the index metadata if present """
    if labels is not None:
        return len(labels)
    with _translate_errors(ModelingError, "count label classes"):
        top = prepared.agg(F.max(LABEL_COL)).first()[0]
    if top is None:
        raise ModelingError("Training data has no labelled rows")
    return int(top) + 1

class _ClassificationModel(ModelHandle):
    """
    Shared prediction output and evaluation for classifiers. Labels
    given as strings are indexed during fitting; predictions map them
    back into a `predicted_label` column.
    """
    _internal_columns = (FEATURES_COL, LABEL_COL, "rawPrediction")

    @property
    def n_classes(self):
        return self.stage.numClasses

    def _finalize(self, frame):
        if self.labels is not None:
            frame = IndexToString(
                inputCol="prediction", outputCol="predicted_label",
                labels=self.labels).transform(frame)
        if "probability" in frame.columns:
            frame = frame.withColumn(
                "probability", vector_to_array(F.col("probability")))
        return super()._finalize(frame)

    def evaluate(self, table, metrics=None):
        """
        Score predictions against the observed labels

        Args:
            table (RemoteTable): data including the label column
            metrics (array-like): any of 'accuracy', 'f1',
                'weightedPrecision', 'weightedRecall', and for two
                classes 'areaUnderROC' and 'areaUnderPR'
        Returns:
            scores (dict)
        """
        metrics = list(metrics or _MULTICLASS_METRICS)
        frame = self._transform(table)
        if LABEL_COL not in frame.columns:
            raise ModelingError(
                "Table lacks the label column of {0!r}".format(self.formula))
        binary = [m for m in metrics if m in _BINARY_METRICS]
        multiclass = [m for m in metrics if m not in _BINARY_METRICS]
        if binary and self.n_classes != 2:
            raise ValueError(
                "{0} require a binary label; model has {1} classes".format(
                    binary, self.n_classes))
        scores = {}
        if multiclass:
            scores.update(_evaluate_with(
                MulticlassClassificationEvaluator(
                    labelCol=LABEL_COL, predictionCol="prediction"),
                frame, multiclass))
        if binary:
            scores.update(_evaluate_with(
                BinaryClassificationEvaluator(
                    labelCol=LABEL_COL, rawPredictionCol="rawPrediction"),
                frame, binary))
        return {m: scores[m] for m in metrics}

class LogisticRegressionModel(_ClassificationModel):
    """ Binomial or multinomial logistic regression """
    def summary(self):
        """
        Coefficients per term. Binomial models have one `estimate`
        column; multinomial models one column per class.
        """
        stage = self.stage
        with _translate_errors(ModelingError, "summary"):
            matrix = stage.coefficientMatrix.toArray()
            intercepts = stage.interceptVector.toArray()
        terms = [INTERCEPT] + list(self.feature_names)
        if matrix.shape[0] == 1:
            columns = ["estimate"]
        elif self.labels is not None:
            columns = list(self.labels)
        else:
            columns = ["class_{0}".format(i) for i in range(matrix.shape[0])]
        summary = pd.DataFrame({"term": terms})
        for index, column in enumerate(columns):
            summary[column] = [float(intercepts[index])] + [
                float(v) for v in matrix[index]]
        return summary

    def metrics(self):
        """ Accuracy and area under ROC (binary) on the training data """
        with _translate_errors(ModelingError, "metrics"):
            training = self.stage.summary
            result = {"accuracy": float(training.accuracy)}
            if self.n_classes == 2:
                result["auc"] = float(training.areaUnderROC)
        return result

class MultilayerPerceptronModel(_ClassificationModel):
    """ Feedforward neural network classifier """
    @property
    def layers(self):
        return list(self.stage.getLayers())

    @property
    def weights(self):
        return self.stage.weights.toArray()

    def summary(self):
        """ Units per layer; the first is the input, the last the output """
        layers = self.layers
        kinds = (["input"] + ["hidden"] * (len(layers) - 2) + ["output"])
        return pd.DataFrame({
            "layer": list(range(len(layers))),
            "kind": kinds,
            "units": layers
            })

def logistic_regression(table, formula, reg_param=0.0, elastic_net_param=0.0,
                        family="auto", fit_intercept=True, max_iter=100):
    """
    Fit a logistic regression on a remote table

    Args:
        table (RemoteTable): training data
        formula (str): R style formula, e.g. 'am ~ wt + hp'
        reg_param (float): regularization strength
        elastic_net_param (float): 0 for L2, 1 for L1 penalty
        family (str): 'auto', 'binomial' or 'multinomial'
        fit_intercept (bool): fit an intercept term
        max_iter (int): maximum solver iterations
    Returns:
        model (LogisticRegressionModel)
    """
    def build(prepared, feature_names, labels):
        return LogisticRegression(
            featuresCol=FEATURES_COL, labelCol=LABEL_COL,
            regParam=float(reg_param), elasticNetParam=float(elastic_net_param),
            family=family, fitIntercept=fit_intercept, maxIter=max_iter)

    pipeline_model, feature_names, labels = _fit_pipeline(
        table, formula, build, "logistic regression")
    return LogisticRegressionModel(
        table.connection, pipeline_model, formula, feature_names, labels)

def multilayer_perceptron(table, formula, hidden_layers=(5,), max_iter=100,
                          block_size=128, step_size=0.03, seed=None):
    """
    Fit a feedforward classifier on a remote table. The input layer
    has one unit per formula feature and the output layer one unit
    per label class.

    Args:
        table (RemoteTable): training data
        formula (str): R style formula, e.g. 'species ~ .'
        hidden_layers (array-like): units in each hidden layer
        max_iter (int): maximum solver iterations
        block_size (int): rows stacked per block during training
        step_size (float): step size for the gradient descent solver
        seed (int): random seed for weight initialization
    Returns:
        model (MultilayerPerceptronModel)
    """
    hidden = [int(h) for h in hidden_layers]
    if any(h < 1 for h in hidden):
        raise ValueError("Hidden layers need at least one unit: {0!r}".format(hidden))

    def build(prepared, feature_names, labels):
        layers = [len(feature_names)] + hidden + [_n_classes(prepared, labels)]
        estimator = MultilayerPerceptronClassifier(
            featuresCol=FEATURES_COL, labelCol=LABEL_COL, layers=layers,
            maxIter=max_iter, blockSize=block_size, stepSize=step_size)
        if seed is not None:
            estimator.setSeed(seed)
        return estimator

    pipeline_model, feature_names, labels = _fit_pipeline(
        table, formula, build, "multilayer perceptron")
    return MultilayerPerceptronModel(
        table.connection, pipeline_model, formula, feature_names, labels)
