"""
Linear and generalized linear regression fitted by Spark ML
"""

import pandas as pd

from py4j.protocol import Py4JError
from pyspark.errors import PySparkException
from pyspark.ml.evaluation import RegressionEvaluator
from pyspark.ml.regression import (
    LinearRegression, GeneralizedLinearRegression
    )

from ..engine.base import _translate_errors
from ..exceptions import ModelingError
from .base import (
    ModelHandle, FEATURES_COL, LABEL_COL, INTERCEPT,
    _fit_pipeline, _evaluate_with
    )

__all__ = [
    "LinearRegressionModel",
    "GeneralizedLinearRegressionModel",
    "linear_regression",
    "generalized_linear_regression"
    ]

_REGRESSION_METRICS = ("rmse", "mse", "mae", "r2")

def _coefficient_table(feature_names, coefficients, intercept,
                       fit_intercept, statistics=None):
    """
    Assemble a term level summary. Spark reports standard errors,
    t values and p values with the intercept last; here the
    intercept comes first, as in R's summary output.

    Args:
        feature_names (list): ordered feature names
        coefficients (array-like): feature coefficients
        intercept (float): fitted intercept
        fit_intercept (bool): whether an intercept was fitted
        statistics (dict): std_error / t_value / p_value arrays
    Returns:
        summary (pandas DataFrame)
    """
    terms = list(feature_names)
    estimates = [float(c) for c in coefficients]
    if fit_intercept:
        terms = [INTERCEPT] + terms
        estimates = [float(intercept)] + estimates
    summary = pd.DataFrame({"term": terms, "estimate": estimates})
    for name, values in (statistics or {}).items():
        values = [float(v) for v in values]
        if fit_intercept:
            values = values[-1:] + values[:-1]
        summary[name] = values
    return summary

def _term_statistics(training_summary):
    """
    Standard errors, t values and p values when the engine can
    provide them (normal equation solver or IRLS); otherwise None.
    """
    try:
        return {
            "std_error": training_summary.coefficientStandardErrors,
            "t_value": training_summary.tValues,
            "p_value": training_summary.pValues
        }
    except (PySparkException, Py4JError):
        return None

class _RegressionModel(ModelHandle):
    """ Shared evaluation for continuous responses """
    def evaluate(self, table, metrics=None):
        """
        Score predictions against the observed response

        Args:
            table (RemoteTable): data including the response column
            metrics (array-like): subset of 'rmse', 'mse', 'mae', 'r2'
        Returns:
            scores (dict)
        """
        metrics = list(metrics or _REGRESSION_METRICS)
        frame = self._transform(table)
        if LABEL_COL not in frame.columns:
            raise ModelingError(
                "Table lacks the response column of {0!r}".format(self.formula))
        evaluator = RegressionEvaluator(
            labelCol=LABEL_COL, predictionCol="prediction")
        return _evaluate_with(evaluator, frame, metrics)

class LinearRegressionModel(_RegressionModel):
    """ Ordinary (optionally elastic net penalised) least squares """
    @property
    def coefficients(self):
        return dict(zip(self.feature_names, self.stage.coefficients.toArray()))

    @property
    def intercept(self):
        return float(self.stage.intercept)

    def summary(self):
        stage = self.stage
        with _translate_errors(ModelingError, "summary"):
            return _coefficient_table(
                self.feature_names, stage.coefficients.toArray(),
                stage.intercept, stage.getFitIntercept(),
                _term_statistics(stage.summary))

    def metrics(self):
        """ Goodness of fit on the training data """
        with _translate_errors(ModelingError, "metrics"):
            training = self.stage.summary
            return {
                "r2": float(training.r2),
                "r2_adjusted": float(training.r2adj),
                "rmse": float(training.rootMeanSquaredError),
                "mae": float(training.meanAbsoluteError),
                "n": int(training.numInstances)
            }

class GeneralizedLinearRegressionModel(_RegressionModel):
    """ GLM with an exponential family response and link function """
    @property
    def family(self):
        return self.stage.getFamily()

    @property
    def link(self):
        stage = self.stage
        return stage.getLink() if stage.isSet(stage.link) else None

    def summary(self):
        stage = self.stage
        with _translate_errors(ModelingError, "summary"):
            return _coefficient_table(
                self.feature_names, stage.coefficients.toArray(),
                stage.intercept, stage.getFitIntercept(),
                _term_statistics(stage.summary))

    def metrics(self):
        """ Deviance based fit statistics on the training data """
        with _translate_errors(ModelingError, "metrics"):
            training = self.stage.summary
            return {
                "aic": float(training.aic),
                "deviance": float(training.deviance),
                "null_deviance": float(training.nullDeviance),
                "dispersion": float(training.dispersion),
                "residual_dof": int(training.residualDegreeOfFreedom),
                "null_dof": int(training.residualDegreeOfFreedomNull)
            }

def linear_regression(table, formula, reg_param=0.0, elastic_net_param=0.0,
                      fit_intercept=True, max_iter=100):
    """
    Fit a linear regression on a remote table

    Args:
        table (RemoteTable): training data
        formula (str): R style formula, e.g. 'mpg ~ wt + cyl'
        reg_param (float): regularization strength
        elastic_net_param (float): 0 for L2, 1 for L1 penalty
        fit_intercept (bool): fit an intercept term
        max_iter (int): maximum solver iterations
    Returns:
        model (LinearRegressionModel)

    Example:
    >>> fit = linear_regression(mtcars, "mpg ~ wt + cyl")
    >>> fit.summary()
    ...           term  estimate  std_error    t_value       p_value
    ... 0  (Intercept)  39.686261   1.714984  23.140893  0.000000e+00
    ... 1           wt  -3.190972   0.756886  -4.215953  2.220269e-04
    ... 2          cyl  -1.507795   0.414697  -3.635904  1.064282e-03
    """
    solver = "normal" if elastic_net_param == 0 else "auto"

    def build(prepared, feature_names, labels):
        return LinearRegression(
            featuresCol=FEATURES_COL, labelCol=LABEL_COL,
            regParam=float(reg_param), elasticNetParam=float(elastic_net_param),
            fitIntercept=fit_intercept, maxIter=max_iter, solver=solver)

    pipeline_model, feature_names, _ = _fit_pipeline(
        table, formula, build, "linear regression")
    return LinearRegressionModel(
        table.connection, pipeline_model, formula, feature_names)

def generalized_linear_regression(table, formula, family="gaussian", link=None,
                                  reg_param=0.0, fit_intercept=True, max_iter=25):
    """
    Fit a generalized linear model on a remote table

    Args:
        table (RemoteTable): training data
        formula (str): R style formula, e.g. 'am ~ wt + hp'
        family (str): 'gaussian', 'binomial', 'poisson', 'gamma' or 'tweedie'
        link (str): link function; the family's canonical link if None
        reg_param (float): L2 regularization strength
        fit_intercept (bool): fit an intercept term
        max_iter (int): maximum IRLS iterations
    Returns:
        model (GeneralizedLinearRegressionModel)
    """
    def build(prepared, feature_names, labels):
        estimator = GeneralizedLinearRegression(
            featuresCol=FEATURES_COL, labelCol=LABEL_COL, family=family,
            regParam=float(reg_param), fitIntercept=fit_intercept,
            maxIter=max_iter)
        if link is not None:
            estimator.setLink(link)
        return estimator

    pipeline_model, feature_names, _ = _fit_pipeline(
        table, formula, build, "{0} GLM".format(family))
    return GeneralizedLinearRegressionModel(
        table.connection, pipeline_model, formula, feature_names)
