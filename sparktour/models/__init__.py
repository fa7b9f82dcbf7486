"""
Spark ML models fitted from R style formulas on remote tables
"""

from .base import ModelHandle
from .regression import (
    LinearRegressionModel, GeneralizedLinearRegressionModel,
    linear_regression, generalized_linear_regression
    )
from .classification import (
    LogisticRegressionModel, MultilayerPerceptronModel,
    logistic_regression, multilayer_perceptron
    )
from .clustering import LDAModel, KMeansModel, lda, kmeans

__all__ = [
    "ModelHandle",
    "LinearRegressionModel",
    "GeneralizedLinearRegressionModel",
    "LogisticRegressionModel",
    "MultilayerPerceptronModel",
    "LDAModel",
    "KMeansModel",
    "linear_regression",
    "generalized_linear_regression",
    "logistic_regression",
    "multilayer_perceptron",
    "lda",
    "kmeans"
]
