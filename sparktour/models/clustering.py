"""
Unsupervised models: LDA topic modeling and k-means clustering
"""

import logging
import pandas as pd

from pyspark.ml import Pipeline, PipelineModel
from pyspark.ml.clustering import LDA, KMeans
from pyspark.ml.evaluation import ClusteringEvaluator
from pyspark.ml.feature import (
    RegexTokenizer, StopWordsRemover, CountVectorizer, VectorAssembler
    )
from pyspark.ml.functions import vector_to_array
from pyspark.sql import functions as F

from ..engine.base import _translate_errors
from ..exceptions import ModelingError
from .base import ModelHandle, FEATURES_COL, _check_table, _evaluate_with

__all__ = [
    "LDAModel",
    "KMeansModel",
    "lda",
    "kmeans"
    ]

logger = logging.getLogger(__name__)

_TOKENS_COL = "_tokens"
_TERMS_COL = "_terms"

class LDAModel(ModelHandle):
    """
    Latent Dirichlet allocation over a text column. The fitted
    pipeline tokenizes, removes stop words, counts terms and
    fits the topic model.
    """
    _internal_columns = (FEATURES_COL, _TOKENS_COL, _TERMS_COL)

    def __init__(self, connection, pipeline_model, text_column):
        super().__init__(connection, pipeline_model)
        self.text_column = text_column

    def __repr__(self):
        return "<LDAModel text_column={0!r} k={1}>".format(
            self.text_column, self._pipeline_model.stages[-1].getK())

    @property
    def k(self):
        return self.stage.getK()

    @property
    def vocabulary(self):
        """ Terms by index, as counted by the vectorizer """
        return list(self.pipeline_model.stages[-2].vocabulary)

    def _finalize(self, frame):
        frame = frame.withColumn(
            "topic_distribution",
            vector_to_array(F.col("topic_distribution")))
        return super()._finalize(frame)

    def topics(self, n_terms=5):
        """
        Highest weighted terms per topic

        Args:
            n_terms (int): terms to report per topic
        Returns:
            topics (pandas DataFrame): topic, rank, term, weight
        """
        vocabulary = self.vocabulary
        with _translate_errors(ModelingError, "describe topics"):
            described = self.stage.describeTopics(int(n_terms)).toPandas()
        rows = []
        for _, row in described.iterrows():
            pairs = zip(row["termIndices"], row["termWeights"])
            for rank, (index, weight) in enumerate(pairs):
                rows.append({
                    "topic": int(row["topic"]),
                    "rank": rank,
                    "term": vocabulary[int(index)],
                    "weight": float(weight)
                })
        return pd.DataFrame(rows, columns=["topic", "rank", "term", "weight"])

    def summary(self):
        return self.topics()

    def evaluate(self, table, metrics=None):
        """
        Log likelihood and log perplexity of a corpus

        Args:
            table (RemoteTable): documents with the text column
            metrics (array-like): 'log_likelihood' and/or 'log_perplexity'
        Returns:
            scores (dict)
        """
        metrics = list(metrics or ("log_likelihood", "log_perplexity"))
        unknown = set(metrics) - {"log_likelihood", "log_perplexity"}
        if unknown:
            raise ValueError("Unknown LDA metrics: {0}".format(sorted(unknown)))
        _check_table(table)
        if table.connection is not self._connection:
            raise ModelingError("Table belongs to a different connection")
        featurize = PipelineModel(stages=self.pipeline_model.stages[:-1])
        stage = self.stage
        scores = {}
        with _translate_errors(ModelingError, "evaluate"):
            counted = featurize.transform(table.frame)
            if "log_likelihood" in metrics:
                scores["log_likelihood"] = float(stage.logLikelihood(counted))
            if "log_perplexity" in metrics:
                scores["log_perplexity"] = float(stage.logPerplexity(counted))
        return {m: scores[m] for m in metrics}

class KMeansModel(ModelHandle):
    """ k-means clustering of numeric columns """
    @property
    def k(self):
        return self.stage.getK()

    def centers(self):
        """ Cluster centers as a pandas DataFrame, one row per cluster """
        centers = pd.DataFrame(
            [list(c) for c in self.stage.clusterCenters()],
            columns=self.feature_names)
        centers.insert(0, "cluster", list(range(len(centers))))
        return centers

    def summary(self):
        """ Centers with the number of training rows per cluster """
        summary = self.centers()
        with _translate_errors(ModelingError, "summary"):
            summary["size"] = list(self.stage.summary.clusterSizes)
        return summary

    def evaluate(self, table, metrics=None):
        """ Silhouette score of the clustering on a table """
        metrics = list(metrics or ("silhouette",))
        evaluator = ClusteringEvaluator(
            featuresCol=FEATURES_COL, predictionCol="prediction")
        return _evaluate_with(evaluator, self._transform(table), metrics)

def lda(table, text_column, k=3, max_iter=20, vocab_size=1000, min_df=1.0,
        min_token_length=2, seed=None):
    """
    Fit an LDA topic model on a text column

    Args:
        table (RemoteTable): one document per row
        text_column (str): column holding the raw text
        k (int): number of topics
        max_iter (int): maximum optimizer iterations
        vocab_size (int): maximum vocabulary size
        min_df (float): minimum documents (or fraction) a term must appear in
        min_token_length (int): shorter tokens are dropped
        seed (int): random seed
    Returns:
        model (LDAModel)
    """
    _check_table(table)
    if text_column not in table.columns:
        raise ModelingError("No text column {0!r} in table".format(text_column))
    if k < 2:
        raise ValueError("LDA needs at least two topics, got {0}".format(k))
    topic_model = LDA(
        k=int(k), maxIter=int(max_iter), featuresCol=FEATURES_COL,
        topicDistributionCol="topic_distribution")
    if seed is not None:
        topic_model.setSeed(seed)
    pipeline = Pipeline(stages=[
        RegexTokenizer(
            inputCol=text_column, outputCol=_TOKENS_COL, pattern="\\W+",
            minTokenLength=int(min_token_length)),
        StopWordsRemover(inputCol=_TOKENS_COL, outputCol=_TERMS_COL),
        CountVectorizer(
            inputCol=_TERMS_COL, outputCol=FEATURES_COL,
            vocabSize=int(vocab_size), minDF=float(min_df)),
        topic_model
        ])
    logger.info("Fitting LDA with k=%d on %r", k, text_column)
    with _translate_errors(ModelingError, "fit LDA"):
        pipeline_model = pipeline.fit(table.frame)
    return LDAModel(table.connection, pipeline_model, text_column)

def kmeans(table, features, k=2, max_iter=20, seed=None):
    """
    Fit k-means on numeric columns

    Args:
        table (RemoteTable): training data
        features (array-like): numeric column names
        k (int): number of clusters
        max_iter (int): maximum iterations
        seed (int): random seed
    Returns:
        model (KMeansModel)
    """
    _check_table(table)
    features = list(features)
    if not features:
        raise ValueError("kmeans needs at least one feature column")
    estimator = KMeans(
        k=int(k), maxIter=int(max_iter), featuresCol=FEATURES_COL,
        predictionCol="prediction")
    if seed is not None:
        estimator.setSeed(seed)
    pipeline = Pipeline(stages=[
        VectorAssembler(inputCols=features, outputCol=FEATURES_COL),
        estimator
        ])
    logger.info("Fitting k-means with k=%d on %s", k, features)
    with _translate_errors(ModelingError, "fit k-means"):
        pipeline_model = pipeline.fit(table.frame)
    return KMeansModel(
        table.connection, pipeline_model,
        formula="~ {0}".format(" + ".join(features)), feature_names=features)
