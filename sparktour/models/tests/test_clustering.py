"""
Test LDA topic modeling and k-means
"""

import sys
import pytest

try:
    import pyspark
except ImportError:
    pass

try:
    from sparktour.engine import ClusterConnection, copy_to
    from sparktour.models import lda, kmeans
    from sparktour.datasets import load_reviews, load_iris_frame
    from sparktour.exceptions import ModelingError
    _import_error = None
except Exception as e:
    _import_error = e

def test_import_clustering():
    assert _import_error == None

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_lda_topics(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    reviews = copy_to(conn, load_reviews())
    fit = lda(reviews, "text", k=3, max_iter=30, seed=42)

    assert fit.k == 3
    assert "the" not in fit.vocabulary
    assert "battery" in fit.vocabulary
    topics = fit.topics(n_terms=4)
    assert list(topics.columns) == ["topic", "rank", "term", "weight"]
    assert sorted(topics["topic"].unique()) == [0, 1, 2]
    assert len(topics) == 12
    assert set(topics["term"]) <= set(fit.vocabulary)

    predictions = fit.predict(reviews).collect()
    assert list(predictions.columns) == ["id", "text", "topic_distribution"]
    assert all(len(d) == 3 for d in predictions["topic_distribution"])

    scores = fit.evaluate(reviews)
    assert scores["log_likelihood"] < 0
    assert scores["log_perplexity"] > 0

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_lda_arguments(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    reviews = copy_to(conn, load_reviews())
    with pytest.raises(ModelingError):
        lda(reviews, "body")
    with pytest.raises(ValueError):
        lda(reviews, "text", k=1)
    fit = lda(reviews, "text", k=2, max_iter=5, seed=1)
    with pytest.raises(ValueError):
        fit.evaluate(reviews, metrics=["coherence"])

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_kmeans(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    iris = copy_to(conn, load_iris_frame())
    fit = kmeans(iris, ["petal_length", "petal_width"], k=3, seed=7)

    centers = fit.centers()
    assert list(centers.columns) == ["cluster", "petal_length", "petal_width"]
    assert len(centers) == 3
    assert fit.summary()["size"].sum() == 150

    clustered = fit.predict(iris).count_by("prediction").collect()
    assert len(clustered) == 3
    assert fit.evaluate(iris)["silhouette"] > 0.5

@pytest.mark.skipif("pyspark" not in sys.modules, reason="requires pyspark")
def test_lda_evaluate_other_connection(spark_session):
    conn = ClusterConnection.from_session(spark_session)
    reviews = copy_to(conn, load_reviews())
    fit = lda(reviews, "text", k=2, max_iter=5, seed=1)
    other = copy_to(ClusterConnection.from_session(spark_session), load_reviews())
    with pytest.raises(ModelingError):
        fit.evaluate(other)
