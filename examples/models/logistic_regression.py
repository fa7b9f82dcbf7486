"""
=================================================
Logistic regression with a training / test split
=================================================

In this example we partition iris 80/20, fit a multinomial
logistic regression of species on all measurements, and score
the held out partition. String labels are indexed by the engine
and mapped back in the `predicted_label` column.
"""
print(__doc__)

from sparktour.engine import connect, load_sample
from sparktour.models import logistic_regression

with connect() as conn:
    iris = load_sample(conn, "iris")
    partitions = iris.random_split({"training": 0.8, "test": 0.2}, seed=1099)

    fit = logistic_regression(partitions["training"], "species ~ .")
    print(fit.summary())
    print(fit.evaluate(partitions["test"]))

    predictions = fit.predict(partitions["test"])
    print(
        predictions
        .count_by("species", "predicted_label")
        .arrange("species", "predicted_label")
        .collect()
    )
