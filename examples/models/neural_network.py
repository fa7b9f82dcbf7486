"""
=======================================
A small feedforward classifier
=======================================

In this example we fit a multilayer perceptron on iris with two
hidden layers of 5 and 4 units. The input layer size comes from
the formula's features and the output layer from the number of
species, so only the hidden layers are specified.
"""
print(__doc__)

from sparktour.engine import connect, load_sample
from sparktour.models import multilayer_perceptron

with connect() as conn:
    iris = load_sample(conn, "iris")
    partitions = iris.random_split({"training": 0.8, "test": 0.2}, seed=1099)

    fit = multilayer_perceptron(
        partitions["training"], "species ~ .",
        hidden_layers=(5, 4), max_iter=200, seed=1234)
    print(fit.summary())
    print(fit.evaluate(partitions["test"], metrics=["accuracy", "f1"]))
