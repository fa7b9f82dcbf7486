"""
=================================
Generalized linear models
=================================

In this example we fit two GLMs on mtcars: a binomial model of
manual transmission (am) on weight and horsepower, and a poisson
model of the number of carburetors on horsepower with an explicit
log link. Summaries include standard errors and p values, and the
deviance based fit statistics are reported separately.
"""
print(__doc__)

from sparktour.engine import connect, load_sample
from sparktour.models import generalized_linear_regression

with connect() as conn:
    mtcars = load_sample(conn, "mtcars")

    binomial = generalized_linear_regression(
        mtcars, "am ~ wt + hp", family="binomial")
    print(binomial.summary())
    print(binomial.metrics())

    poisson = generalized_linear_regression(
        mtcars, "carb ~ hp", family="poisson", link="log")
    print(poisson.summary())
    print(poisson.evaluate(mtcars, metrics=["rmse", "mae"]))
