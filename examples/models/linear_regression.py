"""
=========================================
Linear regression from an R style formula
=========================================

In this example we fit mpg ~ wt + cyl on mtcars with Spark ML.
The formula is handed to Spark's RFormula, the model is fitted
on the cluster and only the coefficient table comes back.

Here is a sample output run:

          term   estimate  std_error    t_value       p_value
0  (Intercept)  39.686261   1.714984  23.140893  0.000000e+00
1           wt  -3.190972   0.756886  -4.215953  2.220269e-04
2          cyl  -1.507795   0.414697  -3.635904  1.064282e-03
"""
print(__doc__)

from sparktour import plotting
from sparktour.engine import connect, load_sample
from sparktour.models import linear_regression

with connect() as conn:
    mtcars = load_sample(conn, "mtcars")
    fit = linear_regression(mtcars, "mpg ~ wt + cyl")
    print(fit.summary())
    print(fit.metrics())

    predictions = fit.predict(mtcars).select("model", "mpg", "prediction").collect()

ax = plotting.residuals(predictions, "mpg", title="mpg ~ wt + cyl")
plotting.save(ax, "figures/lm_residuals.png")
