"""
==================================
Plot aggregated results locally
==================================

In this example we aggregate on the cluster, materialize the
small results and plot them with matplotlib. Plotting functions
only accept local pandas DataFrames; large tables should be
aggregated or sampled before calling `collect`.
"""
print(__doc__)

from sparktour import plotting
from sparktour.engine import connect, load_sample

with connect() as conn:
    mtcars = load_sample(conn, "mtcars")
    by_gear = (
        mtcars
        .group_by("gear")
        .summarise(mpg=("mean", "mpg"))
        .arrange("gear")
        .collect()
    )
    points = mtcars.select("wt", "mpg", "cyl").collect()

ax = plotting.bar(by_gear, "gear", "mpg", title="Mean mpg by gears")
plotting.save(ax, "figures/mpg_by_gear.png")

ax = plotting.scatter(points, "wt", "mpg", color="cyl", title="Weight vs mpg")
plotting.save(ax, "figures/wt_vs_mpg.png")
print("Figures written to ./figures")
