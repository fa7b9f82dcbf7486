"""
===================================
Read a CSV resource over HTTPS
===================================

In this example we read a CSV file published over HTTPS into the
engine, then count rows per day and compute the average tip rate.
Spark's readers cannot fetch HTTP resources, so the file is
downloaded on the driver and copied into the cluster; local and
cluster file paths are read by Spark directly.
"""
print(__doc__)

from sparktour.engine import connect, read_csv

TIPS_URL = "https://raw.githubusercontent.com/mwaskom/seaborn-data/master/tips.csv"

with connect() as conn:
    tips = read_csv(conn, TIPS_URL, name="tips")
    print("{0} rows, columns {1}".format(tips.count(), tips.columns))

    per_day = (
        tips
        .mutate(rate="tip / total_bill")
        .group_by("day")
        .summarise(visits=("count", "*"), rate=("mean", "rate"))
        .arrange("visits", ascending=False)
    )
    print(per_day.collect())
