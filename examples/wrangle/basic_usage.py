"""
==============================================
Filter, group and summarise on the cluster
==============================================

In this example we compose a query over mtcars: keep the more
powerful cars, derive fuel economy in kilometres per litre,
and summarise per number of cylinders. Nothing runs on the
cluster until `collect` materializes the (small) result as a
pandas DataFrame. The same summary is also written in SQL
against the registered view.

Here is a sample output run:

   cyl        mpg       kpl   n
0    4  25.900000  11.011365   2
1    6  19.742857   8.393557   7
2    8  15.100000   6.419674  14
"""
print(__doc__)

from sparktour.engine import connect, load_sample

with connect() as conn:
    mtcars = load_sample(conn, "mtcars")

    by_cyl = (
        mtcars
        .filter("hp > 100")
        .mutate(kpl="mpg * 0.425144")
        .group_by("cyl")
        .summarise(mpg=("mean", "mpg"), kpl=("mean", "kpl"), n=("count", "*"))
        .arrange("cyl")
    )
    # the plan is composed but not yet executed
    print(by_cyl.explain(extended=False))
    print(by_cyl.collect())

    same = conn.sql(
        "SELECT cyl, AVG(mpg) AS mpg, COUNT(*) AS n FROM mtcars "
        "WHERE hp > 100 GROUP BY cyl ORDER BY cyl"
    )
    print(same.collect())

    print(mtcars.describe("mpg", "hp", "wt"))
