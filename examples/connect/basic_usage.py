"""
====================================
Connect to Spark and release cleanly
====================================

In this example we open a connection to a local Spark cluster,
look at the engine's web UI address, copy a small local dataset
into the engine and release the connection again.

The connection is used as a context manager, so it is released
even when a step in the block fails. Any table handle created
through the connection refuses to run once it has been released.

Here is a sample output run:

Spark 3.5.1 on local[*]
Web UI: http://192.168.1.20:4040
mtcars has 32 rows on the cluster
After disconnect: Connection to 'local[*]' has been closed
"""
print(__doc__)

from sparktour.engine import connect, load_sample
from sparktour.exceptions import ClusterConnectionError

with connect(master="local[*]", profile="local") as conn:
    print("Spark {0} on {1}".format(conn.version, conn.master))
    print("Web UI: {0}".format(conn.web_ui_url))
    mtcars = load_sample(conn, "mtcars")
    print("mtcars has {0} rows on the cluster".format(mtcars.count()))

try:
    mtcars.count()
except ClusterConnectionError as exc:
    print("After disconnect: {0}".format(exc))
