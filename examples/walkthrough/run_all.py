"""
===========================
The complete walkthrough
===========================

In this example we run every step of the walkthrough in order:
connect, ingest, wrangle, materialize, visualize, split, the five
models and disconnect. Figures are written to ./figures. The
connection is released even if a step fails.

Single steps can be re-run once the steps they depend on have run:

>>> tour = default_walkthrough()
>>> tour.run_step("connect")
>>> tour.run_step("ingest")
>>> tour.run_step("linear_regression")
>>> tour.close()
"""
print(__doc__)

import logging

from sparktour.walkthrough import default_walkthrough

logging.basicConfig(level=logging.INFO)

tour = default_walkthrough(output_dir="figures")
tour.run()
