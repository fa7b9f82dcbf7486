"""
Driving Spark from Python: a guided walkthrough
===============================================
sparktour is a Python module that walks through an end to end analysis
on Apache Spark with PySpark: connecting to a cluster, copying local and
remote data into the engine, wrangling it with lazily composed table
handles, pulling small results back into pandas for plotting with
matplotlib and fitting Spark ML models from R-style formulas.

All of the heavy lifting (query planning, distributed execution and
model fitting) happens inside Spark. The package wraps the engine's
handles in a small, immutable interface with explicit connection
lifetimes so that each step of the narrative can run on its own.
"""

__version__ = '0.1.0'

__all__ = ['engine', 'models', 'datasets', 'plotting', 'walkthrough', 'exceptions']
