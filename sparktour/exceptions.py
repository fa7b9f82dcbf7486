"""
Exception categories surfaced by sparktour
"""

__all__ = [
    "SparkTourError",
    "ClusterConnectionError",
    "DataError",
    "ModelingError",
    "WalkthroughError"
    ]

class SparkTourError(Exception):
    """ Base class for failures of operations run against the engine """
    pass

class ClusterConnectionError(SparkTourError):
    """ The cluster could not be reached or the connection is closed """
    pass

class DataError(SparkTourError):
    """ Ingestion or a table transformation was rejected by the engine """
    pass

class ModelingError(SparkTourError):
    """ A model could not be fitted, applied or evaluated """
    pass

class WalkthroughError(SparkTourError):
    """ A walkthrough step was run out of order or is unknown """
    pass
