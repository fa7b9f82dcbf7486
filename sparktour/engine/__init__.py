"""
Connection, table and ingestion handles over a Spark session
"""

from .connection import ClusterConnection, connect
from .table import RemoteTable
from .ingest import copy_to, read_csv, load_sample

__all__ = [
    "ClusterConnection",
    "connect",
    "RemoteTable",
    "copy_to",
    "read_csv",
    "load_sample"
]
