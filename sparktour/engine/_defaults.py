"""
Default Spark configuration profiles and environment
overrides used when opening a cluster connection.
"""

import os

DEFAULT_MASTER = "local[*]"
DEFAULT_APP_NAME = "sparktour"
DEFAULT_LOG_LEVEL = "WARN"

MASTER_ENV = "SPARKTOUR_MASTER"
APP_NAME_ENV = "SPARKTOUR_APP_NAME"
LOG_LEVEL_ENV = "SPARKTOUR_LOG_LEVEL"

_LOG_LEVELS = ("ALL", "DEBUG", "ERROR", "FATAL", "INFO", "OFF", "TRACE", "WARN")

_default_configs = {
    "local": {
        "spark.sql.shuffle.partitions": "4",
        "spark.ui.showConsoleProgress": "false",
        "spark.sql.execution.arrow.pyspark.enabled": "true"
    },
    "small": {
        "spark.sql.shuffle.partitions": "16",
        "spark.driver.memory": "2g",
        "spark.sql.adaptive.enabled": "true",
        "spark.sql.execution.arrow.pyspark.enabled": "true"
    },
    "medium": {
        "spark.sql.shuffle.partitions": "64",
        "spark.driver.memory": "4g",
        "spark.executor.memory": "4g",
        "spark.sql.adaptive.enabled": "true",
        "spark.serializer": "org.apache.spark.serializer.KryoSerializer",
        "spark.sql.execution.arrow.pyspark.enabled": "true"
    }
}

def profiles():
    """ Names of the available configuration profiles """
    return sorted(_default_configs)

def resolve_config(profile="local", config=None):
    """
    Merge a named profile with user supplied Spark settings.

    Args:
        profile (str): name of a profile in `_default_configs`
        config (dict): extra Spark settings, applied last
    Returns:
        conf (dict)
    """
    if profile not in _default_configs:
        raise ValueError(
            "Unknown profile: {0!r}; expected one of {1}".format(
                profile, profiles()))
    conf = dict(_default_configs[profile])
    if config:
        conf.update({str(k): str(v) for k, v in config.items()})
    return conf

def resolve_setting(value, env_var, default):
    """ Explicit value, then environment variable, then default """
    if value is not None:
        return value
    return os.environ.get(env_var) or default

def resolve_log_level(log_level=None):
    """ Validate the JVM log level handed to `setLogLevel` """
    level = resolve_setting(log_level, LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    if level not in _LOG_LEVELS:
        raise ValueError("Unknown log level: {0!r}".format(level))
    return level
