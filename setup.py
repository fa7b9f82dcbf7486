"""
Run setup
"""

from setuptools import setup, find_packages
from sparktour import __version__

DISTNAME = "sparktour"
VERSION = __version__
DESCRIPTION = "A guided walkthrough of data analysis on Spark with PySpark"
with open("README.rst") as f:
    LONG_DESCRIPTION = f.read()
CLASSIFIERS = [
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.9",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Topic :: Scientific/Engineering"
    ]
AUTHOR = "sparktour developers"
LICENSE = "Apache 2.0"
MIN_PYTHON_VERSION = "3.9"
MIN_PANDAS_VERSION = "1.5.0"
MIN_SKLEARN_VERSION = "1.2.0"
MIN_PYARROW_VERSION = "11.0.0"
MIN_PYSPARK_VERSION = "3.4.0"
MIN_MATPLOTLIB_VERSION = "3.6.0"
MIN_PYTEST_VERSION = "7.0"
MIN_PYTESTSPARK_VERSION = "0.6.0"

install_requires = [
    "pyspark>={0}".format(MIN_PYSPARK_VERSION),
    "pandas>={0}".format(MIN_PANDAS_VERSION),
    "pyarrow>={0}".format(MIN_PYARROW_VERSION),
    "numpy",
    "scikit-learn>={0}".format(MIN_SKLEARN_VERSION),
    "matplotlib>={0}".format(MIN_MATPLOTLIB_VERSION)
]

tests_require = [
    "pytest>={0}".format(MIN_PYTEST_VERSION),
    "pytest-spark>={0}".format(MIN_PYTESTSPARK_VERSION)
]

def parse_description(description):
    """
    Strip figures and alt text from description
    """
    return "\n".join(
        [
        a for a in description.split("\n")
        if ("figure::" not in a) and (":alt:" not in a)
        ])

setup(name=DISTNAME,
      version=VERSION,
      description=DESCRIPTION,
      long_description=parse_description(LONG_DESCRIPTION),
      classifiers=CLASSIFIERS,
      author=AUTHOR,
      license=LICENSE,
      packages=find_packages(exclude=["examples", "examples.*"]),
      python_requires=">={0}".format(MIN_PYTHON_VERSION),
      install_requires=install_requires,
      tests_require=tests_require,
      extras_require=dict(tests=tests_require)
      )
