"""
Constants for ChemistryKit.

This module contains non-configurable constants used throughout the application.
For configurable values, see config.yaml.
"""

# Project layout
DEFAULT_CONFIG_FILE = "config.yaml"
BEAKERS_DIR = "beakers"
FORMULAS_DIR = "formulas"
FORMULA_LIB_DIR = "lib"
BEAKER_PATTERN = "*_beaker.py"
BEAKER_SUFFIX = "_beaker"

# Tag used when neither beakers nor tags are given on the command line
DEFAULT_TAGS = ["depth:shallow"]

# Configuration defaults
DEFAULT_CONCURRENCY = 1
DEFAULT_LOG_PATH = "evidence"
DEFAULT_RESULTS_FILE = "results_junit.xml"
DEFAULT_LOG_FORMAT = "junit"
SUPPORTED_LOG_FORMATS = ["junit"]

# Browser sessions
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 4444
DEFAULT_BROWSER = "firefox"
SAUCELABS_HOST = "saucelabs"
SAUCELABS_URL = "https://ondemand.saucelabs.com/wd/hub"

# Environment variables exported to beakers and workers
BASE_URL_ENV = "BASE_URL"
WORKER_NUMBER_ENV = "CKIT_WORKER_NUMBER"
WORKER_COUNT_ENV = "CKIT_WORKER_COUNT"
DEBUG_ENV = "CKIT_DEBUG"

# pytest markers that never count as harness tags
BUILTIN_MARKERS = frozenset([
    "parametrize",
    "usefixtures",
    "skip",
    "skipif",
    "xfail",
    "filterwarnings",
    "tryfirst",
    "trylast",
])

# File operations
DEFAULT_ENCODING = "utf-8"
