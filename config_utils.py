import yaml
import threading
import copy
from typing import Dict, Any, Optional, List
from pathlib import Path

from constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_CONCURRENCY,
    DEFAULT_LOG_PATH,
    DEFAULT_RESULTS_FILE,
    DEFAULT_LOG_FORMAT,
    SUPPORTED_LOG_FORMATS,
)
from exceptions import ConfigurationError, UnknownConfigKeyError

# Thread-safe configuration cache
_config_cache: Dict[str, Dict[str, Any]] = {}
_cache_lock = threading.Lock()

# Numeric bounds for configuration values
NUMERIC_BOUNDS = {
    'concurrency': (1, 64),
    'worker_timeout': (1, 86400),
}

CONFIG_KEYS = ['base_url', 'concurrency', 'log', 'selenium_connect', 'worker_timeout']
LOG_KEYS = ['path', 'results_file', 'format']


class LogSettings:
    """Where and how beaker results are written"""

    def __init__(self, path: str = DEFAULT_LOG_PATH, results_file: str = DEFAULT_RESULTS_FILE,
                 format: str = DEFAULT_LOG_FORMAT):
        self.path = path
        self.results_file = results_file
        self.format = format

    def __repr__(self):
        return (f"LogSettings(path={self.path!r}, results_file={self.results_file!r}, "
                f"format={self.format!r})")


class Configuration:
    """Harness configuration loaded from config.yaml.

    Attributes:
        base_url (str): Root URL of the application under test
        concurrency (int): Number of worker processes for a brew
        log (LogSettings): Results file settings
        selenium_connect (dict): Browser session settings passed to DriverFactory
        worker_timeout (int): Optional per-worker timeout in seconds
    """

    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        self.base_url = None
        self.concurrency = DEFAULT_CONCURRENCY
        self.log = LogSettings()
        self.selenium_connect: Dict[str, Any] = {}
        self.worker_timeout = None

        for key, value in (settings or {}).items():
            if key not in CONFIG_KEYS:
                raise UnknownConfigKeyError(key)
            if key == 'log':
                self._set_log(value)
            elif key == 'selenium_connect':
                self.selenium_connect = dict(value or {})
            else:
                setattr(self, key, value)

    def _set_log(self, log_settings: Optional[Dict[str, Any]]):
        for key, value in (log_settings or {}).items():
            if key not in LOG_KEYS:
                raise UnknownConfigKeyError(f"log.{key}")
            setattr(self.log, key, value)

    def results_path(self, root) -> Path:
        """Absolute path of the results file under the given project root"""
        return Path(root) / self.log.path / self.log.results_file

    def log_dir(self, root) -> Path:
        return Path(root) / self.log.path


def load_config(config_path: str = DEFAULT_CONFIG_FILE) -> Configuration:
    """Load and validate a configuration file with caching.

    Parameters
    ----------
    config_path : str
        Path to the YAML file (default: "config.yaml")

    Returns
    -------
    Configuration
        A fresh Configuration; callers may mutate it freely

    Raises
    ------
    ConfigurationError
        If the file is missing, is not a mapping, or fails validation
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    config_path_str = str(Path(config_path).resolve())

    with _cache_lock:
        if config_path_str in _config_cache:
            return Configuration(copy.deepcopy(_config_cache[config_path_str]))

    try:
        with open(config_path, 'r') as f:
            settings = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {config_path} is not valid YAML: {e}")

    if settings is None:
        settings = {}
    if not isinstance(settings, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    # Validate before caching
    validate_config(settings)

    with _cache_lock:
        _config_cache[config_path_str] = settings

    return Configuration(copy.deepcopy(settings))


def validate_numeric_bounds(settings: Dict[str, Any], path: str = "") -> List[str]:
    """Validate numeric configuration values are within acceptable bounds

    Recursively checks all numeric values in the configuration against
    defined bounds in NUMERIC_BOUNDS.

    Returns
    -------
    List[str]
        List of error messages for out-of-bounds values
    """
    errors = []

    for key, value in settings.items():
        current_path = f"{path}.{key}" if path else key

        if isinstance(value, dict):
            errors.extend(validate_numeric_bounds(value, current_path))
        elif key in NUMERIC_BOUNDS and value is not None:
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{current_path}: {value!r} is not an integer")
                continue
            min_val, max_val = NUMERIC_BOUNDS[key]
            if not min_val <= value <= max_val:
                errors.append(
                    f"{current_path}: {value} is outside bounds [{min_val}, {max_val}]"
                )

    return errors


def validate_config(settings: Dict[str, Any]) -> bool:
    """Validate configuration structure and known fields"""
    for key in settings:
        if key not in CONFIG_KEYS:
            raise UnknownConfigKeyError(key)

    log_settings = settings.get('log') or {}
    if not isinstance(log_settings, dict):
        raise ConfigurationError("'log' must be a mapping")
    for key in log_settings:
        if key not in LOG_KEYS:
            raise UnknownConfigKeyError(f"log.{key}")

    log_format = str(log_settings.get('format', DEFAULT_LOG_FORMAT)).lower()
    if log_format not in SUPPORTED_LOG_FORMATS:
        raise ConfigurationError(
            f"Log format '{log_settings['format']}' is not supported. "
            f"Use one of: {', '.join(SUPPORTED_LOG_FORMATS)}"
        )

    if not isinstance(settings.get('selenium_connect') or {}, dict):
        raise ConfigurationError("'selenium_connect' must be a mapping")

    # selenium_connect is passed through untouched; only check our own keys
    bound_errors = validate_numeric_bounds(
        {k: v for k, v in settings.items() if k != 'selenium_connect'}
    )
    if bound_errors:
        raise ConfigurationError("Configuration bounds errors:\n" + "\n".join(bound_errors))

    return True


def override_configs(options: Dict[str, Any], config: Configuration) -> Configuration:
    """Replace config values with run time flags where given"""
    if options.get('results_file'):
        config.log.results_file = options['results_file']
    return config


def clear_config_cache():
    """Clear the configuration cache (useful for testing)"""
    with _cache_lock:
        _config_cache.clear()
