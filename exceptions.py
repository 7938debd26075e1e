"""
Custom exception hierarchy for ChemistryKit.

This module defines custom exceptions used throughout the application
for better error handling and debugging.
"""


class ChemistryKitError(Exception):
    """Base exception for all ChemistryKit errors."""
    pass


class ConfigurationError(ChemistryKitError):
    """Raised when there's an issue with configuration."""
    pass


class UnknownConfigKeyError(ConfigurationError):
    """Raised when the config file contains a key ChemistryKit does not know."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f'The config key: "{key}" is unknown!')


class BeakerNotFoundError(ChemistryKitError):
    """Raised when a beaker path does not exist or no beakers are found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No beakers found at '{path}'")


class BeakerCollectionError(ChemistryKitError):
    """Raised when beakers cannot be collected, e.g. one fails to import."""

    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"Collecting beakers failed (pytest exit code {exit_code})")


class DriverError(ChemistryKitError):
    """Raised when a browser session cannot be started."""
    pass


class UnsupportedBrowserError(DriverError):
    """Raised when the configured browser has no WebDriver."""

    def __init__(self, browser: str):
        self.browser = browser
        super().__init__(
            f"Browser '{browser}' is not supported. "
            "Use one of: firefox, chrome, edge, safari"
        )


class GeneratorError(ChemistryKitError):
    """Raised when a project, formula or beaker cannot be generated."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot generate '{path}': {reason}")


class OrchestrationError(ChemistryKitError):
    """Raised when parallel orchestration fails."""
    pass


class WorkerTimeoutError(OrchestrationError):
    """Raised when a worker process times out during orchestration."""

    def __init__(self, worker_number: int, timeout: int):
        self.worker_number = worker_number
        self.timeout = timeout
        super().__init__(f"Worker {worker_number} timed out after {timeout} seconds")
