"""Core exceptions for configuration handling.

Cache operations never raise for misses, expiry or eviction; these
exceptions cover the configuration layer only.
"""


class ConfigurationError(Exception):
    """Raised when configuration loading or parsing fails."""

    def __init__(self, message: str, config_path: str | None = None) -> None:
        """Initialize the configuration error.

        Args:
            message: Error description
            config_path: Path to the config file that caused the error

        """
        super().__init__(message)
        self.config_path = config_path
