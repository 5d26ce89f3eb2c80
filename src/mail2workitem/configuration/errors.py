"""Configuration error taxonomy."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Raised when the configuration cannot be used."""


class ConfigParseError(ConfigurationError):
    """Raised when the configuration document is structurally invalid."""


class ConfigValidationError(ConfigurationError):
    """Raised when a well-formed document is semantically incomplete."""


class ConfigArgumentError(ConfigurationError, ValueError):
    """Raised when a file-backed field has no path configured."""


class ConfigFileError(ConfigurationError, OSError):
    """Raised when a file referenced by the configuration cannot be read."""
