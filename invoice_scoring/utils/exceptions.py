"""
Custom Exceptions Module.

This module defines the custom exceptions used throughout the invoice
scoring pipeline. Expected bad data (missing fields, implausible dates,
line items that do not add up) never raises; these exceptions are for
conditions the pipeline cannot work around.

Exception Hierarchy:
    InvoiceScoringError (base)
    ├── ConfigurationError
    ├── InputError
    │   └── InvalidInputFileError
    └── PostProcessingError
        └── UnsupportedCurrencyError
"""


class InvoiceScoringError(Exception):
    """
    Base exception for all invoice scoring errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(InvoiceScoringError):
    """Raised when the configuration file cannot be loaded."""

    def __init__(self, config_path: str, reason: str = None):
        message = f"Invalid configuration: {config_path}"
        details = {"config_path": config_path, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(InvoiceScoringError):
    """Base exception for input handling errors."""
    pass


class InvalidInputFileError(InputError):
    """
    Raised when an extraction result file cannot be read or decoded.

    Example:
        >>> raise InvalidInputFileError("raw.json", "Expecting value: line 1")
    """

    def __init__(self, filepath: str, reason: str = None):
        message = f"Unreadable extraction result file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# POST-PROCESSING ERRORS
# =============================================================================

class PostProcessingError(InvoiceScoringError):
    """Base exception for pipeline failures."""
    pass


class UnsupportedCurrencyError(PostProcessingError):
    """Raised when a currency value is neither a known symbol nor an ISO code."""

    def __init__(self, currency: str):
        message = f"Malformed currency code: '{currency}'"
        details = {"currency": currency}
        super().__init__(message, details)


__all__ = [
    'InvoiceScoringError',
    'ConfigurationError',
    'InputError',
    'InvalidInputFileError',
    'PostProcessingError',
    'UnsupportedCurrencyError',
]
