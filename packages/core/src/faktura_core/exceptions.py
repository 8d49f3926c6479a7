"""Custom exceptions for faktura-core.

The metric functions themselves never raise on sparse or malformed invoice
data; missing dates and amounts are tolerated and excluded where needed.
Exceptions are reserved for problems the caller has to fix, such as an
invalid tax-table configuration.

Example:
    try:
        tables = load_tax_tables("tax_tables.json")
    except ConfigurationError as e:
        logger.error("tax_tables_invalid", error=str(e), **e.details)
        raise
"""

from typing import Any, Optional


class FakturaError(Exception):
    """Base exception for all faktura-core errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class ConfigurationError(FakturaError):
    """Error raised when configuration is invalid or missing.

    Raised for unreadable tax-table override files, malformed table entries
    and bracket thresholds that are not strictly ascending.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
        actual: The actual value found (if any).

    Example:
        >>> raise ConfigurationError(
        ...     "Tax table thresholds must be ascending",
        ...     config_key="progression_end",
        ...     expected="> basic_allowance",
        ...     actual=10000,
        ... )
        ConfigurationError: Tax table thresholds must be ascending
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Human-readable error description.
            config_key: The name of the configuration key that is problematic.
            expected: Description of what value was expected.
            actual: The actual value found.
            details: Optional dictionary with additional context.
            recoverable: Whether the error can be fixed at runtime.
                Defaults to False since configuration errors require
                correcting the settings or the override file.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected
        self.actual = actual

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected
        if actual is not None:
            self.details["actual"] = actual


__all__ = [
    "FakturaError",
    "ConfigurationError",
]
