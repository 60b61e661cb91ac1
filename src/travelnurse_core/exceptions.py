"""Custom exceptions for the TravelNurse tax engine.

This module provides a hierarchy of exception classes for consistent error
handling across the calculation engine. All exceptions inherit from
TravelNurseError, making it easy to catch all engine-specific errors.

Numeric input problems are not errors here: negative incomes, hours or
payments are clamped to zero by the models. Exceptions are reserved for
programmer errors (regenerating a paid schedule, editing an unknown
checklist item) and for configuration that cannot be satisfied.

Example:
    try:
        scheduler.generate(2025, obligation)
    except ScheduleConflictError as e:
        payments = scheduler.get_or_create(2025, obligation)
    except TravelNurseError as e:
        logger.error("scheduling_failed", error=str(e))
"""

from typing import Any, Optional


class TravelNurseError(Exception):
    """Base exception for all TravelNurse engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.

    Example:
        >>> raise TravelNurseError("Something went wrong", details={"year": 2025})
        TravelNurseError: Something went wrong
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize TravelNurseError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context about the error.
            recoverable: Whether the error is potentially recoverable through
                retry or alternative approaches. Defaults to False.
        """
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


class ValidationError(TravelNurseError):
    """Error raised when a request refers to data that does not exist or
    violates a business rule.

    Attributes:
        field: The field that failed validation.
        value: The invalid value.
        constraint: The validation constraint that was violated.

    Example:
        >>> raise ValidationError(
        ...     "Unknown checklist item",
        ...     field="item_id",
        ...     value="passport",
        ...     constraint="Must be one of the tax home checklist ids",
        ... )
        ValidationError: Unknown checklist item
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Human-readable error description.
            field: The name of the field that failed validation.
            value: The invalid value.
            constraint: Description of the validation rule violated.
            details: Optional dictionary with additional context.
            recoverable: Whether the error can be fixed by correcting the
                input. Defaults to True.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint


class ConfigurationError(TravelNurseError):
    """Error raised when configuration or reference tables cannot satisfy
    a request.

    Raised, for example, when no federal bracket table exists for the
    requested tax year. The tax planner treats this as "progressive
    calculator unavailable" and falls back to the flat-rate estimate.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
        actual: The actual value found (if any).
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
                Defaults to False.
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


class ScheduleConflictError(TravelNurseError):
    """Error raised when a quarterly schedule would overwrite existing records.

    Quarterly payment records carry manually recorded payment history, so a
    tax year that already has records can never be regenerated.

    Attributes:
        tax_year: The tax year whose records already exist.
        existing_count: How many records were found.
        paid_count: How many of those records have money recorded.
    """

    def __init__(
        self,
        message: str,
        *,
        tax_year: int,
        existing_count: int = 0,
        paid_count: int = 0,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize ScheduleConflictError.

        Args:
            message: Human-readable error description.
            tax_year: The tax year that already has payment records.
            existing_count: Number of records already stored for the year.
            paid_count: Number of those records with a recorded payment.
            details: Optional dictionary with additional context.
        """
        super().__init__(message, details=details, recoverable=False)
        self.tax_year = tax_year
        self.existing_count = existing_count
        self.paid_count = paid_count

        self.details["tax_year"] = tax_year
        self.details["existing_count"] = existing_count
        self.details["paid_count"] = paid_count


class ServiceUnavailableError(TravelNurseError):
    """Error raised when a collaborator needed for an operation is missing.

    Attributes:
        service: Name of the missing collaborator.
        operation: The operation that needed it.
    """

    def __init__(
        self,
        message: str,
        *,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        """Initialize ServiceUnavailableError.

        Args:
            message: Human-readable error description.
            service: Identifier of the collaborator that is not configured.
            operation: The operation being attempted.
            details: Optional dictionary with additional context.
            recoverable: Whether the operation can succeed once the
                collaborator is supplied. Defaults to True.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.service = service
        self.operation = operation

        if service:
            self.details["service"] = service
        if operation:
            self.details["operation"] = operation


__all__ = [
    "TravelNurseError",
    "ValidationError",
    "ConfigurationError",
    "ScheduleConflictError",
    "ServiceUnavailableError",
]
