"""Domain errors raised by the services and mapped to HTTP responses in main.py."""
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_FOUND = "NOT_FOUND"
    INACTIVE_CUSTOMER = "INACTIVE_CUSTOMER"
    EVENT_NOT_CURRENT = "EVENT_NOT_CURRENT"
    INCOMPATIBLE_TICKET_TYPE = "INCOMPATIBLE_TICKET_TYPE"
    NO_AVAILABILITY = "NO_AVAILABILITY"
    NO_FREE_PASS_AVAILABLE = "NO_FREE_PASS_AVAILABLE"
    INVALID_STATE = "INVALID_STATE"
    PRICE_UNAVAILABLE = "PRICE_UNAVAILABLE"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFound(DomainError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str, field: str, value: Any) -> None:
        super().__init__(
            f"{resource} not found with {field}: {value}",
            details={"resource": resource, "field": field, "value": str(value)},
        )
        self.resource = resource


class InactiveCustomer(DomainError):
    code = ErrorCode.INACTIVE_CUSTOMER

    def __init__(self, customer_id: str) -> None:
        super().__init__("Customer is inactive", details={"customer_id": customer_id})


class EventNotCurrent(DomainError):
    code = ErrorCode.EVENT_NOT_CURRENT

    def __init__(self, event_id: str, message: str = "Event is not current") -> None:
        super().__init__(message, details={"event_id": event_id})


class IncompatibleTicketType(DomainError):
    code = ErrorCode.INCOMPATIBLE_TICKET_TYPE


class NoAvailability(DomainError):
    code = ErrorCode.NO_AVAILABILITY

    def __init__(self, event_id: str, ticket_type: str) -> None:
        super().__init__(
            f"No availability left for ticket type {ticket_type}",
            details={"event_id": event_id, "ticket_type": ticket_type},
        )


class NoFreePassAvailable(DomainError):
    code = ErrorCode.NO_FREE_PASS_AVAILABLE

    def __init__(self, customer_id: str) -> None:
        super().__init__("Customer has no free passes available", details={"customer_id": customer_id})


class InvalidState(DomainError):
    code = ErrorCode.INVALID_STATE


class PriceUnavailable(DomainError):
    code = ErrorCode.PRICE_UNAVAILABLE

    def __init__(self, event_id: str, ticket_type: str) -> None:
        super().__init__(
            f"No price configured for ticket type {ticket_type}",
            details={"event_id": event_id, "ticket_type": ticket_type},
        )


class DuplicateEmail(DomainError):
    """Also raised for a duplicate national document number."""

    code = ErrorCode.DUPLICATE_EMAIL

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"A customer with this {field} already exists: {value}", details={field: value})


class ValidationError(DomainError):
    """Aggregated field-level errors: ``details`` maps field name to message."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("Validation failed", details=dict(errors))
        self.errors = dict(errors)


class ConcurrencyConflict(DomainError):
    """Transient: the caller may retry the whole request."""

    code = ErrorCode.CONCURRENCY_CONFLICT

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__(
            f"Concurrent modification detected while running {operation}; retry the request",
            details={"operation": operation, "attempts": attempts},
        )
