class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class RecordNotFoundError(DomainError):
    """Raised when no attendance record exists for an (event, email) key."""


class DuplicateRegistrationError(DomainError):
    """Raised when a user is already registered for an event."""


class CapacityExceededError(DomainError):
    """Raised when an event has no spots left."""


class InvalidTransitionError(DomainError):
    """Raised when a record's status does not allow the requested change."""


class PersistenceError(Exception):
    """Raised by durable store adapters; never surfaced to business callers."""
