"""Named outcomes for rejected event and registration operations."""

import enum


class ErrorKind(str, enum.Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    PAST_EVENT = "PAST_EVENT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    CONFLICT = "CONFLICT"
    STORAGE = "STORAGE"


class ServiceError(Exception):
    """Base class for every error the services raise on purpose."""

    kind: ErrorKind = ErrorKind.STORAGE
    default_message = "Internal storage error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Raised when input breaks a field rule (caller's fault, never retried)."""

    kind = ErrorKind.VALIDATION
    default_message = "Validation error"


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Event not found"


class PastEventError(ServiceError):
    kind = ErrorKind.PAST_EVENT
    default_message = "Cannot register for past events"


class CapacityExceededError(ServiceError):
    kind = ErrorKind.CAPACITY_EXCEEDED
    default_message = "Event is full"


class AlreadyRegisteredError(ServiceError):
    kind = ErrorKind.ALREADY_REGISTERED
    default_message = "User already registered for this event"


class RegistrationNotFoundError(ServiceError):
    kind = ErrorKind.REGISTRATION_NOT_FOUND
    default_message = "Registration not found"


class DuplicateEmailError(ServiceError):
    kind = ErrorKind.DUPLICATE_EMAIL
    default_message = "User with this email already exists"


class ConflictError(ServiceError):
    """Raised when storage contention outlasts the retry budget."""

    kind = ErrorKind.CONFLICT
    default_message = "Too much contention on this event, please try again."


class StorageError(ServiceError):
    """Opaque wrapper for unexpected persistence failures."""

    kind = ErrorKind.STORAGE
