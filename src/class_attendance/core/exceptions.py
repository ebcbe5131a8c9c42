class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is malformed or missing. Never retried."""


class MalformedPayload(ValidationError):
    """Raised when a verification payload cannot be decoded."""


class StateConflict(DomainError):
    """Raised when an action is rejected by the current state (race or stale client)."""


class WindowAlreadyOpen(StateConflict):
    pass


class WindowClosed(StateConflict):
    pass


class TokenExpired(StateConflict):
    pass


class TokenMismatch(StateConflict):
    pass


class ProximityNotDetected(StateConflict):
    pass


class AlreadyDecided(StateConflict):
    pass


class DuplicateRequest(StateConflict):
    pass


class NotFound(DomainError):
    """Raised when a referenced entity does not exist."""


class UnknownSession(NotFound):
    pass


class UnknownStudent(NotFound):
    pass


class UnknownRequest(NotFound):
    pass


class AuthorizationError(DomainError):
    """Raised when a caller lacks permission for an action."""
