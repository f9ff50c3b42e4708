from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the machine-readable identifier sent to API clients.
    """

    code = "DOMAIN_ERROR"

    def __init__(self, message: str = "", *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class AuthenticationError(DomainError):
    """Raised when credentials or tokens cannot be accepted."""

    code = "AUTHENTICATION_FAILED"


class InvalidCredentials(AuthenticationError):
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class AccountLocked(AuthenticationError):
    code = "ACCOUNT_LOCKED"

    def __init__(self, message: str = "Account is temporarily locked", *, locked_until=None):
        super().__init__(message)
        self.locked_until = locked_until


class TokenMissing(AuthenticationError):
    code = "TOKEN_MISSING"

    def __init__(self, message: str = "Access token required"):
        super().__init__(message)


class TokenExpired(AuthenticationError):
    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)


class TokenInvalid(AuthenticationError):
    code = "TOKEN_INVALID"

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class TokenRevoked(AuthenticationError):
    code = "TOKEN_REVOKED"

    def __init__(self, message: str = "Session is no longer active"):
        super().__init__(message)


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "FORBIDDEN"


class NotFoundError(DomainError):
    code = "NOT_FOUND"


class ConflictError(DomainError):
    """Raised on uniqueness or state conflicts. ``field`` names the offending column when known."""

    code = "CONFLICT"

    def __init__(self, message: str = "", *, field: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.field = field


class AlreadyClockedIn(ConflictError):
    code = "ALREADY_CLOCKED_IN"

    def __init__(self, message: str = "Already clocked in today"):
        super().__init__(message)


class NotClockedIn(ConflictError):
    code = "NOT_CLOCKED_IN"

    def __init__(self, message: str = "No open clock-in for today"):
        super().__init__(message)


class RateLimitError(DomainError):
    code = "RATE_LIMITED"

    def __init__(self, message: str = "Too many requests", *, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after
