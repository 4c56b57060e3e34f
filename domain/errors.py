from typing import Iterable, Optional


class FraudGuardError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FraudGuardError):
    """Required input missing or malformed before any model call."""
    status_code = 422

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])

    @classmethod
    def missing(cls, fields: Iterable[str]) -> "ValidationError":
        fields = list(fields)
        return cls(f"Missing required field(s): {', '.join(fields)}", fields)


class ModelBoundaryError(FraudGuardError):
    """Transport or provider failure raised by the model boundary."""
    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = status_code


class RateLimitError(FraudGuardError):
    status_code = 429

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class MalformedResponseError(FraudGuardError):
    status_code = 502


class NotFoundError(FraudGuardError):
    status_code = 404


class DuplicateEmailError(FraudGuardError):
    status_code = 409


class DuplicateUsernameError(FraudGuardError):
    status_code = 409


class AuthenticationError(FraudGuardError):
    status_code = 401


class PermissionDeniedError(FraudGuardError):
    status_code = 403
