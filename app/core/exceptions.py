"""
Typed failures raised by the engine services.

Every mutating service rolls its transaction back before one of these
leaves the service boundary, so callers never observe partial writes.
The API layer maps each class onto an HTTP status code.
"""
from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base class for all recoverable engine failures"""
    code = "ENGINE_ERROR"
    status_code = 400

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        payload = {"detail": self.message, "code": self.code}
        if self.context:
            payload["context"] = self.context
        return payload


class NotFoundError(EngineError):
    code = "NOT_FOUND"
    status_code = 404


class ValidationError(EngineError):
    code = "VALIDATION_ERROR"
    status_code = 400


class CapacityError(EngineError):
    """A quantity check against the instance material pool failed"""
    code = "CAPACITY_EXCEEDED"
    status_code = 400

    def __init__(self, message: str, limit: Optional[int] = None, attempted: Optional[int] = None, **context: Any):
        super().__init__(message, limit=limit, attempted=attempted, **context)
        self.limit = limit
        self.attempted = attempted


class ConflictError(EngineError):
    code = "CONFLICT"
    status_code = 409


class NotApplicableError(EngineError):
    """Process tracking was requested for a component that is not a Motor"""
    code = "NOT_APPLICABLE"
    status_code = 400
