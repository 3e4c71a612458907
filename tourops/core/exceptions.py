from typing import Any, Optional, Dict


class BaseError(Exception):
    """Base exception class for the application"""

    code = "ERROR"

    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(BaseError):
    """Exception raised when an entity is not found"""

    code = "NOT_FOUND"

    def __init__(self, entity: str, id: Any):
        super().__init__(
            message=f"{entity} with id {id} not found",
            status_code=404,
            details={"entity": entity, "id": str(id)}
        )


class ValidationError(BaseError):
    """Exception raised for validation errors"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            status_code=400,
            details=details
        )


class ConflictError(BaseError):
    """Exception raised for conflict errors"""

    code = "CONFLICT"

    def __init__(self, message: str, reason: Optional[str] = None, **context: Any):
        details = {"reason": reason} if reason else {}
        details.update(context)
        super().__init__(message=message, status_code=409, details=details)


class CapacityExceededError(BaseError):
    """Raised when requested seats exceed what a schedule has left"""

    code = "CAPACITY_EXCEEDED"

    def __init__(self, requested: int, available: int):
        super().__init__(
            message=f"Requested {requested} seats but only {available} available",
            status_code=409,
            details={"requested": requested, "available": available}
        )
        self.requested = requested
        self.available = available


class CountMismatchError(BaseError):
    """Raised when adult + child + senior does not equal the party size"""

    code = "COUNT_MISMATCH"

    def __init__(self, computed: int, required: int):
        super().__init__(
            message=f"Adults, children and seniors add up to {computed}, expected {required}",
            status_code=422,
            details={"sum": computed, "required": required}
        )
        self.computed = computed
        self.required = required
