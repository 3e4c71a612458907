from .base import BaseRepository, BaseService
from .exceptions import (
    BaseError,
    NotFoundError,
    ValidationError,
    ConflictError,
    CapacityExceededError,
    CountMismatchError,
)
from .config import Settings, get_settings, parse_timezone

__all__ = [
    # Base classes
    "BaseRepository",
    "BaseService",

    # Exceptions
    "BaseError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "CapacityExceededError",
    "CountMismatchError",

    # Config
    "Settings",
    "get_settings",
    "parse_timezone",
]
