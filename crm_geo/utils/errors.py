"""
Error taxonomy for geocoding and routing
"""
import logging
from functools import wraps
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class GeoServiceError(Exception):
    """Base class for errors surfaced by the resolvers"""
    status_code = 500
    code = "unexpected_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(GeoServiceError):
    """Missing/empty address or non-finite coordinates"""
    status_code = 400
    code = "invalid_input"


class RateLimitedError(GeoServiceError):
    """Local per-IP window exceeded"""
    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str, retry_after_seconds: int):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class NotFoundError(GeoServiceError):
    """All providers answered but none returned a usable match"""
    status_code = 404
    code = "not_found"


class ProviderError(GeoServiceError):
    """At least one provider call failed and nothing usable was found"""
    status_code = 502
    code = "provider_error"


def best_effort(
    func: Optional[Callable] = None,
    default: Any = None,
    action: Optional[str] = None
) -> Callable:
    """
    Decorator for fire-and-forget operations: any exception is logged
    and ``default`` is returned instead.

    Usage:
        @best_effort
        def save(): ...

        @best_effort(default=[], action="load cache row")
        def load(): ...
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return f(*args, **kwargs)
            except Exception as e:
                logger.warning(f"Best-effort {action or f.__name__} failed: {e}")
                return default
        return wrapper

    if func is None:
        return decorator
    return decorator(func)
