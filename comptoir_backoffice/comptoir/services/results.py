# comptoir/services/results.py
"""
Result envelope and error taxonomy shared by every service operation.

Public operations never raise to their caller: `service_operation` turns
exceptions into a failed `ServiceResult` and logs them.
"""
import functools
import logging
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 400
    default_message = "Operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(ServiceError):
    status_code = 401
    default_message = "User not authenticated"


class NotFound(ServiceError):
    status_code = 404
    default_message = "Record not found"


class ValidationFailure(ServiceError):
    default_message = "Invalid data"

    def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.errors = errors or {}


class ServiceResult:
    __slots__ = ("ok", "data", "error", "status_code", "errors")

    def __init__(self, ok: bool, data: Any = None, error: str = "", status_code: int = 200, errors=None):
        self.ok = ok
        self.data = data
        self.error = error
        self.status_code = status_code
        self.errors = errors or {}

    @classmethod
    def success(cls, data: Any = None) -> "ServiceResult":
        return cls(True, data=data)

    @classmethod
    def failure(cls, error: str, status_code: int = 400, errors=None) -> "ServiceResult":
        return cls(False, error=error, status_code=status_code, errors=errors)

    def __bool__(self):
        return self.ok

    def __repr__(self):
        if self.ok:
            return f"<ServiceResult ok data={self.data!r}>"
        return f"<ServiceResult error={self.error!r} status={self.status_code}>"


def validation_failure_from(exc: ValidationError) -> ValidationFailure:
    if hasattr(exc, "error_dict"):
        errors = {field: [str(m) for m in msgs] for field, msgs in exc.message_dict.items()}
        message = "; ".join(f"{field}: {' '.join(msgs)}" for field, msgs in errors.items())
    else:
        errors = {}
        message = " ".join(str(m) for m in exc.messages)
    return ValidationFailure(message or ValidationFailure.default_message, errors=errors)


def require_user(user):
    if user is None or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated()
    return user


def service_operation(func):
    """Run `func` and wrap its return value (or the error it raised) in a ServiceResult."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            data = func(*args, **kwargs)
        except ValidationError as exc:
            failure = validation_failure_from(exc)
            logger.warning("%s rejected: %s", func.__name__, failure.message)
            return ServiceResult.failure(failure.message, failure.status_code, failure.errors)
        except ServiceError as exc:
            logger.warning("%s failed: %s", func.__name__, exc.message)
            return ServiceResult.failure(exc.message, exc.status_code, getattr(exc, "errors", None))
        except Exception as exc:
            logger.error("%s raised an unexpected error", func.__name__, exc_info=True)
            return ServiceResult.failure(str(exc) or exc.__class__.__name__, status_code=500)
        return ServiceResult.success(data)

    return wrapper
