"""
Result values returned across the public service boundary.

Every public service operation is wrapped with ``service_operation`` so callers
receive an ``OperationResult`` instead of an exception. Routes convert a failed
result back into an ``HTTPException`` with ``unwrap``.
"""
import functools
import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

from fastapi import HTTPException
from pydantic import BaseModel

from app.core.errors import AppError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.PERMISSION: 403,
    ErrorKind.REMOTE: 502,
    ErrorKind.PARTIAL_FAILURE: 502,
    ErrorKind.CANCELED: 400,
}


class ErrorInfo(BaseModel):
    kind: ErrorKind
    message: str
    details: dict = {}


class OperationResult(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None
    warnings: List[str] = []

    @classmethod
    def ok(cls, data: Any = None, warnings: Optional[List[str]] = None) -> "OperationResult":
        return cls(success=True, data=data, warnings=warnings or [])

    @classmethod
    def fail(cls, error: AppError) -> "OperationResult":
        return cls(
            success=False,
            error=ErrorInfo(kind=error.kind, message=error.message, details=error.details),
        )

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None


def service_operation(name: str) -> Callable:
    """Catch errors at the operation boundary and return them as a failed result.

    A wrapped function may return a plain value, a ``(value, warnings)`` tuple
    or an ``OperationResult``.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> OperationResult:
            try:
                value = func(*args, **kwargs)
            except AppError as e:
                if e.kind in (ErrorKind.REMOTE, ErrorKind.PARTIAL_FAILURE):
                    logger.error(f"{name} failed: {e.message}")
                else:
                    logger.info(f"{name} rejected ({e.kind.value}): {e.message}")
                return OperationResult.fail(e)
            except Exception as e:
                logger.exception(f"Unexpected error during {name}: {e}")
                return OperationResult(
                    success=False,
                    error=ErrorInfo(kind=ErrorKind.REMOTE, message=getattr(e, "message", None) or str(e)),
                )
            if isinstance(value, OperationResult):
                return value
            if isinstance(value, tuple):
                data, warnings = value
                return OperationResult.ok(data, warnings)
            return OperationResult.ok(value)
        return wrapper
    return decorator


def unwrap(result: OperationResult):
    """Return the result data or raise the matching HTTPException"""
    if result.success:
        return result.data
    raise HTTPException(
        status_code=STATUS_BY_KIND.get(result.error.kind, 500),
        detail=result.error.model_dump(mode="json"),
    )
