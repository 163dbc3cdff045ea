"""
Error taxonomy shared by every service.

Services raise these internally; the operation boundary in
``app.core.results`` turns them into failed results.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    REMOTE = "remote"
    PERMISSION = "permission"
    PARTIAL_FAILURE = "partial_failure"
    CANCELED = "canceled"


class AppError(Exception):
    """Base exception for all service errors"""

    kind: ErrorKind = ErrorKind.REMOTE

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {"kind": self.kind.value, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(AppError):
    """Missing or empty required field; raised before any remote call"""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, {"field": field} if field else None)


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class InvalidJoinCode(NotFoundError):
    def __init__(self, code: str):
        self.code = code
        super().__init__("Invalid join code", {"join_code": code})


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class AlreadyMember(ConflictError):
    def __init__(self, group_id: str, user_id: str):
        super().__init__(
            "You are already a member of this group",
            {"group_id": group_id, "user_id": user_id},
        )


class CodeGenerationExhausted(ConflictError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Failed to generate unique join code after {attempts} attempts",
            {"attempts": attempts},
        )


class UploadInProgress(ConflictError):
    def __init__(self):
        super().__init__("An upload is already in progress")


class RemoteError(AppError):
    """Identity, persistence or object-storage call failed; message passed through"""

    kind = ErrorKind.REMOTE


class PermissionDeniedError(AppError):
    kind = ErrorKind.PERMISSION


class PartialFailureError(AppError):
    """Part of a multi-step operation took effect and could not be rolled back"""

    kind = ErrorKind.PARTIAL_FAILURE


class Canceled(AppError):
    """Expected outcome when the user aborts; not an error condition"""

    kind = ErrorKind.CANCELED

    def __init__(self, message: str = "Photo capture was canceled"):
        super().__init__(message)
