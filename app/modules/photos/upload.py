"""
Upload orchestration: capture bytes, store them, record the metadata row.

One attempt walks a strictly sequential state machine:

    idle -> permission_requested -> capturing -> (canceled | captured)
         -> uploading -> (upload_failed | uploaded)
         -> recording_metadata -> (metadata_failed | complete)

A denied permission ends in permission_denied before capture starts.
When the metadata insert fails after the bytes were stored, the uploaded
object is deleted again; if that delete fails too the attempt ends as a
partial failure naming the orphaned key.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Protocol

from app.core.errors import (
    AppError, Canceled, PartialFailureError, PermissionDeniedError,
    RemoteError, UploadInProgress, ValidationError,
)
from app.core.results import OperationResult, service_operation
from app.modules.photos.s3_storage import S3Storage, build_photo_key, safe_file_name
from app.modules.photos.schemas import PhotoResponse
from app.modules.photos.service import PhotoService

logger = logging.getLogger(__name__)


class UploadState(str, Enum):
    IDLE = "idle"
    PERMISSION_REQUESTED = "permission_requested"
    PERMISSION_DENIED = "permission_denied"
    CAPTURING = "capturing"
    CANCELED = "canceled"
    CAPTURED = "captured"
    UPLOADING = "uploading"
    UPLOAD_FAILED = "upload_failed"
    UPLOADED = "uploaded"
    RECORDING_METADATA = "recording_metadata"
    METADATA_FAILED = "metadata_failed"
    COMPLETE = "complete"


@dataclass
class CapturedPhoto:
    content: bytes
    file_name: Optional[str] = None
    content_type: str = "image/jpeg"


class CaptureSource(Protocol):
    def request_permission(self) -> bool:
        ...

    def capture(self) -> Optional[CapturedPhoto]:
        """Return the captured photo, or None if the user canceled"""
        ...


class UploadedFileCapture:
    """Capture source backed by bytes the client already captured and sent"""

    def __init__(self, content: bytes, file_name: Optional[str] = None, content_type: Optional[str] = None):
        self.content = content
        self.file_name = file_name
        self.content_type = content_type or "image/jpeg"

    def request_permission(self) -> bool:
        return True

    def capture(self) -> Optional[CapturedPhoto]:
        if not self.content:
            return None
        return CapturedPhoto(self.content, self.file_name, self.content_type)


def default_file_name(now: datetime) -> str:
    return f"photo_{int(now.timestamp() * 1000)}.jpg"


class UploadOrchestrator:
    def __init__(self, storage: S3Storage, photo_service: PhotoService):
        self.storage = storage
        self.photo_service = photo_service
        self.state = UploadState.IDLE
        self.history: List[UploadState] = [UploadState.IDLE]
        self._busy = False
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._busy

    def _transition(self, state: UploadState) -> None:
        logger.debug(f"Upload state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def take_and_upload(self, group_id: str, user_id: str, source: CaptureSource) -> OperationResult:
        with self._lock:
            if self._busy:
                return OperationResult.fail(UploadInProgress())
            self._busy = True
        try:
            self.state = UploadState.IDLE
            self.history = [UploadState.IDLE]
            return self._run(group_id, user_id, source)
        finally:
            self._busy = False

    @service_operation("upload photo")
    def _run(self, group_id: str, user_id: str, source: CaptureSource) -> PhotoResponse:
        if not group_id or not user_id:
            raise ValidationError("Group ID and user ID are required")

        self._transition(UploadState.PERMISSION_REQUESTED)
        if not source.request_permission():
            self._transition(UploadState.PERMISSION_DENIED)
            raise PermissionDeniedError("Permission to access camera is required!")

        self._transition(UploadState.CAPTURING)
        captured = source.capture()
        if captured is None:
            self._transition(UploadState.CANCELED)
            raise Canceled()
        self._transition(UploadState.CAPTURED)

        now = datetime.now(timezone.utc)
        key = build_photo_key(safe_file_name(captured.file_name) or default_file_name(now), now)

        self._transition(UploadState.UPLOADING)
        try:
            self.storage.upload_file(captured.content, key, captured.content_type)
        except Exception as e:
            self._transition(UploadState.UPLOAD_FAILED)
            raise RemoteError(str(e), {"storage_key": key})
        self._transition(UploadState.UPLOADED)

        self._transition(UploadState.RECORDING_METADATA)
        try:
            photo = self.photo_service.insert_photo(group_id, user_id, key, uploaded_at=now)
        except Exception as e:
            self._transition(UploadState.METADATA_FAILED)
            self._compensate(key, e)
            raise
        self._transition(UploadState.COMPLETE)
        return photo

    def _compensate(self, key: str, cause: Exception) -> None:
        """Remove the object stored for a metadata row that was never written"""
        reason = getattr(cause, "message", None) or str(cause)
        if self.storage.delete_file(key):
            logger.warning(f"Metadata insert failed; removed uploaded object {key}")
            if not isinstance(cause, AppError):
                raise RemoteError(reason, {"storage_key": key}) from cause
            return
        logger.error(f"Metadata insert failed and object {key} could not be removed; orphaned")
        raise PartialFailureError(
            f"Photo metadata was not saved and the uploaded object could not be removed: {reason}",
            {"storage_key": key},
        ) from cause
