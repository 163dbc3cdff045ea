import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from supabase import Client

from app.config.settings import settings
from app.core.errors import NotFoundError, RemoteError, ValidationError
from app.core.results import service_operation
from app.database.supabase_client import first_row
from app.modules.photos.s3_storage import S3Storage
from app.modules.photos.schemas import PhotoResponse

logger = logging.getLogger(__name__)


def default_expiry(uploaded_at: datetime) -> datetime:
    return uploaded_at + timedelta(days=settings.photo_retention_days)


class PhotoService:
    """Photo metadata rows. Never touches object storage except to build URLs."""

    def __init__(self, supabase: Client, storage: Optional[S3Storage] = None):
        self.supabase = supabase
        self.storage = storage

    def insert_photo(
        self,
        group_id: str,
        user_id: str,
        storage_key: str,
        expires_at: Optional[datetime] = None,
        uploaded_at: Optional[datetime] = None,
    ) -> PhotoResponse:
        if not group_id or not user_id or not storage_key:
            raise ValidationError("Missing required parameters: group_id, user_id, or storage_key")
        uploaded_at = uploaded_at or datetime.now(timezone.utc)
        expires_at = expires_at or default_expiry(uploaded_at)

        result = self.supabase.table("photos").insert({
            "group_id": group_id,
            "user_id": user_id,
            "s3_key": storage_key,
            "uploaded_at": uploaded_at.isoformat(),
            "expires_at": expires_at.isoformat()
        }).execute()
        if not result.data:
            raise RemoteError("Failed to save photo")
        photo = PhotoResponse(**result.data[0])
        logger.info(f"Photo recorded: {photo.id} in group {group_id}")
        return photo

    @service_operation("record photo")
    def record_photo(
        self,
        group_id: str,
        user_id: str,
        storage_key: str,
        expires_at: Optional[datetime] = None,
        uploaded_at: Optional[datetime] = None,
    ) -> PhotoResponse:
        """Insert photo metadata; expires_at defaults to uploaded_at + retention days"""
        return self.insert_photo(group_id, user_id, storage_key, expires_at, uploaded_at)

    @service_operation("list group photos")
    def list_group_photos(self, group_id: str) -> List[PhotoResponse]:
        """Photos of a group, newest first"""
        if not group_id:
            raise ValidationError("Group ID is required", field="group_id")
        result = self.supabase.table("photos")\
            .select("*")\
            .eq("group_id", group_id)\
            .order("uploaded_at", desc=True)\
            .execute()
        return [PhotoResponse(**photo) for photo in result.data or []]

    @service_operation("list user photos")
    def list_user_photos(self, user_id: str) -> List[PhotoResponse]:
        """Photos uploaded by a user, newest first"""
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        result = self.supabase.table("photos")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("uploaded_at", desc=True)\
            .execute()
        return [PhotoResponse(**photo) for photo in result.data or []]

    def _get_photo(self, photo_id: str) -> PhotoResponse:
        result = self.supabase.table("photos")\
            .select("*")\
            .eq("id", photo_id)\
            .maybe_single()\
            .execute()
        row = first_row(result)
        if not row:
            raise NotFoundError("Photo not found", {"photo_id": photo_id})
        return PhotoResponse(**row)

    @service_operation("get photo")
    def get_photo(self, photo_id: str) -> PhotoResponse:
        if not photo_id:
            raise ValidationError("Photo ID is required", field="photo_id")
        return self._get_photo(photo_id)

    @service_operation("delete photo")
    def delete_photo(self, photo_id: str, storage_key: str) -> bool:
        """Delete the metadata row only.

        The caller removes the bytes at storage_key separately; the two
        deletes are not transactional.
        """
        if not photo_id or not storage_key:
            raise ValidationError("Photo ID and storage key are required")
        result = self.supabase.table("photos")\
            .delete()\
            .eq("id", photo_id)\
            .eq("s3_key", storage_key)\
            .execute()
        if not result.data:
            raise NotFoundError("Photo not found", {"photo_id": photo_id})
        logger.info(f"Photo row deleted: {photo_id} ({storage_key})")
        return True

    @service_operation("photo url")
    def photo_url(self, storage_key: str, ttl_seconds: Optional[int] = None) -> str:
        if not storage_key:
            raise ValidationError("Storage key is required", field="storage_key")
        if self.storage is None:
            raise RemoteError("Object storage is not configured")
        return self.storage.presigned_url(storage_key, ttl_seconds)
