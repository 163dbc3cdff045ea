import logging
from typing import Optional

from supabase import Client

from app.core.errors import RemoteError, ValidationError
from app.core.results import service_operation
from app.database.supabase_client import first_row
from app.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def fetch_user(self, user_id: str) -> Optional[UserResponse]:
        """Return the users row or None. Raises on remote failure."""
        result = self.supabase.table("users")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        row = first_row(result)
        return UserResponse(**row) if row else None

    @service_operation("get display name")
    def get_display_name(self, user_id: str) -> Optional[str]:
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        user = self.fetch_user(user_id)
        return user.name if user else None

    def upsert_display_name(self, user_id: str, name: str) -> UserResponse:
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationError("Name is required", field="name")
        result = self.supabase.table("users").upsert({
            "id": user_id,
            "name": trimmed
        }).execute()
        if not result.data:
            raise RemoteError("Failed to save name")
        logger.info(f"Display name saved for user {user_id}")
        return UserResponse(**result.data[0])

    @service_operation("set display name")
    def set_display_name(self, user_id: str, name: str) -> UserResponse:
        """Write the display name to the users row (later calls overwrite)"""
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        return self.upsert_display_name(user_id, name)
