import logging
from typing import Callable, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from app.config.settings import settings
from app.core.errors import (
    AlreadyMember, CodeGenerationExhausted, InvalidJoinCode, NotFoundError,
    RemoteError, ValidationError,
)
from app.core.results import OperationResult, service_operation
from app.database.supabase_client import first_row, is_unique_violation
from app.modules.groups.codes import generate_join_code, is_well_formed_join_code, normalize_join_code
from app.modules.groups.schemas import GroupResponse, GroupMemberResponse

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(
        self,
        supabase: Client,
        code_generator: Callable[[], str] = generate_join_code,
        max_attempts: Optional[int] = None,
    ):
        self.supabase = supabase
        self.code_generator = code_generator
        self.max_attempts = max_attempts or settings.join_code_max_attempts

    @service_operation("create group")
    def create_group(self, group_name: str, creator_user_id: str):
        """Create a group under a fresh join code and enroll the creator.

        The code's uniqueness is enforced by the unique constraint on
        groups.join_code; a violation on insert triggers another attempt.
        The creator membership is best-effort: when it fails the group is
        still returned and the failure is reported as a warning.
        """
        name = (group_name or "").strip()
        if not name:
            raise ValidationError("Group name is required", field="group_name")
        if not creator_user_id:
            raise ValidationError("User ID is required", field="user_id")

        group = self._insert_with_unique_code(name)
        logger.info(f"Group created: {group.id} ({group.join_code})")

        warnings = []
        try:
            self._insert_membership(group.id, creator_user_id)
        except Exception as e:
            logger.warning(f"Error adding creator {creator_user_id} to group {group.id}: {e}")
            warnings.append(f"Group created but creator membership was not recorded: {e}")
        return group, warnings

    def _insert_with_unique_code(self, name: str) -> GroupResponse:
        for attempt in range(1, self.max_attempts + 1):
            join_code = normalize_join_code(self.code_generator())
            try:
                result = self.supabase.table("groups").insert({
                    "join_code": join_code,
                    "group_name": name
                }).execute()
            except APIError as e:
                if is_unique_violation(e):
                    logger.debug(f"Join code collision on attempt {attempt}: {join_code}")
                    continue
                raise RemoteError(e.message or str(e))
            if not result.data:
                raise RemoteError("Failed to create group")
            return GroupResponse(**result.data[0])
        # Scaling limit of the code space, not something to paper over
        logger.error(f"Join code generation exhausted after {self.max_attempts} attempts")
        raise CodeGenerationExhausted(self.max_attempts)

    def _insert_membership(self, group_id: str, user_id: str) -> GroupMemberResponse:
        result = self.supabase.table("group_members").insert({
            "user_id": user_id,
            "group_id": group_id
        }).execute()
        if not result.data:
            raise RemoteError("Failed to add member")
        return GroupMemberResponse(**result.data[0])

    def _find_membership(self, group_id: str, user_id: str) -> Optional[dict]:
        result = self.supabase.table("group_members")\
            .select("id")\
            .eq("user_id", user_id)\
            .eq("group_id", group_id)\
            .maybe_single()\
            .execute()
        return first_row(result)

    @service_operation("join group")
    def join_group(self, join_code: str, user_id: str) -> GroupResponse:
        """Join the group identified by join_code (case-insensitive)"""
        code = normalize_join_code(join_code)
        if not code:
            raise ValidationError("Join code is required", field="join_code")
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        if not is_well_formed_join_code(code):
            raise InvalidJoinCode(code)

        result = self.supabase.table("groups")\
            .select("*")\
            .eq("join_code", code)\
            .maybe_single()\
            .execute()
        row = first_row(result)
        if not row:
            raise InvalidJoinCode(code)
        group = GroupResponse(**row)

        if self._find_membership(group.id, user_id):
            raise AlreadyMember(group.id, user_id)
        try:
            self._insert_membership(group.id, user_id)
        except APIError as e:
            # Lost a race with a concurrent join by the same user
            if is_unique_violation(e):
                raise AlreadyMember(group.id, user_id)
            raise RemoteError(e.message or str(e))

        logger.info(f"User {user_id} joined group {group.id}")
        return group

    @service_operation("add creator membership")
    def add_creator_membership(self, group_id: str, user_id: str) -> GroupMemberResponse:
        """Retry hook for a creator membership that failed during create_group"""
        if not group_id or not user_id:
            raise ValidationError("Group ID and user ID are required")
        self._get_group(group_id)
        if self._find_membership(group_id, user_id):
            raise AlreadyMember(group_id, user_id)
        return self._insert_membership(group_id, user_id)

    @service_operation("list user groups")
    def list_user_groups(self, user_id: str) -> List[GroupResponse]:
        """Groups the user is a member of, in no particular order"""
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        members_result = self.supabase.table("group_members")\
            .select("group_id")\
            .eq("user_id", user_id)\
            .execute()
        if not members_result.data:
            return []
        group_ids = [m["group_id"] for m in members_result.data]
        result = self.supabase.table("groups")\
            .select("*")\
            .in_("id", group_ids)\
            .execute()
        return [GroupResponse(**group) for group in result.data or []]

    def _get_group(self, group_id: str) -> GroupResponse:
        result = self.supabase.table("groups")\
            .select("*")\
            .eq("id", group_id)\
            .maybe_single()\
            .execute()
        row = first_row(result)
        if not row:
            raise NotFoundError("Group not found", {"group_id": group_id})
        return GroupResponse(**row)

    @service_operation("get group")
    def get_group(self, group_id: str) -> GroupResponse:
        if not group_id:
            raise ValidationError("Group ID is required", field="group_id")
        return self._get_group(group_id)

    @service_operation("list members")
    def list_members(self, group_id: str) -> List[GroupMemberResponse]:
        """List all members of a group"""
        result = self.supabase.table("group_members")\
            .select("*")\
            .eq("group_id", group_id)\
            .execute()
        return [GroupMemberResponse(**member) for member in result.data or []]

    def is_member(self, group_id: str, user_id: str) -> bool:
        return self._find_membership(group_id, user_id) is not None
