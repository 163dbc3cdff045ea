from fastapi import APIRouter, Depends, Response
from app.core.dependencies import get_current_user_id, get_group_service, check_group_member
from app.core.results import unwrap
from app.modules.groups.schemas import (
    GroupCreate, GroupJoin, GroupResponse, GroupMemberResponse
)
from app.modules.groups.service import GroupService
from typing import List, Dict

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    response: Response,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the caller becomes its first member"""
    result = service.create_group(group_data.group_name, user_data["id"])
    if result.warnings:
        response.headers["X-Warning"] = "; ".join(result.warnings)
    return unwrap(result)


@router.post("/join", response_model=GroupResponse)
async def join_group(
    join_data: GroupJoin,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Join a group by its join code"""
    return unwrap(service.join_group(join_data.join_code, user_data["id"]))


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """List groups the user is a member of"""
    return unwrap(service.list_user_groups(user_data["id"]))


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Get group by ID (only if user is a member)"""
    check_group_member(group_id, user_data, service)
    return unwrap(service.get_group(group_id))


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
async def list_members(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """List all members of a group (only if user is a member)"""
    check_group_member(group_id, user_data, service)
    return unwrap(service.list_members(group_id))
