"""
Core dependencies for route protection and service wiring
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_auth_client_factory, get_supabase
from app.core.session import SessionContext
from app.modules.auth.service import AuthService, AuthenticationError
from app.modules.groups.service import GroupService
from app.modules.photos.s3_storage import S3Storage, get_s3_storage
from app.modules.photos.service import PhotoService
from app.modules.users.service import UserService
from supabase import Client
from typing import Callable, Dict
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    auth_client_factory: Callable[[], Client] = Depends(get_auth_client_factory)
) -> AuthService:
    return AuthService(supabase, auth_client_factory)


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


def get_group_service(supabase: Client = Depends(get_supabase)) -> GroupService:
    return GroupService(supabase)


def get_storage() -> S3Storage:
    return get_s3_storage()


def get_photo_service(
    supabase: Client = Depends(get_supabase),
    storage: S3Storage = Depends(get_storage)
) -> PhotoService:
    return PhotoService(supabase, storage)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict:
    """Extract current user info from JWT token"""
    try:
        return auth_service.get_current_user(token)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)


def get_session_context(
    token: str = Depends(get_current_token),
    user_data: Dict = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service)
) -> SessionContext:
    """Session context for the authenticated caller, built per request"""
    return SessionContext(user_service).start(
        user_data["id"], email=user_data.get("email"), access_token=token
    )


def check_group_member(
    group_id: str,
    user_data: Dict,
    service: GroupService
) -> Dict:
    """Check if user is a member of a group"""
    if service.is_member(group_id, user_data["id"]):
        return user_data
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must be a member of this group"
    )
