from fastapi import APIRouter, Depends
from app.core.dependencies import get_session_context
from app.core.results import unwrap
from app.core.session import SessionContext
from app.modules.users.schemas import DisplayNameUpdate, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
async def get_me(
    session: SessionContext = Depends(get_session_context)
):
    """Get the caller's profile"""
    return session.to_dict()


@router.put("/me/name", response_model=UserResponse)
async def set_my_name(
    body: DisplayNameUpdate,
    session: SessionContext = Depends(get_session_context)
):
    """Set (or overwrite) the caller's display name"""
    return unwrap(session.set_display_name(body.name))
