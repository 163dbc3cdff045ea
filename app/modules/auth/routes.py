from fastapi import APIRouter, Depends, HTTPException
from app.core.dependencies import get_auth_service, get_current_token, get_session_context
from app.core.errors import ErrorKind
from app.core.results import unwrap
from app.core.session import SessionContext
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, MeResponse
)
from app.modules.auth.service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user, optionally with a display name"""
    result = service.sign_up(register_data.email, register_data.password, register_data.display_name)
    return unwrap(result)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    result = service.sign_in(login_data.email, login_data.password)
    if not result.success and result.error.kind == ErrorKind.REMOTE:
        raise HTTPException(status_code=401, detail=result.error.model_dump(mode="json"))
    return unwrap(result)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    unwrap(service.sign_out(token))
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_current_user(
    session: SessionContext = Depends(get_session_context)
):
    """Current user, display name and whether a name still needs to be set"""
    return session.to_dict()
