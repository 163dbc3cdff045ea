import hashlib
import logging
import time
from typing import Any, Callable, Dict, Optional

from supabase import Client

from app.core.errors import AppError, RemoteError, ValidationError
from app.core.results import service_operation
from app.database.supabase_client import create_auth_client
from app.modules.auth.schemas import RegisterResponse, TokenResponse
from app.modules.users.service import UserService

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


class AuthenticationError(AppError):
    """Token missing, invalid or expired"""


class AuthService:
    def __init__(self, supabase: Client, auth_client_factory: Optional[Callable[[], Client]] = None):
        self.supabase = supabase
        # sign-up and sign-in each get their own client; the shared one stays anonymous
        self.auth_client_factory = auth_client_factory or create_auth_client

    @service_operation("sign up")
    def sign_up(self, email: str, password: str, display_name: Optional[str] = None):
        """Register with Supabase Auth and record the display name in the users table"""
        if not email or not password:
            raise ValidationError("Email and password are required")
        client = self.auth_client_factory()
        try:
            auth_response = client.auth.sign_up({
                "email": email,
                "password": password
            })
        except Exception as e:
            raise RemoteError(str(e))

        if not auth_response.user:
            raise RemoteError("Failed to register user")

        user = auth_response.user
        session = auth_response.session
        warnings = []
        if display_name:
            try:
                UserService(client).upsert_display_name(user.id, display_name)
            except Exception as e:
                logger.warning(f"Registered {user.id} but could not save display name: {e}")
                warnings.append("Account created but display name was not saved")
        logger.info(f"User registered: {user.id}")

        response = RegisterResponse(
            user_id=user.id,
            email=user.email or email,
            display_name=display_name if not warnings else None,
            access_token=session.access_token if session else None,
            message="User registered successfully"
        )
        return response, warnings

    @service_operation("sign in")
    def sign_in(self, email: str, password: str) -> TokenResponse:
        if not email or not password:
            raise ValidationError("Email and password are required")
        client = self.auth_client_factory()
        try:
            auth_response = client.auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except Exception as e:
            raise RemoteError(str(e))

        if not auth_response.user or not auth_response.session:
            raise RemoteError("Invalid credentials")

        user = auth_response.user
        name_result = UserService(client).get_display_name(user.id)
        display_name = name_result.data if name_result.success else None
        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            user_id=user.id,
            email=user.email or email,
            display_name=display_name,
            needs_name=not display_name
        )

    @service_operation("sign out")
    def sign_out(self, token: str) -> bool:
        """Revoke the refresh tokens of the session that owns token"""
        if not token:
            raise ValidationError("Access token is required")
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            self.supabase.auth.admin.sign_out(token)
        except Exception as e:
            raise RemoteError(str(e))
        return True

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_USER_CACHE:
            user_data, expiry = _AUTH_USER_CACHE[cache_key]
            if now < expiry:
                return user_data
            del _AUTH_USER_CACHE[cache_key]
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info(f"Token rejected by identity store: {e}")
            raise AuthenticationError("Invalid or expired token")
        if not user_response or not user_response.user:
            raise AuthenticationError("Invalid or expired token")
        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "created_at": user.created_at,
        }
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
        return user_data


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()

