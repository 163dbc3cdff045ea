"""
Session context: identity state for one authenticated principal.

A SessionContext is constructed explicitly (per request by the API
dependencies, or once by a long-lived client) and handed to whatever needs
identity. It is populated on sign-in and cleared on sign-out.
"""
import logging
from typing import Any, Optional

from app.modules.users.service import UserService

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
INITIAL_SESSION = "INITIAL_SESSION"


class SessionContext:
    def __init__(self, user_service: UserService):
        self.user_service = user_service
        self.user_id: Optional[str] = None
        self.email: Optional[str] = None
        self.access_token: Optional[str] = None
        self.display_name: Optional[str] = None
        self.needs_name = False
        self._subscription = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def start(self, user_id: str, email: Optional[str] = None, access_token: Optional[str] = None):
        """Bind the context to a principal and load its display name"""
        self.user_id = user_id
        self.email = email
        self.access_token = access_token
        self.refresh_display_name()
        return self

    def refresh_display_name(self) -> None:
        result = self.user_service.get_display_name(self.user_id)
        if not result.success:
            # Cannot tell whether a name exists; ask for one
            logger.error(f"Error fetching display name for {self.user_id}: {result.error.message}")
            self.display_name = None
            self.needs_name = True
            return
        self.display_name = result.data
        self.needs_name = not result.data

    def set_display_name(self, name: str):
        result = self.user_service.set_display_name(self.user_id, name)
        if result.success:
            self.display_name = result.data.name
            self.needs_name = False
        return result

    def clear(self) -> None:
        self.user_id = None
        self.email = None
        self.access_token = None
        self.display_name = None
        self.needs_name = False

    def handle_auth_event(self, event: Any, session: Any) -> None:
        """React to an identity-store (event, session) notification"""
        event_name = getattr(event, "value", event)
        logger.debug(f"Auth state changed: {event_name}")
        if event_name == SIGNED_OUT or session is None:
            self.clear()
            return
        user = session.user
        self.user_id = user.id
        self.email = user.email
        self.access_token = session.access_token
        if event_name in (SIGNED_IN, INITIAL_SESSION):
            self.refresh_display_name()

    def attach(self, supabase) -> None:
        """Subscribe to the client's auth state notifications"""
        self._subscription = supabase.auth.on_auth_state_change(self.handle_auth_event)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "display_name": self.display_name,
            "needs_name": self.needs_name,
        }
