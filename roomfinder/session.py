"""
Client-side session state with change notifications.

A SessionStore holds the signed-in identity for one client and tells
subscribers whenever it changes. Nothing here is global: each client owns
its own store and passes it where it is needed.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional
import logging
import uuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Authenticated identity plus the bearer token that proves it."""

    user_id: uuid.UUID
    email: str
    access_token: str
    expires_at: datetime
    token_type: str = "bearer"

    @property
    def is_expired(self) -> bool:
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= datetime.now(timezone.utc)

    @property
    def authorization_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


class SessionEvent(str, Enum):
    """Kinds of session change."""
    SIGNED_UP = "SIGNED_UP"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


SessionListener = Callable[[SessionEvent, Optional[Session]], None]


class Subscription:
    """Handle returned by SessionStore.subscribe."""

    def __init__(self, store: "SessionStore", token: int):
        self._store = store
        self._token = token
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving events. Calling this more than once is harmless."""
        if self.active:
            self._store._remove(self._token)
            self.active = False


class SessionStore:
    """
    Current session for a single client.

    Listeners are called synchronously, in subscription order, after the
    stored session has been updated.
    """

    def __init__(self, session: Optional[Session] = None):
        self._session = session
        self._listeners: Dict[int, SessionListener] = {}
        self._next_token = 0

    @property
    def current(self) -> Optional[Session]:
        """The current session, or None when signed out or expired."""
        if self._session is not None and self._session.is_expired:
            return None
        return self._session

    @property
    def user_id(self) -> Optional[uuid.UUID]:
        session = self.current
        return session.user_id if session else None

    def subscribe(self, listener: SessionListener) -> Subscription:
        """
        Register a listener for session changes.

        Args:
            listener: Called with (event, session) on every change

        Returns:
            Subscription whose unsubscribe() removes the listener
        """
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener
        return Subscription(self, token)

    def set_session(self, session: Session, event: SessionEvent = SessionEvent.SIGNED_IN) -> None:
        """Store a new session and notify listeners."""
        self._session = session
        self._publish(event, session)

    def clear(self) -> None:
        """Forget the current session and notify listeners."""
        self._session = None
        self._publish(SessionEvent.SIGNED_OUT, None)

    def _remove(self, token: int) -> None:
        self._listeners.pop(token, None)

    def _publish(self, event: SessionEvent, session: Optional[Session]) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener(event, session)
            except Exception:
                logger.exception(f"Session listener failed while handling {event.value}")
