"""
Authentication service for sign up, sign in, sign out and session lookup.
Issues JWT sessions and resolves bearer tokens back to users.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from roomfinder.repositories.user import UserRepository
from roomfinder.models import User
from roomfinder.session import Session
from roomfinder.utils.auth import create_access_token, verify_token, JWTError, ExpiredSignatureError
from roomfinder.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Identity provider backed by the users table.
    Sessions are stateless JWTs; nothing is stored when one is issued.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    def create_session(self, user: User) -> Session:
        """
        Issue a session for a user.

        Args:
            user: Authenticated user

        Returns:
            Session carrying a fresh access token
        """
        token = create_access_token(user_id=user.id, email=user.email)
        payload = verify_token(token)
        return Session(
            user_id=user.id,
            email=user.email,
            access_token=token,
            expires_at=payload.exp,
        )

    async def sign_up(self, email: str, password: str) -> Session:
        """
        Create an account and sign it in.

        Args:
            email: Email address, surrounding whitespace ignored
            password: Password, surrounding whitespace ignored

        Returns:
            Session for the new account

        Raises:
            ValidationError: If the email is invalid or taken, or the password is too short
        """
        email = (email or "").strip()
        password = (password or "").strip()

        if not email:
            raise ValidationError("Email is required")

        try:
            user = await self.user_repo.create_user({"email": email, "password": password})
        except ValueError as e:
            logger.warning(f"Sign up rejected for {email}: {e}")
            raise ValidationError(str(e))

        logger.info(f"User signed up: {user.email}")
        return self.create_session(user)

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Authenticate with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            New session

        Raises:
            ValidationError: If email or password is missing
            InvalidCredentialsError: If credentials are invalid
        """
        email = (email or "").strip()
        password = (password or "").strip()

        if not email:
            raise ValidationError("Email is required")
        if not password:
            raise ValidationError("Password is required")

        user = await self.user_repo.authenticate_user(email, password)
        if not user:
            logger.warning(f"Failed sign in attempt for email: {email}")
            raise InvalidCredentialsError()

        logger.info(f"User signed in: {user.email}")
        return self.create_session(user)

    async def sign_out(self, session: Session) -> None:
        """
        End a session.

        Tokens are stateless, so signing out only matters to the client
        holding the session.
        """
        logger.info(f"User signed out: {session.email}")

    async def get_current_user(self, token: str) -> User:
        """
        Resolve an access token to its user.

        Args:
            token: JWT access token

        Returns:
            Active user the token was issued to

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is malformed or the user no longer exists
            InactiveUserError: If the account is inactive
        """
        try:
            payload = verify_token(token)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        try:
            user_id = uuid.UUID(payload.user_id)
        except ValueError:
            raise InvalidTokenError("Invalid token subject")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("User for token no longer exists")
        if not user.is_active:
            raise InactiveUserError()

        return user

    async def get_current_session(self, token: Optional[str]) -> Optional[Session]:
        """
        Look up the session for a bearer token.

        Returns:
            The session, or None when there is no valid token
        """
        if not token:
            return None

        try:
            user = await self.get_current_user(token)
        except (InvalidTokenError, TokenExpiredError, InactiveUserError) as e:
            logger.debug(f"No session for presented token: {e.detail}")
            return None

        payload = verify_token(token)
        return Session(
            user_id=user.id,
            email=user.email,
            access_token=token,
            expires_at=payload.exp,
        )
