"""
User repository for account creation and authentication lookups.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from roomfinder.repositories.base import BaseRepository
from roomfinder.models import User
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user accounts with password handling.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: email, password
                      Optional: is_active (defaults to True)

        Returns:
            Created user instance

        Raises:
            ValueError: If validation fails or the email is taken
            Exception: If database operation fails
        """
        try:
            email = User.validate_email_format(user_data["email"])

            existing_user = await self.get_by_email(email)
            if existing_user:
                raise ValueError(f"User with email {email} already exists")

            hashed_password = User.hash_password(user_data["password"])

            created_user = await self.create({
                "email": email,
                "hashed_password": hashed_password,
                "is_active": user_data.get("is_active", True),
            })
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.error(f"User validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()

            result = await self.db.execute(select(User).where(User.email == normalized_email))
            user = result.scalar_one_or_none()

            if user:
                logger.debug(f"Retrieved user by email: {email}")
            else:
                logger.debug(f"User with email {email} not found")

            return user
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            User instance if authentication successful, None otherwise
        """
        try:
            user = await self.get_by_email(email)

            if not user:
                logger.debug(f"Authentication failed: user {email} not found")
                return None

            if not user.is_active:
                logger.debug(f"Authentication failed: user {email} is inactive")
                return None

            if not user.verify_password(password):
                logger.debug(f"Authentication failed: invalid password for {email}")
                return None

            logger.info(f"User authenticated successfully: {email}")
            return user
        except Exception as e:
            logger.error(f"Failed to authenticate user {email}: {e}")
            raise
