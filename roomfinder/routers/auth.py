"""
Authentication API endpoints for sign up, sign in, sign out and session lookup.
"""

from fastapi import APIRouter, Depends, status
from typing import Optional

from roomfinder.models import User
from roomfinder.services.auth import AuthService
from roomfinder.schemas.auth import SignInRequest, SignUpRequest, SessionResponse, UserResponse
from roomfinder.schemas.error import error_responses
from roomfinder.session import Session
from roomfinder.utils.dependencies import (
    get_auth_service,
    get_current_session,
    get_current_user,
    require_session,
)


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        user_id=str(session.user_id),
        email=session.email,
        access_token=session.access_token,
        token_type=session.token_type,
        expires_at=session.expires_at,
    )


@router.post(
    "/signup",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Create an account with email and password and return a session",
    responses=error_responses(422)
)
async def sign_up(
    sign_up_data: SignUpRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> SessionResponse:
    """
    Create an account and sign it in.

    Raises:
        ValidationError: If the email is invalid or already registered
    """
    session = await auth_service.sign_up(sign_up_data.email, sign_up_data.password)
    return _session_response(session)


@router.post(
    "/login",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign in",
    description="Authenticate with email and password and return a session",
    responses=error_responses(401, 422)
)
async def sign_in(
    sign_in_data: SignInRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> SessionResponse:
    """
    Authenticate user and return a session.

    Raises:
        InvalidCredentialsError: If credentials are invalid
    """
    session = await auth_service.sign_in(sign_in_data.email, sign_in_data.password)
    return _session_response(session)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out",
    description="End the current session",
    responses=error_responses(401)
)
async def sign_out(
    session: Session = Depends(require_session),
    auth_service: AuthService = Depends(get_auth_service)
) -> None:
    """Sign out the caller. Clients should discard their token."""
    await auth_service.sign_out(session)


@router.get(
    "/session",
    response_model=Optional[SessionResponse],
    status_code=status.HTTP_200_OK,
    summary="Current session",
    description="Return the session for the presented token, or null when signed out"
)
async def current_session(
    session: Optional[Session] = Depends(get_current_session)
) -> Optional[SessionResponse]:
    """Report the caller's session without requiring one."""
    return _session_response(session) if session else None


@router.get(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Get current authenticated user information",
    responses=error_responses(401)
)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
) -> UserResponse:
    """Get current authenticated user information."""
    return UserResponse.model_validate(current_user.to_dict())
