"""
Pydantic schemas for authentication requests and responses.
Handles sign up, sign in and session data validation.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime


class SignInRequest(BaseModel):
    """Sign in request schema."""

    email: str = Field(
        ...,
        max_length=255,
        description="User's email address",
        examples=["owner@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="User's password",
        examples=["securepassword123"]
    )

    @field_validator("email", "password")
    @classmethod
    def strip_whitespace(cls, v):
        """Surrounding whitespace is never part of credentials."""
        return v.strip()


class SignUpRequest(SignInRequest):
    """Sign up request schema."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (minimum 8 characters)",
        examples=["securepassword123"]
    )
    confirm_password: Optional[str] = Field(
        None,
        description="Optional confirmation, must match password when sent"
    )

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password.strip() != self.password:
            raise ValueError("Passwords do not match")
        return self


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str = Field(..., description="User's unique identifier")
    email: str = Field(..., description="User's email address")
    is_active: bool = Field(..., description="Whether the user account is active")
    created_at: datetime = Field(..., description="Account creation timestamp")


class SessionResponse(BaseModel):
    """Session issued after sign up or sign in."""

    user_id: str = Field(..., description="ID of the signed in user")
    email: str = Field(..., description="Email of the signed in user")
    access_token: str = Field(..., description="JWT bearer token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(..., description="Token expiry time (UTC)")
