from pydantic import BaseModel, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email
from taskflow.config.validators import validate_password, normalize_email
from typing import Optional
from datetime import datetime

class CamelModel(BaseModel):
    """Accepts and emits camelCase keys on the wire"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

class SignupRequest(CamelModel):
    """Schema for creating a new account"""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def validate_signup(self):
        if not self.name or not self.name.strip() or not self.email or not self.password:
            raise ValueError("Name, email, and password are required")

        is_valid, errors = validate_password(self.password, self.confirm_password)
        if not is_valid:
            raise ValueError(errors[0])

        self.name = self.name.strip()
        self.email = normalize_email(self.email)
        try:
            validate_email(self.email)
        except ValueError:
            raise ValueError("Please provide a valid email address")
        return self

class LoginRequest(CamelModel):
    """Schema for user login"""
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="after")
    def validate_login(self):
        if not self.email or not self.password:
            raise ValueError("Email and password are required")
        self.email = normalize_email(self.email)
        return self

class ForgotPasswordRequest(CamelModel):
    """Schema for requesting a password reset link"""
    email: str

    @model_validator(mode="before")
    @classmethod
    def require_email(cls, data):
        if not isinstance(data, dict) or not isinstance(data.get("email"), str) or not data["email"].strip():
            raise ValueError("Valid email is required")
        return data

    @field_validator("email")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)

class ResetPasswordRequest(CamelModel):
    """Schema for setting a new password with a reset token"""
    reset_token: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def validate_reset(self):
        if not self.reset_token or not self.password:
            raise ValueError("Reset token and new password are required")

        is_valid, errors = validate_password(self.password, self.confirm_password)
        if not is_valid:
            raise ValueError(errors[0])
        return self

class UserSummary(CamelModel):
    id: int
    name: str
    email: str

class UserResponse(UserSummary):
    """Schema for the current user's profile"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class MessageResponse(CamelModel):
    success: bool = True
    message: str

class AuthResponse(MessageResponse):
    user: UserSummary

class CurrentUserResponse(CamelModel):
    success: bool = True
    user: UserResponse
