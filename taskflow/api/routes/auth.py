from typing import Optional
from fastapi import APIRouter, Body, Depends, HTTPException, status, Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import datetime, timezone
from taskflow.database.connection import get_db
from taskflow.models.user import User
from taskflow.schemas.user import (
    SignupRequest,
    LoginRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    AuthResponse,
    CurrentUserResponse,
    MessageResponse
)
from taskflow.schemas.token import SessionIdentity
from taskflow.auth.utils import (
    pwd_context,
    hash_password,
    verify_password,
    create_session_token,
    generate_reset_token,
    get_reset_token_expiry
)
from taskflow.auth.dependencies import get_current_identity
from taskflow.config.settings import settings
from taskflow.config.helpers import get_user_or_404, get_user_by_email
from taskflow.config.email import EmailService, EmailDeliveryError, get_email_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

RESET_LINK_SENT_MESSAGE = "If an account with that email exists, a password reset link has been sent"

def set_session_cookie(response: Response, token: str):
    """Set session token as HTTP-only cookie"""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
        path="/"
    )

def clear_session_cookie(response: Response):
    """Expire the session cookie immediately"""
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
        path="/"
    )

def authenticate_user(db: Session, email: str, password: str):
    """Return the user when the credentials match, otherwise None"""
    user = get_user_by_email(db, email)
    if not user:
        # keeps response timing the same for unknown accounts
        pwd_context.dummy_verify()
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user

@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    response: Response,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service)
):
    """
    Register a new user and start a session

    - **name**: Display name (required)
    - **email**: Email address, stored lowercased (required, unique)
    - **password**: At least 6 characters (required)
    - **confirmPassword**: Must equal password when given
    """
    if get_user_by_email(db, payload.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists with this email"
        )

    new_user = User(
        name=payload.name,
        email=payload.email,
        hashed_password=hash_password(payload.password)
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists with this email"
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Signup failed for {payload.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Signup failed"
        )
    db.refresh(new_user)
    logger.info(f"User {new_user.id} signed up")

    set_session_cookie(response, create_session_token(new_user))

    message = "User created successfully"
    try:
        mailer.send_welcome_email(new_user.email, new_user.name)
    except EmailDeliveryError as e:
        logger.warning(f"Welcome email to {new_user.email} not sent: {str(e)}")
        message = "User created but welcome email could not be sent."

    return {"success": True, "message": message, "user": new_user}

@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """
    Login user and start a session

    The session token is returned as an HTTP-only cookie named `token`.
    """
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    set_session_cookie(response, create_session_token(user))

    return {"success": True, "message": "Login successful", "user": user}

@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, identity: SessionIdentity = Depends(get_current_identity)):
    """
    Logout user by clearing the session cookie
    """
    clear_session_cookie(response)
    logger.info(f"User {identity.user_id} logged out")

    return {"success": True, "message": "Logout successful"}

@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: Optional[ForgotPasswordRequest] = Body(None),
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service)
):
    """
    Email a password reset link

    Responds identically whether or not the account exists.
    """
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Valid email is required"
        )

    user = get_user_by_email(db, payload.email)
    if not user:
        return {"success": True, "message": RESET_LINK_SENT_MESSAGE}

    reset_token = generate_reset_token()
    user.reset_token = reset_token
    user.reset_token_expires = get_reset_token_expiry()
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Could not store reset token for {payload.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process forgot password request"
        )

    try:
        mailer.send_reset_password_email(payload.email, reset_token)
    except EmailDeliveryError as e:
        logger.error(f"Reset email to {payload.email} not sent: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send reset password email."
        )

    return {"success": True, "message": RESET_LINK_SENT_MESSAGE}

@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service)
):
    """
    Set a new password using a reset token

    - **resetToken**: Token from the reset email (single use, expires after one hour)
    - **password**: New password, at least 6 characters
    - **confirmPassword**: Must equal password when given
    """
    user = db.query(User).filter(
        User.reset_token == payload.reset_token,
        User.reset_token_expires > datetime.now(timezone.utc)
    ).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    user.hashed_password = hash_password(payload.password)
    user.clear_reset_token()
    email, name = user.email, user.name
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Password reset failed for {email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Reset password failed"
        )
    logger.info(f"Password reset successfully for {email}")

    message = "Password reset successfully"
    try:
        mailer.send_password_changed_email(email, name)
    except EmailDeliveryError as e:
        logger.warning(f"Password change confirmation to {email} not sent: {str(e)}")
        message = "Password changed but confirmation email could not be sent."

    return {"success": True, "message": message}

@router.get("/me", response_model=CurrentUserResponse)
def get_me(identity: SessionIdentity = Depends(get_current_identity), db: Session = Depends(get_db)):
    """
    Get the current user's profile
    """
    user = get_user_or_404(db, identity.user_id)
    return {"success": True, "user": user}
