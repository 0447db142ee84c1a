from passlib.context import CryptContext
from jose import jwt, ExpiredSignatureError, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional
from taskflow.config.settings import settings
import secrets

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

class InvalidToken(Exception):
    """Token is malformed or its signature does not verify"""

class ExpiredToken(InvalidToken):
    """Token signature is valid but its expiry has passed"""

def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed session token"""
    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_session_token(user) -> str:
    """Create a session token asserting the user's id and email"""
    return create_access_token({"sub": str(user.id), "email": user.email})

def verify_token(token: str) -> dict:
    """Verify a session token and return its payload"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise ExpiredToken("Token has expired")
    except JWTError as e:
        raise InvalidToken(f"Invalid token: {str(e)}")

    if not payload.get("sub") or not payload.get("email"):
        raise InvalidToken("Invalid token: missing identity claims")
    return payload

def generate_reset_token() -> str:
    """Generate a random password reset token (32 bytes, hex encoded)"""
    return secrets.token_hex(32)

def get_reset_token_expiry() -> datetime:
    """Get password reset token expiry time"""
    return datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
