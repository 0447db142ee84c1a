from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from taskflow.auth.utils import verify_token, InvalidToken
from taskflow.config.settings import settings
from taskflow.schemas.token import SessionIdentity
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> SessionIdentity:
    """Resolve the session identity from the token cookie or a Bearer header"""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token and credentials is not None:
        token = credentials.credentials

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = verify_token(token)
        identity = SessionIdentity(user_id=int(payload["sub"]), email=payload["email"])
    except (InvalidToken, ValueError) as e:
        logger.info(f"Rejected session token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.identity = identity
    return identity
