import hmac
import logging
import secrets
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from .config import APP_PASSWORD, SECRET_KEY, SESSION_MAX_AGE

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

SESSION_SALT = "dealdispo-session"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(SECRET_KEY)


def check_password(password: Optional[str], expected: Optional[str] = APP_PASSWORD) -> bool:
    """Constant-time comparison; an unset APP_PASSWORD rejects everything"""
    if not expected or password is None:
        return False
    return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def create_session_token() -> str:
    """Signed, time-limited token returned after a successful login"""
    return _serializer().dumps({"sid": secrets.token_hex(16)}, salt=SESSION_SALT)


def verify_session_token(token: str, max_age: int = SESSION_MAX_AGE) -> Optional[dict[str, Any]]:
    """
    Verify and decode a session token

    Returns:
        Decoded data if valid, None if invalid or expired
    """
    try:
        return _serializer().loads(token, salt=SESSION_SALT, max_age=max_age)
    except SignatureExpired:
        logger.info("Session token expired")
        return None
    except BadSignature:
        logger.warning("Invalid session token signature")
        return None


async def require_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict[str, Any]:
    """Dependency guarding every route behind the password gate"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = verify_session_token(credentials.credentials)
    if session is None:
        raise HTTPException(
            status_code=401,
            detail="Session expired or invalid. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session
