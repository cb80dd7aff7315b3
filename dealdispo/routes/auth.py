import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel

from ..auth import check_password, create_session_token, security, verify_session_token
from ..config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW, SESSION_MAX_AGE
from ..rate_limiter import client_ip, create_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    password: str


class LoginResponse(BaseModel):
    token: str
    expiresIn: int


class SessionResponse(BaseModel):
    authenticated: bool


# Login attempts per IP address; successful ones are given back
rate_limit_login = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW, key_prefix="login"
)


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, request: Request, _: None = Depends(rate_limit_login)):
    """Exchange the shared password for a session token"""
    if not check_password(data.password):
        logger.warning(f"🔒 Failed login from {client_ip(request)}")
        raise HTTPException(status_code=401, detail="Incorrect password")

    rate_limit_login.release(request)
    logger.info(f"✅ Login from {client_ip(request)}")
    return LoginResponse(token=create_session_token(), expiresIn=SESSION_MAX_AGE)


@router.get("/session", response_model=SessionResponse)
async def session(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    if not credentials:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=verify_session_token(credentials.credentials) is not None)
