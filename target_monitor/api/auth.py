"""
Admin authentication for the configuration endpoints.

Single admin account from Settings; bearer JWT tokens signed with the
configured secret.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from ..config import Settings
from ..dependencies import get_settings

router = APIRouter(tags=["auth"])

security = HTTPBearer(auto_error=False)


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class CurrentUser(BaseModel):
    username: str


def create_access_token(username: str, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expire_hours)
    payload = {"sub": username, "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: Settings) -> CurrentUser:
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )

    username = payload.get("sub")
    if payload.get("type") != "access" or not username:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )
    return CurrentUser(username=username)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
        )
    return verify_token(credentials.credentials, settings)


@router.post("/login")
async def login(
    request: LoginRequest, settings: Settings = Depends(get_settings)
) -> dict:
    if not request.username or not request.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password required",
        )

    valid_user = secrets.compare_digest(request.username, settings.admin_username)
    valid_password = secrets.compare_digest(request.password, settings.admin_password)
    if not (valid_user and valid_password):
        logging.warning(f"Failed login attempt for user '{request.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    logging.info(f"Admin login: {request.username}")
    return {
        "message": "Login successful",
        "token": create_access_token(request.username, settings),
        "expiresIn": f"{settings.jwt_expire_hours}h",
    }


@router.get("/validate-token")
async def validate_token(user: CurrentUser = Depends(get_current_user)) -> dict:
    return {"valid": True, "user": user.model_dump()}
