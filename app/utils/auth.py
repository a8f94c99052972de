# app/utils/auth.py
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import settings
from app.schemas.profile import CurrentUser
from app.utils.dates import utcnow

bearer_scheme = HTTPBearer(auto_error=False)


def get_gateway(request: Request):
    """The persistence gateway configured on the application"""
    return request.app.state.gateway


def create_access_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = utcnow() + (expires_delta or timedelta(hours=12))
    return jwt.encode({"sub": email, "exp": expire}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """Verify JWT token and return payload without raising exceptions"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


async def resolve_user(gateway, token: Optional[str]) -> Optional[CurrentUser]:
    """The active profile a token belongs to, or None"""
    if not token:
        return None
    payload = verify_token(token)
    if not payload or "sub" not in payload:
        return None
    result = await gateway.select_one("profiles", {"email": payload["sub"]})
    if not result.ok or result.data is None or not result.data.get("is_active", True):
        return None
    return CurrentUser.model_validate(result.data)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    gateway=Depends(get_gateway),
) -> CurrentUser:
    user = await resolve_user(gateway, credentials.credentials if credentials else None)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
