from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt

from ..config import Settings, get_settings

STAFF_ROLES = ("superadmin", "admin", "staff")


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None
) -> str:
    """Create a JWT access token for a staff member"""
    settings = settings or get_settings()
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str, settings: Optional[Settings] = None) -> Optional[dict]:
    """Decode and verify a JWT token"""
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def verify_access_token(token: str, settings: Optional[Settings] = None) -> Optional[dict]:
    """Verify an access token and return payload"""
    payload = decode_token(token, settings)
    if payload and payload.get("type") == "access":
        return payload
    return None
