import jwt
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from passlib.context import CryptContext

from .config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# =========================
# Timestamps
# =========================
def utcnow() -> datetime:
    """Naive UTC now, the form timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def next_timestamp(previous: Optional[datetime]) -> datetime:
    """A mutation timestamp guaranteed to sort after ``previous``."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


# =========================
# Passwords
# =========================
def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # unknown or malformed hash
        return False

def unusable_password_hash() -> str:
    """Hash of a random secret, for accounts created without a password."""
    return hash_password(secrets.token_urlsafe(32))

# =========================
# JWT Token Handling
# =========================
def create_jwt_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})

    if not settings.secret_key_configured:
        raise ValueError("SECRET_KEY not properly configured")

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_jwt_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify JWT token"""
    if not settings.secret_key_configured:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get("type") != "access":
        return None
    return payload
