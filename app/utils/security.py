import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from app.models.user import Role
from core.config import config
from core.exceptions.base import ExpiredTokenException, InvalidTokenException


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a session token."""

    principal_id: str
    email: str
    organization_id: str
    role: Role


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    if not hashed_password:
        return False
    password_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(password_bytes, hashed_bytes)


def create_session_token(
    principal_id: str,
    email: str,
    organization_id: str,
    role: Role,
    expires_delta: timedelta = None,
) -> str:
    """Create a signed session token for an admin or employee principal."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=config.JWT_ACCESS_TOKEN_EXPIRE_DAYS)
    )
    payload = {
        "sub": principal_id,
        "email": email,
        "organization_id": organization_id,
        "role": Role(role).value,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, config.SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_session_token(token: str) -> SessionClaims:
    """Decode and verify a session token."""
    try:
        payload = jwt.decode(
            token, config.SECRET_KEY, algorithms=[config.JWT_ALGORITHM]
        )
    except ExpiredSignatureError:
        raise ExpiredTokenException()
    except JWTError:
        raise InvalidTokenException()

    if payload.get("type") != "access":
        raise InvalidTokenException(message="Invalid token type")

    principal_id = payload.get("sub")
    organization_id = payload.get("organization_id")
    if not principal_id or not organization_id:
        raise InvalidTokenException(message="Invalid token payload")

    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise InvalidTokenException(message="Invalid token role")

    return SessionClaims(
        principal_id=principal_id,
        email=payload.get("email", ""),
        organization_id=organization_id,
        role=role,
    )


def generate_invitation_secret() -> str:
    """Random single-use invitation secret. Never a JWT."""
    return secrets.token_hex(32)
