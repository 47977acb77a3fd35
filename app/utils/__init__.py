from app.utils.security import (
    SessionClaims,
    create_session_token,
    decode_session_token,
    generate_invitation_secret,
    hash_password,
    verify_password,
)

__all__ = [
    "SessionClaims",
    "hash_password",
    "verify_password",
    "create_session_token",
    "decode_session_token",
    "generate_invitation_secret",
]
