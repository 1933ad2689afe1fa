from typing import Optional
from jose import JWTError, jwt
from app.core.config import settings


def decode_token(token: str) -> Optional[dict]:
    """Decode a provider-issued JWT; None if the signature or expiry is bad"""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def verify_token(token: str, token_type: str = "access") -> Optional[str]:
    """Verify JWT token and return subject (staff user id) if valid"""
    payload = decode_token(token)
    if payload is None:
        return None

    user_id: Optional[str] = payload.get("sub")
    if user_id is None or payload.get("type", token_type) != token_type:
        return None
    return user_id
