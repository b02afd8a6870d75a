"""Signed, expiring download tokens for locally stored documents."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from velai.config import settings

DOWNLOAD_TOKEN_SCOPE = "document:download"


def create_download_token(file_path: str, expires_in: int, secret_key: Optional[str] = None) -> str:
    """Create a JWT granting read access to one stored object until it expires."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    payload = {
        "sub": file_path,
        "scope": DOWNLOAD_TOKEN_SCOPE,
        "exp": expire,
    }
    return jwt.encode(payload, secret_key or settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_download_token(token: str, secret_key: Optional[str] = None) -> Optional[str]:
    """
    Return the object path a download token grants, or None.

    Expired, tampered and wrong-scope tokens all yield None.
    """
    try:
        payload = jwt.decode(
            token,
            secret_key or settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("scope") != DOWNLOAD_TOKEN_SCOPE:
        return None
    return payload.get("sub")
