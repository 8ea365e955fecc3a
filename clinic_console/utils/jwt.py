# clinic_console/utils/jwt.py
from datetime import datetime, timezone
from typing import Optional

from jose import jwt, JWTError


def peek_claims(token: str) -> dict:
    """
    Read the claims of a bearer token without verifying it.
    The console never holds the signing secret; the backend does.
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return {}


def token_expiry(token: str) -> Optional[datetime]:
    exp = peek_claims(token).get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def is_expired(token: str, *, now: Optional[datetime] = None) -> bool:
    # opaque (non-JWT) tokens never expire client-side
    exp = token_expiry(token)
    if exp is None:
        return False
    now = now or datetime.now(timezone.utc)
    return exp <= now
