# clinic_console/api/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Header

from clinic_console.clients import Backend, make_backend
from clinic_console.core.config import settings
from clinic_console.core.token_store import MemoryTokenStore


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def get_backend(authorization: Optional[str] = Header(None)) -> Backend:
    """Backend clients for one request, carrying the caller's own token."""
    store = MemoryTokenStore(_extract_bearer(authorization))
    return make_backend(settings.API_URL, token_store=store)
