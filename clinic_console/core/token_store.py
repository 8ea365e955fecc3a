# clinic_console/core/token_store.py
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from clinic_console.core.config import settings
from clinic_console.utils.jwt import is_expired

logger = logging.getLogger(__name__)

LOGOUT_EVENT = "logout"
REMOTE_LOGOUT_EVENT = "remote-logout"
REMOTE_LOGOUT_MESSAGE = "You have been logged out from another session."

Listener = Callable[[str], None]


class TokenStore:
    """
    File-backed bearer token holder.

    Every process that points at the same file shares the session. `clear()`
    stamps a logout marker and fires ``logout`` locally; other holders of the
    file pick the marker up on their next `get()` and fire ``remote-logout``.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = Path(path or settings.TOKEN_FILE).expanduser()
        self._listeners: List[Listener] = []
        self._seen_logout: Optional[float] = self._read().get("logout_at")

    # -------------------------------
    # file io
    # -------------------------------
    def _read(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw or "{}")
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable token file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    # -------------------------------
    # listeners
    # -------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _check_remote_logout(self, data: Dict[str, Any]) -> None:
        marker = data.get("logout_at")
        if marker is not None and marker != self._seen_logout:
            self._seen_logout = marker
            logger.info("Logout detected from another session")
            self._emit(REMOTE_LOGOUT_EVENT)

    # -------------------------------
    # public
    # -------------------------------
    def get(self) -> Optional[str]:
        data = self._read()
        self._check_remote_logout(data)
        token = data.get("token")
        if not token:
            return None
        if is_expired(token):
            logger.info("Stored token has expired")
            return None
        return token

    def save(self, token: str) -> None:
        data = self._read()
        data["token"] = token
        self._write(data)

    def clear(self) -> None:
        marker = time.time()
        self._write({"token": None, "logout_at": marker})
        self._seen_logout = marker
        self._emit(LOGOUT_EVENT)

    def is_authenticated(self) -> bool:
        return self.get() is not None


class MemoryTokenStore(TokenStore):
    """Process-local store used by the HTTP app when forwarding request tokens."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token
        self._listeners = []
        self._seen_logout = None

    def get(self) -> Optional[str]:
        if self._token and is_expired(self._token):
            return None
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
        self._emit(LOGOUT_EVENT)
