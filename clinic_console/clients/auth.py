# clinic_console/clients/auth.py
from __future__ import annotations

import logging
from typing import Union

from clinic_console.clients.base import ApiClient, parse_model, to_payload
from clinic_console.core.errors import NotAuthenticated
from clinic_console.schemas.auth import AuthResponse, LoginIn, RegisterIn, UserOut

logger = logging.getLogger(__name__)


class AuthApi:
    path = "/auth"

    def __init__(self, client: ApiClient) -> None:
        if client.token_store is None:
            raise ValueError("AuthApi needs a client with a token store")
        self.client = client
        self.tokens = client.token_store

    def _remember(self, resp: AuthResponse) -> AuthResponse:
        if resp.bearer:
            self.tokens.save(resp.bearer)
        return resp

    def register(self, payload: Union[RegisterIn, dict]) -> AuthResponse:
        if isinstance(payload, dict):
            payload = RegisterIn(**payload)
        data = self.client.post(f"{self.path}/register", json=to_payload(payload))
        return self._remember(parse_model(AuthResponse, data or {}))

    def login(self, payload: Union[LoginIn, dict]) -> AuthResponse:
        if isinstance(payload, dict):
            payload = LoginIn(**payload)
        data = self.client.post(f"{self.path}/login", json=to_payload(payload))
        resp = self._remember(parse_model(AuthResponse, data or {}))
        logger.info("Logged in as %s", payload.email)
        return resp

    def me(self) -> UserOut:
        if not self.tokens.is_authenticated():
            raise NotAuthenticated("Not logged in")
        data = self.client.get(f"{self.path}/me")
        # {"user": {...}} or the user itself
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        return parse_model(UserOut, data or {})

    def logout(self) -> None:
        """Server-side logout is best effort; the local token is always dropped."""
        try:
            if self.tokens.get():
                self.client.post(f"{self.path}/logout")
        finally:
            self.tokens.clear()
