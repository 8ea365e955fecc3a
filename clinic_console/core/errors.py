# clinic_console/core/errors.py
"""
Exceptions raised by the REST client layer.

Screens catch these at the mutation boundary, turn them into toasts and
roll local state back; the HTTP app maps them onto responses.
"""
from __future__ import annotations

from typing import Any, Optional


class ClinicConsoleError(Exception):
    """Base class for everything the console raises on purpose."""


class ApiError(ClinicConsoleError):
    """Non-2xx response from the backend API."""

    def __init__(self, status: int, detail: Any = None, *,
                 text: str = "") -> None:
        super().__init__(f"API {status}")
        self.status = status
        self.detail = detail
        self.text = text

    @property
    def message(self) -> Optional[str]:
        d = self.detail
        if isinstance(d, dict):
            for key in ("message", "detail", "msg", "error"):
                val = d.get(key)
                if isinstance(val, str) and val.strip():
                    return val.strip()
        if isinstance(d, str) and d.strip():
            return d.strip()
        return None

    def field_errors(self) -> dict[str, str]:
        """
        Best-effort field -> message mapping from a validation payload.

        Understands the two shapes the backend sends:
        {"errors": {"name": ["..."]}} and FastAPI's {"detail": [{"loc": [...], "msg": "..."}]}.
        """
        out: dict[str, str] = {}
        d = self.detail
        if not isinstance(d, dict):
            return out

        errors = d.get("errors")
        if isinstance(errors, dict):
            for field, msgs in errors.items():
                if isinstance(msgs, (list, tuple)) and msgs:
                    out[str(field)] = str(msgs[0])
                elif msgs:
                    out[str(field)] = str(msgs)

        detail = d.get("detail")
        if isinstance(detail, list):
            for item in detail:
                if not isinstance(item, dict):
                    continue
                loc = item.get("loc") or []
                if loc:
                    out.setdefault(str(loc[-1]), str(item.get("msg") or "Invalid value"))
        return out


class ApiConnectionError(ClinicConsoleError):
    """Backend could not be reached (DNS, refused, timeout)."""


class NotAuthenticated(ClinicConsoleError):
    pass


class UnexpectedResponse(ClinicConsoleError):
    """Backend answered 2xx with a body that does not fit the expected record."""
