# clinic_console/schemas/common.py
from __future__ import annotations

from typing import Any, List, Optional, Union
from pydantic import BaseModel, ConfigDict

RecordId = Union[int, str]


class Paginated(BaseModel):
    total: int = 0
    items: list = []
    page: Optional[int] = None
    per_page: Optional[int] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def from_response(cls, payload: Any) -> "Paginated":
        """
        Backend list endpoints answer either with a bare list or with a
        Laravel-style envelope {"data": [...], "total": n, ...}.
        """
        if isinstance(payload, list):
            return cls(total=len(payload), items=payload)
        if isinstance(payload, dict):
            items = payload.get("data")
            if items is None:
                items = payload.get("items")
            if not isinstance(items, list):
                items = []
            total = payload.get("total")
            if total is None and isinstance(payload.get("meta"), dict):
                total = payload["meta"].get("total")
            page = payload.get("current_page", payload.get("page"))
            per_page = payload.get("per_page")
            return cls(
                total=int(total) if total is not None else len(items),
                items=items,
                page=int(page) if page is not None else None,
                per_page=int(per_page) if per_page is not None else None,
            )
        return cls()


class ListResult(BaseModel):
    """Typed page of records as handed to list screens."""
    total: int = 0
    items: List[Any] = []

    model_config = ConfigDict(arbitrary_types_allowed=True)
