# clinic_console/clients/base.py
from __future__ import annotations

import logging
from typing import Any, Dict, Generic, Mapping, Optional, Type, TypeVar, Union

import requests
from pydantic import BaseModel, ValidationError

from clinic_console.core.config import settings
from clinic_console.core.errors import ApiConnectionError, ApiError, UnexpectedResponse
from clinic_console.core.token_store import TokenStore
from clinic_console.schemas.common import ListResult, Paginated, RecordId

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Payload = Union[BaseModel, Mapping[str, Any]]


# -------------------------------
# Helpers
# -------------------------------
def clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Only truthy values reach the query string; True goes out as "true".
    """
    out: Dict[str, str] = {}
    for key, val in (params or {}).items():
        if val is None or val is False or val == "" or val == 0:
            continue
        if val is True:
            out[key] = "true"
        else:
            out[key] = str(val)
    return out


def _parse_json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("Unreadable %s from backend: %s", model.__name__, e)
        raise UnexpectedResponse(f"Unexpected {model.__name__} payload from the backend") from e


def to_payload(data: Payload, *, partial: bool = False) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", exclude_unset=partial)
    return dict(data)


# -------------------------------
# HTTP client
# -------------------------------
class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token_store: Optional[TokenStore] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or settings.API_BASE).rstrip("/")
        self.token_store = token_store
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self, *, has_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        token = self.token_store.get() if self.token_store else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        url = self.url(path)
        has_body = json is not None
        try:
            resp = self.session.request(
                method,
                url,
                params=clean_params(params),
                json=json,
                headers=self._headers(has_body=has_body),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise ApiConnectionError(str(e)) from e

        if not 200 <= resp.status_code < 300:
            detail = _parse_json(resp)
            logger.warning("%s %s -> %s", method, url, resp.status_code)
            if settings.LOG_HTTP_BODIES:
                logger.debug("error body: %s", (resp.text or "")[:500])
            raise ApiError(resp.status_code, detail, text=resp.text or "")

        if resp.status_code == 204 or not resp.content:
            return None
        return _parse_json(resp)

    def get(self, path: str, **kw: Any) -> Any:
        return self.request("GET", path, **kw)

    def post(self, path: str, **kw: Any) -> Any:
        return self.request("POST", path, **kw)

    def patch(self, path: str, **kw: Any) -> Any:
        return self.request("PATCH", path, **kw)

    def put(self, path: str, **kw: Any) -> Any:
        return self.request("PUT", path, **kw)

    def delete(self, path: str, **kw: Any) -> Any:
        return self.request("DELETE", path, **kw)


# -------------------------------
# CRUD resource
# -------------------------------
class ResourceApi(Generic[ModelT]):
    """
    GET/POST/PATCH/DELETE on one collection path.
    Subclasses set `path` and `model` and give `list()` its own filters.
    """
    path: str = ""
    model: Type[ModelT]

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    def _item_path(self, record_id: RecordId) -> str:
        return f"{self.path}/{record_id}"

    def _list(self, params: Mapping[str, Any]) -> ListResult:
        page = Paginated.from_response(self.client.get(self.path, params=params))
        return ListResult(
            total=page.total,
            items=[parse_model(self.model, row) for row in page.items],
        )

    def get(self, record_id: RecordId) -> ModelT:
        return parse_model(self.model, self.client.get(self._item_path(record_id)))

    def create(self, payload: Payload) -> ModelT:
        data = self.client.post(self.path, json=to_payload(payload))
        return parse_model(self.model, data)

    def update(self, record_id: RecordId, changes: Payload) -> ModelT:
        data = self.client.patch(self._item_path(record_id),
                                 json=to_payload(changes, partial=True))
        return parse_model(self.model, data)

    def delete(self, record_id: RecordId) -> bool:
        self.client.delete(self._item_path(record_id))
        return True
