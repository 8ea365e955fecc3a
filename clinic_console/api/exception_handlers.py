# clinic_console/api/exception_handlers.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_console.api.response import err
from clinic_console.core.errors import (ApiConnectionError, ApiError, NotAuthenticated,
                                         UnexpectedResponse)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # exc.detail can be str/dict/list
        msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return err(msg=msg, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return err(msg="Validation error", status_code=422, code="VALIDATION",
                   details=exc.errors())

    @app.exception_handler(ApiError)
    async def backend_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        logger.warning("Backend answered %s for %s %s", exc.status, request.method, request.url.path)
        return err(msg=exc.message or "Backend request failed", status_code=exc.status,
                   code="BACKEND", details=exc.detail)

    @app.exception_handler(ApiConnectionError)
    async def backend_unreachable_handler(request: Request, exc: ApiConnectionError) -> JSONResponse:
        logger.error("Backend unreachable: %s", exc)
        return err(msg="Could not connect to the backend service.", status_code=502,
                   code="BACKEND_UNREACHABLE")

    @app.exception_handler(UnexpectedResponse)
    async def bad_backend_payload_handler(request: Request, exc: UnexpectedResponse) -> JSONResponse:
        logger.error("Unreadable backend payload: %s", exc)
        return err(msg=str(exc), status_code=502, code="BACKEND_PAYLOAD")

    @app.exception_handler(NotAuthenticated)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticated) -> JSONResponse:
        return err(msg=str(exc) or "Not authenticated", status_code=401)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return err(msg="Internal server error", status_code=500)
