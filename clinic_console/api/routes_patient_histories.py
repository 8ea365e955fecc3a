# clinic_console/api/routes_patient_histories.py
from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, ValidationError

from clinic_console.api.deps import get_backend
from clinic_console.api.response import err
from clinic_console.clients import Backend
from clinic_console.core.errors import ApiConnectionError, ApiError
from clinic_console.services.history_views import find_history
from clinic_console.services.pdf_prescription import build_prescription_pdf

logger = logging.getLogger(__name__)

router = APIRouter()

UNREACHABLE = {"message": "Could not connect to the backend service."}


class PrescriptionPdfIn(BaseModel):
    data: Union[Dict[str, Any], str]
    created_at: Optional[str] = None


def _passthrough(backend: Backend, path: str, params: Optional[dict] = None) -> Response:
    try:
        data = backend.client.get(path, params=params)
    except ApiError as e:
        # same status, same body the backend sent
        return Response(content=e.text, status_code=e.status,
                        media_type="application/json" if e.detail is not None else "text/plain")
    except ApiConnectionError:
        return JSONResponse(status_code=502, content=UNREACHABLE)
    return JSONResponse(content=data)


def _pdf_response(pdf_bytes: bytes, file_name: str) -> StreamingResponse:
    # header values are latin-1; patient names often are not
    ascii_name = file_name.encode("ascii", "replace").decode("ascii").replace("?", "_")
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}"
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": disposition},
    )


@router.get("/patient-histories")
def list_patient_histories(request: Request, backend: Backend = Depends(get_backend)):
    return _passthrough(backend, "/patient-histories", dict(request.query_params))


@router.get("/patient-histories/patient/{patient_id}")
def list_patient_histories_by_patient(patient_id: str, backend: Backend = Depends(get_backend)):
    try:
        data = backend.client.get(f"/patient-histories/patient/{patient_id}")
    except ApiError as e:
        if e.status == 404:
            return JSONResponse(content=[])
        return Response(content=e.text, status_code=e.status,
                        media_type="application/json" if e.detail is not None else "text/plain")
    except ApiConnectionError:
        return JSONResponse(status_code=502, content=UNREACHABLE)
    return JSONResponse(content=data if data is not None else [])


@router.get("/patient-histories/patient/{patient_id}/{history_id}/pdf")
def patient_history_pdf(patient_id: str, history_id: str,
                        backend: Backend = Depends(get_backend)):
    history = find_history(backend.patient_histories, patient_id, history_id)
    if history is None:
        raise HTTPException(status_code=404, detail="Patient history not found")
    pdf_bytes, file_name = build_prescription_pdf(history.json_data, history.created_at)
    logger.info("Prescription PDF %s rendered for history %s", file_name, history_id)
    return _pdf_response(pdf_bytes, file_name)


@router.post("/prescriptions/pdf")
def prescription_pdf(payload: PrescriptionPdfIn):
    try:
        pdf_bytes, file_name = build_prescription_pdf(payload.data, payload.created_at)
    except ValidationError as e:
        return err(msg="Validation error", status_code=422, code="VALIDATION",
                   details=e.errors(include_url=False, include_context=False))
    return _pdf_response(pdf_bytes, file_name)
