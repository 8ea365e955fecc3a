# clinic_console/api/router.py
from fastapi import APIRouter

from clinic_console.api.routes_patient_histories import router as patient_histories_router

api_router = APIRouter()
api_router.include_router(patient_histories_router, tags=["Patient Histories"])
