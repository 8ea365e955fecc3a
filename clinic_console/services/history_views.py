# clinic_console/services/history_views.py
from __future__ import annotations

import logging
from typing import List, Optional

from clinic_console.clients.patient_histories import PatientHistoriesApi
from clinic_console.clients.pod_patients import PodPatientsApi
from clinic_console.core.errors import ClinicConsoleError
from clinic_console.schemas.common import RecordId
from clinic_console.schemas.patient_history import (
    HISTORY_TYPE_OPD,
    PatientHistoryOut,
    PrescriptionSnapshot,
)

logger = logging.getLogger(__name__)

ALL_PATIENTS_PAGE_SIZE = 1000


def total_amount(json_data: Optional[str]) -> float:
    return PrescriptionSnapshot.from_json(json_data).stored_total


def prescription_count(json_data: Optional[str]) -> int:
    return len(PrescriptionSnapshot.from_json(json_data).prescriptions)


def only_opd(histories: List[PatientHistoryOut]) -> List[PatientHistoryOut]:
    return [h for h in histories if h.type == HISTORY_TYPE_OPD]


def patient_histories(api: PatientHistoriesApi,
                      patient_id: Optional[RecordId] = None) -> List[PatientHistoryOut]:
    """OPD visits of one patient, or of everyone when no id is given."""
    if patient_id is not None:
        rows = api.list_by_patient(patient_id)
    else:
        rows = api.list_all()
    return only_opd(rows)


def load_all_histories(patients: PodPatientsApi,
                       histories: PatientHistoriesApi) -> List[PatientHistoryOut]:
    """
    Every OPD record across all patients, tagged with the owner's name.

    The backend has no cross-patient listing with names, so this walks the
    patient list (one large page) and asks for each patient's records. A
    failure on one patient is logged and skipped.
    """
    page = patients.list(per_page=ALL_PATIENTS_PAGE_SIZE)
    out: List[PatientHistoryOut] = []
    for patient in page.items:
        try:
            rows = histories.list_by_patient(patient.id)
        except ClinicConsoleError as e:
            logger.error("Failed to load history for patient %s: %s", patient.id, e)
            continue
        for h in only_opd(rows):
            out.append(h.model_copy(update={
                "patient_name": patient.name,
                "patient_id": patient.id,
            }))
    return out


def find_history(api: PatientHistoriesApi, patient_id: RecordId,
                 history_id: RecordId) -> Optional[PatientHistoryOut]:
    for h in api.list_by_patient(patient_id):
        if str(h.id) == str(history_id):
            return h
    return None
