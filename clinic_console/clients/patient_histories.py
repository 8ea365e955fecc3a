# clinic_console/clients/patient_histories.py
from __future__ import annotations

from typing import List, Optional

from clinic_console.clients.base import ApiClient, Payload, parse_model, to_payload
from clinic_console.core.errors import ApiError
from clinic_console.schemas.common import Paginated, RecordId
from clinic_console.schemas.patient_history import PatientHistoryOut


def _rows(payload) -> List[PatientHistoryOut]:
    return [parse_model(PatientHistoryOut, r)
            for r in Paginated.from_response(payload).items]


class PatientHistoriesApi:
    """Append-only visit records; there is no update or delete endpoint."""
    path = "/patient-histories"

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    def create(self, payload: Payload) -> PatientHistoryOut:
        data = self.client.post(self.path, json=to_payload(payload))
        return parse_model(PatientHistoryOut, data)

    def list(self, patient_id: Optional[RecordId] = None) -> List[PatientHistoryOut]:
        return _rows(self.client.get(self.path, params={"patient_id": patient_id}))

    def list_all(self) -> List[PatientHistoryOut]:
        return _rows(self.client.get(self.path))

    def list_by_patient(self, patient_id: RecordId) -> List[PatientHistoryOut]:
        try:
            data = self.client.get(f"{self.path}/patient/{patient_id}")
        except ApiError as e:
            # no histories yet
            if e.status == 404:
                return []
            raise
        return _rows(data)
