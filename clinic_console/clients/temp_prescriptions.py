# clinic_console/clients/temp_prescriptions.py
from typing import Any, List

from clinic_console.clients.base import ApiClient, Payload, parse_model, to_payload
from clinic_console.schemas.common import Paginated, RecordId
from clinic_console.schemas.patient_history import TempPrescriptionOut


class TempPrescriptionsApi:
    path = "/temp-prescriptions"

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    def create(self, payload: Payload) -> TempPrescriptionOut:
        return parse_model(
            TempPrescriptionOut, self.client.post(self.path, json=to_payload(payload)))

    def list(self) -> List[TempPrescriptionOut]:
        page = Paginated.from_response(self.client.get(self.path))
        return [parse_model(TempPrescriptionOut, r) for r in page.items]

    def get(self, record_id: RecordId) -> TempPrescriptionOut:
        return parse_model(
            TempPrescriptionOut, self.client.get(f"{self.path}/{record_id}"))

    def update(self, record_id: RecordId, payload: Payload) -> TempPrescriptionOut:
        return parse_model(
            TempPrescriptionOut, self.client.put(f"{self.path}/{record_id}", json=to_payload(payload)))

    def delete(self, record_id: RecordId) -> Any:
        return self.client.delete(f"{self.path}/{record_id}")
