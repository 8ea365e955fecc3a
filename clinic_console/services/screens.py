# clinic_console/services/screens.py
from __future__ import annotations

from typing import Any, Optional

from clinic_console.clients import Backend
from clinic_console.clients.pod_patients import PodPatientsApi
from clinic_console.schemas.common import ListResult, RecordId
from clinic_console.schemas.company import CompanyOut
from clinic_console.schemas.drug import DrugOut
from clinic_console.schemas.patient import PodPatientIn, PodPatientOut, PodPatientUpdate
from clinic_console.services.list_filters import CompanyFilters, DrugFilters, PatientFilters
from clinic_console.services.notifications import Notifier
from clinic_console.services.optimistic_list import OptimisticList, as_dict
from clinic_console.services.patient_normalize import normalize_patient_payload


class NormalizedPatients:
    """POD patient source that trims form input before it reaches the API."""

    def __init__(self, api: PodPatientsApi) -> None:
        self.api = api

    def list(self, **params: Any) -> ListResult:
        return self.api.list(**params)

    def create(self, payload: Any) -> PodPatientOut:
        data = normalize_patient_payload(as_dict(payload))
        return self.api.create(PodPatientIn(**data))

    def update(self, record_id: RecordId, changes: Any) -> PodPatientOut:
        return self.api.update(record_id, PodPatientUpdate(**as_dict(changes)))

    def delete(self, record_id: RecordId) -> bool:
        return self.api.delete(record_id)


def companies_screen(backend: Backend, *, notifier: Optional[Notifier] = None,
                     items_per_page: Optional[int] = None) -> OptimisticList[CompanyOut]:
    return OptimisticList(backend.companies,
                          filters=CompanyFilters(),
                          label="company",
                          plural="companies",
                          model=CompanyOut,
                          notifier=notifier,
                          items_per_page=items_per_page)


def drugs_screen(backend: Backend, *, notifier: Optional[Notifier] = None,
                 items_per_page: Optional[int] = None) -> OptimisticList[DrugOut]:
    return OptimisticList(backend.drugs,
                          filters=DrugFilters(),
                          label="drug",
                          plural="drugs",
                          model=DrugOut,
                          notifier=notifier,
                          items_per_page=items_per_page)


def patients_screen(backend: Backend, *, notifier: Optional[Notifier] = None,
                    items_per_page: Optional[int] = None) -> OptimisticList[PodPatientOut]:
    return OptimisticList(NormalizedPatients(backend.pod_patients),
                          filters=PatientFilters(),
                          label="patient",
                          plural="patients",
                          model=PodPatientOut,
                          notifier=notifier,
                          items_per_page=items_per_page)
