# clinic_console/clients/__init__.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from clinic_console.clients.auth import AuthApi
from clinic_console.clients.base import ApiClient
from clinic_console.clients.companies import CompaniesApi
from clinic_console.clients.drugs import DrugsApi
from clinic_console.clients.patient_histories import PatientHistoriesApi
from clinic_console.clients.pod_patients import PodPatientsApi
from clinic_console.clients.temp_prescriptions import TempPrescriptionsApi
from clinic_console.core.token_store import TokenStore


@dataclass
class Backend:
    """All resource clients sharing one HTTP session and token."""
    client: ApiClient
    companies: CompaniesApi
    drugs: DrugsApi
    pod_patients: PodPatientsApi
    patient_histories: PatientHistoriesApi
    temp_prescriptions: TempPrescriptionsApi
    auth: Optional[AuthApi] = None


def make_backend(
    base_url: Optional[str] = None,
    *,
    token_store: Optional[TokenStore] = None,
    session: Optional[requests.Session] = None,
) -> Backend:
    client = ApiClient(base_url, token_store=token_store, session=session)
    return Backend(
        client=client,
        companies=CompaniesApi(client),
        drugs=DrugsApi(client),
        pod_patients=PodPatientsApi(client),
        patient_histories=PatientHistoriesApi(client),
        temp_prescriptions=TempPrescriptionsApi(client),
        auth=AuthApi(client) if token_store is not None else None,
    )
