# clinic_console/clients/pod_patients.py
from typing import Optional

from clinic_console.clients.base import ResourceApi
from clinic_console.schemas.common import ListResult
from clinic_console.schemas.patient import PodPatientOut


class PodPatientsApi(ResourceApi[PodPatientOut]):
    path = "/pod-patients"
    model = PodPatientOut

    def list(
        self,
        *,
        search: Optional[str] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> ListResult:
        return self._list({"search": search, "page": page, "per_page": per_page})
