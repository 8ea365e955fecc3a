# clinic_console/clients/companies.py
from typing import Optional

from clinic_console.clients.base import ResourceApi
from clinic_console.schemas.common import ListResult
from clinic_console.schemas.company import CompanyOut


class CompaniesApi(ResourceApi[CompanyOut]):
    path = "/companies"
    model = CompanyOut

    def list(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[str] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> ListResult:
        return self._list({
            "search": search,
            "status": status,
            "page": page,
            "per_page": per_page,
        })
