# clinic_console/clients/drugs.py
from __future__ import annotations

from typing import Any, Iterable, Literal, Optional, Union

from clinic_console.clients.base import ResourceApi
from clinic_console.schemas.common import ListResult
from clinic_console.schemas.drug import DrugOut, StockDeductionIn, StockDeductionItem


class DrugsApi(ResourceApi[DrugOut]):
    path = "/drugs"
    model = DrugOut

    def list(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[str] = None,
        category_id: Optional[int] = None,
        brand_id: Optional[int] = None,
        in_stock: Optional[bool] = None,
        expiring_soon: Optional[bool] = None,
        expiring_days: Optional[int] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_dir: Optional[Literal["asc", "desc"]] = None,
    ) -> ListResult:
        return self._list({
            "search": search,
            "status": status,
            "category_id": category_id,
            "brand_id": brand_id,
            "in_stock": in_stock,
            "expiring_soon": expiring_soon,
            "expiring_days": expiring_days,
            "page": page,
            "per_page": per_page,
            "sort_by": sort_by,
            "sort_dir": sort_dir,
        })

    def deduct_stock(
        self,
        deductions: Union[StockDeductionIn, Iterable[StockDeductionItem]],
    ) -> Any:
        """PATCH /drugs/deduct-stock; the backend answers with the new levels."""
        if not isinstance(deductions, StockDeductionIn):
            deductions = StockDeductionIn(deductions=list(deductions))
        return self.client.patch(f"{self.path}/deduct-stock",
                                 json=deductions.model_dump(mode="json"))
