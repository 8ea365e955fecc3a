# clinic_console/schemas/drug.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clinic_console.schemas.common import RecordId

DRUG_UNITS = ("tablets", "capsules", "ml", "mg", "bottles", "vials",
              "tubes", "sachets", "boxes", "units")
DEDUCTION_UNITS = ("box", "strip", "tablet")

# columns the backend may leave null; the model defaults stand in for them
_DEFAULTED = ("unit", "price", "cost_price", "quantity", "status")


class DrugIn(BaseModel):
    name: str = Field(..., min_length=1)
    generic_name: Optional[str] = ""
    brand_name: Optional[str] = ""
    company_id: Optional[RecordId] = None
    manufacturer: Optional[str] = ""

    unit: str = "tablets"
    price: float = 0
    cost_price: float = 0

    # per unit level pricing
    box_price: Optional[float] = None
    strip_price: Optional[float] = None
    tablet_price: Optional[float] = None

    quantity: int = 0
    quantity_in_boxes: Optional[int] = None
    strips_per_box: Optional[int] = None
    tablets_per_strip: Optional[int] = None
    type_drug: Optional[str] = None  # "box-only" | "box-strip-tablet"

    expiry_date: Optional[date] = None
    barcode: Optional[str] = ""
    dosage: Optional[str] = ""
    instructions: Optional[str] = ""
    side_effects: Optional[str] = ""
    status: Literal["active", "inactive"] = "active"

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _blank_date(cls, v):
        if v in ("", None):
            return None
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class DrugUpdate(BaseModel):
    name: Optional[str] = None
    generic_name: Optional[str] = None
    brand_name: Optional[str] = None
    company_id: Optional[RecordId] = None
    manufacturer: Optional[str] = None
    unit: Optional[str] = None
    price: Optional[float] = None
    cost_price: Optional[float] = None
    box_price: Optional[float] = None
    strip_price: Optional[float] = None
    tablet_price: Optional[float] = None
    quantity: Optional[int] = None
    quantity_in_boxes: Optional[int] = None
    strips_per_box: Optional[int] = None
    tablets_per_strip: Optional[int] = None
    expiry_date: Optional[date] = None
    barcode: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None


class DrugOut(DrugIn):
    id: RecordId
    slug: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _null_columns(cls, values):
        if isinstance(values, dict):
            return {k: v for k, v in values.items() if v is not None or k not in _DEFAULTED}
        return values


class StockDeductionItem(BaseModel):
    drug_id: str
    deducted_quantity: Union[int, float] = Field(..., gt=0)
    deduction_unit: Literal["box", "strip", "tablet"] = "tablet"

    @field_validator("drug_id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v)


class StockDeductionIn(BaseModel):
    deductions: List[StockDeductionItem]
