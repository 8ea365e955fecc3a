# clinic_console/schemas/patient_history.py
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from clinic_console.schemas.common import RecordId

logger = logging.getLogger(__name__)

HISTORY_TYPE_OPD = "opd"

Dose = Optional[Union[int, float, str]]


def _num(v: Any) -> float:
    # Number(x) || 0
    try:
        n = float(v)
    except (TypeError, ValueError):
        return 0.0
    return n if n == n else 0.0  # NaN -> 0


class PatientInfo(BaseModel):
    name: Optional[str] = None
    age: Optional[Union[int, str]] = None
    gender: Optional[str] = None
    telephone: Optional[str] = None
    address: Optional[str] = None
    signs_of_life: Optional[str] = None
    pe: Optional[str] = None
    symptom: Optional[str] = None
    diagnosis: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class PrescriptionLine(BaseModel):
    id: Optional[RecordId] = None  # drug id
    name: str = ""
    price: float = 0
    morning: Dose = None
    afternoon: Dose = None
    evening: Dose = None
    night: Dose = None
    period: Optional[str] = None
    qty: float = 0
    after_meal: bool = Field(False, alias="afterMeal")
    before_meal: bool = Field(False, alias="beforeMeal")
    total: Optional[float] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("price", "qty", mode="before")
    @classmethod
    def _coerce_number(cls, v):
        return _num(v)

    @field_validator("name", mode="before")
    @classmethod
    def _name_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("period", mode="before")
    @classmethod
    def _period_text(cls, v):
        return None if v is None else str(v)

    @field_validator("after_meal", "before_meal", mode="before")
    @classmethod
    def _flag(cls, v):
        # older rows carry null or 0/1
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "y")
        return bool(v)

    @property
    def line_total(self) -> float:
        return round(self.price * self.qty, 2)


class PrescriptionSnapshot(BaseModel):
    """
    Deserialized PatientHistory.json_data.

    Older records were written as patient_info / prescription / total; they
    are folded into the current keys on load.
    """
    patient: Optional[PatientInfo] = None
    prescriptions: List[PrescriptionLine] = []
    total_amount: Optional[float] = Field(None, alias="totalAmount")
    created_at: Optional[str] = Field(None, alias="createdAt")
    patient_id: Optional[RecordId] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_keys(cls, values: Any):
        if not isinstance(values, dict):
            return values
        v = dict(values)
        legacy_patient = v.pop("patient_info", None)
        if v.get("patient") is None:
            v["patient"] = legacy_patient
        legacy_lines = v.pop("prescription", None)
        if v.get("prescriptions") is None:
            v["prescriptions"] = legacy_lines or []
        legacy_total = v.pop("total", None)
        if v.get("totalAmount") is None and v.get("total_amount") is None:
            v["totalAmount"] = legacy_total
        return v

    @classmethod
    def from_json(cls, json_data: Optional[str]) -> "PrescriptionSnapshot":
        if not json_data:
            return cls()
        try:
            raw = json.loads(json_data)
        except (TypeError, ValueError):
            return cls()
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError:
            logger.warning("Unreadable prescription snapshot, showing it empty", exc_info=True)
            return cls()

    def to_json_data(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True,
                                          exclude_none=True))

    @property
    def stored_total(self) -> float:
        return self.total_amount if self.total_amount is not None else 0.0

    def grand_total(self) -> float:
        return round(sum(p.price * p.qty for p in self.prescriptions), 2)


class PatientHistoryIn(BaseModel):
    type: str = HISTORY_TYPE_OPD
    json_data: str
    patient_id: Optional[RecordId] = None


class PatientHistoryOut(BaseModel):
    id: RecordId
    type: str = HISTORY_TYPE_OPD
    json_data: str = "{}"
    patient_id: Optional[RecordId] = None
    patient_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("json_data", mode="before")
    @classmethod
    def _json_text(cls, v):
        # some backends hand json columns back already decoded
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return "{}" if v is None else v

    def snapshot(self) -> PrescriptionSnapshot:
        return PrescriptionSnapshot.from_json(self.json_data)


class TempPrescriptionIn(BaseModel):
    json_data: str


class TempPrescriptionOut(TempPrescriptionIn):
    id: RecordId
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="allow")
