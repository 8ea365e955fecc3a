# clinic_console/schemas/company.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from clinic_console.schemas.common import RecordId


class CompanyIn(BaseModel):
    name: str = Field(..., min_length=1)
    status: Literal["active", "inactive"] = "active"


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None


class CompanyOut(CompanyIn):
    id: RecordId
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="allow")
