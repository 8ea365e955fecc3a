# clinic_console/schemas/patient.py
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from clinic_console.schemas.common import RecordId


class PodPatientIn(BaseModel):
    name: str
    gender: Optional[str] = None
    age: Optional[Union[int, str]] = None
    telephone: Optional[str] = None
    address: Optional[str] = None
    signs_of_life: Optional[str] = None
    pe: Optional[str] = None
    symptom: Optional[str] = None
    diagnosis: Optional[str] = None


class PodPatientUpdate(BaseModel):
    name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[Union[int, str]] = None
    telephone: Optional[str] = None
    address: Optional[str] = None
    signs_of_life: Optional[str] = None
    pe: Optional[str] = None
    symptom: Optional[str] = None
    diagnosis: Optional[str] = None


class PodPatientOut(PodPatientIn):
    id: RecordId
    city: Optional[str] = None

    model_config = ConfigDict(extra="allow")
