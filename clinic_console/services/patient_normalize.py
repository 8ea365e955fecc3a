# clinic_console/services/patient_normalize.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

OPTIONAL_FIELDS = (
    "gender",
    "age",
    "telephone",
    "address",
    "signs_of_life",
    "pe",
    "symptom",
    "diagnosis",
)


def trim_or_none(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def normalize_patient_payload(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Trim every text field; blanks become None. Age stays a string, the
    backend casts it.
    """
    out: Dict[str, Any] = {"name": str(raw.get("name") or "").strip()}
    for key in OPTIONAL_FIELDS:
        out[key] = trim_or_none(raw.get(key))
    return out
