# clinic_console/services/list_filters.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Literal, Optional

from clinic_console.core.config import settings

ALL = "all"
SortDir = Literal["asc", "desc"]


# -------------------------------
# Helpers
# -------------------------------
def _g(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _contains(value: Any, term: str) -> bool:
    return value is not None and term in str(value).lower()


def _to_date(v: Any) -> Optional[date]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    try:
        return datetime.fromisoformat(str(v).replace("Z", "+00:00")).date()
    except ValueError:
        return None


def display_date(v: Any) -> str:
    """en-US short date, e.g. "Jan 5, 2025"."""
    d = _to_date(v)
    return f"{d:%b} {d.day}, {d.year}" if d else ""


class _Filters:
    def reset(self):
        """Copy with every field back to its default ("all" / empty)."""
        defaults = {f.name: f.default for f in fields(self)}  # type: ignore[arg-type]
        return replace(self, **defaults)  # type: ignore[type-var]

    def is_default(self) -> bool:
        return self == self.reset()


# -------------------------------
# Per-screen filter state
# -------------------------------
@dataclass(frozen=True)
class CompanyFilters(_Filters):
    search: str = ""
    status: str = ALL

    def to_params(self) -> Dict[str, Any]:
        return {
            "search": self.search or None,
            "status": None if self.status == ALL else self.status,
        }

    def matches(self, company: Any) -> bool:
        term = self.search.strip().lower()
        if term and not _contains(_g(company, "name"), term):
            return False
        return self.status == ALL or _g(company, "status") == self.status


def stock_level(quantity: Any, threshold: Optional[int] = None) -> str:
    threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
    qty = int(quantity or 0)
    if qty <= 0:
        return "out-of-stock"
    if qty < threshold:
        return "low-stock"
    return "in-stock"


@dataclass(frozen=True)
class DrugFilters(_Filters):
    search: str = ""
    status: str = ALL
    stock: str = ALL  # in-stock | low-stock | out-of-stock

    def to_params(self) -> Dict[str, Any]:
        return {
            "search": self.search or None,
            "status": None if self.status == ALL else self.status,
            "in_stock": True if self.stock == "in-stock" else None,
        }

    def matches(self, drug: Any) -> bool:
        term = self.search.strip().lower()
        if term and not any(
                _contains(_g(drug, k), term)
                for k in ("name", "generic_name", "brand_name", "barcode",
                          "manufacturer")):
            return False
        if self.status != ALL and _g(drug, "status") != self.status:
            return False
        if self.stock != ALL and stock_level(_g(drug, "quantity")) != self.stock:
            return False
        return True


@dataclass(frozen=True)
class PatientFilters(_Filters):
    search: str = ""
    gender: str = ALL
    city: str = ALL

    def to_params(self) -> Dict[str, Any]:
        return {"search": self.search or None}

    def matches(self, patient: Any) -> bool:
        term = self.search.strip().lower()
        if term and not _contains(_g(patient, "name"), term):
            return False
        if self.gender != ALL and _g(patient, "gender") != self.gender:
            return False
        if self.city != ALL and _g(patient, "city") != self.city:
            return False
        return True


@dataclass(frozen=True)
class HistoryFilters(_Filters):
    search: str = ""
    date: Optional[date] = None

    def to_params(self) -> Dict[str, Any]:
        return {}

    def matches(self, history: Any) -> bool:
        term = self.search.strip().lower()
        if term:
            created = _g(history, "created_at")
            hit = (_contains(_g(history, "patient_name"), term)
                   or _contains(_g(history, "type"), term)
                   or _contains(_g(history, "id"), term)
                   or (created is not None and term in display_date(created).lower()))
            if not hit:
                return False
        if self.date is not None:
            return _to_date(_g(history, "created_at")) == self.date
        return True


def distinct_values(records: Iterable[Any], key: str) -> List[Any]:
    """Options for a select filter (cities, ...), first-seen order, blanks skipped."""
    seen: List[Any] = []
    for r in records:
        v = _g(r, key)
        if v and v not in seen:
            seen.append(v)
    return seen


# -------------------------------
# Sorting
# -------------------------------
@dataclass(frozen=True)
class SortConfig:
    key: str
    direction: SortDir = "asc"


def next_sort(current: Optional[SortConfig], key: str) -> SortConfig:
    if current and current.key == key and current.direction == "asc":
        return SortConfig(key, "desc")
    return SortConfig(key, "asc")


def _sort_key(v: Any):
    if v is None:
        return (2, 0)
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return (0, v)
    if isinstance(v, (date, datetime)):
        return (0, v.toordinal() if type(v) is date else v.timestamp())
    return (1, str(v))


def sort_records(records: Iterable[Any], sort: Optional[SortConfig]) -> List[Any]:
    rows = list(records)
    if sort is None:
        return rows
    # stable; missing values stay at the end in both directions
    present = [r for r in rows if _g(r, sort.key) is not None]
    missing = [r for r in rows if _g(r, sort.key) is None]
    present.sort(key=lambda r: _sort_key(_g(r, sort.key)),
                 reverse=sort.direction == "desc")
    return present + missing


def apply_local_view(records: Iterable[Any], filters: Any,
                     sort: Optional[SortConfig] = None) -> List[Any]:
    """Sort then filter, the order the list pages apply them in."""
    return [r for r in sort_records(records, sort) if filters.matches(r)]
