# clinic_console/services/opd_registration.py
"""
OPD registration wizard: patient details, then the prescription, then a
review page that submits everything.

Submitting runs three backend calls in order (create POD patient, append the
visit to the patient history, deduct stock). Each finished step is
remembered, so retrying after a failure resumes where it stopped instead of
registering the patient twice.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from clinic_console.clients import Backend
from clinic_console.core.errors import ApiError, ClinicConsoleError
from clinic_console.schemas.drug import StockDeductionItem
from clinic_console.schemas.patient import PodPatientIn, PodPatientOut
from clinic_console.schemas.patient_history import (
    PatientHistoryIn,
    PatientHistoryOut,
    PatientInfo,
    PrescriptionLine,
    PrescriptionSnapshot,
    TempPrescriptionIn,
    TempPrescriptionOut,
)
from clinic_console.services.notifications import Notifier, error_message
from clinic_console.services.optimistic_list import as_dict, is_temporary
from clinic_console.services.patient_normalize import OPTIONAL_FIELDS, normalize_patient_payload

logger = logging.getLogger(__name__)

TAB_PATIENT = "patient"
TAB_PRESCRIPTION = "prescription"
TAB_REVIEW = "review"
TABS = (TAB_PATIENT, TAB_PRESCRIPTION, TAB_REVIEW)

GENDERS = ("male", "female")
PATIENT_FIELDS = ("name",) + OPTIONAL_FIELDS

_DIGIT = re.compile(r"\d")


def validate_patient(form: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    name = str(form.get("name") or "").strip()
    if not name:
        errors["name"] = "Name is required."
    elif _DIGIT.search(name):
        errors["name"] = "Name cannot contain numbers."

    gender = str(form.get("gender") or "").strip().lower()
    if gender and gender not in GENDERS:
        errors["gender"] = "Gender must be male or female."

    age = str(form.get("age") if form.get("age") is not None else "").strip()
    if age and not age.isdigit():
        errors["age"] = "Age must be a whole number of 0 or more."
    return errors


def validate_lines(lines: List[PrescriptionLine]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for i, line in enumerate(lines):
        if not line.name.strip():
            errors[f"prescriptions.{i}.name"] = "Medication is required."
        if line.qty <= 0:
            errors[f"prescriptions.{i}.qty"] = "Quantity must be greater than 0."
    return errors


def line_price(drug: Any) -> float:
    # stock is deducted in tablets, so charge the tablet price when there is one
    data = as_dict(drug)
    for key in ("tablet_price", "price"):
        v = data.get(key)
        if v not in (None, ""):
            try:
                return float(v)
            except (TypeError, ValueError):
                continue
    return 0.0


def _whole(n: float):
    return int(n) if float(n).is_integer() else n


class OpdRegistration:
    def __init__(self, backend: Backend, *, notifier: Optional[Notifier] = None) -> None:
        self.backend = backend
        self.notifier = notifier or Notifier()
        self.reset()

    def reset(self) -> None:
        self.tab: str = TAB_PATIENT
        self.patient: Dict[str, Any] = {k: "" for k in PATIENT_FIELDS}
        self.lines: List[PrescriptionLine] = []
        self.errors: Dict[str, str] = {}
        self.is_submitting = False
        self.created_patient: Optional[PodPatientOut] = None
        self.created_history: Optional[PatientHistoryOut] = None

    # -------------------------------
    # patient tab
    # -------------------------------
    def set_patient(self, **fields: Any) -> None:
        unknown = set(fields) - set(PATIENT_FIELDS)
        if unknown:
            raise KeyError(f"Unknown patient field(s): {', '.join(sorted(unknown))}")
        self.patient.update(fields)
        for key in fields:
            self.errors.pop(key, None)

    # -------------------------------
    # prescription tab
    # -------------------------------
    def add_line(self, drug: Any, *, qty: float = 1, **dose: Any) -> PrescriptionLine:
        data = as_dict(drug)
        line = PrescriptionLine(
            id=data.get("id"),
            name=str(data.get("name") or ""),
            price=line_price(data),
            qty=qty,
            **dose,
        )
        self.lines.append(line.model_copy(update={"total": line.line_total}))
        return self.lines[-1]

    def update_line(self, index: int, **changes: Any) -> PrescriptionLine:
        current = self.lines[index]
        merged = PrescriptionLine.model_validate(
            {**current.model_dump(by_alias=False), **changes})
        self.lines[index] = merged.model_copy(update={"total": merged.line_total})
        for key in changes:
            self.errors.pop(f"prescriptions.{index}.{key}", None)
        return self.lines[index]

    def remove_line(self, index: int) -> PrescriptionLine:
        self.errors = {k: v for k, v in self.errors.items()
                       if not k.startswith("prescriptions.")}
        return self.lines.pop(index)

    def grand_total(self) -> float:
        return round(sum(l.price * l.qty for l in self.lines), 2)

    # -------------------------------
    # navigation
    # -------------------------------
    def _validate_tab(self, tab: str) -> Dict[str, str]:
        if tab == TAB_PATIENT:
            return validate_patient(self.patient)
        if tab == TAB_PRESCRIPTION:
            return validate_lines(self.lines)
        return {}

    def go_to(self, tab: str) -> bool:
        """Forward moves validate every tab being left; backward moves never do."""
        if tab not in TABS:
            raise ValueError(f"Unknown tab {tab!r}")
        target, here = TABS.index(tab), TABS.index(self.tab)
        for passed in TABS[here:target]:
            errors = self._validate_tab(passed)
            if errors:
                self.errors.update(errors)
                self.tab = passed
                return False
        self.tab = tab
        return True

    def next(self) -> bool:
        here = TABS.index(self.tab)
        if here == len(TABS) - 1:
            return True
        return self.go_to(TABS[here + 1])

    def back(self) -> None:
        here = TABS.index(self.tab)
        self.tab = TABS[max(here - 1, 0)]

    def validate(self) -> bool:
        self.errors = {**validate_patient(self.patient), **validate_lines(self.lines)}
        return not self.errors

    # -------------------------------
    # submit
    # -------------------------------
    def patient_payload(self) -> PodPatientIn:
        data = normalize_patient_payload(self.patient)
        if data.get("gender"):
            data["gender"] = data["gender"].lower()
        return PodPatientIn(**data)

    def snapshot(self, patient_id: Any = None) -> PrescriptionSnapshot:
        return PrescriptionSnapshot(
            patient=PatientInfo(**self.patient_payload().model_dump()),
            prescriptions=[l.model_copy(update={"total": l.line_total}) for l in self.lines],
            total_amount=self.grand_total(),
            created_at=datetime.now(timezone.utc).isoformat(),
            patient_id=patient_id,
        )

    def deductions(self) -> List[StockDeductionItem]:
        out: List[StockDeductionItem] = []
        for line in self.lines:
            if line.id is None or is_temporary(line) or line.qty <= 0:
                continue
            out.append(StockDeductionItem(drug_id=line.id,
                                          deducted_quantity=_whole(line.qty),
                                          deduction_unit="tablet"))
        return out

    def _tab_for(self, field: str) -> str:
        return TAB_PATIENT if field in PATIENT_FIELDS else TAB_PRESCRIPTION

    def submit(self) -> Optional[PatientHistoryOut]:
        if self.is_submitting:
            return None
        if not self.validate():
            self.tab = self._tab_for(next(iter(self.errors)))
            self.notifier.error("Please fix the highlighted fields.")
            return None

        self.is_submitting = True
        try:
            if self.created_patient is None:
                self.created_patient = self.backend.pod_patients.create(self.patient_payload())
                logger.info("POD patient %s registered", self.created_patient.id)

            patient_id = self.created_patient.id
            if self.created_history is None:
                snap = self.snapshot(patient_id)
                self.created_history = self.backend.patient_histories.create(
                    PatientHistoryIn(json_data=snap.to_json_data(), patient_id=patient_id))
                logger.info("OPD history %s stored for patient %s",
                            self.created_history.id, patient_id)

            deductions = self.deductions()
            if deductions:
                self.backend.drugs.deduct_stock(deductions)
        except ClinicConsoleError as e:
            if isinstance(e, ApiError) and e.status == 422:
                field_errors = e.field_errors()
                self.errors.update(field_errors)
                if field_errors:
                    self.tab = self._tab_for(next(iter(field_errors)))
            logger.warning("OPD registration failed: %s", e)
            self.notifier.error(error_message(e, "Failed to register patient."))
            return None
        finally:
            self.is_submitting = False

        history = self.created_history
        self.notifier.success("Patient registered successfully!")
        self.reset()
        return history

    # -------------------------------
    # drafts
    # -------------------------------
    def save_draft(self) -> Optional[TempPrescriptionOut]:
        payload = TempPrescriptionIn(json_data=self.snapshot().to_json_data())
        try:
            draft = self.backend.temp_prescriptions.create(payload)
        except ClinicConsoleError as e:
            logger.warning("Saving draft failed: %s", e)
            self.notifier.error(error_message(e, "Failed to save draft."))
            return None
        self.notifier.success("Draft saved successfully!")
        return draft

    def restore(self, draft: Any) -> None:
        """Load a parked draft (temp prescription or raw json_data) back into the form."""
        json_data = getattr(draft, "json_data", draft)
        snap = PrescriptionSnapshot.from_json(json_data)
        self.reset()
        if snap.patient is not None:
            for key in PATIENT_FIELDS:
                v = getattr(snap.patient, key, None)
                self.patient[key] = "" if v is None else v
        self.lines = list(snap.prescriptions)
