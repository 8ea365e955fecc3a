# clinic_console/schemas/__init__.py
from .common import ListResult, Paginated, RecordId
from .company import CompanyIn, CompanyUpdate, CompanyOut
from .drug import DrugIn, DrugUpdate, DrugOut, StockDeductionItem, StockDeductionIn
from .patient import PodPatientIn, PodPatientUpdate, PodPatientOut
from .patient_history import (
    HISTORY_TYPE_OPD,
    PatientInfo,
    PrescriptionLine,
    PrescriptionSnapshot,
    PatientHistoryIn,
    PatientHistoryOut,
    TempPrescriptionIn,
    TempPrescriptionOut,
)
from .auth import LoginIn, RegisterIn, AuthResponse, UserOut
