# clinic_console/core/config.py
import os
from typing import List
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


class Settings(BaseModel):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Clinic Pharmacy & OPD Console")
    API_V1_STR: str = os.getenv("API_V1_STR", "/api")

    # ---------- Backend REST API ----------
    API_BASE: str = os.getenv("API_BASE", "http://localhost:8000/api").rstrip("/")
    # proxy target; falls back to API_BASE
    API_URL: str = (os.getenv("API_URL") or API_BASE).rstrip("/")
    HTTP_TIMEOUT_SECONDS: float = float(
        os.getenv("HTTP_TIMEOUT_SECONDS", "15") or 15.0)

    # CORS (env takes priority)
    BACKEND_CORS_ORIGINS: List[str] = _split_csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ))

    # ---------- Session ----------
    TOKEN_FILE: str = os.getenv("TOKEN_FILE") or os.path.join(
        os.path.expanduser("~"), ".clinic_console", "auth.json")

    # ---------- Screens ----------
    ITEMS_PER_PAGE: int = int(os.getenv("ITEMS_PER_PAGE", "10"))
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "50"))

    # ---------- Logging ----------
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: str = os.getenv("LOG_FILE", "")
    LOG_HTTP_BODIES: bool = _flag("LOG_HTTP_BODIES")

    # ---------- Prescription PDF ----------
    CLINIC_SHORT_NAME: str = os.getenv("CLINIC_SHORT_NAME", "SOKLEAN")
    CLINIC_SUBTITLE: str = os.getenv("CLINIC_SUBTITLE", "CABINET MEDICAL")
    CLINIC_TAGLINE: str = os.getenv("CLINIC_TAGLINE",
                                    "HEALTH & MEDICAL CLINIC")
    CLINIC_ADDRESS: str = os.getenv(
        "CLINIC_ADDRESS",
        "No. St. 7  PHUM KREK TBONG, KHOM KREK, PONHEA KREK, CAMBODIA.")
    CLINIC_PHONE: str = os.getenv("CLINIC_PHONE", "010511178")
    CLINIC_DOCTOR: str = os.getenv("CLINIC_DOCTOR", "Dr. IM SOKLEAN")
    PRESCRIPTION_NOTE: str = os.getenv(
        "PRESCRIPTION_NOTE", "Note: Please follow your doctor's instructions.")
    # comma separated list, first existing TTF wins
    PDF_FONT_PATHS: List[str] = _split_csv(
        os.getenv("PDF_FONT_PATHS",
                  "./fonts/NotoSansKhmer-Regular.ttf,./fonts/KhmerOS.ttf"))


settings = Settings()
