# tests/test_pdf_prescription.py
import json
import re
from datetime import date

from clinic_console.services.pdf_prescription import (
    build_prescription_pdf,
    prescription_file_name,
    register_body_font,
)


def _pages(pdf: bytes) -> int:
    return len(re.findall(rb"/Type\s*/Page\b", pdf))


DATA = {
    "patient": {"name": "Sok Dara", "gender": "male", "age": 34, "address": "Kandal",
                "signs_of_life": "BP 120/80", "symptom": "fever", "diagnosis": "flu", "pe": ""},
    "prescriptions": [
        {"name": "Paracetamol 500mg", "price": 0.5, "qty": 10, "morning": 1, "night": 1,
         "period": "5 days", "afterMeal": True},
    ],
    "totalAmount": 5,
}


def test_pdf_bytes_and_file_name():
    pdf, name = build_prescription_pdf(DATA, "2025-03-07T10:15:00Z", font_paths=[])
    assert pdf.startswith(b"%PDF")
    assert name == "prescription-Sok_Dara-07032025.pdf"


def test_accepts_json_text_and_legacy_keys():
    legacy = {"patient_info": {"name": "Chan Srey"}, "prescription": [{"name": "ORS", "qty": 2, "price": 1}]}
    pdf, name = build_prescription_pdf(json.dumps(legacy), "2024-12-31", font_paths=[])
    assert pdf.startswith(b"%PDF")
    assert name == "prescription-Chan_Srey-31122024.pdf"


def test_missing_patient_defaults_name():
    pdf, name = build_prescription_pdf({}, "2025-01-02T00:00:00Z", font_paths=[])
    assert pdf.startswith(b"%PDF")
    assert name == "prescription-patient-02012025.pdf"


def test_long_prescription_spills_onto_more_pages():
    many = dict(DATA, prescriptions=[{"name": f"Drug {i}", "price": 1, "qty": 1} for i in range(60)])
    short_pdf, _ = build_prescription_pdf(DATA, "2025-03-07", font_paths=[])
    long_pdf, _ = build_prescription_pdf(many, "2025-03-07", font_paths=[])
    assert _pages(short_pdf) == 1
    assert _pages(long_pdf) > 1


def test_file_name_replaces_whitespace():
    assert prescription_file_name("Sok  Dara\tK", date(2025, 1, 9)) == "prescription-Sok__Dara_K-09012025.pdf"
    assert prescription_file_name(None, date(2025, 1, 9)) == "prescription-patient-09012025.pdf"


def test_missing_font_falls_back_to_helvetica(tmp_path):
    assert register_body_font([str(tmp_path / "nope.ttf")]) == "Helvetica"


def test_legacy_rows_with_null_fields_render():
    legacy = {
        "patient_info": {"name": "Chan Srey"},
        "prescription": [{"name": None, "price": 2, "qty": 1, "afterMeal": None, "beforeMeal": None}],
        "total": None,
    }
    pdf, name = build_prescription_pdf(json.dumps(legacy), "2025-01-01", font_paths=[])
    assert pdf.startswith(b"%PDF")
    assert name == "prescription-Chan_Srey-01012025.pdf"
