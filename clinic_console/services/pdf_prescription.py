# clinic_console/services/pdf_prescription.py
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, Union

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from clinic_console.core.config import settings
from clinic_console.schemas.patient_history import PrescriptionLine, PrescriptionSnapshot

logger = logging.getLogger(__name__)

MIN_TABLE_ROWS = 10

TABLE_HEAD = ("No.", "Medication", "Morning", "Afternoon", "Evening", "Night",
              "Period", "QTY", "After Meal", "Before Meal", "Price")
# widths in mm, sum = A4 width - 2 * margin
TABLE_WIDTHS = (10, 34, 16, 18, 15, 13, 15, 12, 17, 17, 13)

BRAND_BLUE = colors.Color(11 / 255, 59 / 255, 145 / 255)
BRAND_RED = colors.Color(210 / 255, 0, 0)
TOTAL_FILL = colors.Color(240 / 255, 240 / 255, 240 / 255)


# -------------------------------
# Helpers
# -------------------------------
def _safe(v: Any) -> str:
    return "" if v is None else str(v)


def _na(v: Any) -> str:
    s = _safe(v).strip()
    return s or "N/A"


def _cell(v: Any) -> str:
    # `value || ""`: 0, None and "" all print blank
    if v in (None, "", 0, False):
        return ""
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _money(v: float) -> str:
    return f"${v:.2f}"


def _to_date(v: Any) -> Optional[date]:
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    s = _safe(v).strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in ("%d-%m-%Y", "%d/%m/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(s[:10], fmt).date()
        except ValueError:
            continue
    return None


def _wrap(text: str, font: str, size: float, max_w: float) -> List[str]:
    s = (text or "").replace("\n", " ").strip()
    if not s:
        return [""]
    words = s.split()
    lines: List[str] = []
    cur = ""
    for w in words:
        cand = (cur + " " + w).strip()
        if pdfmetrics.stringWidth(cand, font, size) <= max_w:
            cur = cand
        else:
            if cur:
                lines.append(cur)
            cur = w
    if cur:
        lines.append(cur)
    return lines


def register_body_font(paths: Optional[List[str]] = None) -> str:
    """
    Register the first TTF found (Khmer script for names and districts);
    Helvetica when none is installed.
    """
    for p in paths if paths is not None else settings.PDF_FONT_PATHS:
        path = Path(p)
        if not path.is_file():
            continue
        name = path.stem.split("-")[0]
        if name in pdfmetrics.getRegisteredFontNames():
            return name
        try:
            pdfmetrics.registerFont(TTFont(name, str(path)))
        except (TTFError, OSError) as e:
            logger.warning("Could not load font %s: %s", path, e)
            continue
        logger.info("Prescription font %s loaded from %s", name, path)
        return name
    logger.warning("No Khmer font found, falling back to Helvetica")
    return "Helvetica"


def prescription_file_name(patient_name: Optional[str], when: date) -> str:
    name = re.sub(r"[\s/\\]", "_", patient_name or "patient")
    return f"prescription-{name}-{when:%d%m%Y}.pdf"


# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------
def build_prescription_pdf(
    data: Union[PrescriptionSnapshot, Mapping[str, Any], str],
    record_created_at: Any,
    *,
    font_paths: Optional[List[str]] = None,
) -> Tuple[bytes, str]:
    """
    Render a stored OPD visit as an A4 prescription.

    `data` is the history json_data (string, dict or parsed snapshot), in the
    current or the legacy key layout. Returns (pdf_bytes, file_name).
    """
    if isinstance(data, str):
        snap = PrescriptionSnapshot.from_json(data)
    elif isinstance(data, PrescriptionSnapshot):
        snap = data
    else:
        snap = PrescriptionSnapshot.model_validate(dict(data))

    when = _to_date(record_created_at) or date.today()
    date_str = when.strftime("%d/%m/%Y")
    patient = snap.patient
    lines = snap.prescriptions
    body_font = register_body_font(font_paths)

    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    W, H = A4
    M = 15 * mm
    content_w = W - 2 * M

    def Y(top_mm: float) -> float:
        # layout is measured from the top edge
        return H - top_mm * mm

    def draw_header() -> None:
        # blue block, then red block, then the white cross on top of it
        c.setFillColor(BRAND_BLUE)
        c.rect(15 * mm, Y(26), 35 * mm, 16 * mm, stroke=0, fill=1)
        c.setFillColor(BRAND_RED)
        c.rect(50 * mm, Y(26), 15 * mm, 16 * mm, stroke=0, fill=1)
        c.setFillColor(colors.white)
        c.rect(57 * mm, Y(23), 4 * mm, 10 * mm, stroke=0, fill=1)
        c.rect(54 * mm, Y(21), 10 * mm, 4 * mm, stroke=0, fill=1)

        c.setFont("Helvetica", 12)
        c.drawCentredString(33 * mm, Y(20), settings.CLINIC_SHORT_NAME)

        cx = W / 2 + 10 * mm
        c.setFillColor(colors.black)
        c.setFont("Helvetica", 14)
        c.drawCentredString(cx, Y(15), settings.CLINIC_SHORT_NAME)
        c.setFont("Helvetica", 10)
        c.drawCentredString(cx, Y(20), settings.CLINIC_SUBTITLE)
        c.setFont("Helvetica", 12)
        c.drawCentredString(cx, Y(25), settings.CLINIC_TAGLINE)

        c.setStrokeColor(colors.black)
        c.setLineWidth(0.4 * mm)
        c.line(W / 2 - 25 * mm, Y(27), W / 2 + 25 * mm, Y(27))

        c.setFont("Helvetica-Bold", 14)
        c.drawCentredString(W / 2, Y(37), "Prescription")
        c.line(W / 2 - 20 * mm, Y(38), W / 2 + 20 * mm, Y(38))

    def draw_patient(top: float) -> float:
        y = top
        c.setFillColor(colors.black)
        c.setFont(body_font, 12)
        c.drawString(M, Y(y), "Patient:")
        c.drawString(M + 25 * mm, Y(y), _na(patient.name if patient else None))
        c.drawString(W - 80 * mm, Y(y), "Gender:")
        c.drawString(W - 58 * mm, Y(y), _na(patient.gender if patient else None))

        y += 7
        c.drawString(M, Y(y), "Age:")
        c.drawString(M + 20 * mm, Y(y), _na(patient.age if patient else None))
        c.drawString(W - 80 * mm, Y(y), "District:")
        c.drawString(W - 58 * mm, Y(y), _na(patient.address if patient else None))

        for label, value in (
            ("Vital Signs:  ", patient.signs_of_life if patient else None),
            ("Symptoms: ", patient.symptom if patient else None),
            ("Diagnosis: ", patient.diagnosis if patient else None),
            ("PE: ", patient.pe if patient else None),
        ):
            y += 7
            c.drawString(M, Y(y), f"{label}{_na(value)}")

        y += 5
        c.setLineWidth(0.2 * mm)
        c.line(M, Y(y), W - M, Y(y))
        return y + 5

    x_positions = [M]
    for w in TABLE_WIDTHS:
        x_positions.append(x_positions[-1] + w * mm)

    def draw_table_header(top: float) -> float:
        h = 8
        c.setFillColor(colors.white)
        c.setStrokeColor(colors.black)
        c.setLineWidth(0.3 * mm)
        c.rect(M, Y(top + h), content_w, h * mm, stroke=1, fill=1)
        for xp in x_positions[1:-1]:
            c.line(xp, Y(top + h), xp, Y(top))
        c.setFillColor(colors.black)
        c.setFont("Helvetica-Bold", 7.5)
        for i, title in enumerate(TABLE_HEAD):
            xc = (x_positions[i] + x_positions[i + 1]) / 2
            c.drawCentredString(xc, Y(top + h / 2 + 1.2), title)
        return top + h

    def draw_footer() -> None:
        footer_top = H / mm - 20
        c.setFillColor(colors.black)
        c.setFont(body_font, 10)
        c.drawString(M, Y(footer_top), settings.CLINIC_ADDRESS)
        c.drawString(W - 60 * mm, Y(footer_top), f"DATE: {date_str}")
        c.drawString(M, Y(footer_top + 6), f"TEL: {settings.CLINIC_PHONE}")
        c.drawString(W - 60 * mm, Y(footer_top + 6), settings.CLINIC_DOCTOR)

    page_bottom = H / mm - 30  # keep clear of the footer

    def new_page() -> float:
        draw_footer()
        c.showPage()
        return draw_table_header(15)

    def row_cells(i: int, p: Optional[PrescriptionLine]) -> List[str]:
        if p is None:
            return [""] * len(TABLE_HEAD)
        return [
            str(i),
            p.name,
            _cell(p.morning),
            _cell(p.afternoon),
            _cell(p.evening),
            _cell(p.night),
            _cell(p.period),
            _cell(p.qty),
            "Yes" if p.after_meal else "No",
            "Yes" if p.before_meal else "No",
            _money(p.price),
        ]

    def draw_row(top: float, cells: List[str]) -> float:
        med_w = TABLE_WIDTHS[1] * mm - 4 * mm
        med_lines = _wrap(cells[1], body_font, 10, med_w)[:2]
        h = max(7.0, 2 + len(med_lines) * 4.5)
        if top + h > page_bottom:
            top = new_page()

        c.setStrokeColor(colors.black)
        c.setLineWidth(0.3 * mm)
        c.rect(M, Y(top + h), content_w, h * mm, stroke=1, fill=0)
        for xp in x_positions[1:-1]:
            c.line(xp, Y(top + h), xp, Y(top))

        c.setFillColor(colors.black)
        c.setFont(body_font, 10)
        mid = Y(top + h / 2 + 1.3)
        for idx, val in enumerate(cells):
            if idx == 1:
                yy = top + 2 + 3.3
                for ln in med_lines:
                    c.drawString(x_positions[1] + 2 * mm, Y(yy), ln)
                    yy += 4.5
            elif idx == len(cells) - 1:
                c.drawRightString(x_positions[idx + 1] - 2 * mm, mid, val)
            else:
                xc = (x_positions[idx] + x_positions[idx + 1]) / 2
                c.drawCentredString(xc, mid, val)
        return top + h

    # Render
    draw_header()
    y = draw_patient(50)
    y = draw_table_header(y)

    rows: List[Optional[PrescriptionLine]] = list(lines)
    while len(rows) < MIN_TABLE_ROWS:
        rows.append(None)
    for i, p in enumerate(rows, start=1):
        y = draw_row(y, row_cells(i, p))

    grand_total = snap.grand_total()

    after = y + 8
    if after + 25 > page_bottom:
        after = new_page() + 8

    box_x = W - 95 * mm
    c.setFillColor(TOTAL_FILL)
    c.setStrokeColor(colors.black)
    c.setLineWidth(0.5 * mm)
    c.rect(box_x, Y(after + 7), 80 * mm, 12 * mm, stroke=1, fill=1)
    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(box_x + 3 * mm, Y(after + 2), "Total Amount:")
    c.drawRightString(W - M - 3 * mm, Y(after + 2), _money(grand_total))

    c.setFont(body_font, 10)
    c.drawString(M, Y(after + 15), settings.PRESCRIPTION_NOTE)

    draw_footer()
    c.save()

    file_name = prescription_file_name(patient.name if patient else None, when)
    return buf.getvalue(), file_name
