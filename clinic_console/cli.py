# clinic_console/cli.py
"""
clinic-console: terminal front-end for the pharmacy and OPD backend.

  clinic-console login --email me@clinic.kh
  clinic-console drugs list --search para --stock low-stock
  clinic-console histories pdf 12 40 -o rx.pdf
"""
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from clinic_console.clients import Backend, make_backend
from clinic_console.core.config import settings
from clinic_console.core.errors import ClinicConsoleError
from clinic_console.core.logging_setup import setup_logging
from clinic_console.core.token_store import (LOGOUT_EVENT, REMOTE_LOGOUT_EVENT,
                                              REMOTE_LOGOUT_MESSAGE, TokenStore)
from clinic_console.services.drug_stock import add_stock
from clinic_console.services.history_views import (
    find_history,
    load_all_histories,
    patient_histories,
    prescription_count,
    total_amount,
)
from clinic_console.services.list_filters import (
    CompanyFilters,
    DrugFilters,
    PatientFilters,
    display_date,
    stock_level,
)
from clinic_console.services.notifications import Notifier, Toast
from clinic_console.services.optimistic_list import OptimisticList, as_dict
from clinic_console.services.pdf_prescription import build_prescription_pdf
from clinic_console.services.screens import companies_screen, drugs_screen, patients_screen

logger = logging.getLogger(__name__)


def _print_toast(toast: Toast) -> None:
    stream = sys.stderr if toast.level == "error" else sys.stdout
    print(f"[{toast.level}] {toast.message}", file=stream)


def _session_listener(notifier: Notifier):
    def on_event(event: str) -> None:
        if event == REMOTE_LOGOUT_EVENT:
            notifier.info(REMOTE_LOGOUT_MESSAGE)
        elif event == LOGOUT_EVENT:
            notifier.info("Logged out.")
    return on_event


def record_id(value: str):
    """Numeric ids go to the backend as ints so they match the rows it returns."""
    value = value.strip()
    return int(value) if value.isdigit() else value


def _table(rows: Iterable[Sequence[Any]], head: Sequence[str]) -> None:
    rows = [["" if v is None else str(v) for v in r] for r in rows]
    widths = [len(h) for h in head]
    for r in rows:
        widths = [max(w, len(v)) for w, v in zip(widths, r)]
    print("  ".join(h.ljust(w) for h, w in zip(head, widths)))
    for r in rows:
        print("  ".join(v.ljust(w) for v, w in zip(r, widths)))


def _show_page(screen: OptimisticList, columns: List[str]) -> int:
    if not screen.refresh():
        return 1
    rows = []
    for item in screen.visible_items():
        data = as_dict(item)
        rows.append([data.get(c) for c in columns])
    _table(rows, columns)
    print(screen.window.summary())
    return 0


# -------------------------------
# commands
# -------------------------------
def cmd_login(args, backend: Backend, notifier: Notifier) -> int:
    password = args.password or getpass.getpass("Password: ")
    resp = backend.auth.login({"email": args.email, "password": password})
    if not resp.bearer:
        notifier.error(resp.message or "Login failed.")
        return 1
    notifier.success(resp.message or "Logged in successfully!")
    return 0


def cmd_logout(args, backend: Backend, notifier: Notifier) -> int:
    backend.auth.logout()
    return 0


def cmd_me(args, backend: Backend, notifier: Notifier) -> int:
    user = backend.auth.me()
    print(f"{user.name} <{user.email}>")
    return 0


def cmd_companies_list(args, backend: Backend, notifier: Notifier) -> int:
    screen = companies_screen(backend, notifier=notifier, items_per_page=args.per_page)
    screen.filters = CompanyFilters(search=args.search, status=args.status)
    screen.current_page = args.page
    return _show_page(screen, ["id", "name", "status"])


def cmd_companies_add(args, backend: Backend, notifier: Notifier) -> int:
    screen = companies_screen(backend, notifier=notifier)
    return 0 if screen.create({"name": args.name, "status": args.status}) else 1


def cmd_companies_delete(args, backend: Backend, notifier: Notifier) -> int:
    screen = companies_screen(backend, notifier=notifier)
    return 0 if screen.delete_many(args.ids) else 1


def cmd_drugs_list(args, backend: Backend, notifier: Notifier) -> int:
    screen = drugs_screen(backend, notifier=notifier, items_per_page=args.per_page)
    screen.filters = DrugFilters(search=args.search, status=args.status, stock=args.stock)
    screen.current_page = args.page
    if not screen.refresh():
        return 1
    rows = []
    for d in screen.visible_items():
        rows.append([d.id, d.name, d.quantity, stock_level(d.quantity), f"{d.price:.2f}",
                     display_date(d.expiry_date) if d.expiry_date else "", d.status])
    _table(rows, ["id", "name", "qty", "stock", "price", "expiry", "status"])
    print(screen.window.summary())
    return 0


def cmd_drugs_delete(args, backend: Backend, notifier: Notifier) -> int:
    screen = drugs_screen(backend, notifier=notifier)
    return 0 if screen.delete_many(args.ids) else 1


def cmd_drugs_add_stock(args, backend: Backend, notifier: Notifier) -> int:
    updated = add_stock(backend.drugs, args.id,
                        quantity_in_boxes=args.boxes,
                        strips_per_box=args.strips_per_box,
                        tablets_per_strip=args.tablets_per_strip,
                        notifier=notifier)
    return 0 if updated else 1


def cmd_patients_list(args, backend: Backend, notifier: Notifier) -> int:
    screen = patients_screen(backend, notifier=notifier, items_per_page=args.per_page)
    screen.filters = PatientFilters(search=args.search)
    screen.current_page = args.page
    return _show_page(screen, ["id", "name", "gender", "age", "telephone", "address"])


def cmd_histories_list(args, backend: Backend, notifier: Notifier) -> int:
    if args.patient_id is not None:
        rows = patient_histories(backend.patient_histories, args.patient_id)
    else:
        rows = load_all_histories(backend.pod_patients, backend.patient_histories)
    _table(
        [[h.id, h.patient_name or "", display_date(h.created_at) if h.created_at else "",
          prescription_count(h.json_data), f"${total_amount(h.json_data):.2f}"]
         for h in rows],
        ["id", "patient", "date", "items", "total"],
    )
    print(f"{len(rows)} record(s)")
    return 0


def cmd_histories_pdf(args, backend: Backend, notifier: Notifier) -> int:
    history = find_history(backend.patient_histories, args.patient_id, args.history_id)
    if history is None:
        notifier.error("Patient history not found.")
        return 1
    pdf_bytes, file_name = build_prescription_pdf(history.json_data, history.created_at)
    out = Path(args.output or file_name)
    out.write_bytes(pdf_bytes)
    notifier.success(f"Saved {out}")
    return 0


# -------------------------------
# parser
# -------------------------------
def _paging(p: argparse.ArgumentParser) -> None:
    p.add_argument("--search", default="")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--per-page", dest="per_page", type=int, default=settings.ITEMS_PER_PAGE)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="clinic-console", description=settings.PROJECT_NAME)
    ap.add_argument("--api", default=None, help="Backend API base URL (default: API_BASE)")
    ap.add_argument("--token-file", dest="token_file", default=None)
    ap.add_argument("-v", "--verbose", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login")
    p.add_argument("--email", required=True)
    p.add_argument("--password", default=None)
    p.set_defaults(func=cmd_login)

    sub.add_parser("logout").set_defaults(func=cmd_logout)
    sub.add_parser("me").set_defaults(func=cmd_me)

    companies = sub.add_parser("companies").add_subparsers(dest="action", required=True)
    p = companies.add_parser("list")
    _paging(p)
    p.add_argument("--status", default="all", choices=["all", "active", "inactive"])
    p.set_defaults(func=cmd_companies_list)
    p = companies.add_parser("add")
    p.add_argument("name")
    p.add_argument("--status", default="active", choices=["active", "inactive"])
    p.set_defaults(func=cmd_companies_add)
    p = companies.add_parser("delete")
    p.add_argument("ids", nargs="+", type=record_id)
    p.set_defaults(func=cmd_companies_delete)

    drugs = sub.add_parser("drugs").add_subparsers(dest="action", required=True)
    p = drugs.add_parser("list")
    _paging(p)
    p.add_argument("--status", default="all", choices=["all", "active", "inactive"])
    p.add_argument("--stock", default="all",
                   choices=["all", "in-stock", "low-stock", "out-of-stock"])
    p.set_defaults(func=cmd_drugs_list)
    p = drugs.add_parser("delete")
    p.add_argument("ids", nargs="+", type=record_id)
    p.set_defaults(func=cmd_drugs_delete)
    p = drugs.add_parser("add-stock")
    p.add_argument("id", type=record_id)
    p.add_argument("--boxes", type=int, required=True)
    p.add_argument("--strips-per-box", dest="strips_per_box", type=int, default=None)
    p.add_argument("--tablets-per-strip", dest="tablets_per_strip", type=int, default=None)
    p.set_defaults(func=cmd_drugs_add_stock)

    patients = sub.add_parser("patients").add_subparsers(dest="action", required=True)
    p = patients.add_parser("list")
    _paging(p)
    p.set_defaults(func=cmd_patients_list)

    histories = sub.add_parser("histories").add_subparsers(dest="action", required=True)
    p = histories.add_parser("list")
    p.add_argument("--patient-id", dest="patient_id", default=None)
    p.set_defaults(func=cmd_histories_list)
    p = histories.add_parser("pdf")
    p.add_argument("patient_id")
    p.add_argument("history_id")
    p.add_argument("-o", "--output", default=None)
    p.set_defaults(func=cmd_histories_pdf)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    # toasts are already printed; keep the log quiet unless asked
    setup_logging("DEBUG" if args.verbose else "ERROR")

    notifier = Notifier(sink=_print_toast)
    store = TokenStore(args.token_file)
    store.subscribe(_session_listener(notifier))
    backend = make_backend(args.api, token_store=store)

    try:
        return args.func(args, backend, notifier)
    except ClinicConsoleError as e:
        logger.debug("Command failed", exc_info=True)
        notifier.error(getattr(e, "message", None) or str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
