# tests/test_list_filters.py
from datetime import date

from clinic_console.services.list_filters import (
    CompanyFilters,
    DrugFilters,
    HistoryFilters,
    PatientFilters,
    SortConfig,
    apply_local_view,
    display_date,
    distinct_values,
    next_sort,
    sort_records,
    stock_level,
)


def test_company_filters_reset_and_params():
    f = CompanyFilters(search="acme", status="inactive")
    assert f.to_params() == {"search": "acme", "status": "inactive"}
    assert f.reset() == CompanyFilters()
    assert f.reset().is_default()
    assert CompanyFilters().to_params() == {"search": None, "status": None}


def test_drug_stock_filter_maps_to_in_stock_flag():
    assert DrugFilters(stock="in-stock").to_params()["in_stock"] is True
    assert DrugFilters(stock="low-stock").to_params()["in_stock"] is None


def test_stock_level_thresholds():
    assert stock_level(0) == "out-of-stock"
    assert stock_level(None) == "out-of-stock"
    assert stock_level(49) == "low-stock"
    assert stock_level(50) == "in-stock"
    assert stock_level(5, threshold=5) == "in-stock"


def test_drug_matches_search_and_stock():
    drugs = [
        {"id": 1, "name": "Paracetamol", "generic_name": "acetaminophen", "quantity": 200, "status": "active"},
        {"id": 2, "name": "Amoxicillin", "barcode": "8850001", "quantity": 10, "status": "active"},
        {"id": 3, "name": "Ibuprofen", "quantity": 0, "status": "inactive"},
    ]
    assert [d["id"] for d in apply_local_view(drugs, DrugFilters(search="ACETA"))] == [1]
    assert [d["id"] for d in apply_local_view(drugs, DrugFilters(search="88500"))] == [2]
    assert [d["id"] for d in apply_local_view(drugs, DrugFilters(stock="low-stock"))] == [2]
    assert [d["id"] for d in apply_local_view(drugs, DrugFilters(status="inactive"))] == [3]


def test_patient_filters_by_gender_and_city():
    rows = [
        {"id": 1, "name": "Sok Dara", "gender": "male", "city": "Kandal"},
        {"id": 2, "name": "Chan Srey", "gender": "female", "city": "Phnom Penh"},
    ]
    assert [r["id"] for r in apply_local_view(rows, PatientFilters(gender="female"))] == [2]
    assert [r["id"] for r in apply_local_view(rows, PatientFilters(city="Kandal"))] == [1]
    assert PatientFilters(search="x", gender="male").to_params() == {"search": "x"}
    assert distinct_values(rows + [{"city": ""}, {"city": "Kandal"}], "city") == ["Kandal", "Phnom Penh"]


def test_history_filters_search_display_date():
    rows = [
        {"id": 7, "patient_name": "Dara", "type": "opd", "created_at": "2025-01-05T09:00:00Z"},
        {"id": 8, "patient_name": "Srey", "type": "opd", "created_at": "2025-02-10T09:00:00Z"},
    ]
    assert display_date("2025-01-05T09:00:00Z") == "Jan 5, 2025"
    assert [r["id"] for r in apply_local_view(rows, HistoryFilters(search="jan 5"))] == [7]
    assert [r["id"] for r in apply_local_view(rows, HistoryFilters(date=date(2025, 2, 10)))] == [8]


def test_sort_toggles_and_keeps_missing_last():
    s = next_sort(None, "name")
    assert s == SortConfig("name", "asc")
    s = next_sort(s, "name")
    assert s.direction == "desc"
    assert next_sort(s, "name").direction == "asc"
    assert next_sort(s, "price") == SortConfig("price", "asc")

    rows = [{"price": 3}, {"price": None}, {"price": 1}, {"price": 2}]
    assert [r["price"] for r in sort_records(rows, SortConfig("price", "asc"))] == [1, 2, 3, None]
    assert [r["price"] for r in sort_records(rows, SortConfig("price", "desc"))] == [3, 2, 1, None]
