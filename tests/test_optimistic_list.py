# tests/test_optimistic_list.py
import pytest

from clinic_console.core.errors import ApiConnectionError, ApiError
from clinic_console.schemas.common import ListResult
from clinic_console.schemas.company import CompanyOut
from clinic_console.services.list_filters import CompanyFilters
from clinic_console.services.optimistic_list import OptimisticList, is_temporary, record_id
from clinic_console.services.screens import companies_screen, drugs_screen
from tests.conftest import FakeResponse


class FakeSource:
    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.fail_on = {}
        self.list_calls = []
        self.deleted = []
        self.seen_during_call = None
        self.owner = None
        self.next_id = 100

    def _maybe_fail(self, op, rid=None):
        err = self.fail_on.get(op)
        if isinstance(err, dict):
            err = err.get(rid)
        if err is not None:
            raise err

    def list(self, **params):
        self.list_calls.append(params)
        self._maybe_fail("list")
        return ListResult(total=len(self.rows), items=[dict(r) for r in self.rows])

    def create(self, payload):
        if self.owner is not None:
            self.seen_during_call = list(self.owner.items)
        self._maybe_fail("create")
        self.next_id += 1
        row = {**payload, "id": self.next_id}
        self.rows.insert(0, row)
        return row

    def update(self, rid, changes):
        if self.owner is not None:
            self.seen_during_call = list(self.owner.items)
        self._maybe_fail("update")
        for r in self.rows:
            if r["id"] == rid:
                r.update(changes)
                return dict(r)
        raise ApiError(404, {"message": "Not found"})

    def delete(self, rid):
        self._maybe_fail("delete", rid)
        self.deleted.append(rid)
        self.rows = [r for r in self.rows if r["id"] != rid]
        return True


def _screen(source, notifier):
    screen = OptimisticList(source, filters=CompanyFilters(), label="company",
                            plural="companies", notifier=notifier)
    source.owner = screen
    return screen


ROWS = [{"id": i, "name": f"Company {i}", "status": "active"} for i in range(1, 4)]


def test_refresh_loads_page_and_sends_params(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    assert screen.refresh() is True
    assert screen.total == 3
    assert [r["id"] for r in screen.items] == [1, 2, 3]
    assert source.list_calls[-1] == {"search": None, "status": None, "page": 1, "per_page": 10}
    assert screen.window.summary() == "Showing 1-3 of 3"


def test_refresh_failure_toasts(notifier):
    source = FakeSource(ROWS)
    source.fail_on["list"] = ApiConnectionError("down")
    screen = _screen(source, notifier)
    assert screen.refresh() is False
    assert [t.message for t in notifier.of_level("error")] == ["Failed to fetch companies."]
    assert screen.is_loading is False


def test_create_shows_temp_row_then_real_one(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    screen.refresh()

    saved = screen.create({"name": "New Co", "status": "active"})

    assert is_temporary(source.seen_during_call[0])
    assert source.seen_during_call[0]["name"] == "New Co"
    assert saved["id"] == 101
    assert record_id(screen.items[0]) == 101
    assert not any(is_temporary(r) for r in screen.items)
    assert screen.total == 4
    assert notifier.of_level("success")[-1].message == "Company created successfully!"


def test_create_failure_removes_temp_row(notifier):
    source = FakeSource(ROWS)
    source.fail_on["create"] = ApiError(422, {"message": "The name has already been taken."})
    screen = _screen(source, notifier)
    screen.refresh()
    before = list(screen.items)

    assert screen.create({"name": "Company 1"}) is None
    assert screen.items == before
    assert screen.total == 3
    assert [t.message for t in notifier.of_level("error")] == ["The name has already been taken."]


def test_update_failure_restores_snapshot(notifier):
    source = FakeSource(ROWS)
    source.fail_on["update"] = ApiError(500, None)
    screen = _screen(source, notifier)
    screen.refresh()
    before = [dict(r) for r in screen.items]

    assert screen.update(2, {"name": "Renamed"}) is None
    # the edit was visible while the request was in flight
    assert source.seen_during_call[1]["name"] == "Renamed"
    assert screen.items == before
    assert [t.message for t in notifier.of_level("error")] == ["Failed to update company."]


def test_update_success_replaces_row(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    screen.refresh()
    screen.update(2, {"status": "inactive"})
    assert screen.find(2)["status"] == "inactive"


def test_delete_failure_keeps_row_and_toasts_once(notifier):
    source = FakeSource(ROWS)
    source.fail_on["delete"] = {2: ApiError(500, None)}
    screen = _screen(source, notifier)
    screen.refresh()
    before = list(screen.items)

    assert screen.delete(2) is False
    assert screen.items == before
    assert screen.total == 3
    assert len(notifier.of_level("error")) == 1


def test_bulk_delete_success(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    screen.refresh()
    screen.toggle_selection(1)
    screen.toggle_selection(3)

    assert screen.delete_many() is True
    assert sorted(source.deleted) == [1, 3]
    assert [r["id"] for r in screen.items] == [2]
    assert screen.total == 1
    assert screen.selected == set()
    assert notifier.of_level("success")[-1].message == "2 companies deleted successfully!"


def test_bulk_delete_partial_failure_restores_everything(notifier):
    source = FakeSource(ROWS)
    source.fail_on["delete"] = {3: ApiError(500, None)}
    screen = _screen(source, notifier)
    screen.refresh()
    before = list(screen.items)

    assert screen.delete_many([1, 3]) is False
    assert screen.items == before
    assert screen.total == 3
    assert [t.message for t in notifier.of_level("error")] == ["Failed to delete selected companies."]


def test_unexpected_errors_roll_back_and_propagate(notifier):
    source = FakeSource(ROWS)
    source.fail_on["update"] = RuntimeError("bug")
    screen = _screen(source, notifier)
    screen.refresh()
    before = list(screen.items)

    with pytest.raises(RuntimeError):
        screen.update(1, {"name": "x"})
    assert screen.items == before


def test_changing_filters_goes_back_to_page_one(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    screen.set_page(3)
    screen.set_filters(search="acme")
    assert screen.current_page == 1
    assert source.list_calls[-1]["search"] == "acme"
    screen.set_page(2)
    screen.reset_filters()
    assert screen.current_page == 1
    assert screen.filters == CompanyFilters()


def test_stale_refresh_is_dropped(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    original_list = source.list

    def slow_list(**params):
        result = original_list(**params)
        if len(source.list_calls) == 1:
            # a second refresh starts before the first answers
            source.rows = source.rows[:1]
            screen.refresh()
        return result

    source.list = slow_list
    assert screen.refresh() is False
    assert [r["id"] for r in screen.items] == [1]
    assert screen.total == 1


def test_select_all_toggles(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    screen.refresh()
    screen.select_all()
    assert screen.selected == {1, 2, 3}
    screen.select_all()
    assert screen.selected == set()


def test_listeners_see_every_change(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    seen = []
    screen.subscribe(lambda s: seen.append(len(s.items)))
    screen.refresh()
    screen.delete(1)
    assert seen[-1] == 2
    assert len(seen) >= 3


def test_company_screen_delete_over_http_500(backend, session, notifier):
    session.add("GET", "/companies", FakeResponse(200, {
        "data": [{"id": 1, "name": "Acme", "status": "active"},
                 {"id": 2, "name": "Globex", "status": "active"}],
        "total": 2,
    }))
    session.add("DELETE", "/companies/2", FakeResponse(500, {"message": "Server Error"}))
    screen = companies_screen(backend, notifier=notifier)
    screen.refresh()
    assert all(isinstance(r, CompanyOut) for r in screen.items)

    assert screen.delete(2) is False
    assert [r.id for r in screen.items] == [1, 2]
    assert [t.message for t in notifier.of_level("error")] == ["Server Error"]


def test_items_per_page_goes_back_to_page_one_and_refetches(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    screen.set_page(3)

    assert screen.set_items_per_page(25) is True
    assert screen.current_page == 1
    assert source.list_calls[-1]["page"] == 1
    assert source.list_calls[-1]["per_page"] == 25
    with pytest.raises(ValueError):
        screen.set_items_per_page(0)


def test_sort_column_toggles_and_orders_visible_items(notifier):
    source = FakeSource([{"id": 2, "name": "beta"}, {"id": 1, "name": "alpha"},
                         {"id": 3, "name": None}])
    screen = _screen(source, notifier)
    screen.refresh()

    assert screen.sort_by("name").direction == "asc"
    assert [r["name"] for r in screen.visible_items()] == ["alpha", "beta", None]

    assert screen.sort_by("name").direction == "desc"
    assert [r["name"] for r in screen.visible_items()] == ["beta", "alpha", None]

    # a new column starts ascending again
    assert screen.sort_by("id").direction == "asc"
    assert [r["id"] for r in screen.visible_items()] == [1, 2, 3]


def test_bulk_delete_only_counts_rows_on_the_page(notifier):
    source = FakeSource(ROWS)
    screen = _screen(source, notifier)
    screen.refresh()

    assert screen.delete_many([1, 99]) is True
    assert [r["id"] for r in screen.items] == [2, 3]
    assert screen.total == 2


def test_drug_rows_with_null_columns_load(backend, session, notifier):
    session.add("GET", "/drugs", FakeResponse(200, {"data": [
        {"id": 1, "name": "ORS", "unit": None, "price": None, "quantity": None},
        {"id": 2, "name": "Para", "price": 0.5, "quantity": 40},
    ], "total": 2}))
    session.add("DELETE", "/drugs/1", FakeResponse(204))
    session.add("DELETE", "/drugs/2", FakeResponse(204))
    screen = drugs_screen(backend, notifier=notifier)

    assert screen.refresh() is True
    ors = screen.find(1)
    assert (ors.unit, ors.price, ors.quantity) == ("tablets", 0, 0)

    assert screen.delete_many([1, 2]) is True
    assert notifier.of_level("success")[-1].message == "2 drugs deleted successfully!"


def test_unreadable_rows_fail_the_refresh(backend, session, notifier):
    session.add("GET", "/companies", FakeResponse(200, {"data": [{"name": "no id"}], "total": 1}))
    screen = companies_screen(backend, notifier=notifier)

    assert screen.refresh() is False
    assert screen.is_loading is False
    assert [t.message for t in notifier.of_level("error")] == ["Failed to fetch companies."]
