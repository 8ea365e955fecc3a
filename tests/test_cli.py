# tests/test_cli.py
import pytest

from clinic_console import cli
from clinic_console.clients import make_backend
from clinic_console.core.token_store import TokenStore
from tests.conftest import FakeResponse


@pytest.fixture
def wired(monkeypatch, session):
    def _make_backend(base_url=None, **kw):
        return make_backend("http://backend.test/api", token_store=kw.get("token_store"),
                            session=session)

    monkeypatch.setattr(cli, "make_backend", _make_backend)
    return session


def test_companies_list_prints_rows_and_range(wired, token_file, capsys):
    wired.add("GET", "/companies", FakeResponse(200, {
        "data": [{"id": 1, "name": "Acme", "status": "active"}], "total": 11,
    }))
    code = cli.main(["--token-file", token_file, "companies", "list", "--search", "ac", "--page", "2"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Acme" in out
    assert "Showing 11-11 of 11" in out
    assert wired.calls[-1]["params"] == {"search": "ac", "page": "2", "per_page": "10"}


def test_failed_delete_exits_non_zero(wired, token_file, capsys):
    wired.add("DELETE", "/drugs/9", FakeResponse(500, {"message": "Server Error"}))
    assert cli.main(["--token-file", token_file, "drugs", "delete", "9"]) == 1
    assert "[error] Server Error" in capsys.readouterr().err


def test_logout_prints_notice(wired, token_file, capsys):
    assert cli.main(["--token-file", token_file, "logout"]) == 0
    assert "[info] Logged out." in capsys.readouterr().out


def test_me_without_login_fails(wired, token_file, capsys):
    assert cli.main(["--token-file", token_file, "me"]) == 1
    assert "Not logged in" in capsys.readouterr().err


def test_logout_from_another_session_is_announced(wired, token_file, capsys):
    mine = TokenStore(token_file)
    mine.save("shared")
    mine.subscribe(cli._session_listener(cli.Notifier(sink=cli._print_toast)))

    elsewhere = TokenStore(token_file)
    elsewhere.clear()
    assert mine.get() is None

    out = capsys.readouterr().out
    assert "[info] You have been logged out from another session." in out
    assert "[info] Logged out." not in out


def test_delete_ids_are_sent_as_record_ids(wired, token_file, capsys):
    wired.add("DELETE", "/companies/4", FakeResponse(204))
    wired.add("DELETE", "/companies/acme-1", FakeResponse(204))
    assert cli.main(["--token-file", token_file, "companies", "delete", "4", "acme-1"]) == 0
    assert cli.record_id(" 12 ") == 12
    assert cli.record_id("acme-1") == "acme-1"
    assert "[success] 2 companies deleted successfully!" in capsys.readouterr().out
