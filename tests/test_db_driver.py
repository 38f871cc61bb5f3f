import sqlite3

import pytest

from yapper.db import driver as dbd


@pytest.fixture(autouse=True)
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(dbd, "DB_PATH", dbd.DB_PATH)
    monkeypatch.setattr(dbd, "DEFAULT_LANGUAGE", dbd.DEFAULT_LANGUAGE)
    db_path = tmp_path / "data" / "yapper.db"

    dbd.init_db(str(db_path), "en")
    return db_path


def test_init_creates_the_file_and_tables(db):
    assert db.exists()

    with sqlite3.connect(db) as connection:
        tables = {row[0] for row in connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"servers", "user_settings"} <= tables


def test_init_is_repeatable(db):
    dbd.set_server_language(1, "vi")
    dbd.init_db(str(db))

    assert dbd.get_server_settings(1).language == "vi"


def test_unknown_server_gets_defaults():
    assert dbd.get_server_settings(123) == dbd.ServerSettings("en", False, False)


def test_default_language_comes_from_init(db):
    dbd.init_db(str(db), "vi")

    assert dbd.get_server_settings(123).language == "vi"


def test_server_settings_round_trip():
    dbd.set_server_language(5, "ja")
    dbd.set_disable_usernames(5, True)
    dbd.set_disable_join_leave(5, True)

    assert dbd.get_server_settings(5) == dbd.ServerSettings("ja", True, True)

    dbd.set_disable_usernames(5, False)
    assert dbd.get_server_settings(5).disable_usernames is False


def test_init_server_returns_a_stable_id():
    first = dbd.init_server(9)
    assert dbd.init_server(9) == first


def test_user_language_overrides_server_language():
    dbd.set_server_language(5, "vi")
    assert dbd.get_effective_language(42, 5) == "vi"

    dbd.set_user_language(42, "ko")
    assert dbd.get_user_language(42) == "ko"
    assert dbd.get_effective_language(42, 5) == "ko"

    dbd.set_user_language(42, None)
    assert dbd.get_user_language(42) is None
    assert dbd.get_effective_language(42, 5) == "vi"


def test_broken_database_falls_back_to_defaults(monkeypatch):
    def broken():
        raise sqlite3.OperationalError("disk on fire")

    monkeypatch.setattr(dbd, "get_conn", broken)

    assert dbd.get_server_settings(5) == dbd.ServerSettings("en")
    assert dbd.get_user_language(42) is None
