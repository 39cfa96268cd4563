"""Tests for migrating legacy single-history chat files into sessions."""

import pytest

from storybuddy import storage
from storybuddy.storage.core import read_json, write_json


def _write_history(mode, messages, last_updated="2024-05-01T10:00:00.000Z"):
    write_json(storage.data_dir() / "chat-history" / f"{mode}.json", {
        "mode": mode,
        "messages": messages,
        "lastUpdated": last_updated,
    })


THREE_MESSAGES = [
    {"role": "user", "content": "A heist on an airship?", "timestamp": "2024-05-01T09:00:00.000Z"},
    {"role": "assistant", "content": "The crew needs a reason.", "timestamp": "2024-05-01T09:00:05Z"},
    {"role": "user", "content": "Revenge."},
]


def test_status_without_legacy_files():
    assert storage.check_migration_status() == {
        "needsMigration": False,
        "oldHistoriesFound": False,
        "sessionsExist": False,
    }


def test_run_without_legacy_files_is_noop():
    result = storage.run_migration()
    assert result["migratedSessions"] == 0
    assert result["sessions"] == []
    assert storage.list_publications()["publications"] == []


def test_brainstorming_history_migrates_once():
    _write_history("brainstorming", THREE_MESSAGES)
    assert storage.check_migration_status()["needsMigration"] is True

    result = storage.run_migration()
    assert result["migratedSessions"] == 1
    summary = result["sessions"][0]
    assert summary["mode"] == "brainstorming"
    assert summary["messageCount"] == 3
    assert summary["messages"] == []

    status = storage.check_migration_status()
    assert status["needsMigration"] is False
    assert status["oldHistoriesFound"] is True
    assert status["sessionsExist"] is True


def test_migrated_session_lands_in_publication_store():
    pub = storage.create_publication("Aurora", "test")
    _write_history("brainstorming", THREE_MESSAGES)
    result = storage.run_migration()
    assert result["publicationId"] == pub["id"]

    sessions = storage.list_sessions(pub["id"])
    assert len(sessions) == 1
    session = storage.get_session(sessions[0]["id"], pub["id"])
    assert session["name"] == "Brainstorming Session (migrated)"
    assert session["id"].startswith("migrated-brainstorming-")
    assert session["model"] == storage.DEFAULT_MODEL
    assert session["createdAt"] == "2024-05-01T10:00:00.000Z"
    assert session["lastUpdated"] == "2024-05-01T10:00:00.000Z"
    assert sessions[0]["lastUpdated"] == "2024-05-01T10:00:00.000Z"


def test_message_timestamps_normalized():
    _write_history("brainstorming", THREE_MESSAGES)
    result = storage.run_migration()
    session = storage.get_session(result["sessions"][0]["id"], result["publicationId"])
    stamps = [m["timestamp"] for m in session["messages"]]
    assert stamps[0] == "2024-05-01T09:00:00+00:00"
    assert stamps[1] == "2024-05-01T09:00:05+00:00"
    assert stamps[2]


def test_without_publication_creates_import_target():
    _write_history("writing", [{"role": "user", "content": "Once upon a time"}])
    result = storage.run_migration()
    pub = storage.get_publication(result["publicationId"])
    assert pub["title"] == "Imported Sessions"
    assert pub["sessionsCount"] == 1


def test_both_modes_get_distinct_ids():
    _write_history("brainstorming", THREE_MESSAGES)
    _write_history("writing", [{"role": "user", "content": "Chapter one"}])
    result = storage.run_migration()
    assert result["migratedSessions"] == 2
    ids = {s["id"] for s in result["sessions"]}
    assert len(ids) == 2
    assert {s["mode"] for s in result["sessions"]} == {"brainstorming", "writing"}


def test_empty_history_is_skipped():
    _write_history("brainstorming", [])
    _write_history("writing", [{"role": "user", "content": "x"}])
    result = storage.run_migration()
    assert [s["mode"] for s in result["sessions"]] == ["writing"]


def test_explicit_publication_must_exist():
    _write_history("writing", [{"role": "user", "content": "x"}])
    with pytest.raises(LookupError):
        storage.run_migration("123")


def test_ledger_written():
    _write_history("writing", [{"role": "user", "content": "x"}])
    result = storage.run_migration()
    ledger = read_json(storage.data_dir() / "sessions" / "index.json")
    assert ledger["publicationId"] == result["publicationId"]
    assert [s["id"] for s in ledger["sessions"]] == [s["id"] for s in result["sessions"]]
