"""Tests for the ignore list and the filter applying it."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from backup_service.core import (
    ActionKind,
    IgnoreEntry,
    IgnoreFilter,
    IgnoreStore,
    PendingAction,
    PersistenceFailure,
    SyncDirection,
    file_timestamp
)

from conftest import BASE_MTIME_NS, write_file


def make_action(source_file, target_file):
    return PendingAction(
        source_file=source_file,
        target_file=target_file,
        kind=ActionKind.NEW,
        direction=SyncDirection.SOURCE_TO_TARGET
    )


class TestIgnoreEntry:

    def test_json_aliases(self):
        entry = IgnoreEntry.model_validate({
            "fileName": "report.docx",
            "lastModified": "2024-03-01T10:00:00+00:00",
            "permanentlyIgnored": True
        })

        assert entry.file_name == "report.docx"
        assert entry.permanently_ignored is True
        assert entry.model_dump(by_alias=True)["fileName"] == "report.docx"

    def test_times_normalized_to_utc(self):
        entry = IgnoreEntry(
            file_name="a.txt",
            last_modified=datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        )
        assert entry.last_modified == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert entry.last_modified.tzinfo == timezone.utc

    def test_naive_time_is_local(self):
        naive = datetime(2024, 3, 1, 12, 0)
        entry = IgnoreEntry(file_name="a.txt", last_modified=naive)
        assert entry.last_modified == naive.astimezone()

    def test_matches(self):
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = IgnoreEntry(file_name="a.txt", last_modified=stamp)

        assert entry.matches("a.txt", stamp)
        assert not entry.matches("a.txt", stamp + timedelta(microseconds=1))
        assert not entry.matches("b.txt", stamp)

    def test_permanent_matches_any_time(self):
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = IgnoreEntry(file_name="a.txt", last_modified=stamp, permanently_ignored=True)
        assert entry.matches("a.txt", stamp + timedelta(days=3))


class TestIgnoreStore:
    """Persistence of ignore entries."""

    def test_missing_file_created_empty(self, tmp_path):
        store = IgnoreStore(tmp_path / "state" / "ignored_files.json")

        assert store.load() == []
        assert json.loads(store.path.read_text()) == []

    def test_upsert_persists_with_json_keys(self, tmp_path):
        store = IgnoreStore(tmp_path / "ignored_files.json")
        stamp = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)

        store.upsert("a.txt", stamp, permanent=True)

        raw = json.loads(store.path.read_text())
        assert raw == [{
            "fileName": "a.txt",
            "lastModified": "2024-05-06T07:08:09.123456Z",
            "permanentlyIgnored": True
        }]
        assert store.load()[0].last_modified == stamp

    def test_upsert_replaces_entry_for_same_name(self, tmp_path):
        store = IgnoreStore(tmp_path / "ignored_files.json")
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)

        store.upsert("a.txt", stamp)
        store.upsert("b.txt", stamp)
        store.upsert("a.txt", stamp + timedelta(hours=1), permanent=True)

        entries = {e.file_name: e for e in store.load()}
        assert len(entries) == 2
        assert entries["a.txt"].permanently_ignored is True
        assert entries["a.txt"].last_modified == stamp + timedelta(hours=1)

    def test_remove(self, tmp_path):
        store = IgnoreStore(tmp_path / "ignored_files.json")
        store.upsert("a.txt", datetime(2024, 1, 1, tzinfo=timezone.utc))

        assert store.remove("a.txt") is True
        assert store.remove("a.txt") is False
        assert store.load() == []

    def test_corrupted_file(self, tmp_path):
        path = tmp_path / "ignored_files.json"
        path.write_text('[{"fileName": 1}')

        with pytest.raises(PersistenceFailure):
            IgnoreStore(path).load()

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "ignored_files.json"
        path.write_bytes(b"\xff\xfe[garbage")

        with pytest.raises(PersistenceFailure):
            IgnoreStore(path).load()

    def test_empty_file_is_empty_list(self, tmp_path):
        path = tmp_path / "ignored_files.json"
        path.write_text("")
        assert IgnoreStore(path).load() == []


class TestIgnoreFilter:
    """Dropping actions covered by an ignore entry."""

    def setup_method(self):
        self.filter = IgnoreFilter()

    def test_no_entries_keeps_everything(self, roots):
        source, target = roots
        actions = [make_action(write_file(source / "a.txt"), target / "a.txt")]
        assert self.filter.apply(actions, []) == actions

    def test_permanent_entry_drops_action(self, roots):
        source, target = roots
        action = make_action(write_file(source / "a.txt"), target / "a.txt")
        entry = IgnoreEntry(
            file_name="a.txt",
            last_modified=datetime(2000, 1, 1, tzinfo=timezone.utc),
            permanently_ignored=True
        )

        assert self.filter.apply([action], [entry]) == []

    def test_matching_timestamp_drops_action(self, roots):
        source, target = roots
        path = write_file(source / "a.txt")
        entry = IgnoreEntry(file_name="a.txt", last_modified=file_timestamp(path))

        assert self.filter.apply([make_action(path, target / "a.txt")], [entry]) == []

    def test_modified_file_reappears(self, roots):
        source, target = roots
        path = write_file(source / "a.txt", mtime_ns=BASE_MTIME_NS)
        entry = IgnoreEntry(file_name="a.txt", last_modified=file_timestamp(path))
        write_file(path, "changed", mtime_ns=BASE_MTIME_NS + 5_000_000_000)

        action = make_action(path, target / "a.txt")
        assert self.filter.apply([action], [entry]) == [action]

    def test_entry_is_matched_by_name_in_any_directory(self, roots):
        source, target = roots
        first = write_file(source / "one" / "notes.txt")
        second = write_file(source / "two" / "notes.txt")
        entry = IgnoreEntry(file_name="notes.txt", last_modified=file_timestamp(first))

        actions = [
            make_action(first, target / "one" / "notes.txt"),
            make_action(second, target / "two" / "notes.txt")
        ]
        assert self.filter.apply(actions, [entry]) == []

    def test_first_entry_for_name_wins(self, roots):
        source, target = roots
        path = write_file(source / "a.txt")
        entries = [
            IgnoreEntry(file_name="a.txt", last_modified=datetime(2000, 1, 1, tzinfo=timezone.utc)),
            IgnoreEntry(file_name="a.txt", last_modified=file_timestamp(path), permanently_ignored=True)
        ]

        action = make_action(path, target / "a.txt")
        assert self.filter.apply([action], entries) == [action]

    def test_vanished_file_is_kept(self, roots):
        source, target = roots
        path = write_file(source / "a.txt")
        entry = IgnoreEntry(file_name="a.txt", last_modified=file_timestamp(path))
        path.unlink()

        action = make_action(path, target / "a.txt")
        assert self.filter.apply([action], [entry]) == [action]
