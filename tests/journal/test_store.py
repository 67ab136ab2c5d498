"""Tests for inkwell.journal.store — LocalEntryStore."""

import errno
import json
import os
from datetime import datetime, timedelta, timezone

import aiofiles.os
import pytest

from inkwell.core.exceptions import EntryNotFoundError, PersistenceError, ValidationError
from inkwell.core.storage import LocalStorage
from inkwell.journal.store import EntryStore, LocalEntryStore

START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_dir, clock):
    return LocalEntryStore(LocalStorage(base_path=tmp_dir), clock=clock)


class TestCreateAndGet:
    async def test_create_then_get(self, store):
        entry = await store.create(
            "alice",
            title="Walk",
            text="Went out.",
            images=["file:///p1.jpg"],
            qualifiers=["Tone: Calm"],
        )
        assert await store.get("alice", entry.id) == entry
        assert entry.created_at == entry.updated_at == entry.entry_date == START

    async def test_ids_are_unique(self, store):
        first = await store.create("alice", title="a")
        second = await store.create("alice", title="a")
        assert first.id != second.id

    async def test_explicit_entry_date(self, store):
        entry = await store.create("alice", entry_date="2023-12-25")
        assert entry.entry_date == datetime(2023, 12, 25, tzinfo=timezone.utc)

    async def test_record_layout_on_disk(self, store, tmp_dir):
        entry = await store.create("alice", title="Café")
        path = os.path.join(tmp_dir, "entries", "alice", f"{entry.id}.json")
        with open(path, encoding="utf-8") as f:
            record = json.load(f)
        assert record["userId"] == "alice"
        assert record["title"] == "Café"

    async def test_get_missing(self, store):
        with pytest.raises(EntryNotFoundError):
            await store.get("alice", "does-not-exist")

    @pytest.mark.parametrize("entry_id", ["", "../escape", "a/b"])
    async def test_get_unsafe_id_is_not_found(self, store, entry_id):
        with pytest.raises(EntryNotFoundError):
            await store.get("alice", entry_id)

    @pytest.mark.parametrize("user_id", ["", "..", "a/b", "bob smith"])
    async def test_invalid_user(self, store, user_id):
        with pytest.raises(ValidationError):
            await store.create(user_id, title="x")

    async def test_create_rejects_bad_types(self, store):
        with pytest.raises(ValidationError):
            await store.create("alice", images="file:///one.jpg")
        assert await store.count("alice") == 0

    def test_satisfies_protocol(self, store):
        assert isinstance(store, EntryStore)


class TestUpdate:
    async def test_merge_keeps_other_fields(self, store, clock):
        entry = await store.create("alice", title="Draft", images=["file:///p1.jpg"])
        clock.advance(minutes=5)

        updated = await store.update("alice", entry.id, text="Final text")

        assert updated.text == "Final text"
        assert updated.title == "Draft"
        assert updated.images == ["file:///p1.jpg"]
        assert updated.created_at == entry.created_at
        assert updated.updated_at == START + timedelta(minutes=5)
        assert await store.get("alice", entry.id) == updated

    async def test_updated_at_never_decreases(self, store, clock):
        entry = await store.create("alice")
        clock.advance(hours=-1)
        updated = await store.update("alice", entry.id, title="Clock went backwards")
        assert updated.updated_at >= entry.updated_at

    async def test_missing_entry(self, store):
        await store.create("alice")
        with pytest.raises(EntryNotFoundError):
            await store.update("alice", "missing", title="x")
        assert await store.count("alice") == 1

    async def test_unknown_field_rejected_before_write(self, store):
        entry = await store.create("alice", title="Keep")
        with pytest.raises(ValidationError):
            await store.update("alice", entry.id, title="Changed", id="hijack")
        assert (await store.get("alice", entry.id)).title == "Keep"

    async def test_failed_write_leaves_record_intact(self, store, monkeypatch):
        entry = await store.create("alice", text="original")

        async def broken_replace(src, dst):
            raise OSError(errno.EIO, "I/O error")

        monkeypatch.setattr(aiofiles.os, "replace", broken_replace)
        with pytest.raises(PersistenceError):
            await store.update("alice", entry.id, text="never lands")
        monkeypatch.undo()

        assert (await store.get("alice", entry.id)).text == "original"


class TestDelete:
    async def test_delete_then_get(self, store):
        entry = await store.create("alice")
        await store.delete("alice", entry.id)
        with pytest.raises(EntryNotFoundError):
            await store.get("alice", entry.id)

    async def test_delete_missing(self, store):
        with pytest.raises(EntryNotFoundError):
            await store.delete("alice", "missing")


class TestIsolationAndDurability:
    async def test_users_cannot_see_each_other(self, store):
        entry = await store.create("alice", title="private")
        await store.create("bob", title="bob's")

        with pytest.raises(EntryNotFoundError):
            await store.get("bob", entry.id)
        page = await store.list_entries("bob")
        assert [e.title for e in page.entries] == ["bob's"]

    async def test_survives_reopen(self, tmp_dir):
        first = LocalEntryStore.open(tmp_dir)
        entry = await first.create("alice", title="Persisted", text="still here")

        reopened = LocalEntryStore.open(tmp_dir)
        assert await reopened.get("alice", entry.id) == entry

    async def test_corrupt_record_skipped_in_listing(self, store, tmp_dir):
        good = await store.create("alice", title="good")
        with open(os.path.join(tmp_dir, "entries", "alice", "broken.json"), "w") as f:
            f.write("{not json")

        page = await store.list_entries("alice")
        assert [e.id for e in page.entries] == [good.id]
        with pytest.raises(PersistenceError):
            await store.get("alice", "broken")


class TestListEntries:
    @pytest.fixture
    async def diary(self, store, clock):
        entries = []
        for day, title, text, qualifiers in [
            (1, "Monday", "Rain all day", ["Tone: Gloomy", "Topic: Weather"]),
            (3, "Wednesday", "Long hike in the sun", ["Tone: Happy", "Topic: Outdoors"]),
            (2, "Tuesday", "Quiet work day", ["Tone: Calm", "Topic: Work"]),
        ]:
            entries.append(
                await store.create(
                    "alice",
                    title=title,
                    text=text,
                    qualifiers=qualifiers,
                    entry_date=datetime(2024, 4, day, tzinfo=timezone.utc),
                )
            )
            clock.advance(minutes=1)
        return entries

    async def test_newest_first_by_entry_date(self, store, diary):
        page = await store.list_entries("alice")
        assert [e.title for e in page.entries] == ["Wednesday", "Tuesday", "Monday"]
        assert page.total_count == 3
        assert not page.has_more

    async def test_oldest_first(self, store, diary):
        page = await store.list_entries("alice", newest_first=False)
        assert [e.title for e in page.entries] == ["Monday", "Tuesday", "Wednesday"]

    async def test_pagination(self, store, diary):
        first = await store.list_entries("alice", page=1, page_size=2)
        second = await store.list_entries("alice", page=2, page_size=2)
        assert [e.title for e in first.entries] == ["Wednesday", "Tuesday"]
        assert first.has_more
        assert [e.title for e in second.entries] == ["Monday"]
        assert not second.has_more

    async def test_page_past_end_is_empty(self, store, diary):
        page = await store.list_entries("alice", page=5, page_size=2)
        assert page.entries == []
        assert page.total_count == 3

    async def test_query(self, store, diary):
        page = await store.list_entries("alice", query="HIKE")
        assert [e.title for e in page.entries] == ["Wednesday"]
        page = await store.list_entries("alice", query="calm")
        assert [e.title for e in page.entries] == ["Tuesday"]

    async def test_qualifier_filter_requires_all(self, store, diary):
        page = await store.list_entries("alice", qualifiers=["tone: happy"])
        assert [e.title for e in page.entries] == ["Wednesday"]
        page = await store.list_entries("alice", qualifiers=["Tone: Happy", "Topic: Work"])
        assert page.entries == []

    @pytest.mark.parametrize("page,page_size", [(0, 20), (1, 0)])
    async def test_invalid_paging(self, store, page, page_size):
        with pytest.raises(ValidationError):
            await store.list_entries("alice", page=page, page_size=page_size)

    async def test_empty_user(self, store):
        page = await store.list_entries("nobody")
        assert page.entries == []
        assert page.total_count == 0
