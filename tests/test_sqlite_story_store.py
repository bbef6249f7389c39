from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from story_spine.adapters.sqlite_story_store import (
    DEFAULT_DB_PATH,
    SQLiteStoryStore,
    resolve_db_path,
)
from story_spine.application.reconciler import apply_draft_to_record, new_record
from story_spine.domain.draft import StoryDraft
from story_spine.domain.errors import PersistenceWriteError
from story_spine.domain.records import PassageRecord, StoryRecord


def _record(story_id: str, created_at_utc: str, *, ranks: int = 1) -> StoryRecord:
    return StoryRecord(
        story_id=story_id,
        title=f"Story {story_id}",
        created_at_utc=created_at_utc,
        updated_at_utc=created_at_utc,
        current_step_rank=ranks + 1,
        passages=[PassageRecord(step_rank=r, text=f"Text {r}.") for r in range(1, ranks + 1)],
    )


def test_create_and_get_round_trip(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    record = _record("s1", "2026-01-01T00:00:00+00:00", ranks=2)
    store.create(record)

    loaded = store.get("s1")

    assert loaded == record
    assert store.get("missing") is None


def test_save_upserts_and_replaces_passages(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    draft = StoryDraft()
    draft.set_opening(title="Harbor")
    draft.commit_passage("Boats.")
    record = new_record(draft)
    store.create(record)
    opening_id = record.passages[0].passage_id

    draft.commit_passage("Every dawn the nets went out.")
    apply_draft_to_record(draft, record)
    store.save(record)

    loaded = store.get(record.story_id)
    assert loaded is not None
    assert loaded.current_step_rank == 3
    assert loaded.passages_by_rank() == {1: "Boats.", 2: "Every dawn the nets went out."}
    assert loaded.passages[0].passage_id == opening_id

    record.passages = [p for p in record.passages if p.step_rank == 1]
    store.save(record)
    reloaded = store.get(record.story_id)
    assert reloaded is not None
    assert reloaded.passages_by_rank() == {1: "Boats."}


def test_save_inserts_unknown_story(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    record = _record("fresh", "2026-02-01T00:00:00+00:00")
    store.save(record)
    assert store.get("fresh") == record


def test_query_all_orders_newest_first_with_limit(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    store.create(_record("old", "2026-01-01T00:00:00+00:00"))
    store.create(_record("new", "2026-03-01T00:00:00+00:00", ranks=3))
    store.create(_record("mid", "2026-02-01T00:00:00+00:00"))

    listed = store.query_all()

    assert [record.story_id for record in listed] == ["new", "mid", "old"]
    assert len(listed[0].passages) == 3
    assert [record.story_id for record in store.query_all(limit=1)] == ["new"]


def test_delete_cascades_to_passages(tmp_path: Path) -> None:
    db_path = tmp_path / "stories.db"
    store = SQLiteStoryStore(db_path=db_path)
    record = _record("gone", "2026-01-01T00:00:00+00:00", ranks=3)
    store.create(record)

    store.delete(record)

    assert store.get("gone") is None
    assert store.query_all() == []
    with sqlite3.connect(str(db_path)) as connection:
        count = connection.execute("SELECT COUNT(*) FROM passages").fetchone()[0]
    assert count == 0


def test_duplicate_create_raises_persistence_error(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    record = _record("dup", "2026-01-01T00:00:00+00:00")
    store.create(record)
    with pytest.raises(PersistenceWriteError):
        store.create(record)


def test_duplicate_rank_is_rejected_and_rolled_back(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    record = _record("twice", "2026-01-01T00:00:00+00:00")
    record.passages.append(PassageRecord(step_rank=1, text="Again."))
    with pytest.raises(PersistenceWriteError):
        store.create(record)
    assert store.get("twice") is None


def test_resolve_db_path_prefers_argument_then_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("STORY_SPINE_DB_PATH", raising=False)
    assert resolve_db_path() == DEFAULT_DB_PATH
    monkeypatch.setenv("STORY_SPINE_DB_PATH", str(tmp_path / "env.db"))
    assert resolve_db_path() == tmp_path / "env.db"
    assert resolve_db_path(tmp_path / "arg.db") == tmp_path / "arg.db"
