"""SQLite-backed persistence for stories and their spine passages."""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path

from story_spine.domain.errors import PersistenceWriteError
from story_spine.domain.records import PassageRecord, StoryRecord

DEFAULT_DB_PATH = Path("work/local/story_spine.db")

logger = logging.getLogger(__name__)


def resolve_db_path(db_path: Path | None = None) -> Path:
    """Resolve DB path from explicit arg, env var, then default path."""
    if db_path is not None:
        return db_path
    env_value = os.environ.get("STORY_SPINE_DB_PATH", "").strip()
    if env_value:
        return Path(env_value)
    return DEFAULT_DB_PATH


class SQLiteStoryStore:
    """Persist and query story records from one SQLite database."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_schema()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(str(self._db_path))
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    def _initialize_schema(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS stories (
                    story_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    complete INTEGER NOT NULL DEFAULT 0,
                    current_step_rank INTEGER NOT NULL DEFAULT 1,
                    created_at_utc TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS passages (
                    passage_id TEXT PRIMARY KEY,
                    story_id TEXT NOT NULL,
                    step_rank INTEGER NOT NULL CHECK (step_rank BETWEEN 1 AND 7),
                    text TEXT NOT NULL,
                    UNIQUE (story_id, step_rank),
                    FOREIGN KEY (story_id) REFERENCES stories(story_id) ON DELETE CASCADE
                )
                """
            )
            connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_stories_created
                ON stories(created_at_utc DESC)
                """
            )

    def create(self, record: StoryRecord) -> None:
        """Insert a new story and its passages."""
        try:
            with self._connect() as connection:
                connection.execute(
                    """
                    INSERT INTO stories (
                        story_id, title, complete, current_step_rank, created_at_utc, updated_at_utc
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.story_id,
                        record.title,
                        int(record.complete),
                        record.current_step_rank,
                        record.created_at_utc,
                        record.updated_at_utc,
                    ),
                )
                self._write_passages(connection, record)
        except sqlite3.Error as exc:
            logger.warning("store.create failed story_id=%s error=%s", record.story_id, exc)
            raise PersistenceWriteError(f"Could not create story {record.story_id}.") from exc

    def save(self, record: StoryRecord) -> None:
        """Upsert a story and make its stored passages match the record."""
        try:
            with self._connect() as connection:
                connection.execute(
                    """
                    INSERT INTO stories (
                        story_id, title, complete, current_step_rank, created_at_utc, updated_at_utc
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(story_id) DO UPDATE SET
                        title = excluded.title,
                        complete = excluded.complete,
                        current_step_rank = excluded.current_step_rank,
                        updated_at_utc = excluded.updated_at_utc
                    """,
                    (
                        record.story_id,
                        record.title,
                        int(record.complete),
                        record.current_step_rank,
                        record.created_at_utc,
                        record.updated_at_utc,
                    ),
                )
                self._write_passages(connection, record)
        except sqlite3.Error as exc:
            logger.warning("store.save failed story_id=%s error=%s", record.story_id, exc)
            raise PersistenceWriteError(f"Could not save story {record.story_id}.") from exc

    def delete(self, record: StoryRecord) -> None:
        """Delete a story; its passages go with it."""
        try:
            with self._connect() as connection:
                connection.execute("DELETE FROM stories WHERE story_id = ?", (record.story_id,))
        except sqlite3.Error as exc:
            logger.warning("store.delete failed story_id=%s error=%s", record.story_id, exc)
            raise PersistenceWriteError(f"Could not delete story {record.story_id}.") from exc

    def get(self, story_id: str) -> StoryRecord | None:
        """Load one story by id."""
        with self._connect() as connection:
            row = connection.execute(
                """
                SELECT story_id, title, complete, current_step_rank, created_at_utc, updated_at_utc
                FROM stories
                WHERE story_id = ?
                """,
                (story_id,),
            ).fetchone()
            if row is None:
                return None
            passages = self._load_passages(connection, [story_id])
        return self._story_from_row(row, passages.get(story_id, []))

    def query_all(self, *, limit: int | None = None) -> list[StoryRecord]:
        """Return stories newest first by creation time."""
        with self._connect() as connection:
            rows = connection.execute(
                """
                SELECT story_id, title, complete, current_step_rank, created_at_utc, updated_at_utc
                FROM stories
                ORDER BY created_at_utc DESC, story_id
                LIMIT ?
                """,
                (-1 if limit is None else limit,),
            ).fetchall()
            passages = self._load_passages(connection, [str(row["story_id"]) for row in rows])
        return [
            self._story_from_row(row, passages.get(str(row["story_id"]), [])) for row in rows
        ]

    @staticmethod
    def _write_passages(connection: sqlite3.Connection, record: StoryRecord) -> None:
        # rewrite the child rows wholesale; passage ids ride along on the record
        connection.execute("DELETE FROM passages WHERE story_id = ?", (record.story_id,))
        connection.executemany(
            """
            INSERT INTO passages (passage_id, story_id, step_rank, text)
            VALUES (?, ?, ?, ?)
            """,
            [
                (passage.passage_id, record.story_id, passage.step_rank, passage.text)
                for passage in record.passages
            ],
        )

    @staticmethod
    def _load_passages(
        connection: sqlite3.Connection, story_ids: list[str]
    ) -> dict[str, list[PassageRecord]]:
        if not story_ids:
            return {}
        placeholders = ", ".join("?" for _ in story_ids)
        rows = connection.execute(
            f"""
            SELECT passage_id, story_id, step_rank, text
            FROM passages
            WHERE story_id IN ({placeholders})
            ORDER BY step_rank
            """,
            story_ids,
        ).fetchall()
        grouped: dict[str, list[PassageRecord]] = {}
        for row in rows:
            grouped.setdefault(str(row["story_id"]), []).append(
                PassageRecord(
                    step_rank=int(row["step_rank"]),
                    text=str(row["text"]),
                    passage_id=str(row["passage_id"]),
                )
            )
        return grouped

    @staticmethod
    def _story_from_row(row: sqlite3.Row, passages: list[PassageRecord]) -> StoryRecord:
        return StoryRecord(
            story_id=str(row["story_id"]),
            title=str(row["title"]),
            created_at_utc=str(row["created_at_utc"]),
            updated_at_utc=str(row["updated_at_utc"]),
            complete=bool(row["complete"]),
            current_step_rank=int(row["current_step_rank"]),
            passages=passages,
        )
