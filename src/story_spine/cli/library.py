"""Browse, read, export, and delete saved stories from the terminal."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from pathlib import Path

from story_spine.adapters.observability import configure_runtime_logging
from story_spine.adapters.sqlite_story_store import SQLiteStoryStore, resolve_db_path
from story_spine.api.contracts import save_story_json, story_response
from story_spine.application.library import LibraryEntry, display_title, list_library
from story_spine.application.reconciler import record_to_draft
from story_spine.domain.errors import PersistenceWriteError

WriteLine = Callable[[str], None]

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for the story library."""
    parser = argparse.ArgumentParser(description="List and manage saved stories.")
    parser.add_argument(
        "--db-path",
        default="",
        help="SQLite path for story persistence (default: work/local/story_spine.db).",
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--show", default="", metavar="STORY_ID", help="Print one story in full.")
    action.add_argument("--delete", default="", metavar="STORY_ID", help="Delete one story.")
    action.add_argument("--export", default="", metavar="STORY_ID", help="Export one story as JSON.")
    parser.add_argument(
        "--output",
        default="",
        help="Destination for --export (default: work/exports/<story_id>.json).",
    )
    return parser


def _entry_line(entry: LibraryEntry) -> str:
    return f"  {entry.story_id}  {entry.title}  [{entry.progress}]"


def print_library(store: SQLiteStoryStore, *, write: WriteLine = print) -> None:
    view = list_library(store)
    if view.is_empty:
        write("No stories yet. Start one with story-spine-write.")
        return
    for heading, entries in (("To be completed", view.in_progress), ("Completed", view.completed)):
        if not entries:
            continue
        write(heading)
        for entry in entries:
            write(_entry_line(entry))
        write("")


def show_story(store: SQLiteStoryStore, story_id: str, *, write: WriteLine = print) -> None:
    record = store.get(story_id)
    if record is None:
        raise SystemExit(f"Story not found: {story_id}")
    draft = record_to_draft(record)
    if not draft.title:
        write(display_title(draft.title))
        write("")
    write(draft.full_story_text())
    write("")
    write(f"({draft.progress_label()})")


def delete_story(store: SQLiteStoryStore, story_id: str, *, write: WriteLine = print) -> None:
    record = store.get(story_id)
    if record is None:
        raise SystemExit(f"Story not found: {story_id}")
    try:
        store.delete(record)
    except PersistenceWriteError as exc:
        raise SystemExit(str(exc)) from exc
    write(f"Deleted {story_id}")


def export_story(
    store: SQLiteStoryStore,
    story_id: str,
    output_path: Path | None = None,
    *,
    write: WriteLine = print,
) -> Path:
    record = store.get(story_id)
    if record is None:
        raise SystemExit(f"Story not found: {story_id}")
    destination = output_path or Path("work/exports") / f"{story_id}.json"
    save_story_json(destination, story_response(record))
    logger.info("cli.library.exported story_id=%s path=%s", story_id, destination)
    write(f"Exported {story_id} to {destination}")
    return destination


def main(argv: list[str] | None = None) -> None:
    """Parse CLI flags and run one library action."""
    configure_runtime_logging(console_level=logging.WARNING)
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    db_value = str(parsed.db_path).strip()
    store = SQLiteStoryStore(db_path=resolve_db_path(Path(db_value) if db_value else None))

    show_id = str(parsed.show).strip()
    delete_id = str(parsed.delete).strip()
    export_id = str(parsed.export).strip()
    if show_id:
        show_story(store, show_id)
    elif delete_id:
        delete_story(store, delete_id)
    elif export_id:
        output_value = str(parsed.output).strip()
        export_story(store, export_id, Path(output_value) if output_value else None)
    else:
        print_library(store)


if __name__ == "__main__":
    main()
