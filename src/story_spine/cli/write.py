"""Interactive terminal workflow for writing one story step by step."""

from __future__ import annotations

import argparse
import logging
import mimetypes
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from story_spine.adapters.gemini_text_generator import GeminiSettings, GeminiTextGenerator
from story_spine.adapters.observability import configure_runtime_logging
from story_spine.adapters.sqlite_story_store import SQLiteStoryStore, resolve_db_path
from story_spine.application.orchestrator import GenerationOrchestrator
from story_spine.application.session import StorySession
from story_spine.domain.errors import GenerationConfigError, GenerationError, PersistenceWriteError
from story_spine.domain.ports import ImageInput
from story_spine.domain.spine import FIRST_RANK, TOTAL_STEPS

ReadLine = Callable[[str], str]
WriteLine = Callable[[str], None]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteArgs:
    """Resolved arguments for one writing session."""

    image_path: Path | None
    db_path: Path
    story_id: str | None


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for the interactive writing loop."""
    parser = argparse.ArgumentParser(description="Write a story along the Story Spine.")
    parser.add_argument("--image", default="", help="Image that inspires the opening.")
    parser.add_argument(
        "--db-path",
        default="",
        help="SQLite path for story persistence (default: work/local/story_spine.db).",
    )
    parser.add_argument("--story-id", default="", help="Continue a saved, unfinished story.")
    return parser


def load_image(path: Path) -> ImageInput:
    mime_type, _ = mimetypes.guess_type(path.name)
    return ImageInput(data=path.read_bytes(), mime_type=mime_type or "image/jpeg")


def _save_failed(write: WriteLine, exc: PersistenceWriteError) -> None:
    write(f"Could not save the story ({exc}). It will be saved again after the next step.")


def _write_opening(
    session: StorySession,
    image: ImageInput | None,
    *,
    read_line: ReadLine,
    write: WriteLine,
) -> bool:
    """Draft and commit the opening. Returns False when the user quits."""
    if image is not None and not session.passages.get(FIRST_RANK):
        write("Imagining an opening from your image...")
        try:
            session.generate_opening(image)
        except GenerationError as exc:
            write(f"Could not generate an opening: {exc}")

    while True:
        write("")
        write(f"Title: {session.title or '(none yet)'}")
        write(session.passages.get(FIRST_RANK, "(no opening yet)"))
        choice = read_line(
            "[Enter] keep, (e)dit passage, (t)itle, (g)enerate again, (q)uit: "
        ).strip().lower()
        if choice == "q":
            return False
        if choice == "t":
            session.edit_opening(title=read_line("New title: ").strip())
        elif choice == "e":
            session.edit_opening(passage=read_line("Opening passage: ").strip())
        elif choice == "g":
            if image is None:
                write("No image was given, so there is nothing to generate from.")
                continue
            try:
                session.generate_opening(image)
            except GenerationError as exc:
                write(f"Could not generate an opening: {exc}")
        elif choice == "":
            opening = session.passages.get(FIRST_RANK, "")
            if not opening:
                write("Write an opening passage first.")
                continue
            try:
                session.commit_passage(opening)
            except PersistenceWriteError as exc:
                _save_failed(write, exc)
            return True


def _write_step(session: StorySession, *, read_line: ReadLine, write: WriteLine) -> bool:
    """Offer candidates for the current step until one is committed."""
    step = session.current_step
    write("")
    write(f"Step {step.rank} of {TOTAL_STEPS}: {step.title}")
    write(step.description)

    needs_generation = True
    while True:
        if needs_generation:
            write("Thinking of what happens next...")
            try:
                session.generate_continuations()
            except GenerationError as exc:
                write(f"Could not generate continuations: {exc}")
            needs_generation = False

        if session.option_a and session.option_b:
            write("")
            write(f"1) {session.option_a}")
            write("")
            write(f"2) {session.option_b}")
        choice = read_line("Choose 1, 2, (3) write your own, (r)egenerate, (q)uit: ").strip().lower()
        try:
            if choice == "q":
                return False
            if choice == "r":
                needs_generation = True
                continue
            if choice in {"1", "2"}:
                if not (session.option_a and session.option_b):
                    write("There are no generated options yet; try (r)egenerate or (3).")
                    continue
                session.choose_option(int(choice))
                return True
            if choice == "3":
                text = read_line("Your passage: ").strip()
                if session.commit_passage(text):
                    return True
                write("The passage was empty; nothing was added.")
        except PersistenceWriteError as exc:
            _save_failed(write, exc)
            return True


def run_writing_session(
    session: StorySession,
    *,
    image: ImageInput | None = None,
    read_line: ReadLine = input,
    write: WriteLine = print,
) -> None:
    """Drive ``session`` from its current step to completion or until the user quits."""
    if session.complete:
        write("This story is already complete.")
    elif session.current_step.rank == FIRST_RANK:
        if not _write_opening(session, image, read_line=read_line, write=write):
            _report_stop(session, write)
            return

    while not session.complete:
        if not _write_step(session, read_line=read_line, write=write):
            _report_stop(session, write)
            return

    write("")
    write("Story complete!")
    write("")
    write(session.draft.full_story_text())
    if session.story_id is not None:
        write("")
        write(f"Saved as {session.story_id}")


def _report_stop(session: StorySession, write: WriteLine) -> None:
    if session.story_id is None:
        write("Nothing was saved.")
        return
    write(f"Saved as {session.story_id} ({session.draft.progress_label()}).")


def run_write(args: WriteArgs) -> None:
    store = SQLiteStoryStore(db_path=args.db_path)
    try:
        generator = GeminiTextGenerator(GeminiSettings.from_env())
    except GenerationConfigError as exc:
        raise SystemExit(str(exc)) from exc
    orchestrator = GenerationOrchestrator(generator)

    if args.story_id is not None:
        record = store.get(args.story_id)
        if record is None:
            raise SystemExit(f"Story not found: {args.story_id}")
        session = StorySession.resume(record, store, orchestrator)
    else:
        session = StorySession.fresh(store, orchestrator)

    image = load_image(args.image_path) if args.image_path is not None else None
    logger.info(
        "cli.write.start story_id=%s image=%s db_path=%s",
        args.story_id,
        args.image_path,
        args.db_path,
    )
    try:
        run_writing_session(session, image=image)
    finally:
        generator.close()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI flags and run the interactive writing loop."""
    configure_runtime_logging(console_level=logging.WARNING)
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)

    image_value = str(parsed.image).strip()
    image_path = Path(image_value) if image_value else None
    if image_path is not None and not image_path.is_file():
        raise SystemExit(f"Image not found: {image_path}")
    db_value = str(parsed.db_path).strip()
    story_value = str(parsed.story_id).strip()
    run_write(
        WriteArgs(
            image_path=image_path,
            db_path=resolve_db_path(Path(db_value) if db_value else None),
            story_id=story_value or None,
        )
    )


if __name__ == "__main__":
    main()
