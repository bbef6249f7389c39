"""CLI entrypoint for serving the story_spine HTTP API."""

from __future__ import annotations

import argparse
import os
from pathlib import Path

import uvicorn

from story_spine.adapters.observability import configure_runtime_logging
from story_spine.adapters.sqlite_story_store import resolve_db_path
from story_spine.api.app import create_app

APP_FACTORY = "story_spine.api.app:create_app"


def build_arg_parser() -> argparse.ArgumentParser:
    """Create CLI args for the local API server process."""
    parser = argparse.ArgumentParser(description="Serve the story_spine API.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart on code changes (the app is rebuilt by import path in a worker).",
    )
    parser.add_argument(
        "--db-path",
        default="",
        help="SQLite path for story persistence (default: work/local/story_spine.db).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI flags and serve an app built by ``create_app``."""
    configure_runtime_logging()
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    db_value = str(parsed.db_path).strip()
    db_path = resolve_db_path(Path(db_value) if db_value else None)
    host = str(parsed.host)
    port = int(parsed.port)

    if not parsed.reload:
        uvicorn.run(create_app(db_path=db_path), host=host, port=port)
        return

    # the reloader worker calls the factory itself, so the path rides in the environment
    os.environ["STORY_SPINE_DB_PATH"] = str(db_path)
    uvicorn.run(APP_FACTORY, factory=True, host=host, port=port, reload=True)


if __name__ == "__main__":
    main()
