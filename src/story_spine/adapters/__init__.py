"""Concrete adapters for generation, persistence, and runtime logging."""

from story_spine.adapters.gemini_text_generator import GeminiSettings, GeminiTextGenerator
from story_spine.adapters.sqlite_story_store import SQLiteStoryStore

__all__ = ["GeminiSettings", "GeminiTextGenerator", "SQLiteStoryStore"]
