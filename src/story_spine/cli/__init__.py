"""Command-line entrypoints for writing, browsing, and serving stories."""
