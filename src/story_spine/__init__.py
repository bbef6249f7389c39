"""Co-author short stories along the seven-step Story Spine."""

__version__ = "0.1.0"
