"""Japanese localisation engine for live GitHub-style HTML documents."""

__version__ = "0.1.0"
