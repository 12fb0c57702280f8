"""toomanytabs: a small personal bookmark/notes manager (FastAPI + SQLite/PostgreSQL)."""

__version__ = "0.1.0"
