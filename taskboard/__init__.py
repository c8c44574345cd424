"""Task API service backed by SQLite."""

__version__ = "0.1.0"
