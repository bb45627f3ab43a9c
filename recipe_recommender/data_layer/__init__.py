"""Data models, exceptions and file-backed collaborators."""
