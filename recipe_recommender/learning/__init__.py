"""Preference learning from feedback events."""
