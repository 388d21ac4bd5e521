"""Shared core: configuration, logging and date/time helpers."""
