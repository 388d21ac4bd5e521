"""Layered configuration (embedded defaults, ini files, environment)."""
