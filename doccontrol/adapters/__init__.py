"""Adapters for external collaborators.

Provides abstraction layers for:
- Content generation (Gemini)
- PDF export (reportlab / pypdf)
"""
