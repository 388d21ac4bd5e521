"""Revision policies for deriving a new version from an approved document."""
from __future__ import annotations

from enum import Enum


class RevisionType(str, Enum):
    """MAJOR restarts the full cycle; MINOR fast-tracks to final approval."""

    MAJOR = "major"
    MINOR = "minor"
