"""Category accents and ownership tags."""
from __future__ import annotations

from enum import Enum


class CategoryColor(str, Enum):
    BLUE = "blue"
    PURPLE = "purple"
    EMERALD = "emerald"
    AMBER = "amber"
    ROSE = "rose"
    SLATE = "slate"


class CategoryType(str, Enum):
    SYSTEM = "system"   # seeded, non-deletable
    CUSTOM = "custom"   # user-created, deletable
