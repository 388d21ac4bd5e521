"""Document category definition (classification / filtering only)."""
from __future__ import annotations

from dataclasses import dataclass

from doccontrol.enum.category import CategoryColor, CategoryType


@dataclass
class CategoryDef:
    id: str
    name: str
    color: CategoryColor = CategoryColor.BLUE
    type: CategoryType = CategoryType.CUSTOM

    @property
    def deletable(self) -> bool:
        return self.type == CategoryType.CUSTOM
