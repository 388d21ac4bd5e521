"""Category registry: seeded system categories plus user-defined ones."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from doccontrol.enum.category import CategoryColor, CategoryType
from doccontrol.exceptions.errors import ValidationError
from doccontrol.logic.id_generator import new_id
from doccontrol.models.category_def import CategoryDef

logger = logging.getLogger(__name__)

SYSTEM_CATEGORIES = (
    CategoryDef(id="iso", name="ISO Management", color=CategoryColor.BLUE, type=CategoryType.SYSTEM),
    CategoryDef(id="hr", name="Human Resources", color=CategoryColor.PURPLE, type=CategoryType.SYSTEM),
    CategoryDef(id="admin", name="Administrative", color=CategoryColor.SLATE, type=CategoryType.SYSTEM),
)


class CategoryRegistry:
    def __init__(self, seed: Optional[List[CategoryDef]] = None) -> None:
        self._items: Dict[str, CategoryDef] = {}
        for c in (seed if seed is not None else SYSTEM_CATEGORIES):
            self._items[c.id] = CategoryDef(id=c.id, name=c.name, color=c.color, type=c.type)

    # ----------------- Queries ---------------------------------------------
    def list(self) -> List[CategoryDef]:
        return list(self._items.values())

    def get(self, category_id: str) -> Optional[CategoryDef]:
        return self._items.get(category_id)

    def exists(self, category_id: str) -> bool:
        return category_id in self._items

    def name_of(self, category_id: str) -> str:
        c = self._items.get(category_id)
        return c.name if c else category_id

    def ensure_exists(self, category_id: str) -> None:
        if category_id not in self._items:
            raise ValidationError(f"Unknown category: {category_id!r}")

    # ----------------- Commands --------------------------------------------
    def add(self, name: str, color: CategoryColor | str = CategoryColor.BLUE) -> CategoryDef:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name must not be empty.")
        try:
            color = CategoryColor(color)
        except ValueError:
            raise ValidationError(f"Unknown category color: {color!r}") from None
        cat = CategoryDef(id=new_id("cat-"), name=name, color=color, type=CategoryType.CUSTOM)
        self._items[cat.id] = cat
        logger.info("Category added: %s (%s)", cat.name, cat.id)
        return cat

    def rename(self, category_id: str, name: str) -> CategoryDef:
        self.ensure_exists(category_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name must not be empty.")
        cat = self._items[category_id]
        cat.name = name
        return cat

    def remove(self, category_id: str) -> None:
        self.ensure_exists(category_id)
        if not self._items[category_id].deletable:
            raise ValidationError(f"System category '{self._items[category_id].name}' cannot be deleted.")
        del self._items[category_id]
        logger.info("Category removed: %s", category_id)
