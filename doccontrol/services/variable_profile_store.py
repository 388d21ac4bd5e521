"""
Variable profiles: named sets of ``{{KEY}}`` substitution values.

Exactly one profile is active at a time and at least one always exists.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from doccontrol.exceptions.errors import ValidationError
from doccontrol.logic.id_generator import new_id
from doccontrol.models.variable_profile import VariableProfile, normalize_variable_key

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = VariableProfile(
    id="default",
    name="Default Company",
    variables={
        "COMPANY_NAME": "Acme Corporation",
        "TAX_ID": "000-000-000",
        "CEO": "Jane Doe",
    },
)


class VariableProfileStore:
    def __init__(self, seed: Optional[List[VariableProfile]] = None) -> None:
        profiles = seed if seed else [DEFAULT_PROFILE]
        self._items: Dict[str, VariableProfile] = {p.id: p.copy() for p in profiles}
        self._active_id = next(iter(self._items))

    # ----------------- Queries ---------------------------------------------
    def list(self) -> List[VariableProfile]:
        return list(self._items.values())

    def get(self, profile_id: str) -> Optional[VariableProfile]:
        return self._items.get(profile_id)

    @property
    def active(self) -> VariableProfile:
        return self._items[self._active_id]

    def resolve(self, profile_id: Optional[str]) -> VariableProfile:
        """Profile by id, or the active one when *profile_id* is None."""
        if profile_id is None:
            return self.active
        return self._require(profile_id)

    # ----------------- Profiles --------------------------------------------
    def add_profile(self, name: str) -> VariableProfile:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Profile name must not be empty.")
        profile = VariableProfile(id=new_id("prof-"), name=name)
        self._items[profile.id] = profile
        return profile

    def rename_profile(self, profile_id: str, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Profile name must not be empty.")
        self._require(profile_id).name = name

    def remove_profile(self, profile_id: str) -> None:
        self._require(profile_id)
        if len(self._items) <= 1:
            raise ValidationError("At least one variable profile must remain.")
        del self._items[profile_id]
        if self._active_id == profile_id:
            self._active_id = next(iter(self._items))
        logger.info("Variable profile removed: %s", profile_id)

    def set_active(self, profile_id: str) -> VariableProfile:
        self._require(profile_id)
        self._active_id = profile_id
        return self.active

    # ----------------- Variables -------------------------------------------
    def add_variable(self, profile_id: str, key: str, value: str = "") -> str:
        """Add a variable; returns the normalised key."""
        profile = self._require(profile_id)
        norm = normalize_variable_key(key)
        if not norm:
            raise ValidationError("Variable key must not be empty.")
        if norm in profile.variables:
            raise ValidationError(f"Variable {norm} already exists in '{profile.name}'.")
        profile.variables[norm] = value or ""
        return norm

    def set_variable(self, profile_id: str, key: str, value: str) -> None:
        profile = self._require(profile_id)
        if key not in profile.variables:
            raise ValidationError(f"Unknown variable {key!r} in '{profile.name}'.")
        profile.variables[key] = value or ""

    def remove_variable(self, profile_id: str, key: str) -> None:
        profile = self._require(profile_id)
        if key not in profile.variables:
            raise ValidationError(f"Unknown variable {key!r} in '{profile.name}'.")
        del profile.variables[key]

    def _require(self, profile_id: str) -> VariableProfile:
        profile = self._items.get(profile_id)
        if profile is None:
            raise ValidationError(f"Unknown variable profile: {profile_id!r}")
        return profile
